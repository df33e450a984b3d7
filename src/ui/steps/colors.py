import streamlit as st

from src.constants import MAX_PRIMARY_COLORS, PREDEFINED_COLORS
from src.errors import WizardError
from src.ui.state import get_wizard


def step_colors() -> None:
    wizard = get_wizard()
    colors = st.multiselect(
        f"Primary colors (up to {MAX_PRIMARY_COLORS})",
        PREDEFINED_COLORS,
        default=wizard.session.colors,
        max_selections=MAX_PRIMARY_COLORS,
        key="color_select",
    )

    col_next, col_skip = st.columns(2)
    if col_next.button("Next", type="primary", width="stretch", key="color_next"):
        try:
            wizard.submit_colors(colors)
        except WizardError as exc:
            st.error(str(exc))
        else:
            st.rerun()
    if col_skip.button("Skip", width="stretch", key="color_skip"):
        wizard.skip_colors()
        st.rerun()
