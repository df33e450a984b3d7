import streamlit as st

from src.constants import TITLE_MAX_LENGTH
from src.errors import WizardError
from src.ui.state import get_wizard


def step_title() -> None:
    st.subheader("What's your video about?")
    with st.form("title_form"):
        title = st.text_input(
            "Video title",
            key="title_input",
            max_chars=TITLE_MAX_LENGTH,
            placeholder="e.g., Epic Gaming Montage",
        )
        submitted = st.form_submit_button("Start", type="primary", width="stretch")

    if submitted:
        try:
            get_wizard().start(title)
        except WizardError as exc:
            st.error(str(exc))
        else:
            st.rerun()
