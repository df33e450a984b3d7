import streamlit as st

from src.constants import MAX_MASTER_TEXT_SENTENCES, MAX_SENTENCE_LENGTH
from src.errors import WizardError
from src.ui.state import get_wizard


def step_master_text() -> None:
    wizard = get_wizard()
    with st.form("master_text_form"):
        sentences = [
            st.text_input(
                f"Sentence {i + 1}",
                max_chars=MAX_SENTENCE_LENGTH,
                key=f"master_sentence_{i}",
            )
            for i in range(MAX_MASTER_TEXT_SENTENCES)
        ]
        col_use, col_skip = st.columns(2)
        use = col_use.form_submit_button("Use master text", type="primary", width="stretch")
        skip = col_skip.form_submit_button("Skip", width="stretch")

    if skip:
        wizard.skip_master_text()
        st.rerun()
    if use:
        try:
            wizard.submit_master_text(sentences)
        except WizardError as exc:
            st.error(str(exc))
        else:
            st.rerun()
