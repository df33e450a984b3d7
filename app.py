import streamlit as st

from src.ui.chat import render_transcript
from src.ui.state import get_wizard, init_state, require_passcode, start_over
from src.ui.steps.colors import step_colors
from src.ui.steps.generation import step_generating, step_results
from src.ui.steps.inspiration import step_inspiration_search, step_inspiration_tuning
from src.ui.steps.master_text import step_master_text
from src.ui.steps.prompt import step_prompt
from src.ui.steps.title import step_title
from src.wizard.session import WizardStep

STEP_VIEWS = {
    WizardStep.START: step_title,
    WizardStep.COLORS: step_colors,
    WizardStep.INSPIRATION_SEARCH: step_inspiration_search,
    WizardStep.INSPIRATION_TUNING: step_inspiration_tuning,
    WizardStep.MASTER_TEXT: step_master_text,
    WizardStep.PROMPT: step_prompt,
    WizardStep.GENERATING: step_generating,
    WizardStep.RESULTS: step_results,
}


def main() -> None:
    st.set_page_config(page_title="Thumbnail Forge", layout="wide")
    require_passcode()
    init_state()

    st.title("Thumbnail Forge")
    st.caption("Chat your way from a video title to four AI-generated YouTube thumbnails.")

    wizard = get_wizard()
    if wizard.step != WizardStep.START:
        with st.sidebar:
            st.markdown(f"**Title:** {wizard.session.title}")
            st.caption(f"Step: {wizard.step.value}")
            st.button("Start over", width="stretch", key="sidebar_start_over", on_click=start_over)

    render_transcript()
    STEP_VIEWS[wizard.step]()


if __name__ == "__main__":
    main()
