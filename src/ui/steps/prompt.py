import streamlit as st

from src.constants import MAX_USER_PROMPT_LENGTH
from src.generation.orchestrator import shared_prompt_request
from src.prompting.improve import improve_prompt
from src.ui.state import get_wizard, user_error_message


def _ai_prompt(draft: str, mode: str) -> None:
    wizard = get_wizard()
    verb = "generate" if mode == "generate" else "enhance"
    try:
        with st.spinner("Writing a prompt..."):
            prompt = improve_prompt(shared_prompt_request(wizard.session, draft if mode == "enhance" else ""))
    except Exception as exc:  # noqa: BLE001 - surface prompt generation errors to user
        wizard.report_error(f"Failed to {verb} prompt: {user_error_message(exc)}")
        return
    wizard.submit_prompt(prompt, mode=mode, original=draft)


def step_prompt() -> None:
    wizard = get_wizard()
    draft = st.text_area(
        "Base prompt (optional)",
        height=160,
        max_chars=MAX_USER_PROMPT_LENGTH,
        placeholder="Describe the scene, mood, subject... or leave empty and let the AI write it.",
        key="prompt_text",
    )

    col_use, col_enhance, col_generate, col_skip = st.columns(4)
    if col_use.button("Use this prompt", type="primary", width="stretch", key="prompt_use"):
        wizard.submit_prompt(draft)
        st.rerun()
    if col_enhance.button("Enhance with AI", width="stretch", key="prompt_enhance"):
        # Enhancing an empty draft means writing one from scratch.
        _ai_prompt(draft, "enhance" if draft.strip() else "generate")
        st.rerun()
    if col_generate.button("Generate for me", width="stretch", key="prompt_generate"):
        _ai_prompt(draft, "generate")
        st.rerun()
    if col_skip.button("Skip", width="stretch", key="prompt_skip"):
        wizard.skip_prompt()
        st.rerun()
