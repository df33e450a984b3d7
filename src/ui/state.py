from typing import Optional

import streamlit as st

from src.config import get_secret
from src.errors import ApiConfigError, ThumbnailForgeError, TransientApiError
from src.research.youtube_search import InspirationSearch
from src.wizard.machine import ThumbnailWizard


def require_passcode() -> None:
    secret_key = "APP_PASSCODE" if "APP_PASSCODE" in st.secrets else "password"
    expected = st.secrets.get(secret_key, "")

    if not expected:
        return

    st.session_state.setdefault("auth_ok", False)
    if st.session_state.auth_ok:
        return

    st.title("🔒 Thumbnail Forge")
    code = st.text_input("Password", type="password")
    if st.button("Log in", type="primary"):
        st.session_state.auth_ok = code == expected
        if not st.session_state.auth_ok:
            st.error("Incorrect password.")
        st.rerun()
    st.stop()


def _max_workers() -> int:
    try:
        return max(1, int(get_secret("thumbnail_max_workers", "1")))
    except ValueError:
        return 1


def init_state() -> None:
    st.session_state.setdefault("wizard", ThumbnailWizard())
    st.session_state.setdefault("title_input", "")
    st.session_state.setdefault("inspiration_search", None)
    st.session_state.setdefault("max_workers", _max_workers())


def get_wizard() -> ThumbnailWizard:
    return st.session_state.wizard


def get_search() -> Optional[InspirationSearch]:
    return st.session_state.get("inspiration_search")


def set_search(search: Optional[InspirationSearch]) -> None:
    st.session_state.inspiration_search = search


def _clear_step_widget_state() -> None:
    prefixes = (
        "color_",
        "insp_",
        "tune_",
        "master_",
        "prompt_",
    )
    for key in list(st.session_state.keys()):
        if isinstance(key, str) and key.startswith(prefixes):
            del st.session_state[key]


def start_over() -> None:
    """Reset the wizard and every step widget; the old title prefills the title box."""
    previous_title = get_wizard().start_over()
    _clear_step_widget_state()
    st.session_state.inspiration_search = None
    st.session_state.title_input = previous_title


def user_error_message(exc: Exception) -> str:
    if isinstance(exc, ApiConfigError):
        return (
            f"{exc}\n\nCheck the API keys in Streamlit secrets (gemini_api_key, openai_api_key, "
            "youtube_api_key). The API Key Diagnostics page can test them."
        )
    if isinstance(exc, TransientApiError):
        return f"The service is busy or unreachable right now. Please try again in a moment. ({exc})"
    if isinstance(exc, ThumbnailForgeError):
        return str(exc)
    return f"Unexpected error: {exc}"
