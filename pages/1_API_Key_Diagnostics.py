"""API key diagnostics page.

Traces the key lookup for every service the wizard talks to and makes one
live call per key.
"""
import os
import traceback

import streamlit as st

from src.config import GEMINI_KEY_NAMES, get_secret, mask_secret
from src.diagnostics import run_all

st.set_page_config(page_title="API Key Diagnostics", page_icon="🔑")
st.title("🔑 API Key Diagnostics")
st.caption(
    "Checks the Gemini, OpenAI and YouTube keys the thumbnail wizard uses. "
    "Only key prefixes are ever shown."
)

_KEY_NAMES = (*GEMINI_KEY_NAMES, "openai_api_key", "openai_model", "youtube_api_key", "thumbnail_image_model")


def _lookup_table() -> None:
    try:
        secrets_keys = set(st.secrets.keys())
    except Exception:  # noqa: BLE001 - no secrets.toml is a valid setup
        secrets_keys = set()

    rows = []
    for name in _KEY_NAMES:
        in_secrets = name in secrets_keys or name.upper() in secrets_keys
        in_env = bool(os.getenv(name) or os.getenv(name.upper()))
        resolved = get_secret(name, "")
        shown = resolved if name in ("openai_model", "thumbnail_image_model") else mask_secret(resolved)
        rows.append(
            {
                "key": name,
                "in st.secrets": "✅" if in_secrets else "—",
                "in environment": "✅" if in_env else "—",
                "resolved": shown,
            }
        )
    st.dataframe(rows, width="stretch", hide_index=True)


def run_diagnostics() -> None:
    results = run_all()
    all_passed = all(ok for _, ok, _ in results)

    if all_passed:
        st.success("All checks passed.")
    else:
        first_fail = next((label for label, ok, _ in results if not ok), None)
        st.error(f"One or more checks failed. First failure: **{first_fail}**")

    st.divider()
    for label, passed, detail in results:
        icon = "✅" if passed else "❌"
        with st.expander(f"{icon} {label}", expanded=not passed):
            st.write(detail)

    if not all_passed:
        st.divider()
        st.subheader("How to fix")
        st.code(
            'gemini_api_key = "AIza..."\n'
            'openai_api_key = "sk-..."\n'
            'openai_model = "gpt-4o-mini"\n'
            'youtube_api_key = "AIza..."\n',
            language="toml",
        )
        st.markdown(
            "1. Open `.streamlit/secrets.toml` in your project root.  \n"
            "2. Fill in the keys that failed above.  \n"
            "3. Save the file and **restart** the Streamlit app.  \n"
            "4. Re-run this diagnostic page to confirm.  \n\n"
            "Only the Gemini key is required. Without OpenAI, prompts are composed locally; "
            "without YouTube, placeholder inspiration videos are shown."
        )


st.subheader("Key lookup")
_lookup_table()

if st.button("Run live checks", type="primary"):
    with st.spinner("Running checks…"):
        try:
            run_diagnostics()
        except Exception:
            st.error("Unexpected error during diagnostics:")
            st.code(traceback.format_exc())
else:
    st.info("Click **Run live checks** to call each API once.")
