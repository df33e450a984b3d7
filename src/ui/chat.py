import streamlit as st

from src.ui.state import get_wizard

_AVATARS = {"user": "🧑", "bot": "🤖", "system": "⚙️"}


def render_transcript() -> None:
    for message in get_wizard().transcript:
        role = "assistant" if message.sender == "bot" else message.sender
        with st.chat_message(role, avatar=_AVATARS.get(message.sender)):
            if message.kind == "error":
                st.error(message.content)
            elif message.sender == "system":
                st.caption(message.content)
            else:
                st.markdown(message.content)
