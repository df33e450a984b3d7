from typing import Optional

import streamlit as st

from src.constants import SLOT_COUNT
from src.errors import WizardError
from src.prompting.composer import influence_tier
from src.research.youtube_search import InspirationSearch, YouTubeVideo, find_inspirations
from src.ui.state import get_search, get_wizard, set_search


def _run_search(query: str, page_token: Optional[str] = None) -> InspirationSearch:
    title = get_wizard().session.title
    with st.spinner("Searching YouTube for inspiration..."):
        return find_inspirations(query, title=title, page_token=page_token)


def _load_more(search: InspirationSearch) -> None:
    more = _run_search(search.query, page_token=search.next_page_token)
    known = {video.id for video in search.videos}
    search.videos.extend(video for video in more.videos if video.id not in known)
    search.next_page_token = more.next_page_token
    if more.notice:
        search.notice = more.notice


def _video_card(video: YouTubeVideo, key_suffix: str) -> None:
    wizard = get_wizard()
    selection = wizard.session.find_inspiration(video.id)
    st.image(video.thumbnail_url, width="stretch")
    st.markdown(f"**{video.title}**")
    st.caption(f"{video.channel_title} · {video.view_count} views")

    if selection is not None:
        slot = wizard.session.inspirations.index(selection) + 1
        label = f"✓ Image {slot} (click to remove)"
    else:
        label = "Use as inspiration"
    if st.button(label, key=f"insp_toggle_{video.id}_{key_suffix}", width="stretch"):
        try:
            wizard.toggle_inspiration(video)
        except WizardError as exc:
            st.warning(str(exc))
        else:
            st.rerun()


def step_inspiration_search() -> None:
    wizard = get_wizard()
    search = get_search()
    if search is None:
        search = _run_search(wizard.session.title)
        set_search(search)

    with st.form("insp_query_form"):
        query = st.text_input("Search YouTube", value=search.query, key="insp_query")
        if st.form_submit_button("Search"):
            set_search(_run_search(query))
            st.rerun()

    if search.notice:
        if search.is_placeholder:
            st.warning(search.notice)
        else:
            st.info(search.notice)

    selected = len(wizard.session.inspirations)
    st.caption(f"{selected}/{SLOT_COUNT} selected. The first pick inspires image 1, the second image 2, and so on.")

    cols = st.columns(3)
    for i, video in enumerate(search.videos):
        with cols[i % 3]:
            _video_card(video, str(i))

    if search.next_page_token and st.button("Load more", key="insp_load_more"):
        _load_more(search)
        st.rerun()

    col_next, col_skip = st.columns(2)
    if col_next.button(f"Continue with {selected} selected", type="primary", width="stretch", key="insp_next"):
        wizard.confirm_inspirations()
        st.rerun()
    if col_skip.button("Skip inspiration", width="stretch", key="insp_skip"):
        wizard.skip_inspiration()
        st.rerun()


def step_inspiration_tuning() -> None:
    wizard = get_wizard()
    for idx, selection in enumerate(wizard.session.inspirations):
        with st.container(border=True):
            col_img, col_controls = st.columns([1, 2])
            col_img.image(selection.video.thumbnail_url, width="stretch")
            with col_controls:
                st.markdown(f"**Image {idx + 1}:** {selection.video.title}")
                level = st.slider(
                    "Influence level",
                    min_value=0,
                    max_value=100,
                    value=selection.level,
                    step=5,
                    key=f"tune_level_{selection.id}",
                )
                st.caption(influence_tier(level).label)
                face = st.toggle("Replicate face", value=selection.replicate_face, key=f"tune_face_{selection.id}")
                text = st.toggle("Replicate text", value=selection.replicate_text, key=f"tune_text_{selection.id}")
                wizard.set_influence(selection.id, level)
                wizard.set_replication(selection.id, face=face, text=text)

    if st.button("Confirm details", type="primary", width="stretch", key="tune_confirm"):
        wizard.confirm_tuning()
        st.rerun()
