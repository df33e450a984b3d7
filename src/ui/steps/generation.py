import streamlit as st

from src.constants import SLOT_COUNT
from src.generation.orchestrator import generate_thumbnails
from src.ui.state import get_wizard, start_over
from utils import build_zip, slugify_title, thumbnail_filename


def step_generating() -> None:
    wizard = get_wizard()
    epoch = wizard.generation_epoch()
    with st.spinner(f"Creating {SLOT_COUNT} thumbnails..."):
        outcome = generate_thumbnails(wizard.session, max_workers=st.session_state.max_workers)
    wizard.complete_generation(outcome.results, epoch, outcome.derived_prompt)
    st.rerun()


def step_results() -> None:
    wizard = get_wizard()
    session = wizard.session

    cols = st.columns(2)
    for result in session.results:
        k = result.index + 1
        with cols[result.index % 2]:
            with st.container(border=True):
                if result.ok:
                    st.image(result.image_bytes, caption=f"Thumbnail {k}", width="stretch")
                    st.download_button(
                        "Download",
                        data=result.image_bytes,
                        file_name=thumbnail_filename(session.title, result.index),
                        mime="image/png",
                        width="stretch",
                        key=f"download_{k}",
                    )
                else:
                    st.error(result.error or f"Thumbnail {k} failed.")
                if result.prompt:
                    with st.expander("Prompt used"):
                        st.write(result.prompt)

    if any(result.ok for result in session.results):
        st.download_button(
            "Download all (ZIP)",
            data=build_zip(session.title, session.results),
            file_name=f"thumbnails_{slugify_title(session.title)}.zip",
            mime="application/zip",
            width="stretch",
            key="download_all",
        )

    col_regen, col_reset = st.columns(2)
    if col_regen.button("Regenerate", type="primary", width="stretch", key="results_regenerate"):
        wizard.regenerate()
        st.rerun()
    col_reset.button("Start over", width="stretch", key="results_start_over", on_click=start_over)
