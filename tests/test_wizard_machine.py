import pytest

from src.errors import WizardError
from src.research.youtube_search import YouTubeVideo
from src.wizard.machine import Action, ThumbnailWizard, next_step
from src.wizard.session import SlotResult, WizardStep


def _video(i: int) -> YouTubeVideo:
    return YouTubeVideo(
        id=f"vid{i}",
        title=f"Video {i}",
        thumbnail_url=f"https://i.ytimg.com/vi/vid{i}/hqdefault.jpg",
        view_count="1.2K",
        channel_title="Channel",
        view_count_raw=1200,
    )


def _wizard_at_prompt(title: str = "Epic Gaming Montage") -> ThumbnailWizard:
    wizard = ThumbnailWizard()
    wizard.start(title)
    wizard.skip_colors()
    wizard.skip_inspiration()
    wizard.skip_master_text()
    return wizard


def _user_messages(wizard: ThumbnailWizard) -> list[str]:
    return [m.content for m in wizard.transcript if m.sender == "user"]


def test_happy_path_walks_every_step_in_order() -> None:
    wizard = ThumbnailWizard()
    wizard.start("  Epic   Gaming Montage ")
    assert wizard.session.title == "Epic Gaming Montage"
    assert wizard.step is WizardStep.COLORS

    wizard.submit_colors(["Red", "Blue"])
    assert wizard.step is WizardStep.INSPIRATION_SEARCH

    assert wizard.toggle_inspiration(_video(1)) is True
    wizard.confirm_inspirations()
    assert wizard.step is WizardStep.INSPIRATION_TUNING

    wizard.set_influence("vid1", 140)
    wizard.set_replication("vid1", face=True)
    assert wizard.session.inspirations[0].level == 100
    assert wizard.session.inspirations[0].replicate_face is True
    wizard.confirm_tuning()
    assert wizard.step is WizardStep.MASTER_TEXT

    wizard.submit_master_text(["LEVEL UP", ""])
    assert wizard.session.master_text == ["LEVEL UP"]
    assert wizard.step is WizardStep.PROMPT

    wizard.submit_prompt("A gamer surrounded by explosions")
    assert wizard.step is WizardStep.GENERATING
    assert wizard.transcript[-1].sender == "bot"


def test_skips_are_recorded_in_the_transcript() -> None:
    wizard = _wizard_at_prompt()
    wizard.skip_prompt()

    messages = _user_messages(wizard)
    assert "Skipped color selection." in messages
    assert "Skipped video inspiration." in messages
    assert "Skipped master text." in messages
    assert "Skipped custom prompt, will generate if needed." in messages
    assert wizard.step is WizardStep.GENERATING


def test_confirming_zero_inspirations_routes_like_a_skip() -> None:
    wizard = ThumbnailWizard()
    wizard.start("Cooking Basics")
    wizard.skip_colors()
    wizard.confirm_inspirations()

    assert wizard.step is WizardStep.MASTER_TEXT
    assert _user_messages(wizard)[-1] == "No inspiration videos selected."


def test_inspiration_selection_is_capped_and_toggles_off() -> None:
    wizard = ThumbnailWizard()
    wizard.start("Travel Vlog")
    wizard.skip_colors()
    for i in range(4):
        wizard.toggle_inspiration(_video(i))

    with pytest.raises(WizardError, match="up to 4"):
        wizard.toggle_inspiration(_video(9))

    assert wizard.toggle_inspiration(_video(1)) is False
    assert [s.id for s in wizard.session.inspirations] == ["vid0", "vid2", "vid3"]


@pytest.mark.parametrize("title", ["ab", "x" * 101, "   "])
def test_start_rejects_invalid_titles(title: str) -> None:
    wizard = ThumbnailWizard()
    with pytest.raises(WizardError):
        wizard.start(title)
    assert wizard.step is WizardStep.START


def test_master_text_limits_are_enforced() -> None:
    wizard = ThumbnailWizard()
    wizard.start("Travel Vlog")
    wizard.skip_colors()
    wizard.skip_inspiration()

    with pytest.raises(WizardError):
        wizard.submit_master_text(["a", "b", "c", "d"])
    with pytest.raises(WizardError):
        wizard.submit_master_text(["x" * 71])
    assert wizard.step is WizardStep.MASTER_TEXT


def test_invalid_transition_raises() -> None:
    with pytest.raises(WizardError):
        next_step(WizardStep.RESULTS, Action.SUBMIT)
    assert next_step(WizardStep.PROMPT, Action.START_OVER) is WizardStep.START

    wizard = ThumbnailWizard()
    with pytest.raises(WizardError):
        wizard.skip_colors()


def test_complete_generation_summarises_partial_failure_and_adopts_prompt() -> None:
    wizard = _wizard_at_prompt()
    wizard.skip_prompt()
    epoch = wizard.generation_epoch()
    results = [
        SlotResult(index=1, prompt="p", error="Error generating image 2: boom", error_kind="transient"),
        SlotResult(index=0, prompt="p", image_bytes=b"png"),
    ]

    assert wizard.complete_generation(results, epoch, derived_prompt="derived prompt") is True

    assert wizard.step is WizardStep.RESULTS
    assert [r.index for r in wizard.session.results] == [0, 1]
    assert wizard.session.prompt == "derived prompt"
    assert wizard.transcript[-1].content.startswith("Generated 1 thumbnail(s), but some errors occurred.")


def test_all_failed_summary_is_an_error() -> None:
    wizard = _wizard_at_prompt()
    wizard.skip_prompt()
    results = [SlotResult(index=i, error=f"Error generating image {i + 1}: nope") for i in range(4)]

    wizard.complete_generation(results, wizard.generation_epoch())

    assert wizard.transcript[-1].kind == "error"
    assert wizard.transcript[-1].content.startswith("Thumbnail generation failed.")


def test_start_over_discards_late_results() -> None:
    wizard = _wizard_at_prompt()
    wizard.skip_prompt()
    epoch = wizard.generation_epoch()

    previous_title = wizard.start_over()

    assert previous_title == "Epic Gaming Montage"
    assert wizard.step is WizardStep.START
    assert wizard.session.epoch == epoch + 1
    assert wizard.complete_generation([SlotResult(index=0, image_bytes=b"png")], epoch) is False
    assert wizard.session.results == []
    assert wizard.transcript == []


def test_regenerate_keeps_session_data() -> None:
    wizard = _wizard_at_prompt()
    wizard.submit_prompt("A castle at dusk")
    wizard.complete_generation([SlotResult(index=0, image_bytes=b"png")], wizard.generation_epoch())

    wizard.regenerate()

    assert wizard.step is WizardStep.GENERATING
    assert wizard.session.prompt == "A castle at dusk"
    assert wizard.session.title == "Epic Gaming Montage"
