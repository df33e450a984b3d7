import pytest

from src.constants import PROMPT_PREFIX, QUALITY_REMINDER
from src.prompting import composer
from src.prompting.models import InspirationImage, PromptRequest, ThumbnailRequest


@pytest.mark.parametrize(
    ("level", "tier"),
    [
        (100, "strong"),
        (90, "strong"),
        (89, "high"),
        (70, "high"),
        (69, "balanced"),
        (50, "balanced"),
        (49, "moderate"),
        (30, "moderate"),
        (29, "light"),
        (0, "light"),
    ],
)
def test_influence_tier_lower_bounds_are_inclusive(level: int, tier: str) -> None:
    assert composer.influence_tier(level).name == tier


def test_influence_instruction_names_level_and_label() -> None:
    text = composer.influence_instruction(55)

    assert text.startswith("**Visual Style & Inspiration (Level: 55% - Balanced Influence):**")
    assert "about 55%" in text


def test_compose_prompt_for_title_and_colors() -> None:
    prompt = composer.compose_prompt("Epic Gaming Montage", ["Red", "Blue"])
    sections = composer.split_sections(prompt)

    assert prompt.startswith(PROMPT_PREFIX)
    assert prompt.endswith(QUALITY_REMINDER)
    assert "Red" in sections["Color Palette"]
    assert "Blue" in sections["Color Palette"]
    assert list(sections) == list(composer.SECTION_LABELS)


def test_compose_prompt_master_text_is_the_only_overlay_text() -> None:
    prompt = composer.compose_prompt(
        "Epic Gaming Montage",
        master_text=["LEVEL UP", "You won't believe it"],
        inspiration_title="Best Plays 2024",
        influence_level=80,
        replicate_text=True,
    )
    overlays = composer.split_sections(prompt)["Overlays"]

    assert overlays == (
        "The following text MUST be prominently displayed and be the ONLY text on the thumbnail: "
        "'LEVEL UP'; 'You won’t believe it'. Arrange attractively. No other text from any source "
        "(inspiration image, title analysis, or general description) should be present."
    )
    assert "Replicate the visible text" not in prompt


def test_compose_prompt_replicates_inspiration_text_without_master_text() -> None:
    prompt = composer.compose_prompt("Speedrun", inspiration_title="World Record", replicate_text=True)

    assert "Replicate the visible text" in composer.split_sections(prompt)["Overlays"]


def test_compose_prompt_face_replication_controls_likeness_note() -> None:
    distinct = composer.compose_prompt("Cooking Show", inspiration_title="Chef Tips")
    replicated = composer.compose_prompt("Cooking Show", inspiration_title="Chef Tips", replicate_face=True)

    assert composer.DISTINCT_LIKENESS_NOTE in distinct
    assert composer.DISTINCT_LIKENESS_NOTE not in replicated
    assert composer.REPLICATE_FACE_NOTE in replicated


def test_ensure_prefix_is_prepended_once() -> None:
    assert composer.ensure_prefix("Subject & Scene: a castle") == f"{PROMPT_PREFIX} Subject & Scene: a castle"
    already = f"{PROMPT_PREFIX} Subject & Scene: a castle"
    assert composer.ensure_prefix(already) == already


def test_enforce_master_text_replaces_model_written_overlays() -> None:
    model_output = (
        f"{PROMPT_PREFIX}\n"
        "Subject & Scene: A knight on a cliff.\n"
        "Overlays: Big yellow text saying 'EPIC BATTLE' plus the channel logo.\n"
        "Human Element: A determined knight.\n"
        "Lighting: Sunset."
    )

    result = composer.enforce_master_text(model_output, ["THE LAST STAND"])
    sections = composer.split_sections(result)

    assert "EPIC BATTLE" not in result
    assert "'THE LAST STAND'" in sections["Overlays"]
    assert sections["Human Element"] == "A determined knight."


def test_enforce_master_text_inserts_missing_overlays_section() -> None:
    model_output = f"{PROMPT_PREFIX}\nSubject & Scene: A rocket launch.\nLighting: Night sky."

    result = composer.enforce_master_text(model_output, ["LIFTOFF"])

    assert "'LIFTOFF'" in composer.split_sections(result)["Overlays"]
    assert result.startswith(PROMPT_PREFIX)


def test_enforce_master_text_replaces_multiline_trailing_overlays() -> None:
    model_output = (
        f"{PROMPT_PREFIX}\n"
        "Subject & Scene: A gamer at a glowing desk.\n"
        "Artistic Style: comic.\n"
        "Overlays: The words 'FREE V-BUCKS' in yellow\n"
        "plus a red 'WIN' badge in the corner."
    )

    result = composer.enforce_master_text(model_output, ["GG"])

    assert "FREE V-BUCKS" not in result
    assert "red 'WIN' badge" not in result
    assert "'GG'" in composer.split_sections(result)["Overlays"]
    assert composer.split_sections(result)["Artistic Style"] == "comic."


def test_enforce_master_text_keeps_quality_reminder_after_trailing_overlays() -> None:
    model_output = (
        f"{PROMPT_PREFIX}\n"
        "Subject & Scene: A volcano erupting.\n"
        "Overlays: 'BOOM' in red letters\n"
        "with a lava drip effect.\n"
        f"{QUALITY_REMINDER}"
    )

    result = composer.enforce_master_text(model_output, ["ERUPTION"])

    assert "BOOM" not in result
    assert "lava drip" not in result
    assert result.endswith(QUALITY_REMINDER)
    assert "'ERUPTION'" in composer.split_sections(result)["Overlays"]


def test_ensure_prefix_normalizes_prefix_case() -> None:
    lowered = PROMPT_PREFIX.lower() + " Subject & Scene: a castle"

    assert composer.ensure_prefix(lowered) == f"{PROMPT_PREFIX} Subject & Scene: a castle"


def test_enforce_master_text_without_sentences_is_a_no_op() -> None:
    assert composer.enforce_master_text("anything", []) == "anything"


def test_build_generation_text_with_inspiration_and_master_text() -> None:
    request = ThumbnailRequest(
        prompt="A chef flipping pancakes",
        master_text=["BREAKFAST HACKS"],
        colors=["Yellow"],
        inspiration=InspirationImage(data=b"jpeg"),
        influence_level=95,
        replicate_text=True,
    )

    text = composer.build_generation_text(request)

    assert "Strong Adherence" in text
    assert "'BREAKFAST HACKS'" in text
    assert "Text Replication Requirement" not in text
    assert composer.DISTINCT_LIKENESS_NOTE in text
    assert text.endswith(composer.FINAL_REMINDER)


def test_build_generation_text_without_inspiration() -> None:
    text = composer.build_generation_text(ThumbnailRequest(prompt="A neon city"))

    assert '"A neon city"' in text
    assert "Visual Style & Inspiration" not in text


def test_build_improve_instruction_mentions_title_colors_and_master_text() -> None:
    request = PromptRequest(title="Epic Gaming Montage", colors=["Red"], master_text=["GG"])

    instruction = composer.build_improve_instruction(request)

    assert "Epic Gaming Montage" in instruction
    assert "Red" in instruction
    assert "GG" in instruction
    assert PROMPT_PREFIX in instruction
