"""Thumbnail prompt composition.

Every prompt produced here follows the same structure::

    A dynamic 16:9 cinematic thumbnail.
    Subject & Scene: ...
    Overlays: ...
    Human Element: ...
    Color Palette: ...
    Lighting: ...
    Composition: ...
    Thematic Integration (of Title): ...
    Artistic Style: ...
    Ensure high detail, ... YouTube thumbnail.

Master text, when present, is the only text the Overlays section may name.
``ensure_prefix`` and ``enforce_master_text`` re-apply those rules to prompts
written by a text model.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from src.constants import PROMPT_PREFIX, QUALITY_REMINDER, UNSET_INFLUENCE_LEVEL
from src.prompting.models import PromptRequest, ThumbnailRequest

SECTION_LABELS = (
    "Subject & Scene",
    "Overlays",
    "Human Element",
    "Color Palette",
    "Lighting",
    "Composition",
    "Thematic Integration (of Title)",
    "Artistic Style",
)

_SECTION_RE = re.compile(
    r"(?P<label>Subject & Scene|Overlays|Human Element(?: \(if any\))?|Color Palette|Lighting|Composition"
    r"|Thematic Integration \(of Title\)|Artistic Style)\s*:",
)

DISTINCT_LIKENESS_NOTE = (
    "Create an AI-generated person that is similar in style but distinct, NOT an exact facial replica "
    "of anyone in the inspiration image, unless the description explicitly demands the likeness of a "
    "specific, named individual."
)
REPLICATE_FACE_NOTE = (
    "If a person is clearly visible in the inspiration image, meticulously replicate their facial "
    "features, expression, and likeness, integrating them naturally into the scene."
)
QUALITY_REQUIREMENT = (
    "**Visual Quality Requirement: Generate an image with high detail, intricate textures, and a clear, "
    "sharp focus, suitable for a high-resolution widescreen (16:9 aspect ratio) display. This is for a "
    "YOUTUBE THUMBNAIL. Emphasize cinematic quality.**"
)
FINAL_REMINDER = (
    "**Final Reminder: The output image should have a 16:9 aspect ratio, be highly detailed, and suitable "
    "for a YOUTUBE THUMBNAIL.**"
)


@dataclass(frozen=True)
class InfluenceTier:
    name: str
    label: str
    floor: int
    guidance: str


INFLUENCE_TIERS = (
    InfluenceTier(
        "strong",
        "Strong Adherence",
        90,
        "STRONGLY adhere to the visual style, color palette, composition (framing, angles for a 16:9 "
        "widescreen view), lighting, and overall mood of the inspiration image. It is the PRIMARY visual guide.",
    ),
    InfluenceTier(
        "high",
        "High Adherence",
        70,
        "Follow the visual style, color palette, composition, and lighting of the inspiration image with HIGH "
        "influence, balanced against the core concept.",
    ),
    InfluenceTier(
        "balanced",
        "Balanced Influence",
        50,
        "Draw MODERATE inspiration (about {level}%) from the inspiration image for style, color, and general "
        "composition; the core concept should shape the image just as much.",
    ),
    InfluenceTier(
        "moderate",
        "Moderate Influence",
        30,
        "Let the inspiration image offer some visual cues (about {level}%) for style or mood; the core concept "
        "drives the content and most visual choices.",
    ),
    InfluenceTier(
        "light",
        "Light Influence",
        0,
        "Take only LIGHT cues (about {level}%) from the inspiration image, such as a subtle mood or a minor "
        "stylistic element; the description drives everything else.",
    ),
)


def influence_tier(level: int) -> InfluenceTier:
    for tier in INFLUENCE_TIERS:
        if level >= tier.floor:
            return tier
    return INFLUENCE_TIERS[-1]


def influence_instruction(level: int) -> str:
    tier = influence_tier(level)
    return (
        f"**Visual Style & Inspiration (Level: {level}% - {tier.label}):** "
        f"{tier.guidance.format(level=level)}"
    )


def _quote(sentence: str) -> str:
    return "'" + sentence.replace("'", "’") + "'"


def master_text_overlay(master_text: Sequence[str]) -> str:
    quoted = "; ".join(_quote(s) for s in master_text)
    return (
        "Overlays: The following text MUST be prominently displayed and be the ONLY text on the thumbnail: "
        f"{quoted}. Arrange attractively. No other text from any source (inspiration image, title analysis, "
        "or general description) should be present."
    )


def ensure_prefix(prompt: str) -> str:
    text = (prompt or "").strip()
    if text.startswith(PROMPT_PREFIX):
        return text
    if text.lower().startswith(PROMPT_PREFIX.lower()):
        return PROMPT_PREFIX + text[len(PROMPT_PREFIX):]
    return f"{PROMPT_PREFIX} {text}".strip()


def split_sections(prompt: str) -> dict[str, str]:
    """Map each known section label to its text (first occurrence wins)."""
    matches = list(_SECTION_RE.finditer(prompt or ""))
    sections: dict[str, str] = {}
    for idx, match in enumerate(matches):
        end = matches[idx + 1].start() if idx + 1 < len(matches) else len(prompt)
        label = match.group("label").replace(" (if any)", "")
        sections.setdefault(label, prompt[match.end():end].strip())
    return sections


def enforce_master_text(prompt: str, master_text: Sequence[str]) -> str:
    """Rewrite the Overlays section so it names only the master text."""
    sentences = [s for s in master_text if s and s.strip()]
    if not sentences:
        return prompt

    overlay = master_text_overlay(sentences)
    matches = list(_SECTION_RE.finditer(prompt))
    for idx, match in enumerate(matches):
        if match.group("label") != "Overlays":
            continue
        if idx + 1 < len(matches):
            end = matches[idx + 1].start()
            return prompt[: match.start()] + overlay + "\n" + prompt[end:]
        # Last section: everything up to the closing quality sentence belongs to Overlays.
        reminder_at = prompt.find(QUALITY_REMINDER, match.end())
        tail = "\n" + prompt[reminder_at:] if reminder_at != -1 else ""
        return prompt[: match.start()] + overlay + tail

    # No Overlays section: slot it in right after Subject & Scene (or the prefix).
    for idx, match in enumerate(matches):
        if match.group("label") == "Subject & Scene" and idx + 1 < len(matches):
            insert_at = matches[idx + 1].start()
            return prompt[:insert_at] + overlay + "\n" + prompt[insert_at:]
    if prompt.startswith(PROMPT_PREFIX):
        rest = prompt[len(PROMPT_PREFIX):].lstrip()
        return f"{PROMPT_PREFIX}\n{overlay}\n{rest}".rstrip()
    return f"{overlay}\n{prompt}"


def compose_prompt(
    title: str,
    colors: Sequence[str] = (),
    master_text: Sequence[str] = (),
    *,
    description: str = "",
    inspiration_title: str = "",
    influence_level: Optional[int] = None,
    replicate_face: bool = False,
    replicate_text: bool = False,
) -> str:
    """Build a structured prompt without calling any model."""
    title = (title or "").strip()
    theme = title or "captivating content"
    master_text = [s for s in master_text if s and s.strip()]
    has_inspiration = bool(inspiration_title)

    subject = (description or "").strip() or (
        f"A striking, high-energy scene that instantly communicates '{theme}', with one bold focal subject "
        "set against a dynamic background."
    )
    if has_inspiration:
        level = UNSET_INFLUENCE_LEVEL if influence_level is None else influence_level
        tier = influence_tier(level)
        subject += (
            f" The visual style follows the thumbnail of '{inspiration_title}' with "
            f"{tier.label.lower()} ({level}%)."
        )

    if master_text:
        overlays = master_text_overlay(master_text)
    elif replicate_text and has_inspiration:
        overlays = (
            "Overlays: Replicate the visible text from the inspiration thumbnail, matching its content, "
            "font style, color, and approximate placement."
        )
    else:
        overlays = (
            f"Overlays: A short, bold, high-contrast headline that conveys '{theme}', placed in the upper third."
        )

    if replicate_face and has_inspiration:
        human = f"Human Element: {REPLICATE_FACE_NOTE}"
    else:
        human = (
            "Human Element: An expressive person reacting to the subject, with a clear, emotive face. "
            f"{DISTINCT_LIKENESS_NOTE}"
        )

    if colors:
        palette = (
            f"Color Palette: The scene should naturally incorporate these primary colors: {', '.join(colors)}. "
            "For the rest of the palette, use complementary, high-contrast tones."
        )
    else:
        palette = f"Color Palette: A vibrant, high-contrast palette suited to the mood of '{theme}'."

    thematic = f"Thematic Integration (of Title): This scene visually hints at the possibilities of '{theme}'."
    if master_text:
        thematic += " Use the title as a visual theme only; do not render it as text."

    lines = [
        PROMPT_PREFIX,
        f"Subject & Scene: {subject}",
        overlays,
        human,
        palette,
        "Lighting: Dramatic, cinematic lighting with a strong rim light separating the subject from the background.",
        "Composition: Rule-of-thirds framing in a 16:9 widescreen layout with one clear focal point and room "
        "for overlays.",
        thematic,
        "Artistic Style: A modern blend of photorealism and digital illustration with high detail, intricate "
        "textures, and sharp focus.",
        QUALITY_REMINDER,
    ]
    return "\n".join(lines)


def _join_items(items: Sequence[str], sep: str = ", ") -> str:
    return sep.join(items) if items else "none provided"


def build_improve_instruction(request: PromptRequest) -> str:
    """Instruction for the text model that writes (or rewrites) a thumbnail prompt."""
    title = request.title.strip()
    colors = _join_items(request.colors)
    master_text = request.master_text

    if master_text:
        overlays_example = master_text_overlay(master_text)
    else:
        overlays_example = (
            "Overlays: [e.g., In the top-left corner, a stylized logo with a '+99' badge and a bright yellow "
            "text box reading 'No Coding'. If there are no overlays, state 'Overlays: None.']"
        )
    if request.colors:
        palette_example = (
            f"Color Palette: The scene should naturally incorporate these primary colors: {colors}. "
            "[describe the rest of the palette so it complements them]"
        )
    else:
        palette_example = "Color Palette: [e.g., bright and optimistic blues, whites and yellows]"

    structure = "\n".join(
        [
            PROMPT_PREFIX,
            "Subject & Scene: [e.g., A stealth fighter jet soars through a vibrant sky full of cartoon-like clouds.]",
            overlays_example,
            "Human Element: [ethnicity, gender, approximate age, expression, hair, clothing and pose, or "
            "'Human Element: None.']",
            palette_example,
            "Lighting: [e.g., bright, diffused daylight]",
            "Composition: [e.g., rule of thirds or leading lines in a 16:9 widescreen frame]",
            f"Thematic Integration (of Title): [e.g., This scene visually hints at the possibilities of "
            f"'{title or 'captivating content'}'.]",
            "Artistic Style: [e.g., a modern blend of photorealism and digital illustration; high detail, "
            "intricate textures, sharp focus]",
            QUALITY_REMINDER,
        ]
    )

    parts = [
        "You are an expert at writing image-generation prompts for compelling YOUTUBE THUMBNAILS with a 16:9 "
        "aspect ratio and high visual detail.",
        f'Produce ONE highly descriptive prompt. It MUST start with "{PROMPT_PREFIX}" and follow this structure:',
        structure,
        "",
    ]
    if title:
        parts.append(f'Content Title: "{title}"')
    if request.colors:
        parts.append(f"User Suggested Primary Colors: {colors}. Integrate them naturally.")
    if master_text:
        sentences = " ".join(f'Sentence {i}: "{s}"' for i, s in enumerate(master_text, start=1))
        parts.append(
            f"Master Text (absolute, use ONLY this text for overlays): {sentences}. It supersedes any text in "
            "inspiration images or anywhere else in the prompt."
        )
    parts.append("")

    if request.inspiration is not None:
        reference = f' (from the video "{request.inspiration_title}")' if request.inspiration_title else ""
        parts.append(
            f"An inspiration thumbnail{reference} is attached. The image model that will use your prompt "
            "CANNOT see it, so describe its scene, artistic style, palette, lighting, composition, mood, and "
            "key textures precisely enough to produce a visually similar 16:9 thumbnail."
        )
        parts.append(
            "Describe any person in detail in the Human Element section (ethnicity, gender, age range, hair, "
            "expression, clothing, pose)."
        )
        if master_text:
            parts.append("IGNORE any text in the inspiration image; the Overlays section is the master text only.")
        else:
            parts.append(
                "Describe visible text, logos, and graphic overlays (content, font style, color, size, "
                "placement) in the Overlays section, or state 'Overlays: None.'."
            )
        parts.append(
            f"In the Color Palette section, describe the inspiration's palette first, then how the suggested "
            f"colors ({colors}) blend in, favouring the inspiration if they clash."
        )
        if request.prompt.strip():
            parts.append(f'Also honour the user\'s own description: "{request.prompt.strip()}"')
    elif request.prompt.strip():
        parts.append(f'Initial User Prompt: "{request.prompt.strip()}"')
        parts.append(
            "Refine and significantly expand this prompt into the structure above, aligning it with the "
            f"title ({title or 'no title provided'}) and weaving in the suggested colors ({colors})."
        )
        if not master_text:
            parts.append("Take overlay/text descriptions from the user prompt.")
    elif title:
        parts.append(
            f'No prompt or inspiration image was provided. Imagine a visually rich thumbnail based solely on the '
            f'title "{title}" and populate every section.'
        )
    else:
        parts.append(
            "No title, prompt, or inspiration was provided. Write a generic yet visually interesting, versatile "
            "thumbnail prompt and populate every section."
        )

    parts.append("")
    parts.append(
        f'Return only the prompt text, as a single coherent block, ALWAYS starting with "{PROMPT_PREFIX}"'
    )
    return "\n".join(parts)


def build_generation_text(request: ThumbnailRequest) -> str:
    """Final instruction sent to the image model for one slot."""
    master_text = request.master_text
    text_lines = [f"{PROMPT_PREFIX} {QUALITY_REQUIREMENT}"]

    if master_text:
        quoted = "; ".join(_quote(s) for s in master_text)
        text_lines.append(
            "**Master Text Requirement (Absolute Priority):** The YOUTUBE THUMBNAIL MUST feature the following "
            f"text, and ONLY this text: {quoted}. Display it prominently and legibly. IGNORE ALL OTHER TEXT "
            "sources, including any text in the inspiration image and any text described in the core concept. "
            "If there are several sentences, arrange them as title and subtitle."
        )
    if request.colors:
        text_lines.append(
            "**Color Suggestions:** If harmonious with the scene and any inspiration style, naturally "
            f"incorporate these colors: {', '.join(request.colors)}. Prioritize the main concept and the "
            "inspiration's palette if they clash."
        )

    if request.inspiration is None:
        text_lines.append(
            "Task: Generate a YOUTUBE THUMBNAIL based on the following highly descriptive prompt, aiming for a "
            f'16:9 aspect ratio and high detail: "{request.prompt}".'
        )
        if master_text:
            text_lines.append(
                "Any text described in the prompt above must be IGNORED; use ONLY the Master Text specified."
            )
        text_lines.append(
            "Focus on vibrant (or mood-appropriate) colors, sharp details, excellent lighting, and strong "
            "composition suitable for a widescreen (16:9) display."
        )
        text_lines.append(FINAL_REMINDER)
        return "\n".join(text_lines)

    level = UNSET_INFLUENCE_LEVEL if request.influence_level is None else request.influence_level
    text_lines.append("Task: Generate a YOUTUBE THUMBNAIL based on the following.")
    text_lines.append(influence_instruction(level))

    if master_text:
        text_lines.append(
            "**Note on Text:** Master Text is provided and takes absolute precedence. All other text sources "
            "(inspiration image, core concept description) are IGNORED for textual content."
        )
    elif request.replicate_text:
        text_lines.append(
            "**Text Replication Requirement:** If the inspiration image contains clearly discernible text "
            "(titles, logos, callouts), replicate its content, font appearance, color, and approximate placement. "
            "Otherwise interpret text elements from the core concept."
        )

    concept = (
        f'**Core Concept & Content:** Realize the following scene: "{request.prompt}". The concept defines WHAT '
        "to create; the inspiration image and level guide HOW IT LOOKS."
    )
    if master_text:
        concept += " Any text described in this section must be IGNORED; use ONLY the Master Text above."
    text_lines.append(concept)

    if request.replicate_face:
        text_lines.append(f"**Important Note on Human Subjects (Replicate Face):** {REPLICATE_FACE_NOTE}")
    else:
        text_lines.append(f"**Important Note on Human Subjects:** {DISTINCT_LIKENESS_NOTE}")

    replicating = request.replicate_face or (request.replicate_text and not master_text)
    originality = "The final image must be original, not a copy or minor variation of the inspiration image"
    if replicating:
        originality += " (apart from the requested face/text replication)"
    text_lines.append(originality + ", drawing on its artistic essence only to the degree the level specifies.")
    text_lines.append(FINAL_REMINDER)
    return "\n".join(text_lines)
