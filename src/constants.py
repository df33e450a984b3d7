"""Fixed limits shared by the wizard, the prompt composer and the generators."""
from __future__ import annotations

SLOT_COUNT = 4
"""Number of thumbnails produced per generation run."""

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100

MAX_PRIMARY_COLORS = 4
MAX_MASTER_TEXT_SENTENCES = 3
MAX_SENTENCE_LENGTH = 70
MAX_USER_PROMPT_LENGTH = 1500

PREDEFINED_COLORS: list[str] = [
    "Red",
    "Orange",
    "Yellow",
    "Green",
    "Blue",
    "Purple",
    "Pink",
    "Brown",
    "Black",
    "White",
    "Gray",
    "Teal",
    "Cyan",
    "Magenta",
    "Lime",
    "Indigo",
    "Violet",
]

DEFAULT_INFLUENCE_LEVEL = 80
# Level assumed when an inspiration image is attached without an explicit level.
UNSET_INFLUENCE_LEVEL = 100

YOUTUBE_RESULTS_PER_PAGE = 9
MIN_VIDEO_DURATION_SEC = 60

RETRY_ATTEMPTS = 3
RETRY_BASE_DELAY_SEC = 1.0

PROMPT_PREFIX = "A dynamic 16:9 cinematic thumbnail."
QUALITY_REMINDER = (
    "Ensure high detail, intricate textures, sharp focus, and suitability for a "
    "high-resolution widescreen (16:9) YouTube thumbnail."
)
