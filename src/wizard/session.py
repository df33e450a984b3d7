from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from src.constants import (
    DEFAULT_INFLUENCE_LEVEL,
    MAX_MASTER_TEXT_SENTENCES,
    MAX_PRIMARY_COLORS,
    MAX_SENTENCE_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)
from src.errors import WizardError
from src.research.youtube_search import YouTubeVideo


class WizardStep(str, Enum):
    START = "start"
    COLORS = "colors"
    INSPIRATION_SEARCH = "inspiration-search"
    INSPIRATION_TUNING = "inspiration-tuning"
    MASTER_TEXT = "master-text"
    PROMPT = "prompt"
    GENERATING = "generating"
    RESULTS = "results"


@dataclass
class InspirationSelection:
    video: YouTubeVideo
    level: int = DEFAULT_INFLUENCE_LEVEL
    replicate_face: bool = False
    replicate_text: bool = False

    @property
    def id(self) -> str:
        return self.video.id


@dataclass
class ChatMessage:
    sender: str  # "user" | "bot" | "system"
    content: str
    kind: str = "text"  # "text" | "error"


@dataclass
class SlotResult:
    index: int
    prompt: str = ""
    image_bytes: Optional[bytes] = None  # PNG bytes (streamlit-safe)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.image_bytes is not None and self.error is None


@dataclass
class Session:
    title: str = ""
    colors: List[str] = field(default_factory=list)
    inspirations: List[InspirationSelection] = field(default_factory=list)
    master_text: List[str] = field(default_factory=list)
    prompt: str = ""
    results: List[SlotResult] = field(default_factory=list)
    transcript: List[ChatMessage] = field(default_factory=list)
    step: WizardStep = WizardStep.START
    epoch: int = 0

    def inspiration_for_slot(self, index: int) -> Optional[InspirationSelection]:
        if 0 <= index < len(self.inspirations):
            return self.inspirations[index]
        return None

    def find_inspiration(self, video_id: str) -> Optional[InspirationSelection]:
        for selection in self.inspirations:
            if selection.id == video_id:
                return selection
        return None


def validate_title(title: str) -> str:
    cleaned = re.sub(r"\s+", " ", (title or "").strip())
    if len(cleaned) < TITLE_MIN_LENGTH:
        raise WizardError(f"Title must be at least {TITLE_MIN_LENGTH} characters.")
    if len(cleaned) > TITLE_MAX_LENGTH:
        raise WizardError(f"Title can be at most {TITLE_MAX_LENGTH} characters.")
    return cleaned


def validate_colors(colors: List[str]) -> List[str]:
    cleaned = list(dict.fromkeys(c.strip() for c in colors or [] if c and c.strip()))
    if len(cleaned) > MAX_PRIMARY_COLORS:
        raise WizardError(f"Pick at most {MAX_PRIMARY_COLORS} colors.")
    return cleaned


def validate_master_text(sentences: List[str]) -> List[str]:
    cleaned = [s.strip() for s in sentences or [] if s and s.strip()]
    if len(cleaned) > MAX_MASTER_TEXT_SENTENCES:
        raise WizardError(f"Master text is limited to {MAX_MASTER_TEXT_SENTENCES} sentences.")
    for sentence in cleaned:
        if len(sentence) > MAX_SENTENCE_LENGTH:
            raise WizardError(f"Master text sentences are limited to {MAX_SENTENCE_LENGTH} characters: {sentence!r}")
    return cleaned


def clamp_level(level: int | float) -> int:
    return max(0, min(100, int(round(float(level)))))
