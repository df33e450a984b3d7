from __future__ import annotations

import base64
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from src.constants import MAX_MASTER_TEXT_SENTENCES, MAX_PRIMARY_COLORS, MAX_SENTENCE_LENGTH


class InspirationImage(BaseModel):
    data: bytes
    mime_type: str = "image/jpeg"
    source_url: str = ""

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class _TextInputs(BaseModel):
    colors: List[str] = Field(default_factory=list, max_length=MAX_PRIMARY_COLORS)
    master_text: List[str] = Field(default_factory=list, max_length=MAX_MASTER_TEXT_SENTENCES)

    @field_validator("master_text")
    @classmethod
    def validate_master_text(cls, value: List[str]) -> List[str]:
        cleaned = [sentence.strip() for sentence in value if sentence and sentence.strip()]
        for sentence in cleaned:
            if len(sentence) > MAX_SENTENCE_LENGTH:
                raise ValueError(f"master text sentences must be at most {MAX_SENTENCE_LENGTH} characters")
        return cleaned


class PromptRequest(_TextInputs):
    """Input for AI prompt generation ("generate" when ``prompt`` is empty, else "enhance")."""

    title: str = ""
    prompt: str = ""
    inspiration: Optional[InspirationImage] = None
    inspiration_title: str = ""
    # Only used when the prompt is composed locally (no text model configured).
    influence_level: Optional[int] = Field(default=None, ge=0, le=100)
    replicate_face: bool = False
    replicate_text: bool = False


class ThumbnailRequest(_TextInputs):
    """Everything one image-generation call needs for a single slot."""

    prompt: str
    inspiration: Optional[InspirationImage] = None
    influence_level: Optional[int] = Field(default=None, ge=0, le=100)
    replicate_face: bool = False
    replicate_text: bool = False
