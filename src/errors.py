"""Error kinds raised at the API boundaries.

Callers branch on the exception type (or ``kind``) instead of matching on
message text:

  InvalidPromptError      -- empty/unusable prompt; fatal to one call only
  GenerationRefusedError  -- the model answered but produced no image
  ApiConfigError          -- bad/missing credentials, API disabled, quota
  TransientApiError       -- network, rate limit, 5xx; safe to retry
  SearchError             -- any other video-search failure
  WizardError             -- invalid wizard action or session input
"""
from __future__ import annotations


class ThumbnailForgeError(RuntimeError):
    kind = "error"


class InvalidPromptError(ThumbnailForgeError):
    kind = "invalid_prompt"


class GenerationRefusedError(ThumbnailForgeError):
    kind = "refused"


class ApiConfigError(ThumbnailForgeError):
    kind = "config"


class TransientApiError(ThumbnailForgeError):
    kind = "transient"


class SearchError(ThumbnailForgeError):
    kind = "search"


class WizardError(ThumbnailForgeError):
    kind = "wizard"


REFUSAL_GUIDANCE = (
    "Image generation did not return an image. The model may have refused the request "
    "due to safety filters, or the prompt might be too complex or unclear. "
    "Try refining your title/prompt or using a different inspiration image."
)


def is_retryable(exc: BaseException) -> bool:
    """Only transient failures are worth another attempt."""
    if isinstance(exc, ThumbnailForgeError):
        return isinstance(exc, TransientApiError)
    msg = str(exc).lower()
    return any(
        k in msg
        for k in ["429", "too many requests", "rate limit", "503", "unavailable", "temporarily", "timeout", "timed out"]
    )
