from __future__ import annotations

import logging
from typing import Any, Optional

from openai import (
    APIConnectionError,
    APIError,
    AuthenticationError,
    BadRequestError,
    InternalServerError,
    NotFoundError,
    OpenAI,
    PermissionDeniedError,
    RateLimitError,
)

from src.config import get_secret
from src.errors import (
    ApiConfigError,
    GenerationRefusedError,
    InvalidPromptError,
    ThumbnailForgeError,
    TransientApiError,
    is_retryable,
)
from src.lib.openai_config import OpenAIConfig, resolve_openai_config
from src.prompting.composer import build_improve_instruction, compose_prompt, enforce_master_text, ensure_prefix
from src.prompting.models import PromptRequest
from src.retry import retry_with_backoff

_logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You write image-generation prompts for YouTube thumbnails. You reply with the prompt only, "
    "no commentary and no markdown."
)


def _prompt_model_config() -> Optional[OpenAIConfig]:
    if not get_secret("openai_api_key", ""):
        return None
    try:
        return resolve_openai_config(get_secret)
    except ValueError as exc:
        raise ApiConfigError(str(exc)) from exc


def _openai_client(config: OpenAIConfig) -> OpenAI:
    return OpenAI(api_key=config.api_key)


def _classify_openai_error(exc: Exception) -> Exception:
    if isinstance(exc, (AuthenticationError, PermissionDeniedError)):
        return ApiConfigError(f"OpenAI rejected the configured key: {exc}")
    if isinstance(exc, NotFoundError):
        return ApiConfigError(f"OpenAI model is not available to this key: {exc}")
    if isinstance(exc, RateLimitError):
        if getattr(exc, "code", None) == "insufficient_quota":
            return ApiConfigError(f"OpenAI quota exhausted: {exc}")
        return TransientApiError(f"OpenAI rate limit: {exc}")
    if isinstance(exc, (APIConnectionError, InternalServerError)):
        return TransientApiError(f"OpenAI unavailable: {exc}")
    if isinstance(exc, BadRequestError) and "content_policy" in str(exc).lower():
        return GenerationRefusedError(f"The prompt model refused the request: {exc}")
    if isinstance(exc, APIError):
        return ThumbnailForgeError(f"OpenAI request failed: {exc}")
    return exc


def _user_content(request: PromptRequest) -> list[dict[str, Any]]:
    content: list[dict[str, Any]] = [{"type": "text", "text": build_improve_instruction(request)}]
    if request.inspiration is not None:
        content.append({"type": "image_url", "image_url": {"url": request.inspiration.to_data_uri()}})
    return content


def _request_prompt(client: OpenAI, config: OpenAIConfig, request: PromptRequest) -> str:
    try:
        resp = client.chat.completions.create(
            model=config.model,
            temperature=0.8,
            max_tokens=config.max_output_tokens,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": _user_content(request)},
            ],
        )
    except Exception as exc:
        classified = _classify_openai_error(exc)
        if classified is exc:
            raise
        raise classified from exc
    return (resp.choices[0].message.content or "").strip()


def compose_locally(request: PromptRequest) -> str:
    return compose_prompt(
        request.title,
        request.colors,
        request.master_text,
        description=request.prompt,
        inspiration_title=request.inspiration_title,
        influence_level=request.influence_level,
        replicate_face=request.replicate_face,
        replicate_text=request.replicate_text,
    )


def improve_prompt(request: PromptRequest) -> str:
    """Generate (empty ``request.prompt``) or enhance a thumbnail prompt.

    Uses the OpenAI model when a key is configured and composes the prompt
    locally otherwise, or when the key turns out to be unusable. The result
    always starts with the required prefix and, with master text, names only
    the master text in its Overlays section.
    """
    config = None
    try:
        config = _prompt_model_config()
    except ApiConfigError as exc:
        _logger.warning("OpenAI misconfigured, composing prompt locally: %s", exc)

    if config is None:
        return compose_locally(request)

    client = _openai_client(config)
    try:
        text = retry_with_backoff(
            lambda: _request_prompt(client, config, request),
            should_retry=is_retryable,
            label="improve_prompt",
        )
    except ApiConfigError as exc:
        _logger.warning("Falling back to local prompt composition: %s", exc)
        return compose_locally(request)

    if not text:
        raise InvalidPromptError("Prompt generation returned empty output.")

    return enforce_master_text(ensure_prefix(text), request.master_text)
