import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

# Prompt generation attaches inspiration thumbnails, so only vision-capable models are listed.
OPENAI_MODEL_OPTIONS = [
    "gpt-4o-mini",
    "gpt-4o",
    "gpt-4.1-mini",
    "gpt-4.1",
]

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenAIConfig:
    api_key: str
    model: str
    max_output_tokens: int = 1500


@lru_cache(maxsize=1)
def resolve_openai_config(get_secret: Callable[[str, str], str] | None = None) -> OpenAIConfig:
    """Resolve and validate OpenAI credentials/model from secrets or env.

    `get_secret` should have the same signature as src.config.get_secret.
    """

    reader = get_secret or (lambda name, default="": default)

    api_key = reader("openai_api_key", "").strip()
    model = reader("openai_model", DEFAULT_OPENAI_MODEL).strip() or DEFAULT_OPENAI_MODEL

    if not api_key:
        raise ValueError("Missing OPENAI_API_KEY")

    lowered_model = model.lower()
    if "sk-" in lowered_model:
        raise ValueError(
            "Misconfiguration: OPENAI_MODEL is an API key. Set OPENAI_MODEL to a model id like gpt-4o-mini."
        )

    if model not in OPENAI_MODEL_OPTIONS:
        _logger.warning(
            "OPENAI_MODEL=%s is not a known vision model; inspiration images may be rejected.",
            model,
        )

    raw_tokens = reader("openai_max_output_tokens", "").strip()
    try:
        max_output_tokens = int(raw_tokens) if raw_tokens else 1500
    except ValueError:
        raise ValueError(f"OPENAI_MAX_OUTPUT_TOKENS must be an integer, got {raw_tokens!r}") from None

    _logger.info(
        "OpenAI prompt model loaded (model=%s, max_output_tokens=%d, api_key_prefix=%s***).",
        model,
        max_output_tokens,
        api_key[:6],
    )

    return OpenAIConfig(api_key=api_key, model=model, max_output_tokens=max_output_tokens)
