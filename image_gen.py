import base64
import logging
from io import BytesIO
from typing import Any, List, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from PIL import Image, UnidentifiedImageError

from src.config import GEMINI_KEY_NAMES, first_secret, get_secret
from src.errors import (
    REFUSAL_GUIDANCE,
    ApiConfigError,
    GenerationRefusedError,
    InvalidPromptError,
    ThumbnailForgeError,
    TransientApiError,
)
from src.prompting.composer import build_generation_text
from src.prompting.models import ThumbnailRequest

DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"

SAFETY_SETTINGS = [
    ("HARM_CATEGORY_HATE_SPEECH", "BLOCK_ONLY_HIGH"),
    ("HARM_CATEGORY_DANGEROUS_CONTENT", "BLOCK_NONE"),
    ("HARM_CATEGORY_HARASSMENT", "BLOCK_MEDIUM_AND_ABOVE"),
    ("HARM_CATEGORY_SEXUALLY_EXPLICIT", "BLOCK_MEDIUM_AND_ABOVE"),
]

_logger = logging.getLogger(__name__)


def validate_gemini_api_key() -> str:
    api_key = first_secret(GEMINI_KEY_NAMES)

    # Keep validation permissive to avoid rejecting valid keys from older/newer formats.
    if not api_key:
        raise ApiConfigError(
            "Missing GEMINI_API_KEY. Generate a Google AI Studio API key and set it in Streamlit "
            "secrets as gemini_api_key (or GOOGLE_AI_STUDIO_API_KEY)."
        )
    return api_key


def _resolve_model() -> str:
    return (get_secret("thumbnail_image_model", "") or DEFAULT_IMAGE_MODEL).strip()


def _candidate_models(primary_model: str) -> list[str]:
    candidates = [
        primary_model,
        DEFAULT_IMAGE_MODEL,
        "gemini-2.0-flash-preview-image-generation",
    ]
    seen: set[str] = set()
    ordered: list[str] = []
    for model in candidates:
        normalized = (model or "").strip()
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        ordered.append(normalized)
    return ordered


def image_model_candidates() -> list[str]:
    return _candidate_models(_resolve_model())


def _maybe_decode_bytes(value: Any) -> Optional[bytes]:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        normalized = value.strip()
        if "," in normalized and normalized.startswith("data:"):
            normalized = normalized.split(",", 1)[1]
        # SDK versions differ on padding and urlsafe alphabets.
        padded = normalized + ("=" * (-len(normalized) % 4))
        for decoder in (base64.b64decode, base64.urlsafe_b64decode):
            try:
                return decoder(padded)
            except ValueError:
                continue
    return None


def _extract_images(result: Any) -> List[bytes]:
    images: List[bytes] = []
    for candidate in getattr(result, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline_data = getattr(part, "inline_data", None)
            raw = _maybe_decode_bytes(getattr(inline_data, "data", None)) if inline_data else None
            if raw:
                images.append(raw)
    return images


def _response_text(result: Any) -> str:
    texts: List[str] = []
    for candidate in getattr(result, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            text = getattr(part, "text", None)
            if text:
                texts.append(str(text).strip())
    return " ".join(t for t in texts if t)


def _refusal_reason(result: Any) -> str:
    feedback = getattr(result, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None)
    if block_reason:
        return f"prompt blocked ({getattr(block_reason, 'name', block_reason)})"
    for candidate in getattr(result, "candidates", None) or []:
        finish = getattr(candidate, "finish_reason", None)
        name = str(getattr(finish, "name", finish or ""))
        if name and name.upper() not in {"STOP", "FINISH_REASON_UNSPECIFIED"}:
            return f"finish reason {name}"
    return ""


def _crop_to_aspect(img: Image.Image, aspect_ratio: str) -> Image.Image:
    ar_map = {"16:9": (16, 9), "9:16": (9, 16), "1:1": (1, 1)}
    w, h = img.size
    a, b = ar_map.get(aspect_ratio, (16, 9))
    target = a / b
    current = w / h

    if abs(current - target) < 0.01:
        return img

    if current > target:
        new_w = int(h * target)
        left = (w - new_w) // 2
        return img.crop((left, 0, left + new_w, h))
    new_h = int(w / target)
    top = (h - new_h) // 2
    return img.crop((0, top, w, top + new_h))


def to_thumbnail_png(raw: bytes, aspect_ratio: str = "16:9") -> bytes:
    try:
        img = Image.open(BytesIO(raw)).convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise ThumbnailForgeError(f"Image model returned unreadable image data: {exc}") from exc
    img = _crop_to_aspect(img, aspect_ratio)
    out = BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()


def _is_invalid_api_key_error(exc: Exception) -> bool:
    msg = str(exc).lower()
    return any(token in msg for token in ("api_key_invalid", "api key not valid", "invalid api key"))


def _classify_genai_error(exc: Exception) -> Optional[Exception]:
    """Map SDK errors onto the app's error kinds; None means "model not found"."""
    code = getattr(exc, "code", None)
    if _is_invalid_api_key_error(exc) or code in (401, 403):
        return ApiConfigError(f"Gemini rejected the configured API key: {exc}")
    if code == 404 or "not_found" in str(exc).lower():
        return None
    if isinstance(exc, genai_errors.ServerError) or code == 429:
        return TransientApiError(f"Gemini unavailable ({code}): {exc}")
    if isinstance(exc, genai_errors.APIError):
        return ThumbnailForgeError(f"Gemini request failed ({code}): {exc}")
    lowered = str(exc).lower()
    if any(token in lowered for token in ("timeout", "timed out", "temporarily", "connection")):
        return TransientApiError(f"Gemini request failed: {exc}")
    return exc


def _build_contents(request: ThumbnailRequest) -> list[Any]:
    contents: list[Any] = []
    if request.inspiration is not None:
        contents.append(types.Part.from_bytes(data=request.inspiration.data, mime_type=request.inspiration.mime_type))
    contents.append(build_generation_text(request))
    return contents


def _generation_config() -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        response_modalities=["TEXT", "IMAGE"],
        safety_settings=[
            types.SafetySetting(category=category, threshold=threshold) for category, threshold in SAFETY_SETTINGS
        ],
    )


def generate_thumbnail_image(request: ThumbnailRequest) -> bytes:
    """Generate one 16:9 thumbnail and return it as PNG bytes.

    Raises InvalidPromptError, ApiConfigError, GenerationRefusedError or
    TransientApiError; callers decide whether to retry.
    """
    if not (request.prompt or "").strip():
        raise InvalidPromptError(
            "Cannot generate a thumbnail from an empty prompt. The prompt must be descriptive and detailed."
        )

    client = genai.Client(api_key=validate_gemini_api_key())
    contents = _build_contents(request)
    config = _generation_config()
    models = image_model_candidates()

    last_error: Optional[Exception] = None
    for model in models:
        try:
            result = client.models.generate_content(model=model, contents=contents, config=config)
        except Exception as exc:  # noqa: BLE001 - classified below, unknown errors re-raised
            classified = _classify_genai_error(exc)
            if classified is None:
                _logger.info("Image model %s not available, trying next candidate.", model)
                last_error = exc
                continue
            if classified is exc:
                raise
            raise classified from exc

        images = _extract_images(result)
        if images:
            return to_thumbnail_png(images[0])

        reason = _refusal_reason(result)
        model_text = _response_text(result)
        _logger.warning(
            "Image model %s returned no image (reason=%s, inspiration=%s).",
            model,
            reason or "none given",
            request.inspiration is not None,
        )
        details = "; ".join(item for item in (reason, f'model said: "{model_text}"' if model_text else "") if item)
        raise GenerationRefusedError(f"{REFUSAL_GUIDANCE} ({details})" if details else REFUSAL_GUIDANCE)

    raise ApiConfigError(
        "Image model was unavailable for this API key. "
        f"Tried models: {', '.join(models)}. Last error: {last_error}"
    )
