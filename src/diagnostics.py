"""Live checks for the three configured API keys.

Each check returns ``(ok, message)`` and never raises, so the diagnostics page
and the CLI can render every result.
"""
from __future__ import annotations

import requests

from image_gen import image_model_candidates
from src.config import GEMINI_KEY_NAMES, first_secret, get_secret, mask_secret
from src.errors import ThumbnailForgeError
from src.lib.openai_config import DEFAULT_OPENAI_MODEL
from src.research.youtube_search import search_videos

GEMINI_MODELS_URL = "https://generativelanguage.googleapis.com/v1beta/models"
OPENAI_MODELS_URL = "https://api.openai.com/v1/models"


def check_gemini() -> tuple[bool, str]:
    api_key = first_secret(GEMINI_KEY_NAMES)
    if not api_key:
        return False, "No Gemini key found (gemini_api_key / GOOGLE_AI_STUDIO_API_KEY / GOOGLE_API_KEY)."
    try:
        resp = requests.get(GEMINI_MODELS_URL, params={"key": api_key, "pageSize": 200}, timeout=15)
    except requests.RequestException as exc:
        return False, f"Gemini request failed: {exc}"
    if resp.status_code != 200:
        return False, f"Gemini key {mask_secret(api_key)} rejected: HTTP {resp.status_code}: {resp.text[:300]}"

    try:
        payload = resp.json()
    except ValueError:
        return False, f"Gemini models endpoint returned a non-JSON body: {resp.text[:300]}"
    names = [str(m.get("name", "")).removeprefix("models/") for m in payload.get("models", [])]
    wanted = image_model_candidates()
    available = [model for model in wanted if model in names]
    if not available:
        return False, f"Gemini key {mask_secret(api_key)} works, but none of the image models are listed: {wanted}"
    return True, f"Gemini key {mask_secret(api_key)} OK. Image model(s) available: {', '.join(available)}"


def check_openai() -> tuple[bool, str]:
    api_key = get_secret("openai_api_key", "")
    if not api_key:
        return False, "No OpenAI key found (openai_api_key). Prompts will be composed locally."
    try:
        resp = requests.get(OPENAI_MODELS_URL, headers={"Authorization": f"Bearer {api_key}"}, timeout=15)
    except requests.RequestException as exc:
        return False, f"OpenAI request failed: {exc}"
    if resp.status_code == 401:
        return False, f"OpenAI key {mask_secret(api_key)} is invalid or revoked (HTTP 401)."
    if resp.status_code != 200:
        return False, f"OpenAI key {mask_secret(api_key)}: HTTP {resp.status_code}: {resp.text[:300]}"
    try:
        payload = resp.json()
    except ValueError:
        return False, f"OpenAI models endpoint returned a non-JSON body: {resp.text[:300]}"
    model_ids = [m.get("id") for m in payload.get("data", [])]
    model = get_secret("openai_model", "") or DEFAULT_OPENAI_MODEL
    if model not in model_ids:
        return False, f"OpenAI key {mask_secret(api_key)} works, but model {model!r} is not available to it."
    return True, f"OpenAI key {mask_secret(api_key)} OK. Model {model!r} available."


def check_youtube() -> tuple[bool, str]:
    api_key = get_secret("youtube_api_key", "")
    if not api_key:
        return False, "No YouTube key found (youtube_api_key). Placeholder inspiration videos will be shown."
    try:
        page = search_videos("thumbnail design", max_results=3)
    except ThumbnailForgeError as exc:
        return False, f"YouTube key {mask_secret(api_key)}: {exc}"
    return True, f"YouTube key {mask_secret(api_key)} OK ({len(page.videos)} video(s) in a test search)."


CHECKS = {
    "Gemini (image generation)": check_gemini,
    "OpenAI (prompt writing)": check_openai,
    "YouTube Data API (inspiration search)": check_youtube,
}


def run_all() -> list[tuple[str, bool, str]]:
    results = []
    for label, check in CHECKS.items():
        ok, message = check()
        results.append((label, ok, message))
    return results
