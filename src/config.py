"""Centralised secret / configuration helpers.

All other modules should import ``get_secret`` from here rather than
duplicating the lookup logic.

Recognised keys:
  gemini_api_key (or GOOGLE_AI_STUDIO_API_KEY / GOOGLE_API_KEY)
  thumbnail_image_model
  openai_api_key, openai_model
  youtube_api_key
  APP_PASSCODE
"""
from __future__ import annotations

import os

GEMINI_KEY_NAMES = ("gemini_api_key", "google_ai_studio_api_key", "google_api_key")


def _normalize(value: str) -> str:
    """Strip whitespace and surrounding quotes; reject known placeholder strings."""
    v = str(value or "").strip()
    if len(v) >= 2 and v[0] == v[-1] and v[0] in {'"', "'"}:
        v = v[1:-1].strip()
    low = v.lower()
    if low in {"none", "null", ""}:
        return ""
    # Unfilled template values such as PASTE_KEY_HERE, YOUR_API_KEY_HERE, AIza...
    if low.startswith(("paste_", "paste-", "your_", "your-", "replace_me", "changeme", "xxx")):
        return ""
    if low.endswith(("_here", "-here", "...")):
        return ""
    return v


def get_secret(name: str, default: str = "") -> str:
    """Return a secret value, searching Streamlit secrets then env vars.

    Checks ``name``, ``name.lower()``, and ``name.upper()`` in that order.
    """
    candidates = list(dict.fromkeys([name, name.lower(), name.upper()]))

    try:
        import streamlit as st  # type: ignore

        if hasattr(st, "secrets"):
            for key in candidates:
                if key in st.secrets:
                    v = _normalize(str(st.secrets[key]))
                    if v:
                        return v
    except Exception:
        # No secrets.toml (tests, CLI scripts): fall through to env vars.
        pass

    for key in candidates:
        v = _normalize(os.getenv(key, ""))
        if v:
            return v

    return _normalize(default)


def first_secret(names: tuple[str, ...], default: str = "") -> str:
    for name in names:
        value = get_secret(name, "")
        if value:
            return value
    return _normalize(default)


def mask_secret(value: str) -> str:
    value = (value or "").strip()
    if not value:
        return "(not set)"
    return f"{value[:6]}***"
