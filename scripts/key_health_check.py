"""Diagnostic CLI for validating the configured API keys.

Usage:
  python scripts/key_health_check.py
"""
from __future__ import annotations

from src.diagnostics import run_all


def main() -> int:
    failures = 0
    for label, ok, message in run_all():
        print(f"[{'OK' if ok else 'FAIL'}] {label}: {message}")
        if not ok:
            failures += 1

    if failures:
        print(
            "Hint: set gemini_api_key, openai_api_key and youtube_api_key in .streamlit/secrets.toml "
            "or as environment variables, and retry."
        )
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
