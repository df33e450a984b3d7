import json
import re
import zipfile
from io import BytesIO
from typing import List

from src.wizard.session import SlotResult


def slugify_title(title: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "_", (title or "").strip().lower()).strip("_")
    return cleaned or "untitled"


def thumbnail_filename(title: str, index: int) -> str:
    """Download name for slot ``index`` (0-based): thumbnail_<title_slug>_<n>.png"""
    return f"thumbnail_{slugify_title(title)}_{index + 1}.png"


def build_zip(title: str, results: List[SlotResult]) -> bytes:
    """
    Export: thumbnails/*.png plus prompts.json with the prompt and error per slot.
    """
    buf = BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as z:
        meta = []
        for result in results:
            meta.append(
                {
                    "slot": result.index + 1,
                    "prompt": result.prompt,
                    "error": result.error,
                    "error_kind": result.error_kind,
                }
            )
            if result.ok:
                z.writestr(f"thumbnails/{thumbnail_filename(title, result.index)}", result.image_bytes)
        z.writestr("prompts.json", json.dumps({"title": title, "slots": meta}, indent=2))

    return buf.getvalue()
