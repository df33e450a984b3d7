from __future__ import annotations

import requests

from src.errors import SearchError, TransientApiError
from src.prompting.models import InspirationImage


def fetch_inspiration_image(url: str) -> InspirationImage:
    """Download an inspiration thumbnail so it can be sent inline to the models."""
    if not (url or "").strip():
        raise SearchError("Inspiration video has no thumbnail URL.")
    try:
        response = requests.get(url, timeout=20)
    except (requests.ConnectionError, requests.Timeout) as exc:
        raise TransientApiError(f"Could not download inspiration image: {exc}") from exc
    except requests.RequestException as exc:
        raise SearchError(f"Could not download inspiration image from {url}: {exc}") from exc

    if response.status_code == 429 or response.status_code >= 500:
        raise TransientApiError(f"Inspiration image download failed ({response.status_code}).")
    if response.status_code != 200:
        raise SearchError(f"Inspiration image download failed ({response.status_code}): {url}")

    mime_type = (response.headers.get("Content-Type") or "image/jpeg").split(";")[0].strip()
    if not mime_type.startswith("image/"):
        raise SearchError(f"Inspiration URL did not return an image ({mime_type}).")
    if not response.content:
        raise SearchError("Inspiration image download returned no data.")
    return InspirationImage(data=response.content, mime_type=mime_type, source_url=url)
