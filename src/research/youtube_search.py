"""YouTube Data API v3 search used to find inspiration videos.

Public API
----------
  search_videos(query, max_results, page_token) -> SearchPage
      One page of long-form videos ranked by view count.
  find_inspirations(query, title, page_token) -> InspirationSearch
      What the wizard calls: adds the broader-query retry, the placeholder
      dataset on configuration errors and a user-facing notice.
  placeholder_videos() -> SearchPage
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

import requests

from src.config import get_secret
from src.constants import MIN_VIDEO_DURATION_SEC, YOUTUBE_RESULTS_PER_PAGE
from src.errors import ApiConfigError, SearchError, TransientApiError

SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"
PLACEHOLDER_TOKEN = "placeholder-next-page"

_logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")

_CONFIG_ERROR_TOKENS = (
    "youtube data api v3 has not been used",
    "api not enabled",
    "servicenotenabled",
    "accessnotconfigured",
    "projectnotlinked",
    "servicedisabled",
    "quotaexceeded",
    "quota",
    "billingnotenabled",
    "youtube data api v3 is not enabled",
    "forbidden",
)


@dataclass
class YouTubeVideo:
    id: str
    title: str
    thumbnail_url: str
    view_count: str
    channel_title: str
    view_count_raw: int = 0


@dataclass
class SearchPage:
    videos: list[YouTubeVideo] = field(default_factory=list)
    next_page_token: Optional[str] = None


@dataclass
class InspirationSearch:
    query: str
    videos: list[YouTubeVideo] = field(default_factory=list)
    next_page_token: Optional[str] = None
    notice: str = ""
    is_placeholder: bool = False


def parse_iso8601_duration(duration: str) -> int:
    """Return the duration in seconds; unparseable values count as zero."""
    match = _DURATION_RE.match((duration or "").strip())
    if not match:
        return 0
    days, hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def format_view_count(count: int | str) -> str:
    try:
        value = int(count)
    except (TypeError, ValueError):
        return "0"
    for threshold, suffix in ((1_000_000_000, "B"), (1_000_000, "M"), (1_000, "K")):
        if value >= threshold:
            text = f"{value / threshold:.1f}"
            if text.endswith(".0"):
                text = text[:-2]
            return text + suffix
    return str(value)


def broaden_query(title: str) -> str:
    words = (title or "").split()
    if len(words) > 3:
        return " ".join(words[:3])
    return (title or "").strip()


def _youtube_api_key() -> str:
    return get_secret("youtube_api_key", "").strip()


def _raise_for_youtube_error(resp: requests.Response, stage: str) -> None:
    if resp.status_code < 400:
        return

    try:
        payload = resp.json()
    except ValueError:
        payload = {}
    error = payload.get("error", {}) if isinstance(payload, dict) else {}
    message = str(error.get("message") or f"status {resp.status_code}")
    reasons = " ".join(str(item.get("reason", "")) for item in error.get("errors", []) if isinstance(item, dict))
    lowered = f"{message} {reasons}".lower()

    if resp.status_code == 400 and ("api key not valid" in lowered or "keyinvalid" in lowered):
        raise ApiConfigError(f"Invalid YouTube API key ({stage}).")
    if resp.status_code == 403 and any(token in lowered for token in _CONFIG_ERROR_TOKENS):
        raise ApiConfigError(
            "The YouTube Data API v3 is not enabled for the project, is disabled, or has "
            f'billing/quota issues ({stage}). Original error: "{message}".'
        )
    if resp.status_code == 429 or resp.status_code >= 500:
        raise TransientApiError(f"YouTube {stage} API unavailable ({resp.status_code}): {message}")
    raise SearchError(f"YouTube {stage} API error: {message}")


def _get(url: str, params: dict[str, object], stage: str) -> dict:
    try:
        resp = requests.get(url, params=params, timeout=20)
    except (requests.ConnectionError, requests.Timeout) as exc:
        raise TransientApiError(f"YouTube {stage} request failed: {exc}") from exc
    _raise_for_youtube_error(resp, stage)
    try:
        return resp.json()
    except ValueError as exc:
        raise SearchError(f"YouTube {stage} API returned invalid JSON.") from exc


def _thumbnail_url(snippet: dict) -> str:
    thumbnails = snippet.get("thumbnails", {}) or {}
    for size in ("high", "medium", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return str(url)
    return ""


def search_videos(
    query: str,
    max_results: int = YOUTUBE_RESULTS_PER_PAGE,
    page_token: Optional[str] = None,
) -> SearchPage:
    normalized_query = (query or "").strip()
    if not normalized_query:
        return SearchPage()

    api_key = _youtube_api_key()
    if not api_key:
        raise ApiConfigError("YouTube API key is not configured (set youtube_api_key).")

    params: dict[str, object] = {
        "part": "snippet",
        "q": normalized_query,
        "type": "video",
        "order": "viewCount",
        "maxResults": int(max_results),
        "key": api_key,
    }
    if page_token:
        params["pageToken"] = page_token

    search_data = _get(SEARCH_URL, params, "search")
    items = [item for item in search_data.get("items", []) or [] if (item.get("id") or {}).get("videoId")]
    next_page_token = search_data.get("nextPageToken")
    if not items:
        return SearchPage(videos=[], next_page_token=None)

    video_ids = [item["id"]["videoId"] for item in items]
    details = _get(
        VIDEOS_URL,
        {"part": "snippet,statistics,contentDetails", "id": ",".join(video_ids), "key": api_key},
        "videos",
    )

    long_form: dict[str, dict] = {}
    for video in details.get("items", []) or []:
        duration = (video.get("contentDetails") or {}).get("duration", "")
        if parse_iso8601_duration(duration) >= MIN_VIDEO_DURATION_SEC:
            long_form[str(video.get("id"))] = video

    videos: list[YouTubeVideo] = []
    for item in items:
        video_id = item["id"]["videoId"]
        detail = long_form.get(video_id)
        if detail is None:
            continue
        snippet = item.get("snippet", {}) or {}
        raw_views = (detail.get("statistics") or {}).get("viewCount")
        try:
            view_count_raw = int(raw_views)
        except (TypeError, ValueError):
            view_count_raw = 0
        videos.append(
            YouTubeVideo(
                id=video_id,
                title=str(snippet.get("title", "") or ""),
                thumbnail_url=_thumbnail_url(snippet),
                view_count=format_view_count(view_count_raw) if raw_views is not None else "N/A",
                channel_title=str(snippet.get("channelTitle", "") or ""),
                view_count_raw=view_count_raw,
            )
        )

    videos.sort(key=lambda video: video.view_count_raw, reverse=True)
    _logger.info(
        "YouTube search %r returned %d long-form videos (%d dropped as shorts).",
        normalized_query,
        len(videos),
        len(items) - len(videos),
    )
    return SearchPage(videos=videos, next_page_token=next_page_token)


def placeholder_videos() -> SearchPage:
    titles = [
        "Ultimate Travel Guide to Japan (Placeholder)",
        "Learn Coding in 10 Hours (Placeholder)",
        "Delicious Vegan Recipes (Placeholder)",
        "Top 10 Video Games of the Year (Placeholder)",
        "Space Exploration Documentary (Placeholder)",
        "Beginner's Guide to Stock Market (Placeholder)",
    ]
    channels = ["Travel Guru", "Code Master", "Vegan Chef", "Game Reviewer", "Science Hub", "Finance Bro"]
    views = [4_200_000, 2_750_000, 1_900_000, 980_000, 640_000, 150_000]
    videos = [
        YouTubeVideo(
            id=f"placeholder{i + 1}",
            title=titles[i],
            thumbnail_url=f"https://picsum.photos/480/270?random={i + 1}&grayscale&blur=1",
            view_count=format_view_count(views[i]),
            channel_title=channels[i],
            view_count_raw=views[i],
        )
        for i in range(len(titles))
    ]
    return SearchPage(videos=videos, next_page_token=PLACEHOLDER_TOKEN)


def find_inspirations(
    query: str,
    *,
    title: str = "",
    page_token: Optional[str] = None,
    max_results: int = YOUTUBE_RESULTS_PER_PAGE,
) -> InspirationSearch:
    """Search for inspiration videos without ever failing the wizard.

    Configuration errors on the first page swap in the placeholder dataset;
    any other failure comes back as an empty result with a notice.
    """
    query = (query or "").strip()
    result = InspirationSearch(query=query)

    if page_token:
        if page_token == PLACEHOLDER_TOKEN:
            result.is_placeholder = True
            result.notice = "No more placeholder videos. Configure a YouTube API key for real results."
            return result
        try:
            page = search_videos(query, max_results=max_results, page_token=page_token)
        except (ApiConfigError, SearchError, TransientApiError) as exc:
            _logger.warning("YouTube load-more failed: %s", exc)
            result.notice = str(exc)
            return result
        result.videos = page.videos
        result.next_page_token = page.next_page_token
        return result

    try:
        page = search_videos(query, max_results=max_results)
        if not page.videos and title and query == title.strip():
            broader = broaden_query(title)
            if broader and broader != query:
                _logger.info("No results for %r; broadening search to %r.", query, broader)
                result.query = broader
                page = search_videos(broader, max_results=max_results)
    except ApiConfigError as exc:
        _logger.warning("YouTube search unavailable, using placeholder videos: %s", exc)
        placeholder = placeholder_videos()
        result.videos = placeholder.videos
        result.next_page_token = placeholder.next_page_token
        result.is_placeholder = True
        result.notice = f"{exc} Placeholder videos are shown below; they are not relevant to your title."
        return result
    except (SearchError, TransientApiError) as exc:
        _logger.warning("YouTube search failed: %s", exc)
        result.notice = str(exc)
        return result

    result.videos = page.videos
    result.next_page_token = page.next_page_token
    if not page.videos:
        notice = f'No relevant YouTube videos found for "{title or query}".'
        if result.query != query:
            notice += f' Also tried with "{result.query}".'
        result.notice = notice + " You can skip or refine your title."
    return result
