import pytest
import requests

from src.errors import SearchError, TransientApiError
from src.generation import inspiration_images


class DummyResponse:
    def __init__(self, status_code=200, content=b"", content_type="image/jpeg"):
        self.status_code = status_code
        self.content = content
        self.headers = {"Content-Type": content_type}


def test_fetch_inspiration_image_returns_bytes_and_mime(monkeypatch) -> None:
    monkeypatch.setattr(
        inspiration_images.requests,
        "get",
        lambda url, timeout=None: DummyResponse(content=b"\xff\xd8data", content_type="image/jpeg; charset=binary"),
    )

    image = inspiration_images.fetch_inspiration_image("https://i.ytimg.com/vi/abc/hqdefault.jpg")

    assert image.data == b"\xff\xd8data"
    assert image.mime_type == "image/jpeg"
    assert image.to_data_uri().startswith("data:image/jpeg;base64,")


@pytest.mark.parametrize(
    ("response", "error"),
    [
        (DummyResponse(status_code=503), TransientApiError),
        (DummyResponse(status_code=404), SearchError),
        (DummyResponse(content=b"<html>", content_type="text/html"), SearchError),
    ],
)
def test_fetch_inspiration_image_errors(monkeypatch, response, error) -> None:
    monkeypatch.setattr(inspiration_images.requests, "get", lambda url, timeout=None: response)

    with pytest.raises(error):
        inspiration_images.fetch_inspiration_image("https://i.ytimg.com/vi/abc/hqdefault.jpg")


def test_fetch_inspiration_image_connection_error_is_transient(monkeypatch) -> None:
    def boom(url, timeout=None):
        raise requests.ConnectionError("dns failure")

    monkeypatch.setattr(inspiration_images.requests, "get", boom)

    with pytest.raises(TransientApiError):
        inspiration_images.fetch_inspiration_image("https://i.ytimg.com/vi/abc/hqdefault.jpg")


def test_fetch_inspiration_image_malformed_url_is_a_search_error(monkeypatch) -> None:
    def bad_url(url, timeout=None):
        raise requests.exceptions.InvalidURL("No host supplied")

    monkeypatch.setattr(inspiration_images.requests, "get", bad_url)

    with pytest.raises(SearchError, match="Could not download inspiration image"):
        inspiration_images.fetch_inspiration_image("https:///hqdefault.jpg")
