from src import diagnostics
from src.errors import ApiConfigError
from src.research.youtube_search import SearchPage


class DummyResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        return self._payload


def test_check_gemini_reports_available_image_model(monkeypatch) -> None:
    monkeypatch.setattr(diagnostics, "first_secret", lambda names, default="": "AIzaTestKey123")
    monkeypatch.setattr(diagnostics, "image_model_candidates", lambda: ["gemini-2.5-flash-image"])
    monkeypatch.setattr(
        diagnostics.requests,
        "get",
        lambda url, params=None, timeout=None: DummyResponse({"models": [{"name": "models/gemini-2.5-flash-image"}]}),
    )

    ok, message = diagnostics.check_gemini()

    assert ok
    assert "AIzaTe***" in message
    assert "AIzaTestKey123" not in message


def test_check_openai_flags_revoked_key(monkeypatch) -> None:
    monkeypatch.setattr(diagnostics, "get_secret", lambda name, default="": "sk-proj-abcdef" if "key" in name else "")
    monkeypatch.setattr(
        diagnostics.requests, "get", lambda url, headers=None, timeout=None: DummyResponse({}, status_code=401)
    )

    ok, message = diagnostics.check_openai()

    assert not ok
    assert "HTTP 401" in message


class HtmlResponse:
    status_code = 200
    text = "<html>captive portal</html>"

    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


def test_check_gemini_reports_non_json_body(monkeypatch) -> None:
    monkeypatch.setattr(diagnostics, "first_secret", lambda names, default="": "AIzaTestKey123")
    monkeypatch.setattr(diagnostics.requests, "get", lambda url, params=None, timeout=None: HtmlResponse())

    ok, message = diagnostics.check_gemini()

    assert not ok
    assert "non-JSON" in message


def test_check_openai_reports_non_json_body(monkeypatch) -> None:
    monkeypatch.setattr(diagnostics, "get_secret", lambda name, default="": "sk-proj-abcdef" if "key" in name else "")
    monkeypatch.setattr(diagnostics.requests, "get", lambda url, headers=None, timeout=None: HtmlResponse())

    ok, message = diagnostics.check_openai()

    assert not ok
    assert "non-JSON" in message


def test_check_youtube_reports_config_errors(monkeypatch) -> None:
    monkeypatch.setattr(diagnostics, "get_secret", lambda name, default="": "AIzaYoutubeKey")

    def failing_search(query, max_results=9):
        raise ApiConfigError("Invalid YouTube API key (search).")

    monkeypatch.setattr(diagnostics, "search_videos", failing_search)

    ok, message = diagnostics.check_youtube()

    assert not ok
    assert "Invalid YouTube API key" in message


def test_run_all_collects_every_check(monkeypatch) -> None:
    monkeypatch.setattr(diagnostics, "get_secret", lambda name, default="": "AIzaYoutubeKey")
    monkeypatch.setattr(diagnostics, "search_videos", lambda query, max_results=9: SearchPage())
    monkeypatch.setitem(diagnostics.CHECKS, "Gemini (image generation)", lambda: (True, "fine"))
    monkeypatch.setitem(diagnostics.CHECKS, "OpenAI (prompt writing)", lambda: (False, "missing"))

    results = diagnostics.run_all()

    assert [label for label, _, _ in results] == list(diagnostics.CHECKS)
    assert [ok for _, ok, _ in results] == [True, False, True]
