import pytest
import requests

from src import retry
from src.errors import ApiConfigError, GenerationRefusedError, SearchError, TransientApiError
from src.generation import orchestrator
from src.prompting.models import InspirationImage
from src.research.youtube_search import YouTubeVideo
from src.wizard.session import InspirationSelection, Session


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(retry.time, "sleep", lambda _delay: None)


def _selection(i: int, **kwargs) -> InspirationSelection:
    video = YouTubeVideo(
        id=f"vid{i}",
        title=f"Inspiration {i}",
        thumbnail_url=f"https://img.example/{i}.jpg",
        view_count="10K",
        channel_title="Channel",
    )
    return InspirationSelection(video=video, **kwargs)


def _fetch(url: str) -> InspirationImage:
    return InspirationImage(data=url.encode(), source_url=url)


class RecordingImprove:
    def __init__(self) -> None:
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if request.inspiration_title:
            return f"prompt from {request.inspiration_title}"
        return f"prompt from title {request.title}"


class RecordingGenerate:
    def __init__(self, fail_on=None) -> None:
        self.requests = []
        self.fail_on = fail_on or {}

    def __call__(self, request):
        self.requests.append(request)
        for marker, exc in self.fail_on.items():
            if marker in request.prompt:
                raise exc
        return f"png:{request.prompt}".encode()


def test_slot_without_inspiration_uses_title_derived_prompt() -> None:
    session = Session(
        title="Epic Gaming Montage",
        colors=["Red"],
        inspirations=[_selection(1, level=95)],
    )
    improve = RecordingImprove()
    generate = RecordingGenerate()

    outcome = orchestrator.generate_thumbnails(session, generate=generate, improve=improve, fetch_image=_fetch)

    assert [r.index for r in outcome.results] == [0, 1, 2, 3]
    assert all(r.ok for r in outcome.results)
    assert outcome.results[0].prompt == "prompt from Inspiration 1"
    assert outcome.results[1].prompt == "prompt from title Epic Gaming Montage"
    assert outcome.results[1].notes == [
        "No global prompt or specific inspiration for image 2. Generating prompt from title..."
    ]
    assert outcome.derived_prompt == "prompt from Inspiration 1"

    first = generate.requests[0]
    assert first.inspiration is not None and first.influence_level == 95
    assert generate.requests[1].inspiration is None
    assert improve.requests[0].colors == ["Red"]


def test_failure_in_slot_two_does_not_block_other_slots() -> None:
    session = Session(title="Epic Gaming Montage", inspirations=[_selection(1), _selection(2)])
    generate = RecordingGenerate(fail_on={"Inspiration 2": GenerationRefusedError("no image returned")})

    outcome = orchestrator.generate_thumbnails(
        session, generate=generate, improve=RecordingImprove(), fetch_image=_fetch
    )

    assert [r.ok for r in outcome.results] == [True, False, True, True]
    assert outcome.results[1].error == "Error generating image 2: no image returned"
    assert outcome.results[1].error_kind == "refused"
    # Refusals are not retried.
    assert sum(1 for r in generate.requests if "Inspiration 2" in r.prompt) == 1


def test_unexpected_prompt_error_in_slot_two_does_not_block_other_slots() -> None:
    improve = RecordingImprove()

    def picky_improve(request):
        if request.inspiration_title == "Inspiration 2":
            raise RuntimeError("Error code: 404 - model gpt-x does not exist")
        return improve(request)

    session = Session(title="Epic Gaming Montage", inspirations=[_selection(i) for i in range(1, 5)])

    outcome = orchestrator.generate_thumbnails(
        session, generate=RecordingGenerate(), improve=picky_improve, fetch_image=_fetch
    )

    assert [r.ok for r in outcome.results] == [True, False, True, True]
    assert outcome.results[1].error == (
        "Error generating image 2: Failed to generate prompt: Error code: 404 - model gpt-x does not exist"
    )
    assert outcome.results[1].error_kind == "error"
    assert outcome.derived_prompt == "prompt from Inspiration 1"


def test_unexpected_download_error_falls_back_to_title_for_that_slot() -> None:
    def fetch(url: str) -> InspirationImage:
        if url == "https://img.example/2.jpg":
            raise requests.exceptions.InvalidURL("bad url")
        return _fetch(url)

    session = Session(title="Epic Gaming Montage", inspirations=[_selection(i) for i in range(1, 5)])
    generate = RecordingGenerate()

    outcome = orchestrator.generate_thumbnails(
        session, generate=generate, improve=RecordingImprove(), fetch_image=fetch
    )

    assert [r.ok for r in outcome.results] == [True, True, True, True]
    assert outcome.results[1].prompt == "prompt from title Epic Gaming Montage"
    assert outcome.results[1].notes[0].startswith("Could not load the inspiration image for image 2")
    assert generate.requests[1].inspiration is None
    assert outcome.results[2].prompt == "prompt from Inspiration 3"


def test_shared_prompt_is_used_for_every_slot() -> None:
    session = Session(title="Cooking", prompt="A chef in a busy kitchen", inspirations=[_selection(1)])
    improve = RecordingImprove()
    generate = RecordingGenerate()

    outcome = orchestrator.generate_thumbnails(session, generate=generate, improve=improve, fetch_image=_fetch)

    assert improve.requests == []
    assert {r.prompt for r in outcome.results} == {"A chef in a busy kitchen"}
    assert outcome.derived_prompt == ""


def test_transient_errors_are_retried_per_slot() -> None:
    calls = {"count": 0}

    def flaky_generate(request):
        calls["count"] += 1
        if calls["count"] == 1:
            raise TransientApiError("503 unavailable")
        return b"png"

    session = Session(title="Cooking", prompt="A chef")
    outcome = orchestrator.generate_thumbnails(
        session, generate=flaky_generate, improve=RecordingImprove(), fetch_image=_fetch, slot_count=1
    )

    assert outcome.results[0].ok
    assert calls["count"] == 2


def test_no_usable_prompt_fails_the_slot_and_continues() -> None:
    session = Session(title="", inspirations=[_selection(1)])

    outcome = orchestrator.generate_thumbnails(
        session, generate=RecordingGenerate(), improve=RecordingImprove(), fetch_image=_fetch
    )

    assert outcome.results[0].ok
    for k, result in enumerate(outcome.results[1:], start=2):
        assert result.error == f"No usable prompt for image {k}"


def test_inspiration_download_failure_falls_back_to_title() -> None:
    def broken_fetch(url: str) -> InspirationImage:
        raise SearchError("404")

    session = Session(title="Travel Vlog", inspirations=[_selection(1)])
    generate = RecordingGenerate()

    outcome = orchestrator.generate_thumbnails(
        session, generate=generate, improve=RecordingImprove(), fetch_image=broken_fetch, slot_count=1
    )

    result = outcome.results[0]
    assert result.ok
    assert result.prompt == "prompt from title Travel Vlog"
    assert result.notes[0].startswith("Could not load the inspiration image for image 1")
    assert generate.requests[0].inspiration is None


def test_prompt_generation_failure_is_reported_on_the_slot() -> None:
    def failing_improve(request):
        raise ApiConfigError("bad key")

    session = Session(title="Travel Vlog")

    outcome = orchestrator.generate_thumbnails(
        session, generate=RecordingGenerate(), improve=failing_improve, fetch_image=_fetch, slot_count=2
    )

    assert [r.error for r in outcome.results] == [
        "Error generating image 1: Failed to generate prompt: bad key",
        "Error generating image 2: Failed to generate prompt: bad key",
    ]


def test_thread_pool_keeps_slot_order() -> None:
    session = Session(title="Epic Gaming Montage", inspirations=[_selection(i) for i in range(1, 5)])

    outcome = orchestrator.generate_thumbnails(
        session, generate=RecordingGenerate(), improve=RecordingImprove(), fetch_image=_fetch, max_workers=4
    )

    assert [r.prompt for r in outcome.results] == [f"prompt from Inspiration {i}" for i in range(1, 5)]
    assert outcome.derived_prompt == "prompt from Inspiration 1"


def test_shared_prompt_request_uses_first_inspiration() -> None:
    session = Session(
        title="Epic Gaming Montage",
        colors=["Blue"],
        master_text=["GG"],
        inspirations=[_selection(1, level=40, replicate_text=True), _selection(2)],
    )

    request = orchestrator.shared_prompt_request(session, "  my idea ", fetch_image=_fetch)

    assert request.prompt == "my idea"
    assert request.inspiration_title == "Inspiration 1"
    assert request.inspiration.source_url == "https://img.example/1.jpg"
    assert request.influence_level == 40
    assert request.replicate_text is True
    assert request.master_text == ["GG"]
