"""Fan a session out into one image-generation call per slot.

Each slot resolves its own prompt (shared prompt, then the slot's inspiration,
then the title) and fails independently of the others.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from src.constants import RETRY_ATTEMPTS, RETRY_BASE_DELAY_SEC, SLOT_COUNT
from src.errors import ThumbnailForgeError, is_retryable
from src.generation.inspiration_images import fetch_inspiration_image
from src.prompting.models import InspirationImage, PromptRequest, ThumbnailRequest
from src.retry import retry_with_backoff
from src.wizard.session import InspirationSelection, Session, SlotResult

_logger = logging.getLogger(__name__)

GenerateFn = Callable[[ThumbnailRequest], bytes]
ImproveFn = Callable[[PromptRequest], str]
FetchImageFn = Callable[[str], InspirationImage]


@dataclass
class GenerationOutcome:
    results: List[SlotResult] = field(default_factory=list)
    derived_prompt: str = ""

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.ok)


def _default_generate(request: ThumbnailRequest) -> bytes:
    import image_gen

    return image_gen.generate_thumbnail_image(request)


def _default_improve(request: PromptRequest) -> str:
    from src.prompting.improve import improve_prompt

    return improve_prompt(request)


class _SlotRunner:
    def __init__(
        self,
        session: Session,
        generate: GenerateFn,
        improve: ImproveFn,
        fetch_image: FetchImageFn,
        retries: int,
        base_delay: float,
    ) -> None:
        self.session = session
        self.generate = generate
        self.improve = improve
        self.fetch_image = fetch_image
        self.retries = retries
        self.base_delay = base_delay

    def _retry(self, operation, label: str):
        return retry_with_backoff(
            operation,
            retries=self.retries,
            base_delay=self.base_delay,
            should_retry=is_retryable,
            label=label,
        )

    def _load_image(self, result: SlotResult, selection: InspirationSelection) -> Optional[InspirationImage]:
        k = result.index + 1
        try:
            return self._retry(
                lambda: self.fetch_image(selection.video.thumbnail_url),
                label=f"inspiration image {k}",
            )
        except Exception as exc:  # noqa: BLE001 - a broken download only costs this slot its inspiration
            if not isinstance(exc, ThumbnailForgeError):
                _logger.exception("Unexpected failure loading inspiration image %d", k)
            result.notes.append(
                f'Could not load the inspiration image for image {k} ("{selection.video.title}"): {exc}. '
                "Continuing without it."
            )
            return None

    def _derive_prompt(
        self,
        result: SlotResult,
        selection: Optional[InspirationSelection],
        image: Optional[InspirationImage],
    ) -> str:
        session = self.session
        k = result.index + 1
        if selection is not None:
            result.notes.append(f"No global prompt. Generating prompt for image {k} using its specific inspiration...")
            request = PromptRequest(
                title=session.title,
                colors=session.colors,
                master_text=session.master_text,
                inspiration=image,
                inspiration_title=selection.video.title,
                influence_level=selection.level,
                replicate_face=selection.replicate_face,
                replicate_text=selection.replicate_text,
            )
        else:
            result.notes.append(
                f"No global prompt or specific inspiration for image {k}. Generating prompt from title..."
            )
            request = PromptRequest(title=session.title, colors=session.colors, master_text=session.master_text)
        return self.improve(request)

    def run(self, index: int) -> tuple[SlotResult, bool]:
        """Returns the slot result and whether its prompt was derived here."""
        session = self.session
        k = index + 1
        result = SlotResult(index=index)

        selection = session.inspiration_for_slot(index)
        image = self._load_image(result, selection) if selection is not None else None
        if selection is not None and image is None:
            selection = None

        derived = False
        prompt = session.prompt.strip()
        if not prompt and (selection is not None or session.title):
            try:
                prompt = self._derive_prompt(result, selection, image).strip()
                derived = bool(prompt)
            except ThumbnailForgeError as exc:
                result.error = f"Error generating image {k}: Failed to generate prompt: {exc}"
                result.error_kind = exc.kind
                return result, False
            except Exception as exc:  # noqa: BLE001 - one slot must not take the others down
                _logger.exception("Unexpected failure generating prompt for image %d", k)
                result.error = f"Error generating image {k}: Failed to generate prompt: {exc}"
                result.error_kind = "error"
                return result, False
        if not prompt:
            result.error = f"No usable prompt for image {k}"
            result.error_kind = "invalid_prompt"
            return result, False

        result.prompt = prompt
        request = ThumbnailRequest(
            prompt=prompt,
            colors=session.colors,
            master_text=session.master_text,
            inspiration=image,
            influence_level=selection.level if selection is not None else None,
            replicate_face=selection.replicate_face if selection is not None else False,
            replicate_text=selection.replicate_text if selection is not None else False,
        )
        try:
            result.image_bytes = self._retry(lambda: self.generate(request), label=f"image {k}")
        except ThumbnailForgeError as exc:
            result.error = f"Error generating image {k}: {exc}"
            result.error_kind = exc.kind
        except Exception as exc:  # noqa: BLE001 - one slot must not take the others down
            _logger.exception("Unexpected failure generating image %d", k)
            result.error = f"Error generating image {k}: {exc}"
            result.error_kind = "error"
        return result, derived


def generate_thumbnails(
    session: Session,
    *,
    generate: Optional[GenerateFn] = None,
    improve: Optional[ImproveFn] = None,
    fetch_image: Optional[FetchImageFn] = None,
    slot_count: int = SLOT_COUNT,
    max_workers: int = 1,
    retries: int = RETRY_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY_SEC,
) -> GenerationOutcome:
    """Generate ``slot_count`` thumbnails for ``session``.

    Slots run sequentially unless ``max_workers`` > 1. Results are always
    returned in slot order. ``derived_prompt`` is the first prompt derived for
    a slot, for the caller to adopt when the session had none.
    """
    runner = _SlotRunner(
        session,
        generate or _default_generate,
        improve or _default_improve,
        fetch_image or fetch_inspiration_image,
        retries,
        base_delay,
    )
    indices = list(range(slot_count))
    _logger.info(
        "Generating %d thumbnail(s) for %r (shared prompt=%s, inspirations=%d, workers=%d)",
        slot_count,
        session.title,
        bool(session.prompt.strip()),
        len(session.inspirations),
        max_workers,
    )

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            runs = list(pool.map(runner.run, indices))
    else:
        runs = [runner.run(index) for index in indices]

    outcome = GenerationOutcome(results=[result for result, _ in runs])
    for result, derived in runs:
        if derived:
            outcome.derived_prompt = result.prompt
            break
    _logger.info("Generated %d/%d thumbnail(s)", outcome.succeeded, slot_count)
    return outcome


def shared_prompt_request(
    session: Session,
    prompt: str = "",
    *,
    fetch_image: Optional[FetchImageFn] = None,
) -> PromptRequest:
    """Request for the session-wide prompt (generate or enhance), seeded by the first inspiration."""
    fetch_image = fetch_image or fetch_inspiration_image
    first = session.inspiration_for_slot(0)
    image = None
    if first is not None:
        try:
            image = fetch_image(first.video.thumbnail_url)
        except ThumbnailForgeError as exc:
            _logger.warning("Prompt will be written without the inspiration image: %s", exc)
    return PromptRequest(
        title=session.title,
        prompt=(prompt or "").strip(),
        colors=session.colors,
        master_text=session.master_text,
        inspiration=image,
        inspiration_title=first.video.title if first is not None else "",
        influence_level=first.level if first is not None else None,
        replicate_face=first.replicate_face if first is not None else False,
        replicate_text=first.replicate_text if first is not None else False,
    )
