"""Conversational wizard that collects thumbnail inputs one step at a time.

The flow is an explicit transition table keyed by (step, action)::

    start -> colors -> inspiration-search -> inspiration-tuning
          -> master-text -> prompt -> generating -> results

``start-over`` is accepted from every step. Each transition records what the
user did (skips included) and then the bot prompt for the next step, so the
transcript reads like a chat log.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from src.constants import MAX_MASTER_TEXT_SENTENCES, SLOT_COUNT
from src.errors import WizardError
from src.research.youtube_search import YouTubeVideo
from src.wizard.session import (
    ChatMessage,
    InspirationSelection,
    Session,
    SlotResult,
    WizardStep,
    clamp_level,
    validate_colors,
    validate_master_text,
    validate_title,
)

_logger = logging.getLogger(__name__)


class Action(str, Enum):
    SUBMIT = "submit"
    SKIP = "skip"
    COMPLETE = "complete"
    REGENERATE = "regenerate"
    START_OVER = "start-over"


TRANSITIONS: dict[tuple[WizardStep, Action], WizardStep] = {
    (WizardStep.START, Action.SUBMIT): WizardStep.COLORS,
    (WizardStep.COLORS, Action.SUBMIT): WizardStep.INSPIRATION_SEARCH,
    (WizardStep.COLORS, Action.SKIP): WizardStep.INSPIRATION_SEARCH,
    (WizardStep.INSPIRATION_SEARCH, Action.SUBMIT): WizardStep.INSPIRATION_TUNING,
    (WizardStep.INSPIRATION_SEARCH, Action.SKIP): WizardStep.MASTER_TEXT,
    (WizardStep.INSPIRATION_TUNING, Action.SUBMIT): WizardStep.MASTER_TEXT,
    (WizardStep.MASTER_TEXT, Action.SUBMIT): WizardStep.PROMPT,
    (WizardStep.MASTER_TEXT, Action.SKIP): WizardStep.PROMPT,
    (WizardStep.PROMPT, Action.SUBMIT): WizardStep.GENERATING,
    (WizardStep.PROMPT, Action.SKIP): WizardStep.GENERATING,
    (WizardStep.GENERATING, Action.COMPLETE): WizardStep.RESULTS,
    (WizardStep.RESULTS, Action.REGENERATE): WizardStep.GENERATING,
}
TRANSITIONS.update({(step, Action.START_OVER): WizardStep.START for step in WizardStep})

BOT_PROMPTS: dict[WizardStep, str] = {
    WizardStep.COLORS: (
        "Great! Let's start by picking some primary colors you'd like to see in your thumbnails. (Optional)"
    ),
    WizardStep.INSPIRATION_SEARCH: (
        "Awesome! Now, would you like to find a YouTube video for visual inspiration? "
        f"Pick up to {SLOT_COUNT}, one per thumbnail. This can greatly influence the style."
    ),
    WizardStep.INSPIRATION_TUNING: "Let's adjust the influence levels and details for your chosen inspirations.",
    WizardStep.MASTER_TEXT: (
        f"Next, do you want to specify any 'Master Text'? This text (up to {MAX_MASTER_TEXT_SENTENCES} "
        "sentences) will be the ONLY text on your thumbnails, overriding everything else."
    ),
    WizardStep.PROMPT: (
        "Finally, do you have a base description or prompt in mind? Or would you like me to generate "
        "one based on your title and inspirations (if any)?"
    ),
    WizardStep.GENERATING: f"AI is creating {SLOT_COUNT} thumbnail(s)... This may take some time.",
}


def next_step(step: WizardStep, action: Action) -> WizardStep:
    try:
        return TRANSITIONS[(step, action)]
    except KeyError:
        raise WizardError(f"Cannot {action.value} during the {step.value} step.") from None


def summarize_results(results: List[SlotResult]) -> ChatMessage:
    succeeded = sum(1 for result in results if result.ok)
    errors = [result.error for result in results if result.error]
    if succeeded and not errors:
        return ChatMessage("bot", f"Successfully created {succeeded} new thumbnail(s)!")
    if succeeded:
        return ChatMessage("bot", f"Generated {succeeded} thumbnail(s), but some errors occurred. See details above.")
    if errors:
        return ChatMessage("bot", "Thumbnail generation failed. " + "\n".join(errors), kind="error")
    return ChatMessage("bot", "No thumbnails were generated. Unknown issue.", kind="error")


class ThumbnailWizard:
    def __init__(self, session: Optional[Session] = None) -> None:
        self.session = session or Session()

    @property
    def step(self) -> WizardStep:
        return self.session.step

    @property
    def transcript(self) -> List[ChatMessage]:
        return self.session.transcript

    def _say(self, sender: str, content: str, kind: str = "text") -> None:
        self.session.transcript.append(ChatMessage(sender, content, kind))

    def report_error(self, content: str) -> None:
        """Show a failed side action (search, prompt generation) without changing step."""
        self._say("bot", content, kind="error")

    def _require(self, *steps: WizardStep) -> None:
        if self.session.step not in steps:
            allowed = ", ".join(step.value for step in steps)
            raise WizardError(f"This action is only available during: {allowed} (current: {self.session.step.value}).")

    def _transition(self, action: Action, user_message: Optional[str] = None) -> WizardStep:
        target = next_step(self.session.step, action)
        if user_message:
            self._say("user", user_message)
        _logger.info("Wizard %s --%s--> %s", self.session.step.value, action.value, target.value)
        self.session.step = target
        prompt = BOT_PROMPTS.get(target)
        if prompt:
            self._say("bot", prompt)
        return target

    # -- start ---------------------------------------------------------------

    def start(self, title: str) -> None:
        self._require(WizardStep.START)
        self.session.title = validate_title(title)
        self._say("system", f'Starting thumbnail generation for: "{self.session.title}"')
        self._transition(Action.SUBMIT)

    # -- colors --------------------------------------------------------------

    def submit_colors(self, colors: List[str]) -> None:
        self._require(WizardStep.COLORS)
        cleaned = validate_colors(colors)
        if not cleaned:
            self.skip_colors()
            return
        self.session.colors = cleaned
        self._transition(Action.SUBMIT, f"Selected colors: {', '.join(cleaned)}")

    def skip_colors(self) -> None:
        self._require(WizardStep.COLORS)
        self.session.colors = []
        self._transition(Action.SKIP, "Skipped color selection.")

    # -- inspiration -----------------------------------------------------------

    def toggle_inspiration(self, video: YouTubeVideo) -> bool:
        """Select or deselect ``video``; returns True when it ends up selected."""
        self._require(WizardStep.INSPIRATION_SEARCH)
        existing = self.session.find_inspiration(video.id)
        if existing is not None:
            self.session.inspirations.remove(existing)
            return False
        if len(self.session.inspirations) >= SLOT_COUNT:
            raise WizardError(f"You can select up to {SLOT_COUNT} inspirations.")
        self.session.inspirations.append(InspirationSelection(video=video))
        return True

    def confirm_inspirations(self) -> None:
        self._require(WizardStep.INSPIRATION_SEARCH)
        count = len(self.session.inspirations)
        if not count:
            self._transition(Action.SKIP, "No inspiration videos selected.")
            return
        self._transition(Action.SUBMIT, f"Selected {count} video(s) for inspiration.")

    def skip_inspiration(self) -> None:
        self._require(WizardStep.INSPIRATION_SEARCH)
        self.session.inspirations = []
        self._transition(Action.SKIP, "Skipped video inspiration.")

    def _selection(self, video_id: str) -> InspirationSelection:
        self._require(WizardStep.INSPIRATION_TUNING)
        selection = self.session.find_inspiration(video_id)
        if selection is None:
            raise WizardError(f"Video {video_id} is not a selected inspiration.")
        return selection

    def set_influence(self, video_id: str, level: int) -> None:
        self._selection(video_id).level = clamp_level(level)

    def set_replication(self, video_id: str, *, face: Optional[bool] = None, text: Optional[bool] = None) -> None:
        selection = self._selection(video_id)
        if face is not None:
            selection.replicate_face = bool(face)
        if text is not None:
            selection.replicate_text = bool(text)

    def confirm_tuning(self) -> None:
        self._require(WizardStep.INSPIRATION_TUNING)
        self._transition(Action.SUBMIT, "Inspiration details confirmed.")

    # -- master text -----------------------------------------------------------

    def submit_master_text(self, sentences: List[str]) -> None:
        self._require(WizardStep.MASTER_TEXT)
        cleaned = validate_master_text(sentences)
        if not cleaned:
            self.skip_master_text()
            return
        self.session.master_text = cleaned
        quoted = "; ".join(f'"{s}"' for s in cleaned)
        self._transition(Action.SUBMIT, f"Master text set: {quoted}")

    def skip_master_text(self) -> None:
        self._require(WizardStep.MASTER_TEXT)
        self.session.master_text = []
        self._transition(Action.SKIP, "Skipped master text.")

    # -- prompt ------------------------------------------------------------------

    def submit_prompt(self, prompt: str, *, mode: str = "submit", original: str = "") -> None:
        """Record the base prompt and move on to generation.

        ``mode`` is "submit" for the user's own text, "generate" when the AI
        wrote it from scratch and "enhance" when it rewrote ``original``.
        """
        self._require(WizardStep.PROMPT)
        prompt = (prompt or "").strip()
        if not prompt:
            self.skip_prompt()
            return
        if mode == "generate":
            self._say("user", "Generate a prompt for me.")
            self._say("bot", f"Here's a generated prompt (used for all {SLOT_COUNT} images): {prompt}")
        elif mode == "enhance":
            self._say("user", f'Enhance this prompt: "{original.strip()}"')
            self._say("bot", f"Here's the enhanced prompt (used for all {SLOT_COUNT} images): {prompt}")
        else:
            self._say("user", f'Using prompt: "{prompt}"')
        self.session.prompt = prompt
        self._say("system", "All inputs collected. Ready to generate thumbnails!")
        self._transition(Action.SUBMIT)

    def skip_prompt(self) -> None:
        self._require(WizardStep.PROMPT)
        self.session.prompt = ""
        self._say("user", "Skipped custom prompt, will generate if needed.")
        self._say("system", "All inputs collected. Ready to generate thumbnails!")
        self._transition(Action.SKIP)

    # -- generation --------------------------------------------------------------

    def generation_epoch(self) -> int:
        """Token to hand back to ``complete_generation``."""
        self._require(WizardStep.GENERATING)
        return self.session.epoch

    def complete_generation(self, results: List[SlotResult], epoch: int, derived_prompt: str = "") -> bool:
        """Store results unless the session was reset while they were in flight."""
        if epoch != self.session.epoch or self.session.step != WizardStep.GENERATING:
            _logger.info(
                "Discarding stale generation results (epoch %s, current %s, step %s).",
                epoch,
                self.session.epoch,
                self.session.step.value,
            )
            return False

        for result in sorted(results, key=lambda r: r.index):
            for note in result.notes:
                self._say("system", note)
            if result.error:
                self._say("bot", result.error, kind="error")

        self.session.results = sorted(results, key=lambda r: r.index)
        if derived_prompt and not self.session.prompt:
            self.session.prompt = derived_prompt
        self._transition(Action.COMPLETE)
        self.session.transcript.append(summarize_results(self.session.results))
        return True

    def regenerate(self) -> None:
        self._require(WizardStep.RESULTS)
        self._transition(Action.REGENERATE, "Regenerate thumbnails with current settings.")

    def start_over(self) -> str:
        """Reset everything; returns the previous title so the UI can prefill it."""
        previous_title = self.session.title
        next_step(self.session.step, Action.START_OVER)
        _logger.info("Wizard reset from %s (epoch %d).", self.session.step.value, self.session.epoch)
        self.session = Session(epoch=self.session.epoch + 1)
        return previous_title
