"""Generation and refinement requests against the active draft.

Every request captures the active kind and activation epoch before it
suspends. If the user switches tabs while it is in flight, the response is
discarded instead of being applied to the wrong draft. Nothing is mutated
until a response has arrived, so a failure leaves the draft and its
history exactly as they were.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Iterable, Optional, TypeVar

from teachassist.services.assistant.assessment import render_assessment, validate_image
from teachassist.services.assistant.models import (
    YEAR_LEVELS,
    AssessmentResult,
    AssistantKind,
    DraftSession,
    DraftStatus,
    Message,
    year_level_label,
)

from .backend import GenerationBackend
from .composer import build_refinement_instruction
from .errors import (
    GenerationFailedError,
    InputRequiredError,
    NoRefinementsSelectedError,
    NothingToRefineError,
    RequestInProgressError,
    UnsupportedKindError,
    UpstreamError,
)
from .history import HistoryLog
from .state import DraftSessionState

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 60.0
ASSESSMENT_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")
ASSESSMENT_MAX_IMAGE_BYTES = 3 * 1024 * 1024


@dataclass
class GenerationResult:
    content: str
    # False when the draft or its history entry could not be written to storage.
    persisted: bool = True
    # True when the user switched tabs before the response arrived.
    discarded: bool = False
    assessment: Optional[AssessmentResult] = None


class GenerationOrchestrator:
    def __init__(
        self,
        state: DraftSessionState,
        history: HistoryLog,
        backend: GenerationBackend,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        record_refinements: bool = True,
    ) -> None:
        self.state = state
        self.history = history
        self.backend = backend
        self.timeout = timeout
        self.record_refinements = record_refinements

    async def generate(self, input_text: Optional[str] = None) -> GenerationResult:
        kind = self._active_kind()
        text = self.state.session.input_text if input_text is None else input_text
        if not text or not text.strip():
            raise InputRequiredError()
        if not kind.is_text:
            raise UnsupportedKindError(f"The {kind.value} assistant does not draft from text notes.")
        self._ensure_idle()

        epoch = self.state.epoch
        prior_status = self.state.status
        self.state.status = DraftStatus.GENERATING
        try:
            response = await self._request(self.backend.generate(kind, text))
            if self._is_stale(kind, epoch):
                return GenerationResult(content=response, persisted=False, discarded=True)

            session = DraftSession(
                input_text=text,
                generated_output=response,
                transcript=[Message(role="user", content=text), Message(role="assistant", content=response)],
            )
            return self._apply(kind, session, history_input=text)
        finally:
            self._restore(epoch, prior_status)

    async def refine(self, instruction: str) -> GenerationResult:
        kind = self._active_kind()
        if not instruction or not instruction.strip():
            raise NoRefinementsSelectedError()
        current = self.state.session
        if current.generated_output is None:
            raise NothingToRefineError()
        self._ensure_idle()

        # Speculative turn; only committed together with the answer.
        pending = [*current.transcript, Message(role="user", content=instruction)]

        epoch = self.state.epoch
        prior_status = self.state.status
        self.state.status = DraftStatus.REFINING
        try:
            response = await self._request(self.backend.refine(kind, pending))
            if self._is_stale(kind, epoch):
                return GenerationResult(content=response, persisted=False, discarded=True)

            session = DraftSession(
                input_text=current.input_text,
                generated_output=response,
                transcript=[*pending, Message(role="assistant", content=response)],
            )
            return self._apply(
                kind,
                session,
                history_input=instruction if self.record_refinements else None,
            )
        finally:
            self._restore(epoch, prior_status)

    async def refine_with(
        self,
        preset_ids: Iterable[str] = (),
        custom_text: Optional[str] = None,
    ) -> GenerationResult:
        kind = self._active_kind()
        instruction = build_refinement_instruction(preset_ids, custom_text, kind=kind)
        return await self.refine(instruction)

    async def assess(self, year_level: str, image_data: str, image_type: str) -> GenerationResult:
        kind = self._active_kind()
        if kind is not AssistantKind.WRITING_ASSESSMENT:
            raise UnsupportedKindError(f"The {kind.value} assistant does not assess handwriting.")
        if year_level not in YEAR_LEVELS or not image_data:
            raise InputRequiredError("Please select a year level and upload an image.")
        try:
            validate_image(
                image_data,
                image_type,
                allowed_types=ASSESSMENT_IMAGE_TYPES,
                max_bytes=ASSESSMENT_MAX_IMAGE_BYTES,
            )
        except ValueError as exc:
            raise InputRequiredError(str(exc)) from exc
        self._ensure_idle()

        epoch = self.state.epoch
        prior_status = self.state.status
        self.state.status = DraftStatus.GENERATING
        try:
            assessment = await self._request(self.backend.assess(year_level, image_data, image_type))
            content = render_assessment(assessment)
            if self._is_stale(kind, epoch):
                return GenerationResult(content=content, persisted=False, discarded=True, assessment=assessment)
            if not content.strip():
                raise GenerationFailedError("No assessment generated from AI service")

            label = f"{year_level_label(year_level)} handwriting sample"
            session = DraftSession(
                input_text=label,
                generated_output=content,
                transcript=[Message(role="user", content=label), Message(role="assistant", content=content)],
            )
            result = self._apply(kind, session, history_input=label)
            result.assessment = assessment
            return result
        finally:
            self._restore(epoch, prior_status)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _request(self, awaitable: Awaitable[T]) -> T:
        try:
            response = await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.error(f"Generation request timed out after {self.timeout}s")
            raise GenerationFailedError("The AI service did not respond in time. Please try again.") from exc
        except UpstreamError as exc:
            logger.error(f"Generation request failed: {exc.message} ({exc.detail})")
            raise GenerationFailedError(exc.message, detail=exc.detail, status_code=exc.status_code) from exc
        except Exception as exc:
            logger.error(f"Unexpected error from generation backend: {exc}")
            raise GenerationFailedError("An error occurred while contacting the AI service", detail=str(exc)) from exc
        if response is None or (isinstance(response, str) and not response.strip()):
            raise GenerationFailedError("No content generated from AI service")
        return response

    def _apply(self, kind: AssistantKind, session: DraftSession, *, history_input: Optional[str]) -> GenerationResult:
        saved = self.state.commit(session)
        history_saved = True
        if history_input is not None:
            history_saved = self.history.record(kind, input_text=history_input, content=session.generated_output)
            self.state.refresh_history()
        if not (saved and history_saved):
            logger.warning(f"Content generated for '{kind.value}' but may not be saved due to storage limits")
        return GenerationResult(content=session.generated_output, persisted=saved and history_saved)

    def _is_stale(self, kind: AssistantKind, epoch: int) -> bool:
        if self.state.kind == kind and self.state.epoch == epoch:
            return False
        logger.info(f"Discarding response for '{kind.value}': the active tab changed while it was in flight")
        return True

    def _restore(self, epoch: int, status: DraftStatus) -> None:
        # Put back the status held before the request unless it was committed
        # or the tab was switched in the meantime.
        if self.state.epoch == epoch and self.state.is_busy():
            self.state.status = status

    def _ensure_idle(self) -> None:
        if self.state.is_busy():
            raise RequestInProgressError()

    def _active_kind(self) -> AssistantKind:
        if self.state.kind is None:
            raise RuntimeError("No assistant kind is active")
        return self.state.kind
