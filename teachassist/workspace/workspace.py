"""Facade tying draft state, history and the request orchestrator together."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from teachassist.core.config import settings
from teachassist.services.assistant.models import AssistantKind, DraftSession, DraftStatus, HistoryEntry

from .backend import GenerationBackend, HttpGenerationBackend
from .composer import RefinementPreset, presets_for
from .history import HistoryLog
from .orchestrator import DEFAULT_TIMEOUT, GenerationOrchestrator, GenerationResult
from .state import DraftSessionState
from .storage import FileKeyValueStore, KeyValueStore, LocalStorage, MemoryKeyValueStore


class AssistantWorkspace:
    """One user's set of assistant tabs."""

    def __init__(
        self,
        backend: GenerationBackend,
        store: Optional[KeyValueStore] = None,
        *,
        initial_kind: AssistantKind = AssistantKind.REPORT,
        timeout: float = DEFAULT_TIMEOUT,
        record_refinements: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.storage = LocalStorage(store if store is not None else MemoryKeyValueStore())
        self.history = HistoryLog(self.storage, clock=clock)
        self.state = DraftSessionState(self.storage, self.history)
        self.orchestrator = GenerationOrchestrator(
            self.state,
            self.history,
            backend,
            timeout=timeout,
            record_refinements=record_refinements,
        )
        self.state.activate(initial_kind)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def kind(self) -> AssistantKind:
        return self.state.kind

    @property
    def session(self) -> DraftSession:
        return self.state.session.model_copy(deep=True)

    @property
    def status(self) -> DraftStatus:
        return self.state.status

    @property
    def history_entries(self) -> List[HistoryEntry]:
        return list(self.state.history_entries)

    def refinement_presets(self) -> List[RefinementPreset]:
        return presets_for(self.state.kind)

    # ------------------------------------------------------------------
    # Tab and draft actions
    # ------------------------------------------------------------------
    def activate(self, kind: AssistantKind) -> DraftSession:
        return self.state.activate(kind)

    def set_input(self, text: str) -> None:
        self.state.set_input(text)

    def clear(self) -> None:
        self.state.clear()

    def clear_history(self) -> None:
        self.state.clear_history()

    async def generate(self, input_text: Optional[str] = None, *, kind: Optional[AssistantKind] = None) -> GenerationResult:
        if kind is not None:
            self.activate(kind)
        return await self.orchestrator.generate(input_text)

    async def refine(self, instruction: str) -> GenerationResult:
        return await self.orchestrator.refine(instruction)

    async def refine_with(self, preset_ids: Iterable[str] = (), custom_text: Optional[str] = None) -> GenerationResult:
        return await self.orchestrator.refine_with(preset_ids, custom_text)

    async def assess(self, year_level: str, image_data: str, image_type: str) -> GenerationResult:
        self.activate(AssistantKind.WRITING_ASSESSMENT)
        return await self.orchestrator.assess(year_level, image_data, image_type)

    async def aclose(self) -> None:
        await self.orchestrator.backend.aclose()


def create_workspace(
    base_url: str = "http://localhost:8000",
    data_dir: Optional[Path] = None,
) -> AssistantWorkspace:
    """Workspace backed by the HTTP API and, when ``data_dir`` is given, files on disk."""
    timeout = settings.AI_REQUEST_TIMEOUT
    store = FileKeyValueStore(data_dir) if data_dir is not None else MemoryKeyValueStore()
    return AssistantWorkspace(
        HttpGenerationBackend(base_url, timeout=timeout),
        store,
        timeout=timeout,
        record_refinements=settings.RECORD_REFINEMENT_HISTORY,
    )
