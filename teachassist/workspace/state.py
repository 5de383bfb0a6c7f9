"""Draft state for the active assistant tab."""
from __future__ import annotations

import logging
from typing import List, Optional

from teachassist.services.assistant.models import AssistantKind, DraftSession, DraftStatus, HistoryEntry

from .history import HistoryLog
from .storage import LocalStorage

logger = logging.getLogger(__name__)


class DraftSessionState:
    """Holds the in-memory draft for one kind at a time.

    Persistence mirrors memory: drafts are written after a successful
    generation and before switching tabs, never on every keystroke.
    """

    def __init__(self, storage: LocalStorage, history: HistoryLog):
        self.storage = storage
        self.history = history
        self.kind: Optional[AssistantKind] = None
        self.session = DraftSession()
        self.history_entries: List[HistoryEntry] = []
        self.status = DraftStatus.EMPTY
        # Bumped on every activation so in-flight responses can tell they are stale.
        self.epoch = 0

    # ------------------------------------------------------------------
    # Tab lifecycle
    # ------------------------------------------------------------------
    def activate(self, kind: AssistantKind) -> DraftSession:
        kind = AssistantKind(kind)
        if kind == self.kind:
            return self.session

        if self.kind is not None and self.session.generated_output is not None:
            if not self.storage.save_session(self.kind, self.session):
                logger.warning(f"Draft for '{self.kind.value}' could not be saved before switching tabs")

        self.kind = kind
        self.epoch += 1
        self.session = self.storage.load_session(kind) or DraftSession()
        self.history_entries = self.history.list(kind)
        self.status = DraftStatus.EMPTY if self.session.is_empty else DraftStatus.READY
        logger.debug(f"Activated '{kind.value}' (epoch {self.epoch})")
        return self.session

    def set_input(self, text: str) -> None:
        self.session.input_text = text

    def clear(self) -> None:
        """Reset the draft and drop its persisted copy; history is kept."""
        kind = self._require_kind()
        self.session = DraftSession()
        self.status = DraftStatus.EMPTY
        self.storage.clear_session(kind)

    def clear_history(self) -> None:
        kind = self._require_kind()
        self.history.clear(kind)
        self.history_entries = []

    # ------------------------------------------------------------------
    # Used by the orchestrator
    # ------------------------------------------------------------------
    def commit(self, session: DraftSession) -> bool:
        """Replace the draft after a successful request and persist it."""
        kind = self._require_kind()
        self.session = session
        self.status = DraftStatus.READY
        return self.storage.save_session(kind, session)

    def refresh_history(self) -> None:
        self.history_entries = self.history.list(self._require_kind())

    def is_busy(self) -> bool:
        return self.status in (DraftStatus.GENERATING, DraftStatus.REFINING)

    def _require_kind(self) -> AssistantKind:
        if self.kind is None:
            raise RuntimeError("No assistant kind is active")
        return self.kind
