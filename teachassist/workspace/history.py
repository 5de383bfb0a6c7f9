"""Per-kind generation history, newest first, capped at ten entries."""
from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional

from teachassist.services.assistant.models import AssistantKind, HistoryEntry

from .storage import LocalStorage

HISTORY_LIMIT = 10


def format_timestamp(now: Optional[datetime] = None) -> str:
    """en-US display format, e.g. ``Oct 19, 2026, 3:05 PM``."""
    now = now or datetime.now()
    hour = now.hour % 12 or 12
    meridiem = "AM" if now.hour < 12 else "PM"
    return f"{now:%b} {now.day}, {now.year}, {hour}:{now:%M} {meridiem}"


class HistoryLog:
    """Append-only history persisted separately from the current draft."""

    def __init__(self, storage: LocalStorage, *, clock: Callable[[], datetime] = datetime.now):
        self.storage = storage
        self.clock = clock

    def append(self, kind: AssistantKind, entry: HistoryEntry) -> bool:
        entries = self.storage.load_history(kind)
        entries.insert(0, entry)
        return self.storage.save_history(kind, entries[:HISTORY_LIMIT])

    def record(self, kind: AssistantKind, *, input_text: str, content: str) -> bool:
        entry = HistoryEntry(timestamp=format_timestamp(self.clock()), input=input_text, content=content)
        return self.append(kind, entry)

    def list(self, kind: AssistantKind) -> List[HistoryEntry]:
        return self.storage.load_history(kind)

    def clear(self, kind: AssistantKind) -> None:
        self.storage.clear_history(kind)
