"""Key-value persistence for drafts and history.

The workspace only ever talks to :class:`LocalStorage`, which wraps a
string-keyed, string-valued :class:`KeyValueStore`. ``save`` and ``load``
never raise; failures are logged and reported through the return value so
a generated draft is never lost just because it could not be written.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from teachassist.services.assistant.models import AssistantKind, DraftSession, HistoryEntry

from .errors import StorageQuotaExceeded

logger = logging.getLogger(__name__)

KEY_PREFIX = "teachassist"


@dataclass(frozen=True)
class StorageKeys:
    current: str
    history: str


def storage_keys(kind: AssistantKind) -> StorageKeys:
    # "learning-plan" -> "teachassist_learningplan_current"
    slug = kind.value.replace("-", "")
    return StorageKeys(
        current=f"{KEY_PREFIX}_{slug}_current",
        history=f"{KEY_PREFIX}_{slug}_history",
    )


class KeyValueStore:
    """Synchronous string store interface."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    """In-process store with an optional total size quota (in UTF-8 bytes)."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self.quota_bytes = quota_bytes
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(
                len(k.encode("utf-8")) + len(v.encode("utf-8"))
                for k, v in self._items.items()
                if k != key
            )
            if used + len(key.encode("utf-8")) + len(value.encode("utf-8")) > self.quota_bytes:
                raise StorageQuotaExceeded(f"Writing '{key}' would exceed the {self.quota_bytes} byte quota")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items)


class FileKeyValueStore(KeyValueStore):
    """Store each key as a JSON file in a directory."""

    _SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def _path(self, key: str) -> Path:
        if not self._SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.base_dir / f"{key}.json"


class LocalStorage:
    """JSON-encoding adapter with boolean success flags instead of exceptions."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def save(self, key: str, value: Any) -> bool:
        try:
            self.store.set_item(key, json.dumps(value, ensure_ascii=False))
            return True
        except Exception as e:
            logger.error(f"Storage save error for '{key}': {e}")
            return False

    def load(self, key: str) -> Optional[Any]:
        try:
            data = self.store.get_item(key)
            return json.loads(data) if data else None
        except Exception as e:
            logger.error(f"Storage load error for '{key}': {e}")
            return None

    def clear(self, key: str) -> None:
        try:
            self.store.remove_item(key)
        except Exception as e:
            logger.error(f"Storage clear error for '{key}': {e}")

    # ------------------------------------------------------------------
    # Typed helpers
    # ------------------------------------------------------------------
    def save_session(self, kind: AssistantKind, session: DraftSession) -> bool:
        return self.save(storage_keys(kind).current, session.model_dump(mode="json", by_alias=True))

    def load_session(self, kind: AssistantKind) -> Optional[DraftSession]:
        data = self.load(storage_keys(kind).current)
        if data is None:
            return None
        try:
            return DraftSession.model_validate(data)
        except ValidationError as e:
            logger.error(f"Discarding corrupt draft for '{kind.value}': {e}")
            return None

    def clear_session(self, kind: AssistantKind) -> None:
        self.clear(storage_keys(kind).current)

    def load_history(self, kind: AssistantKind) -> List[HistoryEntry]:
        data = self.load(storage_keys(kind).history)
        if not isinstance(data, list):
            return []
        entries: List[HistoryEntry] = []
        for item in data:
            try:
                entries.append(HistoryEntry.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed history entry for '{kind.value}': {e}")
        return entries

    def save_history(self, kind: AssistantKind, entries: List[HistoryEntry]) -> bool:
        return self.save(storage_keys(kind).history, [entry.model_dump(mode="json") for entry in entries])

    def clear_history(self, kind: AssistantKind) -> None:
        self.clear(storage_keys(kind).history)
