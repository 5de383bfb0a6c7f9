from datetime import datetime

from teachassist.services.assistant.models import AssistantKind, HistoryEntry
from teachassist.workspace.history import HISTORY_LIMIT, HistoryLog, format_timestamp
from teachassist.workspace.storage import LocalStorage, MemoryKeyValueStore


def test_format_timestamp_en_us():
    assert format_timestamp(datetime(2026, 10, 19, 15, 5)) == "Oct 19, 2026, 3:05 PM"
    assert format_timestamp(datetime(2026, 1, 2, 0, 30)) == "Jan 2, 2026, 12:30 AM"
    assert format_timestamp(datetime(2026, 7, 4, 12, 0)) == "Jul 4, 2026, 12:00 PM"


def test_newest_first_and_capped(store, clock):
    log = HistoryLog(LocalStorage(store), clock=clock)
    for i in range(HISTORY_LIMIT + 1):
        assert log.record(AssistantKind.REPORT, input_text=f"in {i}", content=f"out {i}")

    entries = log.list(AssistantKind.REPORT)
    assert len(entries) == HISTORY_LIMIT
    assert entries[0].content == "out 10"
    # The very first entry was evicted.
    assert entries[-1].content == "out 1"
    assert entries[0].timestamp == "Oct 19, 2026, 3:05 PM"


def test_kinds_are_independent(store, clock):
    log = HistoryLog(LocalStorage(store), clock=clock)
    log.record(AssistantKind.REPORT, input_text="a", content="b")

    assert log.list(AssistantKind.LESSON_PLAN) == []
    log.clear(AssistantKind.LESSON_PLAN)
    assert len(log.list(AssistantKind.REPORT)) == 1


def test_append_returns_false_when_storage_is_full():
    log = HistoryLog(LocalStorage(MemoryKeyValueStore(quota_bytes=10)))
    entry = HistoryEntry(timestamp="t", input="i", content="c" * 50)
    assert log.append(AssistantKind.REPORT, entry) is False
    assert log.list(AssistantKind.REPORT) == []
