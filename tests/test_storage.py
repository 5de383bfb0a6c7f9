"""Tests for the key-value persistence adapter."""
import json

from teachassist.services.assistant.models import AssistantKind, DraftSession, HistoryEntry, Message
from teachassist.workspace.storage import (
    FileKeyValueStore,
    LocalStorage,
    MemoryKeyValueStore,
    storage_keys,
)


def _session(output="Polished report"):
    return DraftSession(
        input_text="notes",
        generated_output=output,
        transcript=[Message(role="user", content="notes"), Message(role="assistant", content=output)],
    )


def test_storage_keys_follow_client_naming():
    assert storage_keys(AssistantKind.REPORT).current == "teachassist_report_current"
    assert storage_keys(AssistantKind.LEARNING_PLAN).history == "teachassist_learningplan_history"
    assert storage_keys(AssistantKind.WRITING_ASSESSMENT).current == "teachassist_writingassessment_current"


def test_session_round_trip_uses_camel_case_keys(store):
    storage = LocalStorage(store)
    assert storage.save_session(AssistantKind.REPORT, _session()) is True

    raw = json.loads(store.get_item("teachassist_report_current"))
    assert set(raw) == {"inputText", "generatedOutput", "conversationHistory"}
    assert storage.load_session(AssistantKind.REPORT) == _session()


def test_load_missing_or_corrupt_returns_none(store):
    storage = LocalStorage(store)
    assert storage.load("nope") is None

    store.set_item("teachassist_report_current", "{not json")
    assert storage.load_session(AssistantKind.REPORT) is None


def test_session_violating_transcript_invariant_loads_as_absent(store):
    store.set_item(
        "teachassist_report_current",
        json.dumps({"inputText": "x", "generatedOutput": "y", "conversationHistory": []}),
    )
    assert LocalStorage(store).load_session(AssistantKind.REPORT) is None


def test_save_reports_quota_failure_instead_of_raising():
    storage = LocalStorage(MemoryKeyValueStore(quota_bytes=40))
    assert storage.save_session(AssistantKind.REPORT, _session("x" * 100)) is False


def test_clear_is_silent_for_missing_keys(store):
    LocalStorage(store).clear("teachassist_report_current")
    assert store.keys() == []


def test_history_skips_malformed_entries(store):
    store.set_item(
        "teachassist_lessonplan_history",
        json.dumps([{"timestamp": "t", "input": "i", "content": "c"}, {"bogus": True}]),
    )
    entries = LocalStorage(store).load_history(AssistantKind.LESSON_PLAN)
    assert entries == [HistoryEntry(timestamp="t", input="i", content="c")]


def test_file_store_persists_across_instances(tmp_path):
    LocalStorage(FileKeyValueStore(tmp_path)).save_session(AssistantKind.LESSON_PLAN, _session())

    reloaded = LocalStorage(FileKeyValueStore(tmp_path)).load_session(AssistantKind.LESSON_PLAN)
    assert reloaded.generated_output == "Polished report"
    assert (tmp_path / "teachassist_lessonplan_current.json").exists()
    assert not list(tmp_path.glob("*.tmp"))


def test_file_store_rejects_path_like_keys(tmp_path):
    storage = LocalStorage(FileKeyValueStore(tmp_path))
    assert storage.save("../escape", {"a": 1}) is False
