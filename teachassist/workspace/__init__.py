"""Draft workspace: per-tab drafts, refinement and history."""

from .backend import GenerationBackend, HttpGenerationBackend, ProviderGenerationBackend
from .composer import REFINEMENT_PRESETS, build_refinement_instruction, compose_instruction, presets_for
from .errors import (
    AssistantError,
    GenerationFailedError,
    InputRequiredError,
    NoRefinementsSelectedError,
    NothingToRefineError,
    RequestInProgressError,
    UnsupportedKindError,
    UpstreamError,
)
from .history import HISTORY_LIMIT, HistoryLog, format_timestamp
from .orchestrator import GenerationOrchestrator, GenerationResult
from .state import DraftSessionState
from .storage import FileKeyValueStore, KeyValueStore, LocalStorage, MemoryKeyValueStore, storage_keys
from .workspace import AssistantWorkspace, create_workspace

__all__ = [
    "AssistantError",
    "AssistantWorkspace",
    "DraftSessionState",
    "FileKeyValueStore",
    "GenerationBackend",
    "GenerationFailedError",
    "GenerationOrchestrator",
    "GenerationResult",
    "HISTORY_LIMIT",
    "HistoryLog",
    "HttpGenerationBackend",
    "InputRequiredError",
    "KeyValueStore",
    "LocalStorage",
    "MemoryKeyValueStore",
    "NoRefinementsSelectedError",
    "NothingToRefineError",
    "ProviderGenerationBackend",
    "REFINEMENT_PRESETS",
    "RequestInProgressError",
    "UnsupportedKindError",
    "UpstreamError",
    "build_refinement_instruction",
    "compose_instruction",
    "create_workspace",
    "format_timestamp",
    "presets_for",
    "storage_keys",
]
