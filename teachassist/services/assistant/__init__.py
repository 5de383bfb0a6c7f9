"""Assistant service package exports."""

from .models import AssistantKind, DraftSession, HistoryEntry, Message
from .provider import AssistantProvider, Completion, OpenRouterChatProvider, build_provider
from .service import GenerationService

__all__ = [
    "AssistantKind",
    "AssistantProvider",
    "Completion",
    "DraftSession",
    "GenerationService",
    "HistoryEntry",
    "Message",
    "OpenRouterChatProvider",
    "build_provider",
]
