"""Conditions raised by the draft workspace."""
from __future__ import annotations

from typing import Any, Optional


class AssistantError(Exception):
    """Base class for every condition surfaced to the user."""

    title = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputRequiredError(AssistantError, ValueError):
    title = "Input Required"

    def __init__(self, message: str = "Please enter information to generate content.") -> None:
        super().__init__(message)


class NoRefinementsSelectedError(AssistantError, ValueError):
    title = "No Refinements Selected"

    def __init__(
        self,
        message: str = "Please select at least one refinement option or enter custom instructions.",
    ) -> None:
        super().__init__(message)


class NothingToRefineError(AssistantError, ValueError):
    title = "Nothing to Refine"

    def __init__(self, message: str = "Generate a draft before asking for refinements.") -> None:
        super().__init__(message)


class UnsupportedKindError(AssistantError, ValueError):
    title = "Unsupported Assistant"


class RequestInProgressError(AssistantError):
    title = "Please Wait"

    def __init__(self, message: str = "A request is already in progress for this assistant.") -> None:
        super().__init__(message)


class GenerationFailedError(AssistantError):
    """The generation boundary failed, timed out or returned nothing."""

    def __init__(self, message: str, *, detail: Optional[Any] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.detail = detail
        self.status_code = status_code


class UpstreamError(Exception):
    """Raised by generation backends; translated into ``GenerationFailedError``."""

    def __init__(self, message: str, *, detail: Optional[Any] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.status_code = status_code


class StorageQuotaExceeded(Exception):
    """Raised by a key-value store when a write would exceed its quota."""
