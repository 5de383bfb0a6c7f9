"""Data models shared by the generation service and the draft workspace."""
from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

MessageRole = Literal["system", "user", "assistant"]


class AssistantKind(str, Enum):
    """The fixed set of assistant tabs."""

    REPORT = "report"
    LEARNING_PLAN = "learning-plan"
    LESSON_PLAN = "lesson-plan"
    WRITING_ASSESSMENT = "writing-assessment"

    @property
    def is_text(self) -> bool:
        return self is not AssistantKind.WRITING_ASSESSMENT


TEXT_KINDS = tuple(kind for kind in AssistantKind if kind.is_text)


class Message(BaseModel):
    """A single transcript turn."""

    role: MessageRole
    content: str


class DraftSession(BaseModel):
    """Mutable draft state for one assistant kind.

    Serialised with the camelCase keys used by the browser client so that
    persisted sessions stay readable by both.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    input_text: str = Field(default="", alias="inputText")
    generated_output: Optional[str] = Field(default=None, alias="generatedOutput")
    transcript: List[Message] = Field(default_factory=list, alias="conversationHistory")

    @model_validator(mode="after")
    def _output_matches_transcript(self) -> "DraftSession":
        if self.generated_output is None:
            return self
        if len(self.transcript) < 2:
            raise ValueError("A generated draft needs at least one user and one assistant message")
        last = self.transcript[-1]
        if last.role != "assistant" or last.content != self.generated_output:
            raise ValueError("Transcript must end with the assistant message holding the generated output")
        return self

    @property
    def is_empty(self) -> bool:
        return self.generated_output is None


class HistoryEntry(BaseModel):
    """Snapshot of one completed generation or refinement."""

    timestamp: str
    input: str
    content: str


class DraftStatus(str, Enum):
    EMPTY = "empty"
    GENERATING = "generating"
    READY = "ready"
    REFINING = "refining"


# ---------------------------------------------------------------------------
# Writing assessment
# ---------------------------------------------------------------------------
YearLevel = Literal["Foundation", "Year1", "Year2", "Year3", "Year4", "Year5", "Year6"]
YEAR_LEVELS = ("Foundation", "Year1", "Year2", "Year3", "Year4", "Year5", "Year6")


class CriterionScore(BaseModel):
    criterion: str
    percentage: float = Field(ge=0, le=100)
    evidence: str


class CriteriaAssessment(BaseModel):
    """Structured assessment: one score per marking criterion."""

    kind: Literal["criteria"] = "criteria"
    assessments: List[CriterionScore]


class RawAssessment(BaseModel):
    """Fallback when the model did not return the structured shape."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["raw"] = "raw"
    raw_response: str = Field(alias="rawResponse")


AssessmentResult = Union[CriteriaAssessment, RawAssessment]


def year_level_label(year_level: str) -> str:
    """``Year3`` -> ``Year 3``; ``Foundation`` stays as is."""
    if year_level.startswith("Year") and year_level[4:].isdigit():
        return f"Year {year_level[4:]}"
    return year_level
