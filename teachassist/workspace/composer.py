"""Refinement presets and the instruction sentence built from them."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from teachassist.services.assistant.models import AssistantKind

from .errors import NoRefinementsSelectedError

REFINEMENT_PREFIX = "Please refine the above with the following changes: "


@dataclass(frozen=True)
class RefinementPreset:
    id: str
    label: str
    instruction: str


REFINEMENT_PRESETS: Dict[str, RefinementPreset] = {
    preset.id: preset
    for preset in (
        # Report
        RefinementPreset("more-positive", "Make More Positive", "make the tone more positive and encouraging"),
        RefinementPreset("less-positive", "Make Less Positive", "make the tone more direct and honest about concerns"),
        RefinementPreset("more-specific", "Make More Specific", "add more specific details and examples"),
        RefinementPreset("focus-strengths", "Focus on Strengths", "emphasise strengths and achievements"),
        RefinementPreset("focus-growth", "Focus on Growth Areas", "focus more on areas for development"),
        RefinementPreset("shorten", "Shorten", "make this more concise"),
        RefinementPreset("add-detail", "Add More Detail", "expand with more detail"),
        # Learning plan
        RefinementPreset(
            "add-activities", "Add More Activities", "include more specific learning activities for each area"
        ),
        RefinementPreset("include-resources", "Include More Resources", "add more specific resources and materials"),
        RefinementPreset("make-concise", "Make More Concise", "make this more concise"),
        RefinementPreset("make-practical", "Make More Practical", "make this more practical and actionable"),
        # Lesson plan
        RefinementPreset(
            "add-differentiation",
            "Add Differentiation Strategies",
            "include more differentiation strategies for different ability levels",
        ),
        RefinementPreset(
            "include-assessment", "Include More Assessment", "add more assessment methods and success criteria"
        ),
        RefinementPreset(
            "expand-activities", "Expand Activities", "provide more detailed activities and teaching strategies"
        ),
        RefinementPreset(
            "add-scaffolding", "Add More Scaffolding", "include more scaffolding and instructional supports"
        ),
    )
}

KIND_PRESETS: Dict[AssistantKind, Tuple[str, ...]] = {
    AssistantKind.REPORT: (
        "more-positive",
        "less-positive",
        "more-specific",
        "focus-strengths",
        "focus-growth",
        "shorten",
        "add-detail",
    ),
    AssistantKind.LEARNING_PLAN: (
        "add-detail",
        "make-concise",
        "add-activities",
        "include-resources",
        "more-specific",
        "make-practical",
    ),
    AssistantKind.LESSON_PLAN: (
        "add-detail",
        "make-concise",
        "add-differentiation",
        "include-assessment",
        "expand-activities",
        "add-scaffolding",
    ),
    AssistantKind.WRITING_ASSESSMENT: (),
}


def presets_for(kind: AssistantKind) -> List[RefinementPreset]:
    return [REFINEMENT_PRESETS[preset_id] for preset_id in KIND_PRESETS[kind]]


def compose_instruction(fragments: Sequence[str]) -> str:
    """Join fragments into one sentence with an Oxford-style ", and"."""
    parts = [fragment.strip() for fragment in fragments if fragment and fragment.strip()]
    if not parts:
        raise NoRefinementsSelectedError()
    if len(parts) == 1:
        return f"{REFINEMENT_PREFIX}{parts[0]}."
    return f"{REFINEMENT_PREFIX}{', '.join(parts[:-1])}, and {parts[-1]}."


def build_refinement_instruction(
    preset_ids: Iterable[str],
    custom_text: Optional[str] = None,
    *,
    kind: Optional[AssistantKind] = None,
) -> str:
    """Map selected preset ids (in selection order) plus optional free text to an instruction."""
    allowed = set(KIND_PRESETS[kind]) if kind is not None else set(REFINEMENT_PRESETS)
    fragments: List[str] = []
    seen = set()
    for preset_id in preset_ids:
        if preset_id in seen:
            continue
        if preset_id not in allowed:
            raise ValueError(f"Unknown refinement option: {preset_id}")
        seen.add(preset_id)
        fragments.append(REFINEMENT_PRESETS[preset_id].instruction)
    if custom_text and custom_text.strip():
        fragments.append(custom_text.strip())
    return compose_instruction(fragments)
