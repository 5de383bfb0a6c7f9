"""Generation service pairing the prompt configuration with a provider."""
from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .assessment import parse_assessment, to_image_data_url
from .models import AssessmentResult, AssistantKind, Message, year_level_label
from .prompts import assessment_prompt_for, system_prompt_for
from .provider import AssistantProvider, Completion


class GenerationService:
    """High level facade for generation, refinement and assessment calls."""

    def __init__(self, provider: AssistantProvider) -> None:
        self.provider = provider

    @property
    def model(self) -> str:
        return self.provider.model

    async def generate(self, kind: AssistantKind, input_text: str) -> Completion:
        if not input_text.strip():
            raise ValueError("Input information is required")
        return await self.provider.complete_chat(
            [Message(role="user", content=input_text)],
            system_prompt=system_prompt_for(kind),
        )

    async def refine(self, kind: AssistantKind, transcript: Iterable[Message]) -> Completion:
        history = [msg for msg in transcript if msg.role != "system"]
        if not history:
            raise ValueError("Conversation history must not be empty")
        return await self.provider.complete_chat(history, system_prompt=system_prompt_for(kind))

    async def assess(
        self,
        year_level: str,
        image_data: str,
        image_type: str,
    ) -> Tuple[Optional[AssessmentResult], Completion]:
        completion = await self.provider.complete_vision(
            system_prompt=assessment_prompt_for(year_level),
            text=f"Assess this {year_level_label(year_level)} handwriting sample.",
            image_url=to_image_data_url(image_data, image_type),
        )
        if not completion.content.strip():
            return None, completion
        return parse_assessment(completion.content), completion
