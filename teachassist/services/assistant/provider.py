"""Providers for generating assistant responses."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from openai import AsyncOpenAI

from .models import Message


@dataclass
class Completion:
    """Represents a generated response plus the usage reported for it."""

    content: str
    model: str
    tokens_input: Optional[int] = None
    tokens_output: Optional[int] = None

    def cost_usd(self, input_per_mtok: float, output_per_mtok: float) -> Optional[float]:
        if self.tokens_input is None and self.tokens_output is None:
            return None
        cost = (self.tokens_input or 0) * input_per_mtok + (self.tokens_output or 0) * output_per_mtok
        return cost / 1_000_000


class AssistantProvider:
    """Base provider interface."""

    model: str = ""

    async def complete_chat(
        self,
        messages: Iterable[Message],
        *,
        system_prompt: str,
    ) -> Completion:
        raise NotImplementedError

    async def complete_vision(
        self,
        *,
        system_prompt: str,
        text: str,
        image_url: str,
    ) -> Completion:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class OpenRouterChatProvider(AssistantProvider):
    """OpenAI-compatible provider pointed at OpenRouter."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        api_base: Optional[str] = None,
        timeout: float = 60.0,
        max_tokens: int = 4096,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        if client is None:
            client_kwargs: Dict[str, Any] = {"api_key": api_key, "timeout": timeout, "max_retries": 0}
            if api_base:
                client_kwargs["base_url"] = api_base
            client = AsyncOpenAI(**client_kwargs)
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    async def complete_chat(
        self,
        messages: Iterable[Message],
        *,
        system_prompt: str,
    ) -> Completion:
        payload: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        # The system turn is owned here; anything the caller sent is ignored.
        payload.extend({"role": msg.role, "content": msg.content} for msg in messages if msg.role != "system")
        return await self._create(payload)

    async def complete_vision(
        self,
        *,
        system_prompt: str,
        text: str,
        image_url: str,
    ) -> Completion:
        payload = [
            {"role": "system", "content": system_prompt},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": text},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            },
        ]
        return await self._create(payload)

    async def aclose(self) -> None:
        await self.client.close()

    async def _create(self, payload: List[Dict[str, Any]]) -> Completion:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=payload,
            max_tokens=self.max_tokens,
        )
        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        usage = getattr(response, "usage", None)
        return Completion(
            content=content,
            model=getattr(response, "model", None) or self.model,
            tokens_input=getattr(usage, "prompt_tokens", None) if usage else None,
            tokens_output=getattr(usage, "completion_tokens", None) if usage else None,
        )


def build_provider(settings) -> Optional[AssistantProvider]:
    """Return the configured provider, or ``None`` when no API key is set."""
    if not settings.OPENROUTER_API_KEY:
        return None
    return OpenRouterChatProvider(
        api_key=settings.OPENROUTER_API_KEY,
        model=settings.AI_MODEL,
        api_base=settings.OPENROUTER_API_BASE,
        timeout=settings.AI_REQUEST_TIMEOUT,
        max_tokens=settings.AI_MAX_TOKENS,
    )
