"""Generation backends used by the workspace orchestrator.

A backend is the single outbound boundary: send the input (or the whole
transcript) for a kind, get one assistant response back, or raise
:class:`UpstreamError`.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import httpx
import openai

from teachassist.services.assistant.assessment import assessment_from_payload
from teachassist.services.assistant.models import AssessmentResult, AssistantKind, Message
from teachassist.services.assistant.service import GenerationService

from .errors import UpstreamError

logger = logging.getLogger(__name__)


class GenerationBackend:
    """Base backend interface."""

    async def generate(self, kind: AssistantKind, input_text: str) -> str:
        raise NotImplementedError

    async def refine(self, kind: AssistantKind, transcript: Sequence[Message]) -> str:
        raise NotImplementedError

    async def assess(self, year_level: str, image_data: str, image_type: str) -> AssessmentResult:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class HttpGenerationBackend(GenerationBackend):
    """Talks to the TeachAssist API the same way the browser client does."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def generate(self, kind: AssistantKind, input_text: str) -> str:
        data = await self._post(
            "/api/generate-report",
            {"studentInfo": input_text, "type": kind.value},
            fallback_error="Failed to generate content",
        )
        return _report_text(data, "Failed to generate content")

    async def refine(self, kind: AssistantKind, transcript: Sequence[Message]) -> str:
        data = await self._post(
            "/api/generate-report",
            {
                "type": kind.value,
                "conversationHistory": [msg.model_dump() for msg in transcript],
            },
            fallback_error="Failed to refine content",
        )
        return _report_text(data, "Failed to refine content")

    async def assess(self, year_level: str, image_data: str, image_type: str) -> AssessmentResult:
        data = await self._post(
            "/api/assess-writing",
            {"yearLevel": year_level, "imageData": image_data, "imageType": image_type},
            fallback_error="Failed to assess writing",
        )
        return assessment_from_payload(data)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _post(self, path: str, body: Dict[str, Any], *, fallback_error: str) -> Dict[str, Any]:
        try:
            response = await self.client.post(path, json=body)
        except httpx.TimeoutException as exc:
            raise UpstreamError("The AI service did not respond in time. Please try again.") from exc
        except httpx.HTTPError as exc:
            logger.error(f"Request to {path} failed: {exc}")
            raise UpstreamError(fallback_error, detail=str(exc)) from exc

        if response.is_success:
            try:
                data = response.json()
            except ValueError as exc:
                raise UpstreamError(fallback_error, detail="Response was not valid JSON") from exc
            if not isinstance(data, dict):
                raise UpstreamError(fallback_error, detail="Response was not a JSON object")
            return data

        message, detail = _error_from_response(response, fallback_error)
        raise UpstreamError(message, detail=detail, status_code=response.status_code)


def _report_text(data: Dict[str, Any], fallback_error: str) -> str:
    report = data.get("report")
    if report is None:
        return ""
    if not isinstance(report, str):
        raise UpstreamError(fallback_error, detail="Response report was not text")
    return report


def _error_from_response(response: httpx.Response, fallback: str):
    try:
        payload = response.json()
    except ValueError:
        return fallback, response.text or None
    detail = payload.get("detail", payload) if isinstance(payload, dict) else payload
    if isinstance(detail, dict):
        return detail.get("error") or fallback, detail.get("details")
    if isinstance(detail, str) and detail:
        return detail, None
    return fallback, detail


class ProviderGenerationBackend(GenerationBackend):
    """Calls the generation service in-process, bypassing HTTP."""

    def __init__(self, service: GenerationService) -> None:
        self.service = service

    async def generate(self, kind: AssistantKind, input_text: str) -> str:
        completion = await self._call(self.service.generate(kind, input_text))
        return completion.content

    async def refine(self, kind: AssistantKind, transcript: Sequence[Message]) -> str:
        completion = await self._call(self.service.refine(kind, list(transcript)))
        return completion.content

    async def assess(self, year_level: str, image_data: str, image_type: str) -> AssessmentResult:
        result, _ = await self._call(self.service.assess(year_level, image_data, image_type))
        if result is None:
            raise UpstreamError("No assessment generated from AI service")
        return result

    async def aclose(self) -> None:
        await self.service.provider.aclose()

    @staticmethod
    async def _call(awaitable):
        try:
            return await awaitable
        except openai.APIStatusError as exc:
            raise UpstreamError(
                "Failed to generate report from AI service",
                detail=exc.body,
                status_code=exc.status_code,
            ) from exc
        except openai.APITimeoutError as exc:
            raise UpstreamError("The AI service did not respond in time. Please try again.") from exc
        except openai.APIError as exc:
            raise UpstreamError("An error occurred while contacting the AI service", detail=str(exc)) from exc
