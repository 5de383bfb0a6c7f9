"""
Generation API: drafting, refinement and handwriting assessment
"""
from typing import Optional
import logging

import openai
from fastapi import APIRouter, Depends, HTTPException, Request, status

from teachassist.core.config import settings
from teachassist.core.database import optional_db
from teachassist.schemas.generation import (
    AssessmentRequest,
    GenerateRequest,
    GenerateResponse,
)
from teachassist.services.assistant import AssistantKind, GenerationService
from teachassist.services.assistant.assessment import assessment_payload, validate_image
from teachassist.services.assistant.models import YEAR_LEVELS
from teachassist.services.assistant.provider import Completion
from teachassist.services.tracking import UsageTimer, record_usage

logger = logging.getLogger(__name__)
router = APIRouter()

INVALID_TYPE_MESSAGE = "Invalid type parameter. Must be 'report', 'learning-plan', or 'lesson-plan'"


def get_generation_service(request: Request) -> Optional[GenerationService]:
    """The app-wide generation service, or None when no API key is configured."""
    return getattr(request.app.state, "generation_service", None)


def _require_service(service: Optional[GenerationService]) -> GenerationService:
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="OpenRouter API key is not configured",
        )
    return service


async def _log_usage(
    request: Request,
    *,
    request_type: str,
    assistant_type: str,
    timer: UsageTimer,
    model: Optional[str],
    completion: Optional[Completion] = None,
    error: Optional[str] = None,
) -> None:
    cost = None
    if completion is not None:
        cost = completion.cost_usd(settings.AI_INPUT_COST_PER_MTOK, settings.AI_OUTPUT_COST_PER_MTOK)
    await record_usage(
        optional_db(request),
        request_type=request_type,
        assistant_type=assistant_type,
        was_successful=error is None,
        session_id=getattr(request.state, "session_id", None),
        tokens_input=completion.tokens_input if completion else None,
        tokens_output=completion.tokens_output if completion else None,
        cost_usd=cost,
        response_time_ms=timer.elapsed_ms,
        model=completion.model if completion else model,
        error_message=error,
    )


def _upstream_exception(exc: openai.APIError, message: str) -> HTTPException:
    if isinstance(exc, openai.APIStatusError):
        logger.error(f"OpenRouter API error ({exc.status_code}): {exc.body}")
        return HTTPException(
            status_code=exc.status_code,
            detail={"error": message, "details": exc.body if exc.body is not None else str(exc)},
        )
    logger.error(f"OpenRouter request failed: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "An error occurred while contacting the AI service", "details": str(exc)},
    )


@router.post("/generate-report", response_model=GenerateResponse)
async def generate_report(
    payload: GenerateRequest,
    request: Request,
    service: Optional[GenerationService] = Depends(get_generation_service),
):
    """Draft a new document, or refine one when a conversation history is sent."""
    try:
        kind = AssistantKind(payload.type)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_TYPE_MESSAGE)
    if not kind.is_text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_TYPE_MESSAGE)

    history = [msg for msg in payload.conversationHistory or [] if msg.role != "system"]
    is_refinement = bool(history)
    if not is_refinement and (not payload.studentInfo or not payload.studentInfo.strip()):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Input information is required")

    service = _require_service(service)
    request_type = "refine" if is_refinement else "generate"
    timer = UsageTimer()

    try:
        if is_refinement:
            completion = await service.refine(kind, history)
        else:
            completion = await service.generate(kind, payload.studentInfo)
    except openai.APIError as e:
        await _log_usage(
            request, request_type=request_type, assistant_type=kind.value,
            timer=timer, model=service.model, error=str(e),
        )
        raise _upstream_exception(e, "Failed to generate report from AI service")
    except Exception as e:
        logger.error(f"Error generating {kind.value}: {e}")
        await _log_usage(
            request, request_type=request_type, assistant_type=kind.value,
            timer=timer, model=service.model, error=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "An error occurred while generating the report", "details": str(e)},
        )

    if not completion.content.strip():
        await _log_usage(
            request, request_type=request_type, assistant_type=kind.value,
            timer=timer, model=service.model, completion=completion, error="Empty completion",
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="No report generated from AI service",
        )

    await _log_usage(
        request, request_type=request_type, assistant_type=kind.value,
        timer=timer, model=service.model, completion=completion,
    )
    logger.info(f"Generated {kind.value} ({request_type}) with {completion.model}")
    return {"report": completion.content}


@router.post("/assess-writing")
async def assess_writing(
    payload: AssessmentRequest,
    request: Request,
    service: Optional[GenerationService] = Depends(get_generation_service),
):
    """Assess a handwriting sample against the criteria for a year level."""
    if payload.yearLevel not in YEAR_LEVELS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid year level. Must be one of: {', '.join(YEAR_LEVELS)}",
        )
    try:
        validate_image(
            payload.imageData,
            payload.imageType,
            allowed_types=settings.ASSESSMENT_IMAGE_TYPES,
            max_bytes=settings.ASSESSMENT_MAX_IMAGE_BYTES,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    service = _require_service(service)
    assistant_type = AssistantKind.WRITING_ASSESSMENT.value
    timer = UsageTimer()

    try:
        result, completion = await service.assess(payload.yearLevel, payload.imageData, payload.imageType)
    except openai.APIError as e:
        await _log_usage(request, request_type="assess", assistant_type=assistant_type,
                         timer=timer, model=service.model, error=str(e))
        raise _upstream_exception(e, "Failed to assess writing")
    except Exception as e:
        logger.error(f"Error assessing writing sample: {e}")
        await _log_usage(request, request_type="assess", assistant_type=assistant_type,
                         timer=timer, model=service.model, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "An error occurred while assessing the writing sample", "details": str(e)},
        )

    if result is None:
        await _log_usage(request, request_type="assess", assistant_type=assistant_type,
                         timer=timer, model=service.model, completion=completion, error="Empty completion")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="No assessment generated from AI service",
        )

    await _log_usage(request, request_type="assess", assistant_type=assistant_type,
                     timer=timer, model=service.model, completion=completion)
    return assessment_payload(result)
