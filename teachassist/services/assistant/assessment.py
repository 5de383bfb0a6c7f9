"""Handwriting assessment: image validation, response parsing and rendering."""
from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import Iterable, Optional

from pydantic import ValidationError

from .models import AssessmentResult, CriteriaAssessment, RawAssessment

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def decoded_image_size(image_data: str) -> int:
    """Size in bytes of a base64 payload; raises ``ValueError`` if it is not base64."""
    try:
        return len(base64.b64decode(image_data, validate=True))
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Image data must be base64-encoded") from exc


def validate_image(
    image_data: str,
    image_type: Optional[str],
    *,
    allowed_types: Iterable[str],
    max_bytes: int,
) -> None:
    if not image_data:
        raise ValueError("An image is required")
    if image_type not in set(allowed_types):
        raise ValueError(f"Unsupported image type: {image_type}")
    if decoded_image_size(image_data) > max_bytes:
        raise ValueError(f"Image must be smaller than {max_bytes // (1024 * 1024)}MB")


def to_image_data_url(image_data: str, image_type: str) -> str:
    return f"data:{image_type};base64,{image_data}"


def parse_assessment(message: str) -> AssessmentResult:
    """Parse the model output once; fall back to the raw text if it is not the expected JSON."""
    text = message.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        payload = json.loads(text)
        if isinstance(payload, list):
            payload = {"assessments": payload}
        result = CriteriaAssessment.model_validate(payload)
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning(f"Assessment response was not structured JSON, returning raw text: {exc}")
        return RawAssessment(raw_response=message.strip())
    if not result.assessments:
        return RawAssessment(raw_response=message.strip())
    return result


def render_assessment(result: AssessmentResult) -> str:
    """Plain-text rendering used for copying and for draft history."""
    if isinstance(result, RawAssessment):
        return result.raw_response
    blocks = []
    for score in result.assessments:
        percentage = int(score.percentage) if float(score.percentage).is_integer() else score.percentage
        blocks.append(f"{score.criterion}: {percentage}%\n{score.evidence}")
    return "\n\n".join(blocks)


def assessment_payload(result: AssessmentResult) -> dict:
    """JSON body returned by the API: ``assessments`` or ``rawResponse``."""
    if isinstance(result, RawAssessment):
        return {"rawResponse": result.raw_response}
    return {"assessments": [score.model_dump() for score in result.assessments]}


def assessment_from_payload(payload: dict) -> AssessmentResult:
    if payload.get("assessments"):
        return CriteriaAssessment.model_validate({"assessments": payload["assessments"]})
    return RawAssessment(raw_response=str(payload.get("rawResponse") or ""))
