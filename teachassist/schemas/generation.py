"""
Generation and assessment request/response schemas
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from teachassist.services.assistant.models import Message


class GenerateRequest(BaseModel):
    studentInfo: Optional[str] = None
    # Validated by the handler so unsupported kinds get a 400, not a 422.
    type: str = "report"
    conversationHistory: Optional[List[Message]] = None


class GenerateResponse(BaseModel):
    report: str


class AssessmentRequest(BaseModel):
    yearLevel: str
    imageData: str
    imageType: str


class TrackEventRequest(BaseModel):
    eventType: str = Field(..., min_length=1)
    eventCategory: str = Field(..., min_length=1)
    eventLabel: Optional[str] = None
    eventValue: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None


class SessionEndResponse(BaseModel):
    success: bool
    sessionId: str
