"""
Visitor tracking routes
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from teachassist.core.database import get_db
from teachassist.schemas.generation import SessionEndResponse, TrackEventRequest
from teachassist.services.tracking import end_session, track_event

logger = logging.getLogger(__name__)
router = APIRouter()


def _current_session_id(request: Request) -> str:
    session_id = getattr(request.state, "session_id", None)
    if not session_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No tracking session for this request",
        )
    return session_id


@router.post("/events", status_code=status.HTTP_201_CREATED)
async def record_event(payload: TrackEventRequest, request: Request, db=Depends(get_db)):
    """Record a client-side event against the visitor's session"""
    session_id = _current_session_id(request)
    try:
        await track_event(
            db,
            session_id=session_id,
            event_type=payload.eventType,
            event_category=payload.eventCategory,
            event_label=payload.eventLabel,
            event_value=payload.eventValue,
            metadata=payload.metadata,
        )
    except Exception as e:
        logger.error(f"Error tracking event {payload.eventType}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to track event",
        )
    return {"success": True}


@router.post("/sessions/end", response_model=SessionEndResponse)
async def finish_session(request: Request, db=Depends(get_db)):
    """Stamp the end time and duration of the visitor's session"""
    session_id = _current_session_id(request)
    try:
        await end_session(db, session_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Error ending session {session_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to end session",
        )
    return {"success": True, "sessionId": session_id}
