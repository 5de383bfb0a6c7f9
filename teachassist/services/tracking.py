"""Visitor sessions, events and usage logging."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx
from fastapi import Request

from teachassist.core.config import settings

logger = logging.getLogger(__name__)

_PRIVATE_PREFIXES = ("192.168.",)
_LOOPBACK = ("::1", "127.0.0.1")


@dataclass
class Geolocation:
    country: Optional[str] = None
    city: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def client_ip(request: Request) -> Optional[str]:
    """First hop of ``x-forwarded-for``, then ``x-real-ip``, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client:
        return request.client.host
    return None


async def get_geolocation(ip_address: Optional[str], client: Optional[httpx.AsyncClient] = None) -> Geolocation:
    if not ip_address or ip_address in _LOOPBACK or ip_address.startswith(_PRIVATE_PREFIXES):
        return Geolocation()
    if not settings.GEOLOCATION_ENABLED:
        return Geolocation()

    url = settings.GEOLOCATION_URL.format(ip=ip_address)
    headers = {"User-Agent": f"{settings.APP_NAME}/{settings.APP_VERSION}"}
    try:
        if client is not None:
            response = await client.get(url, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=5.0) as owned:
                response = await owned.get(url, headers=headers)
        if not response.is_success:
            return Geolocation()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Geolocation lookup failed for {ip_address}: {e}")
        return Geolocation()
    return Geolocation(country=data.get("country_name") or None, city=data.get("city") or None)


async def create_session(
    db,
    *,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    referrer: Optional[str] = None,
    landing_page: Optional[str] = None,
    user_id: Optional[str] = None,
    location: Optional[Geolocation] = None,
) -> str:
    location = location or Geolocation()
    now = _utcnow()
    session = await db.session.create(
        data={
            "userId": user_id,
            "ipAddress": ip_address,
            "userAgent": user_agent,
            "referrer": referrer,
            "landingPage": landing_page,
            "country": location.country,
            "city": location.city,
            "isAnonymous": not user_id,
            "startedAt": now,
            "lastActivityAt": now,
        }
    )
    return session.id


async def track_event(
    db,
    *,
    session_id: str,
    event_type: str,
    event_category: str,
    event_label: Optional[str] = None,
    event_value: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
) -> None:
    data: Dict[str, Any] = {
        "sessionId": session_id,
        "userId": user_id,
        "eventType": event_type,
        "eventCategory": event_category,
        "eventLabel": event_label,
        "eventValue": event_value,
        "createdAt": _utcnow(),
    }
    if metadata is not None:
        # Prisma needs Json-wrapped values for Json columns.
        from prisma import Json

        data["metadata"] = Json(metadata)
    await db.event.create(data=data)


async def update_session_activity(db, session_id: str) -> None:
    await db.session.update_many(
        where={"id": session_id},
        data={"lastActivityAt": _utcnow()},
    )


async def end_session(db, session_id: str) -> int:
    """Stamp ``endedAt`` and return the session length in whole seconds."""
    session = await db.session.find_unique(where={"id": session_id})
    if session is None:
        raise ValueError(f"Session not found: {session_id}")

    ended_at = _utcnow()
    started_at = session.startedAt
    if started_at.tzinfo is None:
        started_at = started_at.replace(tzinfo=timezone.utc)
    duration = int((ended_at - started_at).total_seconds())
    await db.session.update(
        where={"id": session_id},
        data={"endedAt": ended_at, "durationSeconds": duration},
    )
    return duration


class UsageTimer:
    """Measures one upstream call for its usage log row."""

    def __init__(self) -> None:
        self.started = time.perf_counter()

    @property
    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)


async def record_usage(
    db,
    *,
    request_type: str,
    assistant_type: str,
    was_successful: bool,
    session_id: Optional[str] = None,
    user_id: Optional[str] = None,
    tokens_input: Optional[int] = None,
    tokens_output: Optional[int] = None,
    cost_usd: Optional[float] = None,
    response_time_ms: Optional[int] = None,
    model: Optional[str] = None,
    error_message: Optional[str] = None,
) -> bool:
    """Write one usage log row. Never raises; returns whether the row was written."""
    if db is None:
        return False
    try:
        await db.usagelog.create(
            data={
                "userId": user_id,
                "sessionId": session_id,
                "requestType": request_type,
                "assistantType": assistant_type,
                "tokensInput": tokens_input,
                "tokensOutput": tokens_output,
                "costUsd": Decimal(str(round(cost_usd, 6))) if cost_usd is not None else None,
                "responseTimeMs": response_time_ms,
                "model": model,
                "wasSuccessful": was_successful,
                "errorMessage": error_message,
            }
        )
        return True
    except Exception as e:
        logger.error(f"Failed to record usage log ({request_type}/{assistant_type}): {e}")
        return False
