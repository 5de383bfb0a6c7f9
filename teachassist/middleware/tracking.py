"""
Session tracking middleware: creates a visitor session on first contact and
keeps ``lastActivityAt`` fresh on every later request.
"""
import logging
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from teachassist.core.config import settings
from teachassist.core.database import optional_db
from teachassist.services.tracking import client_ip, create_session, get_geolocation, update_session_activity

logger = logging.getLogger(__name__)

UNTRACKED_PREFIXES = ("/api/health", "/api/admin", "/docs", "/redoc", "/openapi.json")


class TrackingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request.state.session_id = None
        new_session_id: Optional[str] = None

        db = optional_db(request)
        if settings.TRACKING_ENABLED and db is not None and not request.url.path.startswith(UNTRACKED_PREFIXES):
            try:
                session_id = request.cookies.get(settings.SESSION_COOKIE_NAME)
                if session_id:
                    await update_session_activity(db, session_id)
                else:
                    ip_address = client_ip(request)
                    location = await get_geolocation(
                        ip_address,
                        getattr(request.app.state, "http_client", None),
                    )
                    session_id = await create_session(
                        db,
                        ip_address=ip_address,
                        user_agent=request.headers.get("user-agent"),
                        referrer=request.headers.get("referer") or request.headers.get("referrer"),
                        landing_page=str(request.url.path),
                        location=location,
                    )
                    new_session_id = session_id
                request.state.session_id = session_id
            except Exception as e:
                # Tracking must never block the request.
                logger.error(f"Tracking middleware error: {e}")

        response = await call_next(request)

        if new_session_id:
            response.set_cookie(
                settings.SESSION_COOKIE_NAME,
                new_session_id,
                max_age=settings.SESSION_COOKIE_MAX_AGE,
                httponly=True,
                secure=settings.is_production,
                samesite="lax",
            )
        return response
