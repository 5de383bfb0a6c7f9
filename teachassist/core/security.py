"""
Security dependencies for FastAPI routes
"""
import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from teachassist.core.config import settings

logger = logging.getLogger(__name__)


async def require_admin(x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key")) -> None:
    """Guard admin routes with the shared admin key when one is configured."""
    expected = settings.ADMIN_API_KEY
    if not expected:
        return
    if not x_admin_key or not hmac.compare_digest(x_admin_key, expected):
        logger.warning("Rejected admin request with a missing or invalid admin key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )
