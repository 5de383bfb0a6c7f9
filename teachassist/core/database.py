import logging
from typing import Dict, Any
import asyncio

from fastapi import HTTPException, Request, status

from teachassist.core.config import settings

logger = logging.getLogger(__name__)

_max_retries = 3


async def connect_db(max_retries: int = _max_retries):
    """Connect to the database with retry logic.

    Returns the connected Prisma client, or None when no database is
    configured or every attempt failed.
    """
    database_url = settings.DATABASE_URL
    if not database_url:
        logger.warning("DATABASE_URL not found - skipping database connection")
        return None

    # Imported lazily: the generated client only exists after `prisma generate`.
    from prisma import Prisma

    for attempt in range(max_retries):
        try:
            logger.info(f"Attempting database connection (attempt {attempt + 1}/{max_retries})")

            db = Prisma()
            await db.connect()

            # Test the connection
            await db.query_raw("SELECT 1 as test")

            logger.info("Database connected successfully")
            return db

        except Exception as e:
            logger.error(f"Database connection attempt {attempt + 1} failed: {e}")

            if attempt < max_retries - 1:
                wait_time = 2 ** attempt  # Exponential backoff
                logger.info(f"Retrying in {wait_time} seconds...")
                await asyncio.sleep(wait_time)
            else:
                logger.error("All database connection attempts failed")
                logger.warning("Continuing without database connection - tracking and admin features are disabled")
    return None


async def disconnect_db(db) -> None:
    """Disconnect from the database"""
    if db is None:
        logger.info("No database connection to disconnect")
        return

    try:
        await db.disconnect()
        logger.info("Database disconnected successfully")
    except Exception as e:
        logger.error(f"Failed to disconnect from database: {e}")


async def get_db_status(db) -> Dict[str, Any]:
    """Get database connection status and basic info"""
    if db is None:
        return {
            "connected": False,
            "error": "No database connection available",
        }

    try:
        result = await db.query_raw("SELECT 1 as test")

        try:
            stats = {
                "total_users": await db.user.count(),
                "total_sessions": await db.session.count(),
                "total_usage_logs": await db.usagelog.count(),
            }
        except Exception as e:
            logger.warning(f"Could not get database stats: {e}")
            stats = {"error": "Could not retrieve statistics"}

        return {
            "connected": True,
            "query_test": bool(result) and result[0].get("test") == 1,
            "stats": stats,
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "connected": False,
            "error": str(e),
        }


def optional_db(request: Request):
    """The connected client for this app, or None."""
    return getattr(request.app.state, "db", None)


def get_db(request: Request):
    """Get database instance for dependency injection"""
    db = optional_db(request)
    if db is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not connected",
        )
    return db
