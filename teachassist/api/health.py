from fastapi import APIRouter, Request
from teachassist.core.config import settings
from teachassist.core.database import get_db_status, optional_db
from teachassist.utils.json_sanitize import deep_clean_json_safe, contains_nan_inf
import logging
import os
import sys
import time

import psutil

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint for production monitoring"""

    start_time = time.time()

    db_status = await get_db_status(optional_db(request))

    response_time = round((time.time() - start_time) * 1000, 2)  # ms

    health_data = {
        "status": "ok" if db_status["connected"] else "degraded",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": int(time.time()),
        "response_time_ms": response_time,
        "database": db_status,
        "services": {
            "api": "ok",
            "generation": "ok" if getattr(request.app.state, "generation_service", None) else "not_configured",
            "tracking": "ok" if settings.TRACKING_ENABLED and db_status["connected"] else "disabled",
        },
    }

    health_data = deep_clean_json_safe(health_data)
    if contains_nan_inf(health_data):
        logger.error("NaN/Inf detected in response content after cleaning")

    return health_data


@router.get("/health/detailed")
async def detailed_health_check(request: Request):
    """Detailed health check for debugging"""

    memory = psutil.virtual_memory()
    disk = psutil.disk_usage('/')

    content = {
        "system": {
            "cpu_percent": psutil.cpu_percent(),
            "memory_percent": memory.percent,
            "memory_available_mb": round(memory.available / 1024 / 1024, 2),
            "disk_percent": round((disk.used / disk.total) * 100, 2),
            "disk_free_gb": round(disk.free / 1024 / 1024 / 1024, 2)
        },
        "environment": {
            "python_version": sys.version,
            "pid": os.getpid(),
            "environment": settings.ENVIRONMENT,
            "debug_mode": settings.DEBUG
        },
        "database": await get_db_status(optional_db(request)),
        "generation": {
            "configured": bool(settings.OPENROUTER_API_KEY),
            "model": settings.AI_MODEL,
            "timeout_seconds": settings.AI_REQUEST_TIMEOUT,
        },
    }

    content = deep_clean_json_safe(content)
    if contains_nan_inf(content):
        logger.error("NaN/Inf detected in response content after cleaning")

    return content
