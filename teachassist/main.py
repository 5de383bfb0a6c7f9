import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import argparse
import logging

import httpx

from .core.config import settings
from .core.database import connect_db, disconnect_db
from .api.admin import router as admin_router
from .api.generation import router as generation_router
from .api.health import router as health_router
from .api.tracking import router as tracking_router
from .middleware.tracking import TrackingMiddleware
from .services.assistant import GenerationService, build_provider
from .utils.json_sanitize import deep_clean_json_safe

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info(f"Starting up {settings.APP_NAME} API...")
    app.state.db = await connect_db()

    provider = build_provider(settings)
    if provider is None:
        logger.warning("OPENROUTER_API_KEY is not set - generation endpoints will return 500")
        app.state.generation_service = None
    else:
        app.state.generation_service = GenerationService(provider)
        logger.info(f"Generation service ready (model: {settings.AI_MODEL})")

    app.state.http_client = httpx.AsyncClient(timeout=5.0)

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME} API...")
    await app.state.http_client.aclose()
    if app.state.generation_service is not None:
        await app.state.generation_service.provider.aclose()
    await disconnect_db(app.state.db)
    app.state.db = None


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="Report, learning plan, lesson plan and writing assessment assistant API",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.state.db = None
    app.state.generation_service = None
    app.state.http_client = None

    # Tracking runs inside CORS so preflight requests never create sessions.
    app.add_middleware(TrackingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(generation_router, prefix="/api", tags=["Generation"])
    app.include_router(tracking_router, prefix="/api", tags=["Tracking"])
    app.include_router(admin_router, prefix="/api/admin", tags=["Admin"])
    app.include_router(health_router, prefix="/api", tags=["Health"])

    @app.get("/", tags=["Root"])
    async def root():
        return deep_clean_json_safe({
            "message": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "docs": "/docs",
        })

    return app


app = create_app()

if __name__ == "__main__":
    # Parse command line arguments
    parser = argparse.ArgumentParser(description=f"{settings.APP_NAME} API")
    parser.add_argument("--port", type=int, default=8000, help="Port to run the server on")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Host to run the server on")

    args = parser.parse_args()

    # Run the application
    logger.info(f"Starting {settings.APP_NAME} on {args.host}:{args.port}")
    uvicorn.run("teachassist.main:app", host=args.host, port=args.port, reload=settings.DEBUG)
