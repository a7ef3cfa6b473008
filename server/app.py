"""FastAPI application factory."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware

from config.config import SERVICE_VERSION, Config
from db.engine import dispose_engine
from db.tables import init_db
from orchestrator.errors import ValidationError
from server.middleware import RequestIDMiddleware
from server.rate_limit import SlidingWindowRateLimiter
from server.routes import health, research, roadmap
from server.utils import envelope_response
from utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup/shutdown logic."""
    logger.info("FastAPI server starting up")
    init_db()

    required_keys = ["API_KEYS"]
    missing = [k for k in required_keys if not os.getenv(k)]
    if missing:
        logger.warning(f"Missing environment variables: {missing}")

    yield

    dispose_engine()
    logger.info("FastAPI server shutting down")


async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning(
        f"Rejected invalid input: {exc}",
        extra={
            "extra_fields": {
                "request_id": getattr(request.state, "request_id", "unknown"),
                "field": exc.field,
                "path": request.url.path,
            }
        },
    )
    return envelope_response(
        status.HTTP_400_BAD_REQUEST,
        success=False,
        message=str(exc),
        data={"field": exc.field} if exc.field else None,
    )


def create_app(config: Config | None = None) -> FastAPI:
    """Factory function to create FastAPI application."""
    config = config or Config.from_env()
    for problem in config.validate():
        logger.warning(f"Configuration problem: {problem}")
    logger.info(
        "Creating SkillForge Research API",
        extra={
            "extra_fields": {
                "llm": config.get_model_info(),
                "rate_limiting": config.rate_limits.enabled,
            }
        },
    )

    app = FastAPI(
        title="SkillForge Research API",
        description="Research-enhanced learning roadmap generation",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.rate_limiter = (
        SlidingWindowRateLimiter.from_settings(config.rate_limits)
        if config.rate_limits.enabled
        else None
    )

    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, validation_error_handler)

    app.include_router(health.router)
    app.include_router(research.router)
    app.include_router(roadmap.router)

    return app
