"""FastAPI dependencies for authentication, rate limiting and orchestrator access."""

import math
import os

from fastapi import Header, HTTPException, Request, status

from server.utils import redact_sensitive_headers
from utils.logger import get_logger

logger = get_logger(__name__)


async def get_api_key(request: Request, x_api_key: str | None = Header(None)):
    """Validate API key from X-API-Key header."""
    valid_keys_str = os.getenv("API_KEYS", "")
    request_id = getattr(request.state, "request_id", "unknown")
    redacted_headers = redact_sensitive_headers(dict(request.headers))

    if not valid_keys_str:
        logger.error(
            "API authentication not configured",
            extra={"extra_fields": {"request_id": request_id, "headers": redacted_headers}},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API authentication not configured",
        )

    valid_keys = [k.strip() for k in valid_keys_str.split(",") if k.strip()]

    if not x_api_key or x_api_key not in valid_keys:
        logger.warning(
            "API authentication failed",
            extra={"extra_fields": {"request_id": request_id, "headers": redacted_headers}},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing API key"
        )

    return x_api_key


def rate_limited(group: str):
    """Build a dependency enforcing the app's limiter for one endpoint group."""

    async def dependency(request: Request, x_api_key: str | None = Header(None)):
        limiter = getattr(request.app.state, "rate_limiter", None)
        if limiter is None:
            return
        client_key = x_api_key or (request.client.host if request.client else "anonymous")
        retry_after = limiter.check(group, client_key)
        if retry_after is not None:
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "extra_fields": {
                        "group": group,
                        "request_id": getattr(request.state, "request_id", "unknown"),
                    }
                },
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Too many {group} requests, please try again later",
                headers={"Retry-After": str(math.ceil(retry_after))},
            )

    return dependency


async def get_orchestrator(request: Request):
    """Dependency to get the app's orchestrator, built from the app config on first use."""
    from orchestrator.core import ResearchOrchestrator

    state = request.app.state
    orchestrator = getattr(state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = ResearchOrchestrator(getattr(state, "config", None))
        state.orchestrator = orchestrator
    return orchestrator
