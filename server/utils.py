"""Shared utilities for FastAPI routes."""

from collections.abc import Mapping
from typing import Any

from fastapi.responses import JSONResponse

SENSITIVE_HEADERS = {"x-api-key", "authorization", "cookie"}


def redact_sensitive_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """
    Redact auth-bearing headers before logging.
    """
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS and value:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted


def envelope_response(
    status_code: int, *, success: bool, message: str, data: Any = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": success, "data": data, "message": message},
    )
