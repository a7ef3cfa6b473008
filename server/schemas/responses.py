"""Pydantic response models (DTOs) for FastAPI endpoints."""

from typing import Any

from pydantic import BaseModel


class EnvelopeDTO(BaseModel):
    """Every /v1 response: ``{success, data, message}``."""

    success: bool
    data: Any = None
    message: str


class HealthResponseDTO(BaseModel):
    status: str
    timestamp: str
    version: str = "1.0.0"
