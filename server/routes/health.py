"""Health check endpoint."""

from fastapi import APIRouter

from config.config import SERVICE_VERSION
from server.schemas.responses import HealthResponseDTO
from tools.web.contracts import utc_now_iso

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponseDTO)
async def health_check():
    """Health check endpoint."""
    return HealthResponseDTO(status="healthy", timestamp=utc_now_iso(), version=SERVICE_VERSION)
