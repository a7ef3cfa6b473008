"""Per-user roadmap generation and retrieval."""

from fastapi import APIRouter, Depends, HTTPException, Path, status

from models.roadmap import LearnerProfile, SkillStrength
from orchestrator.core import ResearchOrchestrator
from server.dependencies import get_api_key, get_orchestrator, rate_limited
from server.schemas.requests import GenerateUserRoadmapRequest
from server.schemas.responses import EnvelopeDTO

router = APIRouter(prefix="/v1/roadmap", tags=["Roadmap"])


@router.post(
    "/{user_id}/generate",
    response_model=EnvelopeDTO,
    dependencies=[Depends(rate_limited("generation"))],
)
async def generate_user_roadmap(
    request: GenerateUserRoadmapRequest,
    user_id: str = Path(..., min_length=1, max_length=128),
    api_key: str = Depends(get_api_key),
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    profile = LearnerProfile(
        skill=request.skill,
        level=request.level,
        daily_time_minutes=request.daily_time_minutes,
        goal=request.goal,
        concepts=[SkillStrength(c.topic, c.strength_level) for c in request.concepts],
    )
    roadmap = await orchestrator.generate_roadmap_for_user(
        user_id, profile, use_research_agent=request.use_research_agent
    )
    return EnvelopeDTO(success=True, data=roadmap.to_dict(), message="Roadmap generated successfully")


@router.get("/{user_id}", response_model=EnvelopeDTO)
async def read_user_roadmap(
    user_id: str = Path(..., min_length=1, max_length=128),
    api_key: str = Depends(get_api_key),
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    roadmap = await orchestrator.get_roadmap(user_id)
    if roadmap is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Roadmap not found")
    return EnvelopeDTO(success=True, data=roadmap.to_dict(), message="Roadmap retrieved successfully")
