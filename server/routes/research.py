"""Research agent endpoints: roadmap, search, scrape, analysis, comparison, status."""

from fastapi import APIRouter, Depends, Query, status

from models.roadmap import GenerationOptions
from orchestrator.core import ResearchOrchestrator
from server.dependencies import get_api_key, get_orchestrator, rate_limited
from server.schemas.requests import (
    AnalyzeTopicRequest,
    CompareResourcesRequest,
    RoadmapRequest,
    ScrapeRequest,
)
from server.schemas.responses import EnvelopeDTO
from server.utils import envelope_response

router = APIRouter(prefix="/v1/research", tags=["Research"])


@router.post(
    "/roadmap",
    response_model=EnvelopeDTO,
    dependencies=[Depends(rate_limited("generation"))],
)
async def generate_roadmap(
    request: RoadmapRequest,
    api_key: str = Depends(get_api_key),
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    options = GenerationOptions(
        level=request.level,
        timeframe=request.timeframe,
        daily_time_minutes=request.daily_time_minutes,
        focus=request.focus,
        include_projects=request.include_projects,
    )
    result = await orchestrator.generate_comprehensive_roadmap(request.topic, options)
    return EnvelopeDTO(success=True, data=result.to_dict(), message="Roadmap generated successfully")


@router.get(
    "/search",
    response_model=EnvelopeDTO,
    dependencies=[Depends(rate_limited("search"))],
)
async def search(
    q: str = Query(..., min_length=1, max_length=200),
    limit: int = Query(10, ge=1, le=20),
    api_key: str = Depends(get_api_key),
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    results = await orchestrator.perform_web_search(q, limit)
    return EnvelopeDTO(
        success=True,
        data={"query": q, "results": [r.to_dict() for r in results], "count": len(results)},
        message="Search completed successfully",
    )


@router.post(
    "/scrape",
    response_model=EnvelopeDTO,
    dependencies=[Depends(rate_limited("scrape"))],
)
async def scrape(
    request: ScrapeRequest,
    api_key: str = Depends(get_api_key),
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    content = await orchestrator.scrape_and_summarize(request.url, request.title)
    return EnvelopeDTO(
        success=True,
        data=content.to_dict(),
        message="Content scraped and summarized successfully",
    )


@router.post(
    "/analyze-topic",
    response_model=EnvelopeDTO,
    dependencies=[Depends(rate_limited("generation"))],
)
async def analyze_topic(
    request: AnalyzeTopicRequest,
    api_key: str = Depends(get_api_key),
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    result = await orchestrator.analyze_topic(request.topic, request.depth)
    return EnvelopeDTO(success=result.success, data=result.to_dict(), message=result.message)


@router.post(
    "/compare-resources",
    response_model=EnvelopeDTO,
    dependencies=[Depends(rate_limited("scrape"))],
)
async def compare_resources(
    request: CompareResourcesRequest,
    api_key: str = Depends(get_api_key),
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    result = await orchestrator.compare_resources(request.topic, request.urls)
    return EnvelopeDTO(success=result.success, data=result.to_dict(), message=result.message)


@router.get("/status", response_model=EnvelopeDTO)
async def research_status(
    api_key: str = Depends(get_api_key),
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    report = await orchestrator.status()
    if report["llm"]["status"] == "error":
        return envelope_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            success=False,
            data=report,
            message="Research agent status check failed",
        )
    return EnvelopeDTO(success=True, data=report, message="Research agent is operational")
