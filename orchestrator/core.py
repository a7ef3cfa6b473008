"""
ResearchOrchestrator - business layer of the roadmap research pipeline.

Key guarantees:
- Route handlers stay thin (no provider, HTTP or parser imports there)
- Only ValidationError escapes the operations; every external failure is
  absorbed into a degraded-but-valid result
- Roadmap generation always yields at least one step
  (web-enhanced-llm -> llm-fallback -> static-skeleton)
"""

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
from sqlalchemy.orm import Session

from api.base_client import BaseLLMClient
from api.factory import create_llm_client
from config.config import SERVICE_VERSION, Config
from db import repository
from models.research import DEPTH_SEARCH_LIMITS, ResourceComparisonResult, TopicAnalysisResult
from models.roadmap import (
    LEVELS,
    ComprehensiveRoadmapResult,
    GeneratedWith,
    GenerationOptions,
    LearnerProfile,
    Methodology,
    Roadmap,
    RoadmapMetadata,
    RoadmapStep,
)
from orchestrator.concurrency import LLMCaller, gather_settled
from orchestrator.errors import SynthesisError, ValidationError
from orchestrator.fallback_manager import FallbackManager, FallbackPolicy
from orchestrator.pipeline_types import (
    TIER_METHODOLOGY,
    FallbackDecision,
    PipelineState,
    StageResult,
)
from orchestrator.roadmap_normalizer import has_steps, normalize_steps, static_skeleton
from orchestrator.synthesis_engine import SynthesisEngine
from orchestrator.validation import (
    MAX_DAILY_MINUTES,
    MIN_DAILY_MINUTES,
    validate_compare_urls,
    validate_depth,
    validate_options,
    validate_search_limit,
    validate_topic,
)
from tools.web.content_fetcher import ContentFetcher, placeholder_summary
from tools.web.contracts import (
    RankedResource,
    ScrapedContent,
    ScrapeDegraded,
    ScrapeOutcome,
    SearchResult,
)
from tools.web.ranker import ResourceRanker
from tools.web.search_provider import SearchProvider
from tools.web.source_registry import SourceRegistry
from utils.logger import get_logger

logger = get_logger(__name__)

ANALYSIS_SCRAPE_LIMIT = 5
INSUFFICIENT_ANALYSIS_MESSAGE = "Insufficient research data for analysis"
INSUFFICIENT_COMPARISON_MESSAGE = "Not enough valid resources to compare"

CAPABILITIES = [
    "Web search via DuckDuckGo API",
    "Content scraping and summarization",
    "Comprehensive roadmap generation",
    "Topic analysis and insights",
    "Resource comparison",
    "Multi-source research synthesis",
]


class ResearchOrchestrator:
    """
    Wires search, scrape, rank and synthesis together.

    Every collaborator can be injected; anything omitted is built from ``config``.
    ``http_transport`` is handed to the default search provider and fetcher.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        llm_client: BaseLLMClient | None = None,
        registry: SourceRegistry | None = None,
        search_provider: SearchProvider | None = None,
        fetcher: ContentFetcher | None = None,
        ranker: ResourceRanker | None = None,
        session_factory: Callable[[], Session] | None = None,
        fallback_policy: FallbackPolicy | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or Config.from_env()
        self.registry = registry or SourceRegistry.from_yaml(self.config.sources_path)

        self._llm_client = llm_client or create_llm_client(self.config.llm)
        self.synthesis = SynthesisEngine(
            LLMCaller(self._llm_client, timeout_s=self.config.llm.timeout_s),
            self.config.scrape,
        )

        self.search_provider = search_provider or SearchProvider(
            self.config.search, self.registry, transport=http_transport
        )
        self.fetcher = fetcher or ContentFetcher(
            self.config.scrape, self.synthesis.summarize, transport=http_transport
        )
        self.ranker = ranker or ResourceRanker(self.config.ranking, self.registry)

        if session_factory is None:
            from db.session import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory

        self._fallback_manager = FallbackManager()
        self._fallback_policy = fallback_policy or FallbackPolicy()

    # ---------- helpers ----------

    def _transition(
        self, state: PipelineState, result: StageResult, topic: str
    ) -> FallbackDecision:
        decision = self._fallback_manager.decide(
            current_state=state, result=result, policy=self._fallback_policy
        )
        fields = {
            "topic": topic,
            "from_state": state.value,
            "to_state": decision.next_state.value,
            "reason": decision.reason,
        }
        if result.ok:
            logger.debug("Pipeline transition", extra={"extra_fields": fields})
        else:
            logger.warning(
                f"Roadmap pipeline degraded: {state.value} -> {decision.next_state.value}",
                extra={"extra_fields": fields},
            )
        return decision

    async def _scrape_all(self, targets: list[tuple[str, str]]) -> list[ScrapeOutcome]:
        """Scrape (url, title) pairs concurrently; every target yields an outcome."""
        # the fetcher bounds its own HTTP call; this also bounds summarization
        budget = self.config.scrape.timeout_s + self.config.llm.timeout_s
        settled = await gather_settled(
            [self.fetcher.fetch_and_summarize(url, title) for url, title in targets],
            timeout_s=budget,
        )

        outcomes: list[ScrapeOutcome] = []
        for (url, title), item in zip(targets, settled):
            if item.ok:
                outcomes.append(item.value)
                continue
            reason = (
                f"Timed out after {budget}s"
                if isinstance(item.error, asyncio.TimeoutError)
                else str(item.error) or type(item.error).__name__
            )
            logger.warning(
                f"Scrape task failed for {url}: {reason}",
                extra={"extra_fields": {"url": url, "error_type": type(item.error).__name__}},
            )
            outcomes.append(
                ScrapeDegraded(
                    content=ScrapedContent(
                        url=url,
                        title=title,
                        content="",
                        summary=placeholder_summary(title),
                        error=reason,
                    ),
                    reason=reason,
                )
            )
        return outcomes

    async def _run_in_session(self, fn: Callable[[Session], Any]) -> Any:
        def work():
            db = self._session_factory()
            try:
                value = fn(db)
                db.commit()
                return value
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

        return await asyncio.get_running_loop().run_in_executor(None, work)

    # ---------- operations ----------

    async def perform_web_search(self, query: str, limit: int = 10) -> list[SearchResult]:
        query = validate_topic(query, field="query")
        limit = validate_search_limit(limit)
        return await self.search_provider.search(query, limit)

    async def scrape_and_summarize(self, url: str, title: str = "Scraped Content") -> ScrapedContent:
        """
        Scrape one URL. Malformed URLs are not rejected here: they resolve to a
        degraded record with ``error`` set, like any other unscrapable page.
        """
        title = (title or "Scraped Content").strip()[:200] or "Scraped Content"
        outcome = (await self._scrape_all([(url, title)]))[0]
        return outcome.content

    async def generate_comprehensive_roadmap(
        self, topic: str, options: GenerationOptions | None = None
    ) -> ComprehensiveRoadmapResult:
        """
        Run the full research pipeline for ``topic``.

        Returns:
            ComprehensiveRoadmapResult; degradation shows only in
            ``methodology`` and ``warning``

        Raises:
            ValidationError: invalid topic or options
        """
        topic = validate_topic(topic)
        options = validate_options(options or GenerationOptions())
        pipeline = self.config.pipeline

        logger.info(
            f"Generating roadmap for: {topic}",
            extra={"extra_fields": {"topic": topic, "level": options.level}},
        )

        state = PipelineState.SEARCHING
        tier = PipelineState.SYNTHESIZING
        decision: FallbackDecision | None = None
        document: dict[str, Any] | None = None
        results: list[SearchResult] = []
        scraped: list[ScrapedContent] = []
        ranked: list[RankedResource] = []

        try:
            results = await self.search_provider.search(topic, pipeline.search_results)
            logger.info(
                "Search finished",
                extra={"extra_fields": {"topic": topic, "results": len(results)}},
            )
            decision = self._transition(
                state, StageResult(ok=bool(results), reason="no_search_results"), topic
            )
            state = decision.next_state

            if state == PipelineState.SCRAPING:
                outcomes = await self._scrape_all(
                    [(r.url, r.title) for r in results[: pipeline.scrape_top_n]]
                )
                scraped = [
                    o.content
                    for o in outcomes
                    if o.content.summary and len(o.content.summary) > pipeline.min_summary_chars
                ]
                logger.info(
                    "Scraping finished",
                    extra={
                        "extra_fields": {
                            "topic": topic,
                            "attempted": len(outcomes),
                            "degraded": sum(1 for o in outcomes if o.is_degraded),
                        }
                    },
                )
                # individual scrape failures were already absorbed by the fetcher
                state = self._transition(state, StageResult(ok=True), topic).next_state

            if state == PipelineState.RANKING:
                ranked = self.ranker.rank(results, scraped)
                decision = self._transition(
                    state, StageResult(ok=bool(ranked), reason="no_ranked_resources"), topic
                )
                state = decision.next_state

            if state == PipelineState.SYNTHESIZING:
                document = await self.synthesis.synthesize(
                    topic, ranked[: pipeline.synthesis_context], options
                )
                decision = self._transition(
                    state,
                    StageResult(ok=has_steps(document), reason="no_steps_in_synthesis"),
                    topic,
                )
                state = decision.next_state

        except SynthesisError as e:
            decision = self._transition(state, StageResult(ok=False, reason=f"llm_{e.code}"), topic)
            state = decision.next_state
        except Exception as e:
            logger.error(
                f"Roadmap pipeline error: {e}",
                extra={"extra_fields": {"topic": topic, "state": state.value}},
                exc_info=True,
            )
            decision = self._transition(
                state, StageResult(ok=False, reason=type(e).__name__), topic
            )
            state = decision.next_state

        if state == PipelineState.FALLBACK_LLM_ONLY:
            tier = PipelineState.FALLBACK_LLM_ONLY
            ranked = []
            try:
                document = await self.synthesis.synthesize_fallback(topic, options)
                result = StageResult(ok=has_steps(document), reason="no_steps_in_fallback")
            except SynthesisError as e:
                result = StageResult(ok=False, reason=f"llm_{e.code}")
            decision = self._transition(state, result, topic)
            state = decision.next_state

        if state == PipelineState.STATIC_SKELETON:
            tier = PipelineState.STATIC_SKELETON
            ranked = []
            document = static_skeleton(topic, options.level)

        methodology: Methodology = TIER_METHODOLOGY[tier]
        warning = decision.warning if decision is not None else None

        roadmap_result = ComprehensiveRoadmapResult(
            topic=topic,
            options=options,
            roadmap=document or {},
            sources=ranked[: pipeline.response_source_cap],
            methodology=methodology,
            warning=warning,
        )
        logger.info(
            "Roadmap generated",
            extra={
                "extra_fields": {
                    "topic": topic,
                    "methodology": methodology.value,
                    "total_steps": roadmap_result.total_steps,
                    "sources": len(roadmap_result.sources),
                }
            },
        )
        return roadmap_result

    async def analyze_topic(self, topic: str, depth: str = "detailed") -> TopicAnalysisResult:
        topic = validate_topic(topic)
        depth = validate_depth(depth)

        results = await self.search_provider.search(topic, DEPTH_SEARCH_LIMITS[depth])
        if not results:
            return TopicAnalysisResult(
                topic=topic,
                depth=depth,
                analysis={},
                search_results=[],
                scraped_content=[],
                success=False,
                message=INSUFFICIENT_ANALYSIS_MESSAGE,
            )

        outcomes = await self._scrape_all(
            [(r.url, r.title) for r in results[:ANALYSIS_SCRAPE_LIMIT]]
        )
        scraped = [o.content for o in outcomes]

        try:
            analysis = await self.synthesis.analyze(topic, results, scraped)
        except SynthesisError as e:
            logger.warning(
                f"Topic analysis synthesis failed: {e}",
                extra={"extra_fields": {"topic": topic, "error_code": e.code}},
            )
            analysis = None

        if analysis is None:
            return TopicAnalysisResult(
                topic=topic,
                depth=depth,
                analysis={},
                search_results=results,
                scraped_content=scraped,
                success=False,
                message=INSUFFICIENT_ANALYSIS_MESSAGE,
            )

        return TopicAnalysisResult(
            topic=topic,
            depth=depth,
            analysis=analysis,
            search_results=results,
            scraped_content=scraped,
        )

    async def compare_resources(
        self, topic: str | None, urls: list[str]
    ) -> ResourceComparisonResult:
        topic = validate_topic(topic) if topic else "Learning Resources"
        urls = validate_compare_urls(urls)

        outcomes = await self._scrape_all(
            [(url, f"Resource {index}") for index, url in enumerate(urls, start=1)]
        )
        resources = [o.content for o in outcomes]
        valid = [r for r in resources if r.error is None]

        if len(valid) < 2:
            logger.warning(
                INSUFFICIENT_COMPARISON_MESSAGE,
                extra={"extra_fields": {"topic": topic, "valid": len(valid), "requested": len(urls)}},
            )
            return ResourceComparisonResult(
                topic=topic,
                resources=resources,
                comparison={},
                success=False,
                message=INSUFFICIENT_COMPARISON_MESSAGE,
            )

        try:
            comparison = await self.synthesis.compare(topic, valid)
        except SynthesisError as e:
            logger.warning(
                f"Resource comparison synthesis failed: {e}",
                extra={"extra_fields": {"topic": topic, "error_code": e.code}},
            )
            comparison = None

        return ResourceComparisonResult(
            topic=topic,
            resources=resources,
            comparison=comparison or {},
            success=True,
            message="Resource comparison completed successfully",
        )

    async def _basic_steps(self, profile: LearnerProfile, level: str) -> tuple[list[RoadmapStep], Methodology]:
        topic = profile.skill.strip() or profile.goal.strip() or "Learning Fundamentals"
        try:
            document = await self.synthesis.synthesize_basic(
                topic, level, profile.daily_time_minutes, profile.goal, profile.weak_topics()
            )
        except SynthesisError as e:
            logger.warning(
                f"Basic roadmap generation failed: {e}",
                extra={"extra_fields": {"topic": topic, "error_code": e.code}},
            )
            document = None

        steps = normalize_steps(
            document, cap=self.config.pipeline.persisted_step_cap, default_difficulty=level
        )
        if steps:
            return steps, Methodology.LLM_FALLBACK

        logger.warning(
            "Basic roadmap produced no steps, using static skeleton",
            extra={"extra_fields": {"topic": topic}},
        )
        return normalize_steps(static_skeleton(topic, level)), Methodology.STATIC_SKELETON

    async def generate_roadmap_for_user(
        self, user_id: str, profile: LearnerProfile, use_research_agent: bool = True
    ) -> Roadmap:
        """
        Generate and persist the 7-day roadmap for one user.

        The research pipeline runs when enabled and the profile names a skill;
        otherwise (or if it raises) a basic single-prompt plan is used.
        The stored row is replaced, never appended to.
        """
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValidationError("user_id is required", field="user_id")
        user_id = user_id.strip()

        pipeline = self.config.pipeline
        level = profile.level if profile.level in LEVELS else "beginner"
        steps: list[RoadmapStep] = []
        metadata: RoadmapMetadata | None = None

        if use_research_agent and profile.skill.strip():
            try:
                daily = min(max(int(profile.daily_time_minutes or 30), MIN_DAILY_MINUTES), MAX_DAILY_MINUTES)
                result = await self.generate_comprehensive_roadmap(
                    profile.skill,
                    GenerationOptions(
                        level=level,
                        timeframe="4-weeks",
                        daily_time_minutes=daily,
                        focus="practical",
                        include_projects=True,
                    ),
                )
                steps = normalize_steps(
                    result.roadmap, cap=pipeline.persisted_step_cap, default_difficulty=level
                )
                metadata = RoadmapMetadata(
                    generated_with=GeneratedWith.RESEARCH_AGENT.value,
                    sources=[
                        {k: v for k, v in s.to_dict().items() if k != "scrapedContent"}
                        for s in result.sources[: pipeline.persisted_source_cap]
                    ],
                    methodology=result.methodology.value,
                )
            except Exception as e:
                logger.warning(
                    f"Research agent roadmap generation failed, falling back to basic LLM: {e}",
                    extra={"extra_fields": {"user_id": user_id, "error_type": type(e).__name__}},
                )
                steps = []

        if not steps:
            steps, methodology = await self._basic_steps(profile, level)
            metadata = RoadmapMetadata(
                generated_with=GeneratedWith.BASIC_LLM.value,
                methodology=methodology.value,
            )

        roadmap = await self._run_in_session(
            lambda db: repository.upsert_roadmap(db, user_id, steps, metadata)
        )
        logger.info(
            "Roadmap persisted",
            extra={
                "extra_fields": {
                    "user_id": user_id,
                    "state": PipelineState.PERSISTED.value,
                    "steps": len(roadmap.steps),
                    "generated_with": metadata.generated_with,
                }
            },
        )
        return roadmap

    async def get_roadmap(self, user_id: str) -> Roadmap | None:
        return await self._run_in_session(lambda db: repository.get_roadmap(db, user_id))

    async def status(self) -> dict[str, Any]:
        """Probe the language model and describe the service. Never raises."""
        response = await self.synthesis.probe()
        if response.is_error:
            llm_status = "error"
        elif "ok" in (response.text or "").lower():
            llm_status = "connected"
        else:
            llm_status = "limited"

        llm = self.config.llm
        llm_info: dict[str, Any] = {
            "status": llm_status,
            "provider": llm.provider,
            "model": self.synthesis.llm.model_name,
        }
        if llm.provider == "ollama":
            llm_info["url"] = llm.ollama_url
        if response.is_error:
            llm_info["error"] = response.error.message

        return {
            "service": "Research Agent",
            "version": SERVICE_VERSION,
            "status": "operational" if llm_status != "error" else "degraded",
            "llm": llm_info,
            "capabilities": list(CAPABILITIES),
            "features": {
                "webSearch": True,
                "contentScraping": True,
                "llmIntegration": llm_status == "connected",
                "roadmapGeneration": True,
                "resourceComparison": True,
            },
            "limits": {
                "maxSearchResults": 20,
                "maxContentLength": self.config.scrape.content_char_cap,
                "maxScrapeUrls": self.config.pipeline.scrape_top_n,
            },
        }
