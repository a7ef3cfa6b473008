"""
Synthesis engine: every language-model interaction of the research pipeline.

Model output is untrusted. Structured calls go through ``extract_json`` and
return ``None`` when nothing parseable comes back; a failed model call
raises ``SynthesisError`` so the orchestrator can pick the next fallback tier.
"""

from typing import Any

from config.config import ScrapeSettings
from models.roadmap import GenerationOptions
from models.unified_response import UnifiedResponse
from orchestrator.concurrency import LLMCaller
from orchestrator.errors import SynthesisError
from orchestrator.json_repair import extract_json
from orchestrator.prompts import (
    STATUS_PROBE_PROMPT,
    build_analysis_prompt,
    build_basic_roadmap_prompt,
    build_comparison_prompt,
    build_fallback_prompt,
    build_roadmap_prompt,
    build_summary_prompt,
)
from tools.web.contracts import RankedResource, ScrapedContent, SearchResult
from utils.logger import get_logger

logger = get_logger(__name__)


class SynthesisEngine:
    def __init__(self, llm: LLMCaller, scrape_settings: ScrapeSettings | None = None):
        self.llm = llm
        self.scrape_settings = scrape_settings or ScrapeSettings()

    async def complete_text(self, prompt: str, *, stage: str) -> str:
        """
        Run one single-turn completion.

        Raises:
            SynthesisError: the call failed or timed out
        """
        response = await self.llm.complete([{"role": "user", "content": prompt}])
        if response.is_error:
            error = response.error
            logger.warning(
                f"LLM call failed during {stage}: {error.message}",
                extra={
                    "extra_fields": {
                        "stage": stage,
                        "provider": response.provider,
                        "error_code": error.code,
                        "latency_ms": response.latency_ms,
                    }
                },
            )
            raise SynthesisError(error.message, code=error.code)
        return response.text or ""

    async def _complete_json(self, prompt: str, *, stage: str) -> dict[str, Any] | None:
        text = await self.complete_text(prompt, stage=stage)
        parsed = extract_json(text)
        if not isinstance(parsed, dict):
            logger.warning(
                f"No JSON object in model output for {stage}",
                extra={"extra_fields": {"stage": stage, "response_chars": len(text)}},
            )
            return None
        return parsed

    async def summarize(self, content: str, title: str) -> str:
        """2-3 sentence summary of page text. Never raises."""
        if not content or len(content) < self.scrape_settings.min_summary_input_chars:
            return f"{title}: Content not available for summary."

        prompt = build_summary_prompt(content, title, self.scrape_settings.summary_input_chars)
        try:
            summary = (await self.complete_text(prompt, stage="summarize")).strip()
        except SynthesisError:
            return f"{title}: Summary generation failed."
        return summary or f"{title}: Summary not available."

    async def synthesize(
        self, topic: str, resources: list[RankedResource], options: GenerationOptions
    ) -> dict[str, Any] | None:
        """Roadmap document grounded on ``resources`` (the caller passes at most five)."""
        prompt = build_roadmap_prompt(topic, resources, options)
        return await self._complete_json(prompt, stage="synthesize")

    async def synthesize_fallback(
        self, topic: str, options: GenerationOptions
    ) -> dict[str, Any] | None:
        prompt = build_fallback_prompt(topic, options)
        return await self._complete_json(prompt, stage="synthesize_fallback")

    async def synthesize_basic(
        self, skill: str, level: str, daily_minutes: int, goal: str, weak_topics: list[str]
    ) -> dict[str, Any] | None:
        prompt = build_basic_roadmap_prompt(skill, level, daily_minutes, goal, weak_topics)
        return await self._complete_json(prompt, stage="synthesize_basic")

    async def analyze(
        self, topic: str, search_results: list[SearchResult], scraped: list[ScrapedContent]
    ) -> dict[str, Any] | None:
        prompt = build_analysis_prompt(topic, search_results, scraped)
        return await self._complete_json(prompt, stage="analyze")

    async def compare(self, topic: str, resources: list[ScrapedContent]) -> dict[str, Any] | None:
        prompt = build_comparison_prompt(topic, resources)
        return await self._complete_json(prompt, stage="compare")

    async def probe(self) -> UnifiedResponse:
        return await self.llm.complete([{"role": "user", "content": STATUS_PROBE_PROMPT}])
