from dataclasses import dataclass
from enum import Enum

from models.roadmap import Methodology


class PipelineState(str, Enum):
    SEARCHING = "searching"
    SCRAPING = "scraping"
    RANKING = "ranking"
    SYNTHESIZING = "synthesizing"
    NORMALIZING = "normalizing"
    PERSISTED = "persisted"
    FALLBACK_LLM_ONLY = "fallback_llm_only"
    STATIC_SKELETON = "static_skeleton"


# states on the web-enhanced path, before synthesis has produced steps
WEB_PATH_STATES = frozenset(
    {
        PipelineState.SEARCHING,
        PipelineState.SCRAPING,
        PipelineState.RANKING,
        PipelineState.SYNTHESIZING,
    }
)

TIER_METHODOLOGY = {
    PipelineState.SYNTHESIZING: Methodology.WEB_ENHANCED,
    PipelineState.FALLBACK_LLM_ONLY: Methodology.LLM_FALLBACK,
    PipelineState.STATIC_SKELETON: Methodology.STATIC_SKELETON,
}


@dataclass(frozen=True)
class StageResult:
    ok: bool
    reason: str = "ok"


@dataclass(frozen=True)
class FallbackDecision:
    next_state: PipelineState
    reason: str
    warning: str | None = None
