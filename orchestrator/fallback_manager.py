from dataclasses import dataclass

from orchestrator.pipeline_types import (
    WEB_PATH_STATES,
    FallbackDecision,
    PipelineState,
    StageResult,
)

LLM_FALLBACK_WARNING = "Generated without web sources due to connectivity issues"
SKELETON_WARNING = "Generated from a minimal outline because the language model was unavailable"


@dataclass(frozen=True)
class FallbackPolicy:
    allow_llm_fallback: bool = True


class FallbackManager:
    """Decides the next pipeline state after each stage of roadmap generation."""

    def decide(
        self,
        *,
        current_state: PipelineState,
        result: StageResult,
        policy: FallbackPolicy,
    ) -> FallbackDecision:
        if current_state in WEB_PATH_STATES:
            if result.ok:
                if current_state == PipelineState.SYNTHESIZING:
                    return FallbackDecision(next_state=PipelineState.NORMALIZING, reason="ok")
                return FallbackDecision(
                    next_state=_NEXT_WEB_STATE[current_state], reason="ok"
                )
            if policy.allow_llm_fallback:
                return FallbackDecision(
                    next_state=PipelineState.FALLBACK_LLM_ONLY,
                    reason=result.reason,
                    warning=LLM_FALLBACK_WARNING,
                )
            return FallbackDecision(
                next_state=PipelineState.STATIC_SKELETON,
                reason=result.reason,
                warning=SKELETON_WARNING,
            )

        if current_state == PipelineState.FALLBACK_LLM_ONLY:
            if result.ok:
                return FallbackDecision(
                    next_state=PipelineState.NORMALIZING,
                    reason="ok",
                    warning=LLM_FALLBACK_WARNING,
                )
            return FallbackDecision(
                next_state=PipelineState.STATIC_SKELETON,
                reason=result.reason,
                warning=SKELETON_WARNING,
            )

        if current_state == PipelineState.NORMALIZING:
            return FallbackDecision(next_state=PipelineState.PERSISTED, reason=result.reason)

        # STATIC_SKELETON and PERSISTED are terminal
        return FallbackDecision(next_state=current_state, reason=result.reason)


_NEXT_WEB_STATE = {
    PipelineState.SEARCHING: PipelineState.SCRAPING,
    PipelineState.SCRAPING: PipelineState.RANKING,
    PipelineState.RANKING: PipelineState.SYNTHESIZING,
}
