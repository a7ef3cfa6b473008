import pytest

from orchestrator.fallback_manager import (
    LLM_FALLBACK_WARNING,
    SKELETON_WARNING,
    FallbackManager,
    FallbackPolicy,
)
from orchestrator.pipeline_types import PipelineState, StageResult

pytestmark = pytest.mark.unit


@pytest.fixture
def manager():
    return FallbackManager()


@pytest.mark.parametrize(
    "state,expected",
    [
        (PipelineState.SEARCHING, PipelineState.SCRAPING),
        (PipelineState.SCRAPING, PipelineState.RANKING),
        (PipelineState.RANKING, PipelineState.SYNTHESIZING),
        (PipelineState.SYNTHESIZING, PipelineState.NORMALIZING),
        (PipelineState.NORMALIZING, PipelineState.PERSISTED),
    ],
)
def test_happy_path_advances(manager, state, expected):
    decision = manager.decide(current_state=state, result=StageResult(ok=True), policy=FallbackPolicy())
    assert decision.next_state is expected
    assert decision.warning is None


@pytest.mark.parametrize(
    "state",
    [PipelineState.SEARCHING, PipelineState.SCRAPING, PipelineState.RANKING, PipelineState.SYNTHESIZING],
)
def test_web_path_failure_goes_to_llm_only(manager, state):
    decision = manager.decide(
        current_state=state, result=StageResult(ok=False, reason="timeout"), policy=FallbackPolicy()
    )
    assert decision.next_state is PipelineState.FALLBACK_LLM_ONLY
    assert decision.reason == "timeout"
    assert decision.warning == LLM_FALLBACK_WARNING


def test_llm_only_success_keeps_warning(manager):
    decision = manager.decide(
        current_state=PipelineState.FALLBACK_LLM_ONLY, result=StageResult(ok=True), policy=FallbackPolicy()
    )
    assert decision.next_state is PipelineState.NORMALIZING
    assert decision.warning == LLM_FALLBACK_WARNING


def test_llm_only_failure_goes_to_skeleton(manager):
    decision = manager.decide(
        current_state=PipelineState.FALLBACK_LLM_ONLY,
        result=StageResult(ok=False, reason="no_steps"),
        policy=FallbackPolicy(),
    )
    assert decision.next_state is PipelineState.STATIC_SKELETON
    assert decision.warning == SKELETON_WARNING


def test_policy_can_skip_llm_only_tier(manager):
    decision = manager.decide(
        current_state=PipelineState.SYNTHESIZING,
        result=StageResult(ok=False, reason="llm_timeout"),
        policy=FallbackPolicy(allow_llm_fallback=False),
    )
    assert decision.next_state is PipelineState.STATIC_SKELETON


def test_skeleton_is_terminal(manager):
    decision = manager.decide(
        current_state=PipelineState.STATIC_SKELETON, result=StageResult(ok=False), policy=FallbackPolicy()
    )
    assert decision.next_state is PipelineState.STATIC_SKELETON
