import asyncio
import time

import pytest

from models.roadmap import GenerationOptions
from orchestrator.concurrency import LLMCaller, gather_settled
from orchestrator.errors import SynthesisError
from orchestrator.synthesis_engine import SynthesisEngine
from tests.conftest import ROADMAP_DOC, FakeLLMClient

pytestmark = pytest.mark.unit

LONG_TEXT = "Closures capture variables from their enclosing scope. " * 5


def engine_for(client, timeout_s=5.0):
    return SynthesisEngine(LLMCaller(client, timeout_s=timeout_s))


class SlowClient(FakeLLMClient):
    def get_completion(self, prompt=None, *, messages=None, **kwargs):
        time.sleep(0.5)
        return super().get_completion(prompt, messages=messages, **kwargs)


class ExplodingClient(FakeLLMClient):
    def get_completion(self, prompt=None, *, messages=None, **kwargs):
        raise RuntimeError("socket closed")


def test_summarize_skips_model_for_short_content(fake_llm):
    summary = asyncio.run(engine_for(fake_llm).summarize("too short", "Page"))
    assert summary == "Page: Content not available for summary."
    assert fake_llm.calls == []


def test_summarize_returns_model_text(fake_llm):
    summary = asyncio.run(engine_for(fake_llm).summarize(LONG_TEXT, "Page"))
    assert summary.startswith("This resource explains")
    assert fake_llm.calls == ["summary"]


def test_summarize_absorbs_model_failure():
    client = FakeLLMClient(failing={"summary"})
    summary = asyncio.run(engine_for(client).summarize(LONG_TEXT, "Page"))
    assert summary == "Page: Summary generation failed."


def test_summarize_handles_empty_model_output():
    client = FakeLLMClient(replies={"summary": "   "})
    summary = asyncio.run(engine_for(client).summarize(LONG_TEXT, "Page"))
    assert summary == "Page: Summary not available."


def test_synthesize_parses_fenced_json(fake_llm):
    document = asyncio.run(engine_for(fake_llm).synthesize("React", [], GenerationOptions()))
    assert document == ROADMAP_DOC


def test_unparseable_output_is_none_not_an_error():
    client = FakeLLMClient(replies={"fallback": "Sorry, I cannot help with that."})
    document = asyncio.run(engine_for(client).synthesize_fallback("React", GenerationOptions()))
    assert document is None


def test_failed_call_raises_synthesis_error():
    client = FakeLLMClient(failing={"roadmap"})
    with pytest.raises(SynthesisError) as exc_info:
        asyncio.run(engine_for(client).synthesize("React", [], GenerationOptions()))
    assert exc_info.value.code == "provider_error"


def test_llm_timeout_becomes_error_response():
    response = asyncio.run(
        LLMCaller(SlowClient(), timeout_s=0.05).complete([{"role": "user", "content": "hi"}])
    )
    assert response.is_error
    assert response.error.code == "timeout"
    assert response.error.retryable is True


def test_client_exception_becomes_error_response():
    response = asyncio.run(
        LLMCaller(ExplodingClient()).complete([{"role": "user", "content": "hi"}])
    )
    assert response.is_error
    assert response.error.code == "unknown"
    assert "socket closed" in response.error.message


def test_gather_settled_keeps_order_and_isolates_failures():
    async def ok(value, delay):
        await asyncio.sleep(delay)
        return value

    async def boom():
        raise ValueError("bad page")

    async def run():
        return await gather_settled([ok("a", 0.02), boom(), ok("c", 0.0)])

    settled = asyncio.run(run())

    assert [s.ok for s in settled] == [True, False, True]
    assert settled[0].value == "a"
    assert settled[2].value == "c"
    assert isinstance(settled[1].error, ValueError)


def test_gather_settled_times_out_individual_tasks():
    async def slow():
        await asyncio.sleep(1)
        return "late"

    async def fast():
        return "fast"

    async def run():
        return await gather_settled([slow(), fast()], timeout_s=0.05)

    settled = asyncio.run(run())

    assert isinstance(settled[0].error, asyncio.TimeoutError)
    assert settled[1].value == "fast"
