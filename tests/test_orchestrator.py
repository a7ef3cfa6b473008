"""End-to-end pipeline behaviour with the network and the model faked out."""

import asyncio

import httpx
import pytest

from models.roadmap import GenerationOptions, LearnerProfile, Methodology, SkillStrength
from orchestrator.core import (
    INSUFFICIENT_ANALYSIS_MESSAGE,
    INSUFFICIENT_COMPARISON_MESSAGE,
    ResearchOrchestrator,
)
from orchestrator.errors import ValidationError
from orchestrator.fallback_manager import LLM_FALLBACK_WARNING, SKELETON_WARNING, FallbackPolicy
from tests.conftest import (
    ANALYSIS_DOC,
    COMPARISON_DOC,
    REACT_SEARCH_PAYLOAD,
    SEARCH_HOST,
    FakeLLMClient,
    article_html,
    html_response,
    web_transport,
)

pytestmark = pytest.mark.integration


# ---------- roadmap generation ----------


def test_web_enhanced_roadmap_when_everything_works(build):
    llm = FakeLLMClient()
    orchestrator = build(web_transport(REACT_SEARCH_PAYLOAD), llm)

    result = asyncio.run(
        orchestrator.generate_comprehensive_roadmap("React", GenerationOptions(level="beginner"))
    )

    assert result.methodology is Methodology.WEB_ENHANCED
    assert result.warning is None
    assert result.total_steps >= 1
    assert result.sources
    # abstract from a trusted domain ranks first
    assert result.sources[0].url == "https://react.dev/learn"
    assert result.sources[0].scraped_content is not None
    assert llm.calls.count("summary") == 4
    assert llm.calls[-1] == "roadmap"

    data = result.to_dict()
    assert data["methodology"] == "web-enhanced-llm"
    assert "warning" not in data
    assert data["totalSteps"] == 2


def test_search_outage_falls_back_to_llm_only(build, empty_registry):
    llm = FakeLLMClient()
    orchestrator = build(web_transport(failing_hosts={"*"}), llm, sources=empty_registry)

    result = asyncio.run(orchestrator.generate_comprehensive_roadmap("Rust"))

    assert result.methodology is Methodology.LLM_FALLBACK
    assert result.warning == LLM_FALLBACK_WARNING
    assert result.sources == []
    assert result.total_steps >= 1
    assert llm.calls == ["fallback"]


def test_curated_sources_keep_web_path_alive_during_search_outage(build):
    orchestrator = build(web_transport(failing_hosts={SEARCH_HOST}))

    result = asyncio.run(orchestrator.generate_comprehensive_roadmap("Python"))

    assert result.methodology is Methodology.WEB_ENHANCED
    assert {s.url for s in result.sources} == {
        "https://docs.python.org/3/tutorial/",
        "https://realpython.com/learning-paths/",
    }


def test_synthesis_failure_falls_back_to_llm_only(build):
    llm = FakeLLMClient(failing={"roadmap"})
    orchestrator = build(web_transport(REACT_SEARCH_PAYLOAD), llm)

    result = asyncio.run(orchestrator.generate_comprehensive_roadmap("React"))

    assert result.methodology is Methodology.LLM_FALLBACK
    assert result.warning == LLM_FALLBACK_WARNING
    assert result.sources == []
    assert result.roadmap["steps"][0]["title"] == "Basics"


def test_unparseable_synthesis_falls_back_to_llm_only(build):
    llm = FakeLLMClient(replies={"roadmap": "Here is your roadmap! Good luck."})
    orchestrator = build(web_transport(REACT_SEARCH_PAYLOAD), llm)

    result = asyncio.run(orchestrator.generate_comprehensive_roadmap("React"))

    assert result.methodology is Methodology.LLM_FALLBACK


def test_total_outage_still_yields_a_step(build, empty_registry):
    llm = FakeLLMClient(failing={"*"})
    orchestrator = build(web_transport(failing_hosts={"*"}), llm, sources=empty_registry)

    result = asyncio.run(
        orchestrator.generate_comprehensive_roadmap("Rust", GenerationOptions(level="advanced"))
    )

    assert result.methodology is Methodology.STATIC_SKELETON
    assert result.warning == SKELETON_WARNING
    assert result.total_steps == 1
    step = result.roadmap["steps"][0]
    assert step["title"] == "Introduction to Rust"
    assert step["difficulty"] == "advanced"


def test_missing_model_key_degrades_instead_of_failing(config, registry, session_factory):
    # default Config carries no OpenRouter key
    orchestrator = ResearchOrchestrator(
        config,
        registry=registry,
        session_factory=session_factory,
        http_transport=web_transport(REACT_SEARCH_PAYLOAD),
    )

    result = asyncio.run(orchestrator.generate_comprehensive_roadmap("React", GenerationOptions()))
    report = asyncio.run(orchestrator.status())

    assert result.methodology is Methodology.STATIC_SKELETON
    assert result.total_steps == 1
    assert report["llm"]["status"] == "error"
    assert "API key" in report["llm"]["error"]


def test_policy_without_llm_fallback_goes_straight_to_skeleton(config, empty_registry, session_factory):
    llm = FakeLLMClient()
    orchestrator = ResearchOrchestrator(
        config,
        llm_client=llm,
        registry=empty_registry,
        session_factory=session_factory,
        fallback_policy=FallbackPolicy(allow_llm_fallback=False),
        http_transport=web_transport(failing_hosts={"*"}),
    )

    result = asyncio.run(orchestrator.generate_comprehensive_roadmap("Rust"))

    assert result.methodology is Methodology.STATIC_SKELETON
    assert llm.calls == []


@pytest.mark.parametrize(
    "topic,options",
    [
        ("", None),
        ("   ", None),
        ("x" * 201, None),
        ("React", GenerationOptions(level="guru")),
        ("React", GenerationOptions(focus="vibes")),
        ("React", GenerationOptions(daily_time_minutes=4)),
        ("React", GenerationOptions(daily_time_minutes=121)),
    ],
)
def test_invalid_roadmap_input_is_rejected_before_any_work(build, topic, options):
    llm = FakeLLMClient()
    orchestrator = build(web_transport(REACT_SEARCH_PAYLOAD), llm)

    with pytest.raises(ValidationError):
        asyncio.run(orchestrator.generate_comprehensive_roadmap(topic, options))
    assert llm.calls == []


# ---------- search / scrape ----------


def test_web_search_validates_query_and_limit(build):
    orchestrator = build(web_transport(REACT_SEARCH_PAYLOAD))

    with pytest.raises(ValidationError):
        asyncio.run(orchestrator.perform_web_search("", 5))
    with pytest.raises(ValidationError):
        asyncio.run(orchestrator.perform_web_search("React", 0))
    with pytest.raises(ValidationError):
        asyncio.run(orchestrator.perform_web_search("React", 21))

    results = asyncio.run(orchestrator.perform_web_search("React", 2))
    assert [r.url for r in results] == ["https://react.dev/learn", "https://en.wikipedia.org/wiki/JSX"]


def test_scraping_a_malformed_url_degrades_instead_of_raising(build):
    orchestrator = build(web_transport(REACT_SEARCH_PAYLOAD))

    scraped = asyncio.run(orchestrator.scrape_and_summarize("not a url"))

    assert scraped.error is not None
    assert scraped.title == "Scraped Content"
    assert scraped.summary.startswith("Unable to scrape content from Scraped Content")
    assert scraped.word_count == 0


def test_scrape_and_summarize_success(build):
    orchestrator = build(web_transport(REACT_SEARCH_PAYLOAD))

    scraped = asyncio.run(orchestrator.scrape_and_summarize("https://react.dev/learn", "Learn React"))

    assert scraped.error is None
    assert scraped.title == "Learn React"
    assert scraped.word_count > 0
    assert scraped.summary.startswith("This resource explains")


# ---------- analysis / comparison ----------


def test_analyze_topic_with_curated_results(build):
    orchestrator = build(web_transport({}))

    result = asyncio.run(orchestrator.analyze_topic("Python", "overview"))

    assert result.success
    assert result.analysis == ANALYSIS_DOC
    assert len(result.search_results) == 2
    assert all(c.error is None for c in result.scraped_content)


def test_analyze_topic_without_results_is_unsuccessful(build, empty_registry):
    hosts = []

    def handler(request):
        hosts.append(request.url.host)
        if request.url.host == SEARCH_HOST:
            return httpx.Response(200, json={})
        return html_response(article_html())

    llm = FakeLLMClient()
    orchestrator = build(httpx.MockTransport(handler), llm, sources=empty_registry)

    result = asyncio.run(orchestrator.analyze_topic("Obscure topic"))

    assert not result.success
    assert result.message == INSUFFICIENT_ANALYSIS_MESSAGE
    assert hosts == [SEARCH_HOST]
    assert llm.calls == []


def test_analyze_topic_rejects_unknown_depth(build):
    with pytest.raises(ValidationError):
        asyncio.run(build(web_transport({})).analyze_topic("Python", "shallow"))


def test_compare_resources(build):
    orchestrator = build(web_transport({}))

    result = asyncio.run(
        orchestrator.compare_resources(None, ["https://a.example.com/x", "https://b.example.com/y"])
    )

    assert result.success
    assert result.topic == "Learning Resources"
    assert [r.title for r in result.resources] == ["Resource 1", "Resource 2"]
    assert result.comparison == COMPARISON_DOC


def test_compare_with_one_failing_url_is_unsuccessful(build):
    def handler(request):
        if request.url.host == "b.example.com":
            raise httpx.ReadTimeout("read timed out", request=request)
        return html_response(article_html())

    orchestrator = build(httpx.MockTransport(handler))

    result = asyncio.run(
        orchestrator.compare_resources("Docs", ["https://a.example.com/x", "https://b.example.com/y"])
    )

    assert not result.success
    assert result.message == INSUFFICIENT_COMPARISON_MESSAGE
    assert result.valid_resource_count == 1
    assert result.resources[1].error is not None
    assert "comparison" not in result.to_dict()


@pytest.mark.parametrize(
    "urls",
    [["https://a.example.com"], ["https://a.example.com", "ftp://b.example.com"], ["https://x.io"] * 6],
)
def test_compare_rejects_bad_url_lists(build, urls):
    with pytest.raises(ValidationError):
        asyncio.run(build(web_transport({})).compare_resources("Docs", urls))


def test_compare_accepts_local_and_ip_hosts(build):
    orchestrator = build(web_transport({}))

    result = asyncio.run(
        orchestrator.compare_resources("Docs", ["http://localhost:8000/docs", "http://127.0.0.1/guide"])
    )

    assert result.success
    assert result.valid_resource_count == 2


# ---------- per-user roadmaps ----------


def test_user_roadmap_from_research_pipeline_is_persisted(build):
    orchestrator = build(web_transport(REACT_SEARCH_PAYLOAD))
    profile = LearnerProfile(skill="React", level="beginner", daily_time_minutes=200)

    stored = asyncio.run(orchestrator.generate_roadmap_for_user("user-1", profile))

    assert [s.day for s in stored.steps] == [1, 2]
    assert stored.metadata.generated_with == "research-agent"
    assert stored.metadata.methodology == "web-enhanced-llm"
    assert 1 <= len(stored.metadata.sources) <= 5
    assert all("scrapedContent" not in s for s in stored.metadata.sources)

    fetched = asyncio.run(orchestrator.get_roadmap("user-1"))
    assert fetched.to_dict()["steps"] == stored.to_dict()["steps"]


def test_user_roadmap_survives_total_outage(build, empty_registry):
    orchestrator = build(
        web_transport(failing_hosts={"*"}), FakeLLMClient(failing={"*"}), sources=empty_registry
    )

    stored = asyncio.run(
        orchestrator.generate_roadmap_for_user("user-2", LearnerProfile(skill="Rust"))
    )

    assert len(stored.steps) >= 1
    assert stored.steps[0].topic == "Introduction to Rust"
    assert stored.metadata.methodology == "static-skeleton"


def test_basic_path_mentions_weak_topics(build):
    llm = FakeLLMClient()
    orchestrator = build(web_transport(REACT_SEARCH_PAYLOAD), llm)
    profile = LearnerProfile(
        skill="JavaScript",
        level="intermediate",
        goal="Get a frontend job",
        concepts=[SkillStrength("closures", 30), SkillStrength("arrays", 90)],
    )

    stored = asyncio.run(
        orchestrator.generate_roadmap_for_user("user-3", profile, use_research_agent=False)
    )

    assert llm.calls == ["basic"]
    assert "closures (30)" in llm.prompts[0]
    assert "arrays" not in llm.prompts[0]
    assert stored.metadata.generated_with == "basic-llm"
    assert stored.metadata.methodology == "llm-fallback"
    assert stored.steps[0].topic == "Warm up"
    assert stored.steps[0].difficulty == "intermediate"


def test_research_path_error_falls_back_to_basic(build):
    llm = FakeLLMClient()
    orchestrator = build(web_transport(REACT_SEARCH_PAYLOAD), llm)

    stored = asyncio.run(
        orchestrator.generate_roadmap_for_user("user-4", LearnerProfile(skill="x" * 250))
    )

    assert stored.metadata.generated_with == "basic-llm"
    assert llm.calls == ["basic"]


def test_regeneration_replaces_the_stored_roadmap(build):
    orchestrator = build(web_transport(REACT_SEARCH_PAYLOAD))

    asyncio.run(orchestrator.generate_roadmap_for_user("user-5", LearnerProfile(skill="React")))
    asyncio.run(
        orchestrator.generate_roadmap_for_user(
            "user-5", LearnerProfile(skill="React"), use_research_agent=False
        )
    )

    stored = asyncio.run(orchestrator.get_roadmap("user-5"))
    assert stored.metadata.generated_with == "basic-llm"
    assert len(stored.steps) == 1


def test_unknown_user_has_no_roadmap(build):
    assert asyncio.run(build(web_transport({})).get_roadmap("ghost")) is None


def test_blank_user_id_is_rejected(build):
    with pytest.raises(ValidationError):
        asyncio.run(build(web_transport({})).generate_roadmap_for_user("  ", LearnerProfile()))


# ---------- status ----------


def test_status_reports_connected_llm(build):
    status = asyncio.run(build(web_transport({})).status())

    assert status["status"] == "operational"
    assert status["llm"]["status"] == "connected"
    assert status["llm"]["model"] == "fake-model"
    assert status["features"]["llmIntegration"] is True
    assert status["limits"]["maxSearchResults"] == 20


def test_status_reports_llm_error(build):
    status = asyncio.run(build(web_transport({}), FakeLLMClient(failing={"probe"})).status())

    assert status["status"] == "degraded"
    assert status["llm"]["status"] == "error"
    assert "probe unavailable" in status["llm"]["error"]


def test_status_reports_limited_llm(build):
    llm = FakeLLMClient(replies={"probe": "I am here"})
    status = asyncio.run(build(web_transport({}), llm).status())

    assert status["llm"]["status"] == "limited"
    assert status["features"]["llmIntegration"] is False
