import json

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.base_client import BaseLLMClient
from config.config import Config
from db.tables import init_db
from models.unified_response import NormalizedError, TokenUsage, UnifiedResponse
from orchestrator.core import ResearchOrchestrator
from tools.web.source_registry import SourceRegistry

ROADMAP_DOC = {
    "overview": "From components to hooks",
    "prerequisites": ["HTML", "JavaScript"],
    "steps": [
        {
            "week": 1,
            "day": 1,
            "title": "What is React",
            "description": "Read the overview",
            "duration": "4 minutes",
            "type": "theory",
            "concepts": ["components"],
            "resources": ["React docs"],
            "optional": False,
            "difficulty": "beginner",
        },
        {
            "week": 1,
            "day": 2,
            "title": "First component",
            "description": "Write a function component",
            "duration": "5 minutes",
            "type": "practice",
            "concepts": ["JSX"],
            "resources": [],
            "optional": False,
            "difficulty": "beginner",
        },
    ],
    "projects": [],
    "milestones": [],
    "additionalResources": [],
}

FALLBACK_DOC = {
    "overview": "Offline plan",
    "steps": [{"day": 1, "title": "Basics", "type": "theory", "concepts": ["intro"]}],
}

BASIC_DOC = {"steps": [{"day": 1, "topic": "Warm up", "concepts": ["basics"]}]}

ANALYSIS_DOC = {"overview": "A topic", "keyAreas": ["a", "b"], "difficulty": "beginner"}

COMPARISON_DOC = {"comparison": {"bestForBeginners": "Resource 1"}, "summary": "Both fine"}

# prompt marker -> reply kind
PROMPT_KINDS = [
    ("Summarize the following content", "summary"),
    ("expert learning designer", "roadmap"),
    ("without external sources", "fallback"),
    ("7-day microlearning roadmap", "basic"),
    ("provide a comprehensive analysis", "analysis"),
    ("Compare these learning resources", "compare"),
    ("Respond with \"OK\"", "probe"),
]

DEFAULT_REPLIES = {
    "summary": "This resource explains the core ideas step by step and gives practical exercises "
    "that a learner can follow in a few minutes each day.",
    "roadmap": "```json\n" + json.dumps(ROADMAP_DOC) + "\n```",
    "fallback": json.dumps(FALLBACK_DOC),
    "basic": json.dumps(BASIC_DOC),
    "analysis": json.dumps(ANALYSIS_DOC),
    "compare": json.dumps(COMPARISON_DOC),
    "probe": "OK",
}


class FakeLLMClient(BaseLLMClient):
    """Answers by prompt kind; kinds listed in ``failing`` return an error response."""

    provider_name = "fake"

    def __init__(self, replies=None, failing=()):
        super().__init__(None, model_name="fake-model", timeout_s=5)
        self.replies = {**DEFAULT_REPLIES, **(replies or {})}
        self.failing = set(failing)
        self.calls: list[str] = []
        self.prompts: list[str] = []

    @staticmethod
    def kind_of(prompt: str) -> str:
        for marker, kind in PROMPT_KINDS:
            if marker in prompt:
                return kind
        return "unknown"

    def get_completion(self, prompt=None, *, messages=None, **kwargs):
        normalized = self._normalize_input(prompt=prompt, messages=messages)
        kind = self.kind_of(normalized[-1]["content"])
        self.prompts.append(normalized[-1]["content"])
        self.calls.append(kind)

        if kind in self.failing or "*" in self.failing:
            return self._create_error_response(
                request_id=self._generate_request_id(),
                error=NormalizedError(
                    code="provider_error",
                    message=f"{kind} unavailable",
                    provider=self.provider_name,
                    retryable=True,
                ),
                latency_ms=1,
                model=self.model_name,
            )

        return UnifiedResponse(
            request_id=self._generate_request_id(),
            text=self.replies.get(kind, ""),
            provider=self.provider_name,
            model=self.model_name,
            latency_ms=1,
            token_usage=TokenUsage(prompt_tokens=10, completion_tokens=10),
            finish_reason="stop",
        )


SAMPLE_REGISTRY = {
    "curated_topics": [
        {
            "keywords": ["python"],
            "sources": [
                {
                    "title": "Python Official Tutorial",
                    "url": "https://docs.python.org/3/tutorial/",
                    "snippet": "Official tutorial",
                    "source": "Python.org",
                    "relevance_score": 0.95,
                },
                {
                    "title": "Real Python Learning Path",
                    "url": "https://realpython.com/learning-paths/",
                    "snippet": "Structured paths",
                    "source": "Real Python",
                    "relevance_score": 0.9,
                },
            ],
        },
        {
            "keywords": ["leadership", "management"],
            "sources": [
                {
                    "title": "Leadership Essentials",
                    "url": "https://www.coursera.org/learn/leadership",
                    "source": "Coursera",
                    "relevance_score": 0.85,
                }
            ],
        },
    ],
    "trusted_domains": ["python.org", "react.dev", "mozilla.org", "coursera.org"],
}


def article_html(title: str = "Guide", paragraphs: int = 40, headings: int = 4) -> str:
    heads = "".join(f"<h2>Section {i}</h2>" for i in range(1, headings + 1))
    body = "".join(
        f"<p>Paragraph {i} explains an important concept with a worked example.</p>"
        for i in range(paragraphs)
    )
    return (
        f"<html><head><title>{title}</title><script>var tracking = 1;</script></head>"
        f"<body><nav>Home | About | Contact</nav><main><h1>{title}</h1>{heads}{body}</main>"
        "<footer>Copyright footer</footer></body></html>"
    )


def json_response(payload) -> httpx.Response:
    return httpx.Response(200, json=payload)


def html_response(html: str) -> httpx.Response:
    return httpx.Response(200, text=html, headers={"Content-Type": "text/html; charset=utf-8"})


SEARCH_HOST = "api.duckduckgo.com"

REACT_SEARCH_PAYLOAD = {
    "Heading": "React",
    "AbstractText": "React is a library for building user interfaces.",
    "AbstractURL": "https://react.dev/learn",
    "AbstractSource": "React",
    "RelatedTopics": [
        {
            "FirstURL": "https://en.wikipedia.org/wiki/JSX",
            "Text": "JSX - A syntax extension for JavaScript",
        },
        {
            "Name": "Concepts",
            "Topics": [
                {
                    "FirstURL": "https://en.wikipedia.org/wiki/Virtual_DOM",
                    "Text": "Virtual DOM - An in-memory representation of the UI",
                },
                {
                    "FirstURL": "https://en.wikipedia.org/wiki/React_hooks",
                    "Text": "Hooks - Functions that let components use state",
                },
            ],
        },
    ],
}


def web_transport(search_payload=None, failing_hosts=()):
    """Search answers with ``search_payload``; every other host serves an article."""

    def handler(request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if host in failing_hosts or "*" in failing_hosts:
            raise httpx.ConnectError("network unreachable", request=request)
        if host == SEARCH_HOST:
            return json_response(search_payload or {})
        return html_response(article_html(title=host))

    return httpx.MockTransport(handler)


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def registry():
    return SourceRegistry.from_dict(SAMPLE_REGISTRY)


@pytest.fixture
def empty_registry():
    return SourceRegistry()


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture
def build(config, registry, session_factory):
    """Orchestrator factory wired to fakes: MockTransport network, fake model, in-memory DB."""

    def _build(transport, llm=None, sources=None):
        return ResearchOrchestrator(
            config,
            llm_client=llm or FakeLLMClient(),
            registry=sources if sources is not None else registry,
            session_factory=session_factory,
            http_transport=transport,
        )

    return _build
