import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

SERVICE_VERSION = "1.0.0"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class LLMProvider(Enum):
    """Supported completion backends."""

    OPENROUTER = "openrouter"
    OLLAMA = "ollama"


@dataclass(frozen=True)
class LLMSettings:
    provider: str = LLMProvider.OPENROUTER.value
    model_name: str = "meta-llama/llama-3.1-405b-instruct:free"
    api_key: str | None = None
    base_url: str = "https://openrouter.ai/api/v1"
    ollama_url: str = "http://127.0.0.1:11434"
    ollama_model: str = "llama3.1"
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout_s: float = 60.0
    app_url: str = "http://localhost:3000"
    app_title: str = "SkillForge"


@dataclass(frozen=True)
class SearchSettings:
    endpoint: str = "https://api.duckduckgo.com/"
    hint_terms: str = "roadmap guide tutorial"
    timeout_s: float = 10.0
    min_live_results: int = 3
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class ScrapeSettings:
    timeout_s: float = 10.0
    max_redirects: int = 3
    content_char_cap: int = 3000
    preview_chars: int = 1000
    summary_input_chars: int = 2000
    min_summary_input_chars: int = 50
    min_container_chars: int = 100
    max_headings: int = 10
    max_heading_chars: int = 200
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class RankingWeights:
    """Heuristic ranking weights. Starting defaults, tune per deployment."""

    default_relevance: float = 0.5
    word_count_threshold: int = 500
    word_count_boost: float = 0.1
    heading_threshold: int = 3
    heading_boost: float = 0.1
    summary_length_threshold: int = 100
    summary_boost: float = 0.1
    trusted_domain_boost: float = 0.2


@dataclass(frozen=True)
class PipelineSettings:
    search_results: int = 8
    scrape_top_n: int = 5
    synthesis_context: int = 5
    min_summary_chars: int = 20
    persisted_step_cap: int = 7
    persisted_source_cap: int = 5
    response_source_cap: int = 10


@dataclass(frozen=True)
class RateLimitSettings:
    enabled: bool = False
    generation_per_minute: int = 10
    search_per_hour: int = 50
    scrape_per_hour: int = 20


@dataclass(frozen=True)
class Config:
    """
    Application configuration.

    Built once (normally via ``Config.from_env()``) and handed to the
    components that need it. Tests construct it directly with overrides.
    """

    llm: LLMSettings = field(default_factory=LLMSettings)
    search: SearchSettings = field(default_factory=SearchSettings)
    scrape: ScrapeSettings = field(default_factory=ScrapeSettings)
    ranking: RankingWeights = field(default_factory=RankingWeights)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    rate_limits: RateLimitSettings = field(default_factory=RateLimitSettings)
    sources_path: str | None = None

    @classmethod
    def from_env(cls) -> "Config":
        """
        Load configuration from environment variables (and .env if present).

        Returns:
            Config: populated configuration
        """
        env_path = Path(__file__).parent.parent / ".env"
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)

        provider = os.getenv("LLM_PROVIDER", LLMProvider.OPENROUTER.value).lower()
        llm = LLMSettings(
            provider=provider,
            model_name=os.getenv("OPENROUTER_MODEL", LLMSettings.model_name),
            api_key=os.getenv("OPENROUTER_API_KEY"),
            ollama_url=os.getenv("OLLAMA_URL", LLMSettings.ollama_url),
            ollama_model=os.getenv("OLLAMA_MODEL", LLMSettings.ollama_model),
            max_tokens=int(os.getenv("LLM_MAX_TOKENS", str(LLMSettings.max_tokens))),
            timeout_s=float(os.getenv("LLM_TIMEOUT_S", str(LLMSettings.timeout_s))),
            app_url=os.getenv("APP_URL", LLMSettings.app_url),
        )

        return cls(
            llm=llm,
            search=SearchSettings(
                timeout_s=float(os.getenv("SEARCH_TIMEOUT_S", str(SearchSettings.timeout_s))),
            ),
            scrape=ScrapeSettings(
                timeout_s=float(os.getenv("SCRAPE_TIMEOUT_S", str(ScrapeSettings.timeout_s))),
            ),
            rate_limits=RateLimitSettings(
                enabled=os.getenv("RATE_LIMIT_ENABLED", "false").lower() == "true",
            ),
            sources_path=os.getenv("RESEARCH_SOURCES_PATH") or None,
        )

    def validate(self) -> list[str]:
        """
        Check that the selected LLM provider is usable.

        Returns:
            list[str]: human-readable problems (empty when valid)
        """
        problems = []
        valid = {p.value for p in LLMProvider}
        if self.llm.provider not in valid:
            problems.append(
                f"Unknown LLM_PROVIDER '{self.llm.provider}'. Must be one of: {', '.join(sorted(valid))}"
            )
        elif self.llm.provider == LLMProvider.OPENROUTER.value and not self.llm.api_key:
            problems.append("OPENROUTER_API_KEY is not set")
        return problems

    def get_model_info(self) -> str:
        if self.llm.provider == LLMProvider.OLLAMA.value:
            return f"Ollama ({self.llm.ollama_model})"
        return f"OpenRouter ({self.llm.model_name})"
