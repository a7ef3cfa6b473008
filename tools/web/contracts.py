"""Data contracts for the web research stage of roadmap generation.

These records live for a single pipeline run; nothing here is persisted.
``to_dict`` renders the camelCase JSON shape returned to API callers.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class SearchResult:
    """Result from a search provider or the curated source table."""

    title: str
    url: str
    snippet: str = ""
    source: str = ""
    relevance_score: float = 0.5

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "snippet": self.snippet,
            "source": self.source,
            "relevanceScore": self.relevance_score,
        }


@dataclass(frozen=True)
class Heading:
    level: int
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "text": self.text}


@dataclass(frozen=True)
class ScrapedContent:
    """Extracted body text, outline and summary for one URL."""

    url: str
    title: str
    content: str
    summary: str
    headers: list[Heading] = field(default_factory=list)
    word_count: int = 0
    scraped_at: str = field(default_factory=utc_now_iso)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "summary": self.summary,
            "headers": [h.to_dict() for h in self.headers],
            "wordCount": self.word_count,
            "scrapedAt": self.scraped_at,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class ScrapeOk:
    content: ScrapedContent

    @property
    def is_degraded(self) -> bool:
        return False


@dataclass(frozen=True)
class ScrapeDegraded:
    """A scrape that absorbed a failure; ``content`` carries a placeholder summary."""

    content: ScrapedContent
    reason: str

    @property
    def is_degraded(self) -> bool:
        return True


ScrapeOutcome = ScrapeOk | ScrapeDegraded


@dataclass(frozen=True)
class RankedResource:
    """A search result enriched with its scrape (if any) and a composite score."""

    title: str
    url: str
    snippet: str
    source: str
    relevance_score: float
    quality_score: float
    scraped_content: ScrapedContent | None = None

    @classmethod
    def from_search_result(
        cls,
        result: SearchResult,
        quality_score: float,
        scraped_content: ScrapedContent | None = None,
    ) -> "RankedResource":
        return cls(
            title=result.title,
            url=result.url,
            snippet=result.snippet,
            source=result.source,
            relevance_score=result.relevance_score,
            quality_score=quality_score,
            scraped_content=scraped_content,
        )

    @property
    def digest(self) -> str:
        """Summary if the page was scraped, otherwise the search snippet."""
        if self.scraped_content and self.scraped_content.summary:
            return self.scraped_content.summary
        return self.snippet

    def to_dict(self) -> dict[str, Any]:
        data = {
            "title": self.title,
            "url": self.url,
            "snippet": self.snippet,
            "source": self.source,
            "relevanceScore": self.relevance_score,
            "qualityScore": self.quality_score,
        }
        if self.scraped_content is not None:
            data["scrapedContent"] = self.scraped_content.to_dict()
        return data
