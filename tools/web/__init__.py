"""Web research tools: search, scrape, rank."""

from .content_fetcher import ContentFetcher
from .contracts import (
    Heading,
    RankedResource,
    ScrapedContent,
    ScrapeDegraded,
    ScrapeOk,
    ScrapeOutcome,
    SearchResult,
)
from .ranker import ResourceRanker
from .search_provider import SearchProvider
from .source_registry import SourceRegistry

__all__ = [
    "ContentFetcher",
    "Heading",
    "RankedResource",
    "ResourceRanker",
    "ScrapeDegraded",
    "ScrapeOk",
    "ScrapeOutcome",
    "ScrapedContent",
    "SearchProvider",
    "SearchResult",
    "SourceRegistry",
]
