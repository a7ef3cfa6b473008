"""Instant-answer web search with a curated-source floor.

``search`` never raises. When the live API errors, times out or yields
fewer than ``min_live_results`` usable entries, the result set is filled
from the curated source table.
"""

import asyncio
from typing import Any

import httpx

from config.config import SearchSettings
from utils.logger import get_logger

from .contracts import SearchResult
from .source_registry import SourceRegistry

logger = get_logger(__name__)

ABSTRACT_RELEVANCE = 0.9
RELATED_RELEVANCE = 0.7
MAX_TITLE_CHARS = 100


def _related_title(text: str) -> str:
    head = text.split(" - ")[0].strip()
    return head or text[:MAX_TITLE_CHARS]


def _flatten_topics(topics: list[Any]) -> list[dict[str, Any]]:
    """Related topics may be nested one level under {"Name", "Topics": [...]}."""
    flat: list[dict[str, Any]] = []
    for topic in topics:
        if not isinstance(topic, dict):
            continue
        if isinstance(topic.get("Topics"), list):
            flat.extend(t for t in topic["Topics"] if isinstance(t, dict))
        else:
            flat.append(topic)
    return flat


def parse_instant_answer(payload: Any, query: str) -> list[SearchResult]:
    """
    Convert an instant-answer payload into search results.

    The abstract (if any) comes first with the higher relevance score,
    followed by related topics that carry both a URL and text.
    """
    if not isinstance(payload, dict):
        return []

    results: list[SearchResult] = []
    abstract_text = payload.get("AbstractText")
    abstract_url = payload.get("AbstractURL")
    if abstract_text and abstract_url:
        results.append(
            SearchResult(
                title=payload.get("Heading") or query,
                url=abstract_url,
                snippet=abstract_text,
                source=payload.get("AbstractSource") or "DuckDuckGo",
                relevance_score=ABSTRACT_RELEVANCE,
            )
        )

    related = payload.get("RelatedTopics")
    if isinstance(related, list):
        for topic in _flatten_topics(related):
            url = topic.get("FirstURL")
            text = topic.get("Text")
            if not url or not text:
                continue
            results.append(
                SearchResult(
                    title=_related_title(text),
                    url=url,
                    snippet=text,
                    source="Wikipedia",
                    relevance_score=RELATED_RELEVANCE,
                )
            )
    return results


class SearchProvider:
    """
    Search client for the DuckDuckGo instant-answer API.

    Args:
        settings: endpoint, hint terms, timeout
        registry: curated fallback table
        transport: optional httpx transport for tests
    """

    def __init__(
        self,
        settings: SearchSettings,
        registry: SourceRegistry,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.registry = registry
        self._transport = transport

    async def _query_api(self, query: str) -> Any:
        params = {
            "q": f"{query} {self.settings.hint_terms}".strip(),
            "format": "json",
            "no_html": "1",
            "skip_disambig": "1",
        }
        async with httpx.AsyncClient(
            timeout=self.settings.timeout_s,
            headers={"User-Agent": self.settings.user_agent},
            transport=self._transport,
        ) as client:
            response = await client.get(self.settings.endpoint, params=params)
            response.raise_for_status()
            # the API answers with a javascript content type, so decode explicitly
            return response.json() if response.content else {}

    def curated(self, query: str, limit: int) -> list[SearchResult]:
        return self.registry.curated_for(query)[: max(limit, 0)]

    async def search(self, query: str, max_results: int = 10) -> list[SearchResult]:
        """
        Search for ``query``.

        Returns:
            Up to ``max_results`` results; possibly empty, never raises
        """
        max_results = max(1, int(max_results))

        try:
            payload = await asyncio.wait_for(self._query_api(query), timeout=self.settings.timeout_s)
        except Exception as e:
            logger.warning(
                f"Web search error, using curated sources: {e}",
                extra={"extra_fields": {"query": query, "error_type": type(e).__name__}},
            )
            return self.curated(query, max_results)

        results = parse_instant_answer(payload, query)[:max_results]

        if len(results) < self.settings.min_live_results:
            live_count = len(results)
            seen = {r.url for r in results}
            curated = [r for r in self.registry.curated_for(query) if r.url not in seen]
            results.extend(curated[: max_results - live_count])
            logger.info(
                "Search supplemented with curated sources",
                extra={
                    "extra_fields": {
                        "query": query,
                        "live_results": live_count,
                        "curated_added": len(results) - live_count,
                    }
                },
            )

        return results[:max_results]
