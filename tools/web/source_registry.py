"""Curated source table and trusted-domain allow-list, loaded from YAML."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml

from .contracts import SearchResult

DEFAULT_SOURCES_PATH = (
    Path(__file__).resolve().parent.parent.parent / "config" / "research_sources.yaml"
)


@dataclass(frozen=True)
class CuratedTopic:
    keywords: tuple[str, ...]
    sources: tuple[SearchResult, ...]

    def matches(self, query: str) -> bool:
        lowered = query.lower()
        return any(keyword in lowered for keyword in self.keywords)


@dataclass
class SourceRegistry:
    topics: list[CuratedTopic] = field(default_factory=list)
    trusted_domains: list[str] = field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | None = None) -> "SourceRegistry":
        sources_path = Path(path) if path else DEFAULT_SOURCES_PATH
        if not sources_path.exists():
            raise ValueError(f"Research source table not found at {sources_path}")

        data = yaml.safe_load(sources_path.read_text(encoding="utf-8")) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourceRegistry":
        topics: list[CuratedTopic] = []
        for entry in data.get("curated_topics", []) or []:
            keywords = entry.get("keywords") or []
            if not isinstance(keywords, list) or not keywords:
                raise ValueError("Invalid curated topic: keywords must be a non-empty list")
            sources = []
            for source in entry.get("sources", []) or []:
                if "url" not in source or "title" not in source:
                    raise ValueError(f"Curated source for {keywords} is missing title or url")
                sources.append(
                    SearchResult(
                        title=str(source["title"]),
                        url=str(source["url"]),
                        snippet=str(source.get("snippet", "")),
                        source=str(source.get("source", "")),
                        relevance_score=float(source.get("relevance_score", 0.8)),
                    )
                )
            topics.append(
                CuratedTopic(
                    keywords=tuple(str(k).lower() for k in keywords),
                    sources=tuple(sources),
                )
            )

        trusted = [str(d).lower().strip() for d in data.get("trusted_domains", []) or [] if d]
        return cls(topics=topics, trusted_domains=trusted)

    def curated_for(self, query: str) -> list[SearchResult]:
        """All curated sources whose topic keywords appear in the query, in table order."""
        results: list[SearchResult] = []
        for topic in self.topics:
            if topic.matches(query):
                results.extend(topic.sources)
        return results

    def is_trusted(self, url: str) -> bool:
        """True if the URL's host is, or is a subdomain of, an allow-listed domain."""
        try:
            host = (urlparse(url).hostname or "").lower()
        except ValueError:
            return False
        if not host:
            return False
        return any(host == domain or host.endswith("." + domain) for domain in self.trusted_domains)
