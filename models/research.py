"""Results of the topic-analysis and resource-comparison operations."""

from dataclasses import dataclass, field
from typing import Any

from tools.web.contracts import ScrapedContent, SearchResult, utc_now_iso

DEPTHS = ("overview", "detailed", "comprehensive")
DEPTH_SEARCH_LIMITS = {"overview": 5, "detailed": 10, "comprehensive": 15}


@dataclass(frozen=True)
class TopicAnalysisResult:
    topic: str
    depth: str
    analysis: dict[str, Any]
    search_results: list[SearchResult]
    scraped_content: list[ScrapedContent]
    success: bool = True
    message: str = "Topic analysis completed successfully"
    generated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "depth": self.depth,
            "analysis": self.analysis,
            "searchResults": [r.to_dict() for r in self.search_results[:8]],
            "scrapedContent": [c.to_dict() for c in self.scraped_content[:3]],
            "generatedAt": self.generated_at,
        }


@dataclass(frozen=True)
class ResourceComparisonResult:
    topic: str
    resources: list[ScrapedContent]
    comparison: dict[str, Any]
    success: bool
    message: str
    generated_at: str = field(default_factory=utc_now_iso)

    @property
    def valid_resource_count(self) -> int:
        return sum(1 for r in self.resources if r.error is None)

    def to_dict(self) -> dict[str, Any]:
        data = {
            "topic": self.topic,
            "resources": [r.to_dict() for r in self.resources],
            "validResourceCount": self.valid_resource_count,
        }
        if self.success:
            data["comparison"] = self.comparison
            data["generatedAt"] = self.generated_at
        return data
