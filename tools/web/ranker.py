"""Composite quality ranking of search results."""

from config.config import RankingWeights

from .contracts import RankedResource, ScrapedContent, SearchResult
from .source_registry import SourceRegistry


class ResourceRanker:
    """
    Score = relevance + content-richness boosts + trusted-domain boost, clamped to [0, 1].

    Pure and deterministic; ties keep input order.
    """

    def __init__(self, weights: RankingWeights, registry: SourceRegistry):
        self.weights = weights
        self.registry = registry

    def score(self, result: SearchResult, scraped: ScrapedContent | None) -> float:
        w = self.weights
        score = result.relevance_score if result.relevance_score is not None else w.default_relevance

        if scraped is not None:
            if scraped.word_count > w.word_count_threshold:
                score += w.word_count_boost
            if len(scraped.headers) >= w.heading_threshold:
                score += w.heading_boost
            if len(scraped.summary or "") > w.summary_length_threshold:
                score += w.summary_boost

        if self.registry.is_trusted(result.url):
            score += w.trusted_domain_boost

        return min(max(score, 0.0), 1.0)

    def rank(
        self, search_results: list[SearchResult], scraped_contents: list[ScrapedContent]
    ) -> list[RankedResource]:
        by_url: dict[str, ScrapedContent] = {}
        for content in scraped_contents:
            if content.error is None:
                by_url.setdefault(content.url, content)

        ranked = [
            RankedResource.from_search_result(
                result,
                quality_score=self.score(result, by_url.get(result.url)),
                scraped_content=by_url.get(result.url),
            )
            for result in search_results
        ]
        # sorted() is stable, so equal scores keep search order
        return sorted(ranked, key=lambda r: r.quality_score, reverse=True)
