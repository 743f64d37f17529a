from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from .analyzer import ClaimAnalyzer
from .claims import contains_url, normalize_claim
from .errors import (
    ClaimValidationError,
    EmptyArticleError,
    ExtractionError,
    NoArticleFoundError,
    SourceRejectedError,
)
from .fetcher import ArticleFetcher
from .models import AnalysisResult, Article, SearchResult
from .reputation import ReliabilityFilter
from .selector import ArticleSelector

logger = logging.getLogger(__name__)


class SearchBackend(Protocol):
    async def search(self, query: str) -> list[SearchResult]: ...


@dataclass
class ClaimEngine:
    search_client: SearchBackend
    source_filter: ReliabilityFilter
    selector: ArticleSelector
    fetcher: ArticleFetcher
    analyzer: ClaimAnalyzer
    preferred_domain: str | None = None
    snippet_length: int = 280

    async def analyze_claim(self, query: str, *, preferred_domain: str | None = None) -> dict[str, Any]:
        query = (query or "").strip()
        if not query:
            raise ClaimValidationError("Query is required.")
        if contains_url(query):
            raise ClaimValidationError(
                "Please paste the relevant text or summary instead of a direct link."
            )

        claim = normalize_claim(query)
        results = await self.search_client.search(claim)
        logger.info("Search for %r returned %d results", claim[:80], len(results))
        if not results:
            raise NoArticleFoundError()

        admitted = self.source_filter.filter_results(results)
        if not admitted:
            raise NoArticleFoundError()

        article = await self.selector.pick_article(admitted, preferred_domain or self.preferred_domain)
        if article is None:
            raise NoArticleFoundError()
        if not article.article_text.strip():
            raise EmptyArticleError()

        analysis = await self.analyzer.analyze(claim, article)
        return self._response(query, claim, article, analysis)

    async def analyze_url(self, url: str, *, claim: str | None = None) -> dict[str, Any]:
        """Strict path for user-submitted links: unrated or substandard sources are refused."""
        meta = self.source_filter.evaluate(url=url, strict=True)
        if not meta.acceptable:
            raise SourceRejectedError(
                f"Source rejected: {meta.reason}.",
                payload={"reliability": meta.as_public()},
            )

        try:
            page = await self.fetcher.fetch_page(url)
        except ExtractionError as exc:
            raise EmptyArticleError() from exc

        text = page.text
        article = Article(
            title=page.title or url,
            url=url,
            article_text=text,
            snippet=text[: self.snippet_length],
            description=None,
            publisher=meta.moniker,
            source_meta=meta if self.source_filter.enforced else None,
        )
        statement = normalize_claim(claim) if claim and claim.strip() else article.title
        analysis = await self.analyzer.analyze(statement, article)
        return self._response(claim or url, statement, article, analysis)

    @staticmethod
    def _response(query: str, claim: str, article: Article, analysis: AnalysisResult) -> dict[str, Any]:
        return {
            "query": query,
            "normalizedClaim": claim,
            "analyzedAt": datetime.now(timezone.utc).isoformat(),
            "article": article.as_public(),
            "analysis": analysis.as_public(),
        }
