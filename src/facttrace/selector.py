from __future__ import annotations

import logging
from collections.abc import Sequence

from .errors import ExtractionError, FetchError
from .fetcher import ArticleFetcher, normalize_whitespace
from .models import Article, SearchResult
from .reputation import hostname_of

logger = logging.getLogger(__name__)


class ArticleSelector:
    """
    Pick the first search result that yields enough article text.

    Results are tried in order, preferred-domain hits first. A result whose
    own text fields are long enough is used as is; otherwise its page is
    fetched. When nothing qualifies, the first result's summary is returned.
    """

    def __init__(
        self,
        fetcher: ArticleFetcher,
        *,
        min_content_length: int = 600,
        min_article_length: int = 400,
        fallback_length: int = 800,
        snippet_length: int = 280,
    ) -> None:
        self._fetcher = fetcher
        self._min_content_length = min_content_length
        self._min_article_length = min_article_length
        self._fallback_length = fallback_length
        self._snippet_length = snippet_length

    @staticmethod
    def order_results(results: Sequence[SearchResult], preferred_domain: str | None) -> list[SearchResult]:
        preferred = (preferred_domain or "").strip().lower()
        if not preferred:
            return list(results)
        # sorted() is stable, so ties keep their search order
        return sorted(results, key=lambda result: 0 if hostname_of(result.url) == preferred else 1)

    @staticmethod
    def combined_text(result: SearchResult) -> str:
        return normalize_whitespace("\n\n".join(result.text_parts()))

    async def pick_article(
        self,
        results: Sequence[SearchResult],
        preferred_domain: str | None = None,
    ) -> Article | None:
        ordered = self.order_results(results, preferred_domain)
        if not ordered:
            return None

        for result in ordered:
            text, page_title = await self._article_text(result)
            if len(text) > self._min_article_length:
                logger.info("Selected article %s (%d chars)", result.url, len(text))
                return self._to_article(result, text, page_title)

        first = ordered[0]
        fallback = normalize_whitespace(first.best_summary())[: self._fallback_length]
        logger.info("No candidate reached %d chars; falling back to summary of %s", self._min_article_length, first.url)
        return self._to_article(first, fallback, None)

    async def _article_text(self, result: SearchResult) -> tuple[str, str | None]:
        combined = self.combined_text(result)
        if len(combined) > self._min_content_length or not result.url:
            return combined, None
        try:
            page = await self._fetcher.fetch_page(result.url)
        except (FetchError, ExtractionError) as exc:
            logger.warning("Extraction failed for %s: %s", result.url, exc)
            return combined, None
        return page.text or combined, page.title

    def _to_article(self, result: SearchResult, text: str, page_title: str | None) -> Article:
        return Article(
            title=result.title or page_title or result.url or "Untitled",
            url=result.url,
            article_text=text,
            snippet=text[: self._snippet_length],
            description=result.summary or result.description,
            publisher=result.publisher_name or (result.source_meta.moniker if result.source_meta else None),
            source_meta=result.source_meta,
        )
