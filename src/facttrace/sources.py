from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import Settings, get_settings
from .errors import ConfigurationError, UpstreamError
from .models import SearchResult

logger = logging.getLogger(__name__)


class NewsSearchClient:
    """Client for the neural news search API (Exa-compatible)."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._timeout = self._settings.search_timeout
        self._transport = transport

    def build_payload(self, query: str) -> dict[str, Any]:
        return {
            "query": query,
            "category": "news",
            "numResults": self._settings.search_num_results,
            "type": self._settings.search_type,
            "contents": {"text": True, "summary": True, "highlights": True},
        }

    async def search(self, query: str) -> list[SearchResult]:
        api_key = self._settings.search_api_key
        if not api_key:
            raise ConfigurationError("Search API key is not configured.")
        headers = {"x-api-key": api_key, "Content-Type": "application/json"}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    self._settings.search_api_url,
                    json=self.build_payload(query),
                    headers=headers,
                )
                response.raise_for_status()
                payload = response.json()
            except httpx.HTTPStatusError as exc:
                logger.error("Search API returned %s: %s", exc.response.status_code, exc.response.text[:200])
                raise UpstreamError(f"Search request failed ({exc.response.status_code}).") from exc
            except httpx.HTTPError as exc:
                logger.error("Search API unreachable: %s", exc)
                raise UpstreamError(f"Search request failed: {exc}") from exc
            except ValueError as exc:
                raise UpstreamError("Search API returned invalid JSON.") from exc
        return self.parse_results(payload)

    @staticmethod
    def parse_results(payload: Any) -> list[SearchResult]:
        if not isinstance(payload, dict):
            return []
        items = payload.get("results")
        if not isinstance(items, list):
            return []
        output: list[SearchResult] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            highlights = item.get("highlights")
            output.append(
                SearchResult(
                    url=_as_str(item.get("url")),
                    title=_as_str(item.get("title")),
                    text=_as_str(item.get("text")),
                    content=_as_str(item.get("content")),
                    summary=_as_str(item.get("summary")),
                    synopsis=_as_str(item.get("synopsis")),
                    description=_as_str(item.get("description")),
                    highlights=[h for h in highlights if isinstance(h, str)] if isinstance(highlights, list) else [],
                    publisher=_as_str(item.get("publisher")),
                    source=_as_str(item.get("source")),
                )
            )
        return output


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value.strip() else None
