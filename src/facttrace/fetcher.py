from __future__ import annotations

import html as html_lib
import logging
import re
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

import httpx
import trafilatura

from .config import DEFAULT_USER_AGENT
from .errors import ExtractionError, FetchError

logger = logging.getLogger(__name__)

_SCRIPT_STYLE_RE = re.compile(r"<(script|style|noscript)\b[^>]*>[\s\S]*?</\1\s*>", re.IGNORECASE)
_COMMENT_RE = re.compile(r"<!--[\s\S]*?-->")
_TAG_RE = re.compile(r"<[^>]*>")
_NBSP_RE = re.compile(r"&nbsp;?|&#160;|&#x0*a0;", re.IGNORECASE)
_SPACE_RE = re.compile(r"\s+")
_TITLE_RE = re.compile(r"<title\b[^>]*>([\s\S]*?)</title\s*>", re.IGNORECASE)


def normalize_whitespace(value: str | None) -> str:
    if not value:
        return ""
    return _SPACE_RE.sub(" ", value).strip()


def to_plain_text(html: str | None) -> str:
    """
    Best-effort HTML to text: drop script/style bodies and comments, strip
    tags, decode entities and collapse whitespace. Tolerates broken markup.
    """
    if not html:
        return ""
    text = _SCRIPT_STYLE_RE.sub(" ", html)
    text = _COMMENT_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    text = _NBSP_RE.sub(" ", text)
    text = html_lib.unescape(text)
    return normalize_whitespace(text)


def extract_title(html: str | None) -> str | None:
    if not html:
        return None
    match = _TITLE_RE.search(html)
    if not match:
        return None
    title = normalize_whitespace(html_lib.unescape(_TAG_RE.sub(" ", match.group(1))))
    return title or None


def strip_query(url: str) -> str:
    """Drop query string and fragment."""
    parts = urlsplit(url.strip())
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


@dataclass(frozen=True)
class FetchAttempt:
    name: str
    url: str


@dataclass(frozen=True)
class FetchedPage:
    url: str
    html: str
    text: str
    title: str | None


def build_attempts(url: str, mirror_base: str = "https://r.jina.ai/") -> list[FetchAttempt]:
    """Ordered fetch strategies: the page itself, then readable-text mirrors."""
    mirror = mirror_base.rstrip("/") + "/"
    bare = strip_query(url)
    return [
        FetchAttempt("direct", url),
        FetchAttempt("mirror", f"{mirror}{bare}"),
        FetchAttempt("mirror-nested", f"{mirror}{mirror}{bare}"),
    ]


class ArticleFetcher:
    def __init__(
        self,
        *,
        timeout: float = 15.0,
        user_agent: str = DEFAULT_USER_AGENT,
        mirror_base: str = "https://r.jina.ai/",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._headers = {"User-Agent": user_agent}
        self._mirror_base = mirror_base
        self._transport = transport

    def attempts_for(self, url: str) -> list[FetchAttempt]:
        return build_attempts(url, self._mirror_base)

    async def fetch_html(self, url: str) -> str:
        last_error = "no attempts made"
        try:
            attempts = self.attempts_for(url)
        except ValueError as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}") from exc
        async with httpx.AsyncClient(
            timeout=self._timeout,
            headers=self._headers,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            for attempt in attempts:
                try:
                    body = await self._try(client, attempt)
                except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
                    last_error = str(exc) or exc.__class__.__name__
                    logger.warning("Fetch %s failed for %s: %s", attempt.name, url, last_error)
                    continue
                logger.debug("Fetched %s via %s (%d chars)", url, attempt.name, len(body))
                return body
        raise FetchError(f"Failed to fetch {url}: {last_error}")

    async def fetch_page(self, url: str) -> FetchedPage:
        html = await self.fetch_html(url)
        text = self.extract_text(html)
        if not text:
            raise ExtractionError(f"No readable text at {url}")
        return FetchedPage(url=url, html=html, text=text, title=extract_title(html))

    @staticmethod
    def extract_text(html: str) -> str:
        try:
            extracted = trafilatura.extract(html, include_comments=False, include_tables=False)
        except Exception:  # noqa: BLE001 - extractor is best effort
            extracted = None
        if extracted and extracted.strip():
            return normalize_whitespace(extracted)
        return to_plain_text(html)

    @staticmethod
    async def _try(client: httpx.AsyncClient, attempt: FetchAttempt) -> str:
        response = await client.get(attempt.url)
        response.raise_for_status()
        body = response.text
        if not body:
            raise ValueError("empty response body")
        return body
