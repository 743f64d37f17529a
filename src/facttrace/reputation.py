from __future__ import annotations

import logging
import unicodedata
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from urllib.parse import urlparse

import tldextract

from .models import ReliabilityRecord, SearchResult, SourceMeta

logger = logging.getLogger(__name__)

# Bundled public suffix snapshot only; never fetched at runtime.
_extract = tldextract.TLDExtract(suffix_list_urls=())

NOT_IN_DATASET = "source not in dataset"


def hostname_of(url: str | None) -> str | None:
    """Lowercased hostname of ``url``; scheme-less inputs are accepted."""
    if not url:
        return None
    value = url.strip()
    try:
        hostname = urlparse(value if "://" in value else f"http://{value}").hostname
    except ValueError:
        return None
    return hostname.lower() if hostname else None


def registrable_domain(hostname: str | None) -> str | None:
    if not hostname:
        return None
    parsed = _extract(hostname)
    if parsed.domain and parsed.suffix:
        return f"{parsed.domain}.{parsed.suffix}".lower()
    return hostname.lower()


class ReliabilityIndex:
    """
    Read-only lookup of reliability records by domain and by publisher name.
    Built once at startup and shared by every request.
    """

    def __init__(
        self,
        by_domain: Mapping[str, ReliabilityRecord],
        by_name: Mapping[str, ReliabilityRecord],
    ) -> None:
        self._by_domain = MappingProxyType(dict(by_domain))
        self._by_name = MappingProxyType(dict(by_name))

    @classmethod
    def empty(cls) -> "ReliabilityIndex":
        return cls({}, {})

    @classmethod
    def from_records(cls, records: Iterable[ReliabilityRecord]) -> "ReliabilityIndex":
        by_domain: dict[str, ReliabilityRecord] = {}
        by_name: dict[str, ReliabilityRecord] = {}
        for record in records:
            domain = cls.normalize_domain(record.domain)
            if not domain:
                continue
            by_domain[domain] = record
            name = cls.normalize_name(record.moniker)
            if name:
                by_name[name] = record
        return cls(by_domain, by_name)

    @staticmethod
    def normalize_domain(value: str | None) -> str:
        if not value:
            return ""
        return value.strip().lstrip(".").strip().lower()

    @staticmethod
    def normalize_name(value: str | None) -> str:
        """Lowercase and drop every non-alphanumeric character (accents folded)."""
        if not value:
            return ""
        value = unicodedata.normalize("NFD", value)
        value = "".join(ch for ch in value if unicodedata.category(ch) != "Mn")
        return "".join(ch for ch in value.lower() if ch.isalnum())

    def find_by_domain(self, hostname: str | None) -> ReliabilityRecord | None:
        candidate = self.normalize_domain(hostname)
        if not candidate:
            return None
        record = self._by_domain.get(candidate)
        while record is None and "." in candidate:
            candidate = candidate.split(".", 1)[1]
            record = self._by_domain.get(candidate)
        return record

    def find_by_name(self, name: str | None) -> ReliabilityRecord | None:
        key = self.normalize_name(name)
        if not key:
            return None
        return self._by_name.get(key)

    def size(self) -> int:
        return len(self._by_domain)

    def name_count(self) -> int:
        return len(self._by_name)

    def __len__(self) -> int:
        return self.size()


class ReliabilityFilter:
    """Accept or reject sources against bias and reliability thresholds."""

    def __init__(
        self,
        index: ReliabilityIndex,
        *,
        max_bias: float = 10.0,
        min_reliability: float = 35.0,
    ) -> None:
        self._index = index
        self._max_bias = max_bias
        self._min_reliability = min_reliability

    @property
    def enforced(self) -> bool:
        return self._index.size() > 0

    def evaluate(
        self,
        *,
        url: str | None = None,
        publisher: str | None = None,
        strict: bool = True,
    ) -> SourceMeta:
        if not self.enforced:
            return SourceMeta.unenforced()

        hostname = hostname_of(url)
        record = self._index.find_by_domain(hostname) if hostname else None
        if record is None and publisher:
            record = self._index.find_by_name(publisher)

        if record is None:
            return SourceMeta(
                acceptable=not strict,
                domain=registrable_domain(hostname),
                moniker=publisher,
                reason=NOT_IN_DATASET,
            )

        reason = self._rejection_reason(record)
        return SourceMeta(
            acceptable=reason is None if strict else True,
            bias_mean=record.bias_mean,
            bias_label=record.bias_label,
            reliability_mean=record.reliability_mean,
            reliability_label=record.reliability_label,
            domain=record.domain,
            moniker=record.moniker,
            reason=reason,
        )

    def evaluate_result(self, result: SearchResult, *, strict: bool = True) -> SourceMeta:
        return self.evaluate(url=result.url, publisher=result.publisher_name, strict=strict)

    def filter_results(self, results: Iterable[SearchResult]) -> list[SearchResult]:
        """Keep admissible results, each annotated with its SourceMeta."""
        results = list(results)
        if not self.enforced:
            return results

        admitted: list[SearchResult] = []
        for result in results:
            meta = self.evaluate_result(result, strict=True)
            if not meta.acceptable:
                logger.debug("Rejected %s: %s", result.url or result.publisher_name, meta.reason)
                continue
            admitted.append(result.model_copy(update={"source_meta": meta}))
        logger.info("Reliability filter admitted %d of %d results", len(admitted), len(results))
        return admitted

    def _rejection_reason(self, record: ReliabilityRecord) -> str | None:
        if abs(record.bias_mean) > self._max_bias:
            return f"bias {record.bias_mean:g} exceeds limit {self._max_bias:g}"
        if record.reliability_mean < self._min_reliability:
            return f"reliability {record.reliability_mean:g} below minimum {self._min_reliability:g}"
        return None
