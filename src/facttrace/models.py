from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

TEXT_FIELDS = ("text", "content", "summary", "synopsis", "description")


class ReliabilityRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain: str
    moniker: str
    bias_mean: float
    bias_label: str = ""
    reliability_mean: float
    reliability_label: str = ""


class SourceMeta(BaseModel):
    acceptable: bool
    bias_mean: float | None = None
    bias_label: str | None = None
    reliability_mean: float | None = None
    reliability_label: str | None = None
    domain: str | None = None
    moniker: str | None = None
    reason: str | None = None

    @classmethod
    def unenforced(cls) -> "SourceMeta":
        return cls(acceptable=True)

    def as_public(self) -> dict[str, Any]:
        return {
            "acceptable": self.acceptable,
            "biasMean": self.bias_mean,
            "biasLabel": self.bias_label,
            "reliabilityMean": self.reliability_mean,
            "reliabilityLabel": self.reliability_label,
            "domain": self.domain,
            "moniker": self.moniker,
            "reason": self.reason,
        }


class SearchResult(BaseModel):
    """One search hit. Every field is optional; providers return partial data."""

    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    title: str | None = None
    text: str | None = None
    content: str | None = None
    summary: str | None = None
    synopsis: str | None = None
    description: str | None = None
    highlights: list[str] = Field(default_factory=list)
    publisher: str | None = None
    source: str | None = None
    source_meta: SourceMeta | None = None

    @property
    def publisher_name(self) -> str | None:
        return self.publisher or self.source

    def text_parts(self) -> list[str]:
        parts = [getattr(self, name) for name in TEXT_FIELDS]
        if self.highlights:
            parts.append(" ".join(h for h in self.highlights if h))
        return [part for part in parts if part and part.strip()]

    def best_summary(self) -> str:
        for value in (self.summary, self.text, self.content, self.synopsis, self.description):
            if value and value.strip():
                return value
        if self.highlights:
            return " ".join(h for h in self.highlights if h)
        return self.title or ""


class Article(BaseModel):
    title: str
    url: str | None = None
    article_text: str
    snippet: str
    description: str | None = None
    publisher: str | None = None
    source_meta: SourceMeta | None = None

    def as_public(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "publisher": self.publisher,
            "snippet": self.snippet,
            "reliability": self.source_meta.as_public() if self.source_meta else None,
        }


class AnalysisResult(BaseModel):
    factual_percentage: int = Field(..., ge=0, le=100)
    misinformation_percentage: int = Field(..., ge=0, le=100)
    summary: str
    verdict: str | None = None

    def as_public(self) -> dict[str, Any]:
        return {
            "factualPercentage": self.factual_percentage,
            "misinformationPercentage": self.misinformation_percentage,
            "summary": self.summary,
            "verdict": self.verdict,
        }


class ChatMessage(BaseModel):
    role: str
    content: str


class ModelRequest(BaseModel):
    model: str
    temperature: float
    max_tokens: int
    messages: list[ChatMessage]


MAX_QUERY_LENGTH = 5000


class AnalyzeRequest(BaseModel):
    query: str = Field(..., max_length=MAX_QUERY_LENGTH)
    preferredDomain: str | None = None


class AnalyzeUrlRequest(BaseModel):
    url: HttpUrl
    claim: str | None = Field(default=None, max_length=MAX_QUERY_LENGTH)
