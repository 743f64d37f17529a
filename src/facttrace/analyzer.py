from __future__ import annotations

import json
import logging
import math
from typing import Any, Protocol

from .errors import ModelParseError
from .models import AnalysisResult, Article, ChatMessage, ModelRequest, SourceMeta

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a careful fact-checking assistant. You receive a claim, one news "
    "article retrieved for it and reliability information about the article's "
    "source. Judge how well the article supports the claim. Respond with JSON "
    "only, using the keys factualPercentage (0-100), misinformationPercentage "
    "(0-100, the two summing to 100), summary (two or three sentences citing the "
    "article) and verdict (one of \"factual\", \"misleading\", \"false\", "
    "\"unverified\")."
)


class ChatModel(Protocol):
    async def complete(self, request: ModelRequest) -> str: ...


def _coerce_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_percentages(factual: Any, misinformation: Any) -> tuple[int, int]:
    """
    Clamp both shares to [0, 100] and scale them to a split summing to 100.
    Two zero shares mean no signal either way and become 50/50.
    """
    fac = min(100.0, max(0.0, _coerce_number(factual)))
    mis = min(100.0, max(0.0, _coerce_number(misinformation)))
    total = fac + mis
    if total <= 0:
        return 50, 50
    if total != 100:
        fac = fac * 100 / total
    factual_pct = min(100, max(0, _round_half_up(fac)))
    return factual_pct, 100 - factual_pct


def extract_json_object(text: str) -> str | None:
    """First balanced ``{...}`` substring of ``text``, ignoring braces inside strings."""
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for idx, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"' and depth > 0:
            in_string = True
        elif char == "{":
            if depth == 0:
                start = idx
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]
    return None


def parse_model_output(raw: str) -> dict[str, Any]:
    text = (raw or "").strip()
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        candidate = extract_json_object(text)
        if candidate is None:
            raise ModelParseError("Model response was not valid JSON.")
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as exc:
            raise ModelParseError("Model response was not valid JSON.") from exc
    if not isinstance(parsed, dict):
        raise ModelParseError("Model response JSON was not an object.")
    return parsed


class ClaimAnalyzer:
    def __init__(
        self,
        model: ChatModel,
        *,
        model_name: str,
        temperature: float = 0.2,
        max_tokens: int = 400,
        article_char_budget: int = 6000,
    ) -> None:
        self._model = model
        self._model_name = model_name
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._article_char_budget = article_char_budget

    def build_request(
        self,
        claim: str,
        article_text: str,
        article_title: str | None,
        article_url: str | None,
        source_meta: SourceMeta | None,
    ) -> ModelRequest:
        evidence = (article_text or "")[: self._article_char_budget]
        if source_meta and source_meta.reliability_mean is not None:
            reliability = (
                f"{source_meta.moniker or source_meta.domain}: "
                f"bias {source_meta.bias_mean:g} ({source_meta.bias_label or 'n/a'}), "
                f"reliability {source_meta.reliability_mean:g} ({source_meta.reliability_label or 'n/a'})"
            )
        else:
            reliability = "No reliability rating available for this source."
        user_content = (
            f"Claim: {claim}\n\n"
            f"Article title: {article_title or 'Unknown'}\n"
            f"Article URL: {article_url or 'Unknown'}\n"
            f"Source reliability: {reliability}\n\n"
            f"Article text:\n{evidence}"
        )
        return ModelRequest(
            model=self._model_name,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            messages=[
                ChatMessage(role="system", content=SYSTEM_PROMPT),
                ChatMessage(role="user", content=user_content),
            ],
        )

    async def analyze(self, claim: str, article: Article) -> AnalysisResult:
        request = self.build_request(
            claim,
            article.article_text,
            article.title,
            article.url,
            article.source_meta,
        )
        raw = await self._model.complete(request)
        parsed = parse_model_output(raw)
        factual, misinformation = normalize_percentages(
            parsed.get("factualPercentage"),
            parsed.get("misinformationPercentage"),
        )
        summary = parsed.get("summary")
        verdict = parsed.get("verdict")
        logger.info("Model verdict %s (%d%% factual)", verdict, factual)
        return AnalysisResult(
            factual_percentage=factual,
            misinformation_percentage=misinformation,
            summary=summary.strip() if isinstance(summary, str) else "",
            verdict=verdict.strip() if isinstance(verdict, str) and verdict.strip() else None,
        )
