import json
import math

import pytest

from facttrace.analyzer import (
    ClaimAnalyzer,
    extract_json_object,
    normalize_percentages,
    parse_model_output,
)
from facttrace.errors import ModelParseError
from facttrace.models import Article, SourceMeta


@pytest.mark.parametrize(
    "factual, misinformation, expected",
    [
        (0, 0, (50, 50)),
        (-5, -5, (50, 50)),
        (math.nan, math.nan, (50, 50)),
        (None, "abc", (50, 50)),
        (30, 70, (30, 70)),
        (150, 150, (50, 50)),
        (-10, 110, (0, 100)),
        (1, 2, (33, 67)),
        (0, 40, (0, 100)),
        ("80%", "20", (80, 20)),
        (math.inf, 25, (0, 100)),
    ],
)
def test_normalize_percentages(factual, misinformation, expected):
    assert normalize_percentages(factual, misinformation) == expected


@pytest.mark.parametrize("factual, misinformation", [(1, 199), (33.3, 33.3), (12.5, 87.5), (7, 3), (99, 0.4)])
def test_normalized_split_always_sums_to_100(factual, misinformation):
    fac, mis = normalize_percentages(factual, misinformation)
    assert fac + mis == 100
    assert 0 <= fac <= 100 and 0 <= mis <= 100


def test_parse_model_output_direct_json():
    assert parse_model_output('{"factualPercentage": 70}') == {"factualPercentage": 70}


def test_parse_model_output_extracts_embedded_object():
    raw = 'Sure! Here is the result:\n```json\n{"summary": "Uses {braces} inside", "verdict": "factual"}\n``` Thanks.'
    assert parse_model_output(raw) == {"summary": "Uses {braces} inside", "verdict": "factual"}


def test_parse_model_output_failure_is_hard_error():
    with pytest.raises(ModelParseError):
        parse_model_output("I cannot answer that.")
    with pytest.raises(ModelParseError):
        parse_model_output("{not json at all}")
    with pytest.raises(ModelParseError):
        parse_model_output("[1, 2, 3]")


def test_extract_json_object_handles_nesting():
    assert extract_json_object('x {"a": {"b": 1}} y {"c": 2}') == '{"a": {"b": 1}}'
    assert extract_json_object("no braces") is None


class RecordingModel:
    def __init__(self, reply):
        self.reply = reply
        self.requests = []

    async def complete(self, request):
        self.requests.append(request)
        return self.reply


def _article(text="Evidence text. " * 10, meta=None):
    return Article(
        title="Bridge reopens",
        url="https://news.example/bridge",
        article_text=text,
        snippet=text[:280],
        source_meta=meta,
    )


def test_build_request_truncates_article_and_includes_context():
    analyzer = ClaimAnalyzer(RecordingModel(""), model_name="test-model", article_char_budget=50)
    meta = SourceMeta(
        acceptable=True,
        bias_mean=-1.5,
        bias_label="Middle",
        reliability_mean=44.0,
        reliability_label="Reliable",
        domain="news.example",
        moniker="Example News",
    )
    request = analyzer.build_request("The bridge reopened.", "y" * 500, "Bridge", "https://news.example/b", meta)
    assert request.model == "test-model"
    assert [m.role for m in request.messages] == ["system", "user"]
    user = request.messages[1].content
    assert "The bridge reopened." in user
    assert "y" * 50 in user and "y" * 51 not in user
    assert "Example News" in user and "reliability 44" in user


def test_build_request_without_reliability():
    analyzer = ClaimAnalyzer(RecordingModel(""), model_name="m")
    request = analyzer.build_request("Claim.", "text", None, None, None)
    assert "No reliability rating" in request.messages[1].content


@pytest.mark.asyncio
async def test_analyze_normalizes_model_numbers():
    reply = "Result: " + json.dumps(
        {"factualPercentage": 120, "misinformationPercentage": 40, "summary": " Mostly supported. ", "verdict": "factual"}
    )
    model = RecordingModel(reply)
    analyzer = ClaimAnalyzer(model, model_name="m", temperature=0.1, max_tokens=300)
    result = await analyzer.analyze("The bridge reopened.", _article())
    assert (result.factual_percentage, result.misinformation_percentage) == (71, 29)
    assert result.summary == "Mostly supported."
    assert result.verdict == "factual"
    assert model.requests[0].temperature == 0.1
    assert model.requests[0].max_tokens == 300


@pytest.mark.asyncio
async def test_analyze_without_verdict():
    model = RecordingModel('{"factualPercentage": 0, "misinformationPercentage": 0, "summary": "Unclear."}')
    result = await ClaimAnalyzer(model, model_name="m").analyze("Claim.", _article())
    assert result.as_public() == {
        "factualPercentage": 50,
        "misinformationPercentage": 50,
        "summary": "Unclear.",
        "verdict": None,
    }


@pytest.mark.asyncio
async def test_analyze_propagates_parse_failure():
    with pytest.raises(ModelParseError):
        await ClaimAnalyzer(RecordingModel("no json"), model_name="m").analyze("Claim.", _article())
