import pytest

from facttrace.models import ReliabilityRecord, SearchResult
from facttrace.reputation import (
    NOT_IN_DATASET,
    ReliabilityFilter,
    ReliabilityIndex,
    hostname_of,
)


def _record(domain, moniker="Outlet", bias=0.0, reliability=40.0):
    return ReliabilityRecord(
        domain=domain,
        moniker=moniker,
        bias_mean=bias,
        bias_label="Middle",
        reliability_mean=reliability,
        reliability_label="Reliable",
    )


@pytest.fixture
def small_index():
    return ReliabilityIndex.from_records(
        [
            _record("example.com", "Example News"),
            _record("leftish.example", "Leftish", bias=-12.0),
            _record("thin.example", "Thin Gazette", reliability=20.0),
            _record("edge.example", "Edge Times", bias=-10.0, reliability=35.0),
        ]
    )


def test_find_by_domain_widens_to_parent(small_index):
    assert small_index.find_by_domain("news.example.com").domain == "example.com"
    assert small_index.find_by_domain("a.b.news.example.com").domain == "example.com"
    assert small_index.find_by_domain("example.org") is None


def test_find_by_domain_normalizes_input(small_index):
    assert small_index.find_by_domain("  .Example.COM ") is not None
    assert small_index.find_by_domain("") is None
    assert small_index.find_by_domain(None) is None


def test_find_by_name_is_exact_after_normalization(small_index):
    assert small_index.find_by_name("example-news").domain == "example.com"
    assert small_index.find_by_name("EXAMPLE NEWS!").domain == "example.com"
    assert small_index.find_by_name("Example") is None


def test_name_collision_last_write_wins():
    index = ReliabilityIndex.from_records(
        [_record("first.example", "Same Name"), _record("second.example", "Same Name")]
    )
    assert index.find_by_name("same name").domain == "second.example"
    assert index.size() == 2


def test_hostname_of_handles_missing_scheme():
    assert hostname_of("https://News.Example.com/a?b=1") == "news.example.com"
    assert hostname_of("example.com/path") == "example.com"
    assert hostname_of(None) is None


@pytest.mark.parametrize("strict", [True, False])
def test_empty_index_accepts_everything(strict):
    source_filter = ReliabilityFilter(ReliabilityIndex.empty())
    meta = source_filter.evaluate(url="https://anything.example/x", publisher="Who", strict=strict)
    assert meta.acceptable is True
    assert meta.domain is None
    assert meta.bias_mean is None
    assert meta.reason is None


def test_unmatched_source_depends_on_strictness(small_index):
    source_filter = ReliabilityFilter(small_index)
    strict = source_filter.evaluate(url="https://unknown.example.net/story", strict=True)
    relaxed = source_filter.evaluate(url="https://unknown.example.net/story", strict=False)
    assert strict.acceptable is False
    assert relaxed.acceptable is True
    assert strict.reason == relaxed.reason == NOT_IN_DATASET
    assert strict.domain == "example.net"


def test_thresholds_are_inclusive(small_index):
    source_filter = ReliabilityFilter(small_index)
    meta = source_filter.evaluate(url="https://edge.example/", strict=True)
    assert meta.acceptable is True
    assert meta.reason is None


def test_biased_and_unreliable_sources_rejected_in_strict_mode(small_index):
    source_filter = ReliabilityFilter(small_index)
    biased = source_filter.evaluate(url="https://leftish.example/a")
    thin = source_filter.evaluate(url="https://thin.example/a")
    assert biased.acceptable is False and "bias" in biased.reason
    assert thin.acceptable is False and "reliability" in thin.reason


def test_non_strict_reports_metadata_but_accepts(small_index):
    source_filter = ReliabilityFilter(small_index)
    meta = source_filter.evaluate(url="https://leftish.example/a", strict=False)
    assert meta.acceptable is True
    assert meta.bias_mean == -12.0
    assert meta.moniker == "Leftish"


def test_publisher_name_used_when_domain_unmatched(small_index):
    source_filter = ReliabilityFilter(small_index)
    meta = source_filter.evaluate(url="https://cdn.syndicator.net/x", publisher="Example News")
    assert meta.acceptable is True
    assert meta.domain == "example.com"


def test_domain_match_takes_priority_over_publisher(small_index):
    source_filter = ReliabilityFilter(small_index)
    meta = source_filter.evaluate(url="https://thin.example/a", publisher="Example News")
    assert meta.domain == "thin.example"
    assert meta.acceptable is False


def test_configurable_thresholds(small_index):
    lenient = ReliabilityFilter(small_index, max_bias=15, min_reliability=10)
    assert lenient.evaluate(url="https://leftish.example").acceptable is True
    assert lenient.evaluate(url="https://thin.example").acceptable is True


def test_filter_results_keeps_admissible_and_annotates(small_index):
    source_filter = ReliabilityFilter(small_index)
    results = [
        SearchResult(url="https://news.example.com/1", title="kept"),
        SearchResult(url="https://leftish.example/2", title="biased"),
        SearchResult(url="https://nowhere.example/3", title="unknown"),
        SearchResult(url=None, source="Edge Times", title="by name"),
    ]
    admitted = source_filter.filter_results(results)
    assert [r.title for r in admitted] == ["kept", "by name"]
    assert all(r.source_meta is not None and r.source_meta.acceptable for r in admitted)


def test_filter_results_passes_through_without_dataset():
    source_filter = ReliabilityFilter(ReliabilityIndex.empty())
    results = [SearchResult(url="https://a.example"), SearchResult(url="https://b.example")]
    admitted = source_filter.filter_results(results)
    assert admitted == results
    assert all(r.source_meta is None for r in admitted)
