from data_loader import load_reliability_index, parse_csv_line, read_reliability_records


def test_quoted_field_with_comma_and_doubled_quote():
    assert parse_csv_line('x,"a,b""c",y') == ["x", 'a,b"c', "y"]


def test_example_dataset_loads_every_row(dataset_path):
    records = read_reliability_records(dataset_path)
    assert len(records) == 6
    tribune = next(r for r in records if r.domain == "tribune.example")
    assert tribune.moniker == 'Tribune, The "Evening" Edition'
    assert tribune.bias_mean == 4.1


def test_domain_keys_are_normalized(dataset_path):
    records = read_reliability_records(dataset_path)
    assert "dailycourier.example" in {r.domain for r in records}


def test_columns_resolved_by_name(tmp_path):
    path = tmp_path / "reordered.csv"
    path.write_text(
        "reliability_label,reliability_mean,bias_label,bias_mean,moniker_name,domain\n"
        "Reliable,40,Middle,1.5,Sample News,  .WWW.Sample.ORG \n",
        encoding="utf-8",
    )
    index = load_reliability_index(path)
    record = index.find_by_domain("www.sample.org")
    assert record is not None
    assert record.moniker == "Sample News"
    assert record.bias_mean == 1.5
    assert record.reliability_mean == 40.0


def test_rows_without_numeric_scores_are_skipped(tmp_path):
    path = tmp_path / "partial.csv"
    path.write_text(
        "domain,moniker_name,bias_mean,bias_label,reliability_mean,reliability_label\n"
        "good.example,Good,0,Middle,45,Reliable\n"
        "bad.example,Bad,n/a,Middle,45,Reliable\n"
        "nan.example,NaN,nan,Middle,45,Reliable\n"
        ",Nameless,0,Middle,45,Reliable\n",
        encoding="utf-8",
    )
    index = load_reliability_index(path)
    assert index.size() == 1
    assert index.find_by_domain("bad.example") is None


def test_missing_file_yields_empty_index(tmp_path):
    index = load_reliability_index(tmp_path / "absent.csv")
    assert index.size() == 0


def test_missing_columns_yields_empty_index(tmp_path):
    path = tmp_path / "broken.csv"
    path.write_text("domain,name\nexample.com,Example\n", encoding="utf-8")
    assert load_reliability_index(path).size() == 0


def test_empty_file_and_unset_path_yield_empty_index(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    assert load_reliability_index(path).size() == 0
    assert load_reliability_index(None).size() == 0
