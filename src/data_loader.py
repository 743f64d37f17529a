"""
Reliability dataset loader for FactTrace.

The dataset is a delimited text file whose header names the columns
domain, moniker_name, bias_mean, bias_label, reliability_mean and
reliability_label in any order. Fields may be quoted; a doubled quote inside a
quoted field is a literal quote.
"""

from __future__ import annotations

import csv
import logging
import math
import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, List

from facttrace.errors import DatasetLoadError
from facttrace.models import ReliabilityRecord
from facttrace.reputation import ReliabilityIndex

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = (
    "domain",
    "moniker_name",
    "bias_mean",
    "bias_label",
    "reliability_mean",
    "reliability_label",
)


def parse_csv_line(line: str) -> List[str]:
    """Split a single delimited line, honouring quoted fields."""
    rows = list(csv.reader([line], delimiter=",", quotechar='"', doublequote=True))
    return rows[0] if rows else []


def _iter_rows(lines: Iterable[str]) -> Iterator[List[str]]:
    for row in csv.reader(lines, delimiter=",", quotechar='"', doublequote=True):
        if not row or all(not field.strip() for field in row):
            continue
        yield [field.strip() for field in row]


def _resolve_columns(header: List[str]) -> Dict[str, int]:
    positions = {name.strip().lower(): idx for idx, name in enumerate(header)}
    missing = [name for name in REQUIRED_COLUMNS if name not in positions]
    if missing:
        raise DatasetLoadError(f"Dataset header is missing columns: {', '.join(missing)}")
    return {name: positions[name] for name in REQUIRED_COLUMNS}


def _to_record(row: List[str], columns: Dict[str, int]) -> ReliabilityRecord | None:
    def field(name: str) -> str:
        idx = columns[name]
        return row[idx] if idx < len(row) else ""

    domain = ReliabilityIndex.normalize_domain(field("domain"))
    if not domain:
        return None
    try:
        bias = float(field("bias_mean"))
        reliability = float(field("reliability_mean"))
    except ValueError:
        return None
    if not (math.isfinite(bias) and math.isfinite(reliability)):
        return None
    return ReliabilityRecord(
        domain=domain,
        moniker=field("moniker_name"),
        bias_mean=bias,
        bias_label=field("bias_label"),
        reliability_mean=reliability,
        reliability_label=field("reliability_label"),
    )


def read_reliability_records(path: str | os.PathLike[str]) -> List[ReliabilityRecord]:
    """
    Parse every usable record from the dataset file.
    Raises DatasetLoadError when the file cannot be read or has no usable header.
    """
    data_path = Path(path)
    try:
        with data_path.open("r", encoding="utf-8-sig", newline="") as f:
            rows = _iter_rows(f)
            header = next(rows, None)
            if header is None:
                raise DatasetLoadError(f"Dataset {data_path} is empty")
            columns = _resolve_columns(header)
            records: List[ReliabilityRecord] = []
            skipped = 0
            for row in rows:
                record = _to_record(row, columns)
                if record is None:
                    skipped += 1
                    continue
                records.append(record)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise DatasetLoadError(f"Failed to read dataset {data_path}: {exc}") from exc

    if skipped:
        logger.warning("Skipped %d dataset rows without a domain or numeric scores", skipped)
    return records


def load_reliability_index(path: str | os.PathLike[str] | None) -> ReliabilityIndex:
    """
    Build the reliability index from the dataset at ``path``.
    Fails soft: any read or parse error yields an empty index, which disables
    enforcement downstream.
    """
    if not path:
        logger.warning("No reliability dataset configured; source enforcement disabled")
        return ReliabilityIndex.empty()
    try:
        records = read_reliability_records(path)
    except DatasetLoadError as exc:
        logger.warning("%s; source enforcement disabled", exc)
        return ReliabilityIndex.empty()

    index = ReliabilityIndex.from_records(records)
    logger.info(
        "Loaded reliability dataset %s (%d records, %d domains, %d names)",
        path,
        len(records),
        index.size(),
        index.name_count(),
    )
    return index
