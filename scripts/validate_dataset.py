#!/usr/bin/env python3
"""
Validate a reliability dataset and preview how sources would be filtered.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from data_loader import read_reliability_records  # noqa: E402
from facttrace.config import get_settings  # noqa: E402
from facttrace.errors import DatasetLoadError  # noqa: E402
from facttrace.reputation import ReliabilityFilter, ReliabilityIndex  # noqa: E402


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Validate a FactTrace reliability dataset.")
    parser.add_argument(
        "--dataset",
        default=settings.reliability_dataset_path,
        help="Path to the dataset file (default: RELIABILITY_DATASET_PATH)",
    )
    parser.add_argument("--check", nargs="*", default=[], help="URLs or hostnames to evaluate")
    args = parser.parse_args()

    try:
        records = read_reliability_records(args.dataset)
    except DatasetLoadError as exc:
        print(f"Invalid dataset: {exc}")
        return 1

    index = ReliabilityIndex.from_records(records)
    source_filter = ReliabilityFilter(
        index,
        max_bias=settings.max_bias_threshold,
        min_reliability=settings.min_reliability_threshold,
    )
    admissible = [r for r in records if source_filter.evaluate(url=r.domain).acceptable]

    print(f"Loaded {len(records)} records from {args.dataset}")
    print(f" - distinct domains: {index.size()}")
    print(f" - distinct publisher names: {index.name_count()}")
    print(
        f" - admissible at |bias| <= {settings.max_bias_threshold:g}, "
        f"reliability >= {settings.min_reliability_threshold:g}: {len(admissible)}"
    )

    for target in args.check:
        meta = source_filter.evaluate(url=target, strict=True)
        verdict = "ACCEPT" if meta.acceptable else "REJECT"
        print(f"\n{target}: {verdict}")
        print(f"  matched: {meta.domain or '-'} ({meta.moniker or '-'})")
        if meta.reason:
            print(f"  reason: {meta.reason}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
