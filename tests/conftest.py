import sys
from pathlib import Path
import os

import pytest


# Ensure project src is on path for imports in tests
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
for p in (ROOT, SRC):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

# Keep tests offline and deterministic: no rate limiting, placeholder credentials
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "0")
os.environ.setdefault("SEARCH_API_KEY", "test-search-key")
os.environ.setdefault("LLM_API_KEY", "test-llm-key")
os.environ.setdefault("RELIABILITY_DATASET_PATH", str(ROOT / "data" / "source_reliability.example.csv"))

EXAMPLE_DATASET = ROOT / "data" / "source_reliability.example.csv"


@pytest.fixture
def dataset_path():
    return EXAMPLE_DATASET


@pytest.fixture
def index(dataset_path):
    from data_loader import load_reliability_index

    return load_reliability_index(dataset_path)
