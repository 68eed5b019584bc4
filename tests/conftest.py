"""Shared test fixtures and configuration."""

import os
from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

DATA_DIR = SRC_DIR / "zd_search" / "data"

# Complete test environment that overrides every config value read from the environment
TEST_ENV = {
    "ZD_SEARCH_DATA_DIR": str(DATA_DIR),
    "ZD_SEARCH_LOG_LEVEL": "warning",
    "ZD_SEARCH_LOG_JSON": "false",
}

from zd_search.search.index import SearchIndex, SearchIndexBuilder  # noqa: E402
from zd_search.search.tokenizer import Tokenizer  # noqa: E402


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop any ZD_SEARCH_* variables from the host and set test defaults."""
    for key in list(os.environ):
        if key.upper().startswith("ZD_SEARCH_"):
            monkeypatch.delenv(key, raising=False)
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def tokenizer() -> Tokenizer:
    return Tokenizer()


@pytest.fixture
def related_records() -> list[dict]:
    """Two organizations with their users and tickets, joined by id fields."""
    return [
        {"_type": "organization", "url": "http://foo.bar/1", "_id": 1, "name": "Organisation no1"},
        {"_type": "organization", "url": "http://foo.bar/2", "_id": 2, "name": "Organisation no2"},
        {"_type": "user", "name": "First Person", "_id": 1, "organization_id": 1},
        {"_type": "user", "name": "Second Person", "_id": 2, "organization_id": 1},
        {"_type": "user", "name": "Third Person", "_id": 3, "organization_id": 2},
        {"_type": "user", "name": "Org no1Agent", "_id": 4, "organization_id": 1},
        {"_type": "user", "name": "Org no2Agent", "_id": 5, "organization_id": 2},
        {
            "_type": "ticket",
            "subject": "HALP ME",
            "_id": "three",
            "organization_id": 1,
            "submitter_id": 1,
            "assignee_id": 4,
        },
        {
            "_type": "ticket",
            "subject": "Plz halp",
            "_id": "one",
            "organization_id": 1,
            "submitter_id": 1,
            "assignee_id": 4,
        },
        {
            "_type": "ticket",
            "subject": "it is broken",
            "_id": "two",
            "organization_id": 2,
            "submitter_id": 3,
            "assignee_id": 5,
        },
    ]


@pytest.fixture
def related_index(tokenizer, related_records) -> SearchIndex:
    return SearchIndexBuilder(tokenizer).index_all(related_records).build()
