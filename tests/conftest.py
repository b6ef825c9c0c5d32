"""Shared pytest fixtures for docsite search tests."""

import pytest
from starlette.requests import Request

from src.ingestion.content_loader import ArticleRecord
from src.storage.sqlite_db import ArticleDB


class FakeClock:
    """Manually advanced clock returning epoch milliseconds."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float):
        self.now += int(seconds * 1000)


def make_request(headers: dict[str, str] | None = None) -> Request:
    """A bare Starlette request carrying only the given headers."""
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "POST", "path": "/", "headers": raw})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def request_factory():
    return make_request


@pytest.fixture
def sample_articles() -> list[ArticleRecord]:
    """A small set of fake articles for testing."""
    return [
        ArticleRecord(
            slug="getting-started",
            title="Getting Started",
            content="Install the CLI and run your first build.",
            folder="root",
            tags=["intro"],
        ),
        ArticleRecord(
            slug="guides/vector-search",
            title="Vector Search",
            content="Articles are embedded and searched by cosine distance.",
            folder="guides",
            tags=["search", "embeddings"],
        ),
        ArticleRecord(
            slug="guides/theming",
            title="Theming",
            content="Switch between light and dark themes.",
            folder="guides",
        ),
    ]


@pytest.fixture
def tmp_db(tmp_path) -> ArticleDB:
    """A temporary SQLite database for testing."""
    db = ArticleDB(tmp_path / "test.db")
    db.create_schema()
    return db
