"""Tests for the FastAPI API layer.

Covers health, search (including rate limiting), and article endpoints.
All tests use mocks: no model loading, no vector store, no real database.
Uses httpx + FastAPI TestClient pattern.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.app import build_search_limiter, create_app
from src.api.models import ErrorResponse, HealthResponse, SearchResponse
from src.api.rate_limit import RateLimitConfig, RateLimiter
from src.api.routes_search import sanitize_limit
from src.config import Config
from src.retrieval.searcher import ArticleSearcher
from src.validation import ConfigError
from src.storage.sqlite_db import ArticleDB

SAMPLE_HIT = {
    "id": 1,
    "title": "Test Article",
    "slug": "test",
    "folder": "docs",
    "tags": ["test"],
    "distance": 0.5,
    "content": "Test content",
    "created_at": "2024-01-01T00:00:00Z",
}

SAMPLE_ARTICLE = {
    "id": 1,
    "title": "Vector Search",
    "slug": "guides/vector-search",
    "content": "Articles are embedded.",
    "tags": ["search"],
    "folder": "guides",
    "created_at": "2024-01-01T00:00:00Z",
    "updated_at": "2024-01-02T00:00:00Z",
}


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def mock_db():
    """A mock ArticleDB for dependency injection."""
    db = MagicMock(spec=ArticleDB)
    db.get_article_count.return_value = 42
    return db


@pytest.fixture
def mock_searcher():
    """A mock searcher that returns one canned hit."""
    searcher = MagicMock(spec=ArticleSearcher)
    searcher.search.return_value = [SAMPLE_HIT]
    return searcher


@pytest.fixture
def search_limiter(clock):
    return RateLimiter(RateLimitConfig(max_requests=20, window_seconds=60), clock=clock)


@pytest.fixture
def client(mock_db, mock_searcher, search_limiter):
    """TestClient with mocked dependencies and a fake-clock limiter."""
    app = create_app(search_limiter=search_limiter)

    # Override dependency injection
    from src.api import deps

    deps._db = mock_db
    deps._searcher = mock_searcher

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    # Reset singletons
    deps._db = None
    deps._searcher = None


def _search(client, body=None, headers=None):
    return client.post("/api/search", json=body, headers=headers)


# ── Health endpoint ──────────────────────────────────────────────────


class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        health = HealthResponse(**resp.json())
        assert health.status == "ok"
        assert health.article_count == 42


# ── Search endpoint ──────────────────────────────────────────────────


class TestSearchEndpoint:
    def test_search_returns_results(self, client, mock_searcher):
        resp = _search(client, {"query": "test query", "limit": 5})
        assert resp.status_code == 200
        data = resp.json()
        assert data["results"] == [SAMPLE_HIT]
        assert data["count"] == 1
        assert data["query"] == "test query"
        mock_searcher.search.assert_called_once_with("test query", 5)

    def test_search_response_model(self, client):
        resp = _search(client, {"query": "test"})
        parsed = SearchResponse(**resp.json())
        assert parsed.results[0].slug == "test"

    def test_default_limit(self, client, mock_searcher):
        _search(client, {"query": "test"})
        mock_searcher.search.assert_called_once_with("test", 10)

    def test_limit_is_clamped(self, client, mock_searcher):
        _search(client, {"query": "test", "limit": 500})
        assert mock_searcher.search.call_args.args[1] == 20

    def test_missing_query(self, client, mock_searcher):
        resp = _search(client, {"limit": 5})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Query parameter is required"
        mock_searcher.search.assert_not_called()

    def test_non_string_query(self, client):
        resp = _search(client, {"query": 123, "limit": 5})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Query parameter is required"

    def test_invalid_json_body(self, client):
        resp = client.post(
            "/api/search", content=b"not json", headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Query parameter is required"

    def test_query_too_long(self, client, mock_searcher):
        resp = _search(client, {"query": "x" * 501})
        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "Query too long"
        assert data["message"] == "Query must be less than 500 characters"
        mock_searcher.search.assert_not_called()

    def test_query_at_max_length_accepted(self, client):
        assert _search(client, {"query": "x" * 500}).status_code == 200

    def test_search_error_returns_500(self, client, mock_searcher):
        mock_searcher.search.side_effect = RuntimeError("Database connection failed")
        resp = _search(client, {"query": "test"})
        assert resp.status_code == 500
        data = resp.json()
        assert data["error"] == "Search failed"
        assert data["message"] == "Database connection failed"
        assert "X-RateLimit-Limit" in resp.headers

    def test_get_not_allowed(self, client):
        resp = client.get("/api/search")
        assert resp.status_code == 405
        assert resp.json()["error"] == "Use POST method for search"


class TestSearchRateLimit:
    def test_headers_on_success(self, client, clock):
        resp = _search(client, {"query": "test"}, headers={"x-forwarded-for": "1.2.3.4"})
        assert resp.headers["X-RateLimit-Limit"] == "20"
        assert resp.headers["X-RateLimit-Remaining"] == "19"
        assert resp.headers["X-RateLimit-Reset"] == str((clock.now + 60_000) // 1000)

    def test_headers_on_validation_error(self, client):
        resp = _search(client, {})
        assert resp.status_code == 400
        assert resp.headers["X-RateLimit-Remaining"] == "19"

    def test_invalid_requests_count_against_quota(self, client):
        headers = {"x-forwarded-for": "1.2.3.4"}
        _search(client, {}, headers=headers)
        resp = _search(client, {"query": "test"}, headers=headers)
        assert resp.headers["X-RateLimit-Remaining"] == "18"

    def test_21st_request_rejected(self, client, mock_searcher, clock):
        headers = {"cf-connecting-ip": "10.20.30.40"}
        for _ in range(20):
            assert _search(client, {"query": "test"}, headers=headers).status_code == 200

        clock.advance(15)
        resp = _search(client, {"query": "test"}, headers=headers)
        assert resp.status_code == 429
        assert resp.headers["Retry-After"] == "45"
        assert resp.headers["X-RateLimit-Remaining"] == "0"
        data = ErrorResponse(**resp.json())
        assert data.error == "Too many requests"
        assert data.message == "Rate limit exceeded. Please try again later."
        assert resp.json()["retryAfter"] == 45
        assert mock_searcher.search.call_count == 20

    def test_rejected_before_body_is_read(self, client, mock_searcher):
        headers = {"x-real-ip": "1.2.3.4"}
        for _ in range(20):
            _search(client, {"query": "test"}, headers=headers)
        resp = client.post("/api/search", content=b"not json", headers=headers)
        assert resp.status_code == 429

    def test_other_client_unaffected(self, client):
        for _ in range(21):
            _search(client, {"query": "test"}, headers={"x-forwarded-for": "1.1.1.1"})
        resp = _search(client, {"query": "test"}, headers={"x-forwarded-for": "2.2.2.2"})
        assert resp.status_code == 200

    def test_quota_restored_after_window(self, client, clock):
        headers = {"x-forwarded-for": "1.2.3.4"}
        for _ in range(21):
            _search(client, {"query": "test"}, headers=headers)
        clock.advance(61)
        resp = _search(client, {"query": "test"}, headers=headers)
        assert resp.status_code == 200
        assert resp.headers["X-RateLimit-Remaining"] == "19"

    def test_lifespan_runs_sweep_thread(self, mock_db, mock_searcher, search_limiter):
        from src.api import deps

        deps._db = mock_db
        deps._searcher = mock_searcher
        try:
            with TestClient(create_app(search_limiter=search_limiter)):
                assert search_limiter.running
            assert not search_limiter.running
        finally:
            deps._db = None
            deps._searcher = None


class TestStartupValidation:
    def test_invalid_provider_fails_before_building(self, tmp_path):
        from src.api import deps

        config = Config(
            turso_db_url="",
            turso_auth_token="",
            embedding_provider="foo",
            data_dir=tmp_path,
            sqlite_db_path=tmp_path / "local.db",
            chroma_db_path=tmp_path / "chroma",
        )
        with pytest.raises(ConfigError, match="EMBEDDING_PROVIDER"):
            deps.init_components(config)
        assert not deps.is_initialized()
        assert not config.sqlite_db_path.exists()

    def test_app_startup_fails_on_invalid_provider(self, monkeypatch, search_limiter):
        monkeypatch.setenv("EMBEDDING_PROVIDER", "foo")
        monkeypatch.delenv("TURSO_DB_URL", raising=False)
        monkeypatch.delenv("TURSO_AUTH_TOKEN", raising=False)
        with pytest.raises(ConfigError):
            with TestClient(create_app(search_limiter=search_limiter)):
                pass
        assert not search_limiter.running


class TestSanitizeLimit:
    @pytest.mark.parametrize("raw,expected", [
        (5, 5), ("7", 7), (None, 10), ("abc", 10), (0, 10),
        (-3, 1), (100, 20), (3.9, 3), (float("nan"), 10),
        (float("inf"), 20), (float("-inf"), 1), ("Infinity", 20), ("2.5", 2),
        (10**400, 20), (-(10**400), 1),
    ])
    def test_sanitize(self, raw, expected):
        assert sanitize_limit(raw) == expected


class TestBuildSearchLimiter:
    def test_uses_config(self):
        config = Config(
            search_rate_limit_max_requests=5,
            search_rate_limit_window_seconds=30,
            rate_limit_client_headers=("x-real-ip",),
        )
        limiter = build_search_limiter(config)
        assert limiter.config == RateLimitConfig(max_requests=5, window_seconds=30)
        assert limiter.client_id_headers == ("x-real-ip",)


# ── Articles endpoints ───────────────────────────────────────────────


class TestArticlesEndpoints:
    def test_list_articles(self, client, mock_db):
        mock_db.get_all_articles.return_value = [SAMPLE_ARTICLE]
        resp = client.get("/api/articles")
        assert resp.status_code == 200
        assert resp.json() == [SAMPLE_ARTICLE]

    def test_get_article_with_folder_slug(self, client, mock_db):
        mock_db.get_article_by_slug.return_value = SAMPLE_ARTICLE
        resp = client.get("/api/articles/guides/vector-search")
        assert resp.status_code == 200
        assert resp.json()["title"] == "Vector Search"
        mock_db.get_article_by_slug.assert_called_once_with("guides/vector-search")

    def test_get_article_not_found(self, client, mock_db):
        mock_db.get_article_by_slug.return_value = None
        resp = client.get("/api/articles/missing")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Article not found"

    def test_blank_slug(self, client, mock_db):
        resp = client.get("/api/articles/")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Slug is required"
        mock_db.get_article_by_slug.assert_not_called()

    def test_articles_not_rate_limited(self, client, mock_db):
        mock_db.get_all_articles.return_value = []
        resp = client.get("/api/articles")
        assert "X-RateLimit-Limit" not in resp.headers
