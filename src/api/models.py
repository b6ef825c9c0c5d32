"""Pydantic models for API request/response schemas."""

from pydantic import BaseModel, ConfigDict, Field


# ── Request models ───────────────────────────────────────────────────


class SearchRequest(BaseModel):
    """Semantic search query, after sanitization."""

    query: str = Field(..., min_length=1, max_length=500)
    limit: int = Field(default=10, ge=1, le=20)


# ── Response models ──────────────────────────────────────────────────


class SearchHit(BaseModel):
    """An article matched by semantic search."""

    id: int
    title: str
    slug: str
    folder: str
    tags: list[str] = Field(default_factory=list)
    distance: float
    content: str
    created_at: str


class SearchResponse(BaseModel):
    """Semantic search result."""

    results: list[SearchHit]
    count: int
    query: str


class ErrorResponse(BaseModel):
    """JSON error body returned by the search endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    message: str | None = None
    retry_after: int | None = Field(default=None, alias="retryAfter")


class Article(BaseModel):
    """Full article as stored in the database."""

    id: int
    title: str
    slug: str
    content: str
    tags: list[str] = Field(default_factory=list)
    folder: str
    created_at: str
    updated_at: str


class HealthResponse(BaseModel):
    """System health status."""

    status: str
    article_count: int
