"""Search endpoint — rate-limited semantic search over articles."""

import logging
import math

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from src.api.deps import get_search_limiter, get_searcher
from src.api.models import ErrorResponse, SearchHit, SearchRequest, SearchResponse
from src.api.rate_limit import RateLimiter, create_rate_limit_headers
from src.retrieval.searcher import ArticleSearcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])

MAX_QUERY_LENGTH = 500
DEFAULT_LIMIT = 10
MAX_LIMIT = 20


def sanitize_limit(raw) -> int:
    """Coerce a client-supplied result limit into ``[1, MAX_LIMIT]``.

    Anything non-numeric, NaN or zero falls back to the default rather than
    being rejected. Infinities clamp like any other out-of-range number.
    """
    try:
        value = float(raw)
    except (TypeError, ValueError):
        value = 0.0
    except OverflowError:
        value = math.inf if raw > 0 else -math.inf
    if math.isnan(value) or not value:
        value = DEFAULT_LIMIT
    return int(min(max(1, value), MAX_LIMIT))


def _error(status_code: int, headers: dict[str, str], **fields) -> JSONResponse:
    body = ErrorResponse(**fields).model_dump(by_alias=True, exclude_none=True)
    return JSONResponse(body, status_code=status_code, headers=headers)


@router.post(
    "",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse},
               500: {"model": ErrorResponse}},
)
async def search(
    request: Request,
    limiter: RateLimiter = Depends(get_search_limiter),
    searcher: ArticleSearcher = Depends(get_searcher),
):
    """Find the articles closest in meaning to a free-text query."""
    # Rate limit before touching the body or the embedding model
    result = limiter.check(request)
    headers = create_rate_limit_headers(result)

    if not result.allowed:
        retry_after = result.retry_after(limiter.clock())
        return _error(
            429,
            {**headers, "Retry-After": str(retry_after)},
            error="Too many requests",
            message="Rate limit exceeded. Please try again later.",
            retry_after=retry_after,
        )

    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    query = body.get("query")
    if not query or not isinstance(query, str):
        return _error(400, headers, error="Query parameter is required")

    if len(query) > MAX_QUERY_LENGTH:
        return _error(
            400,
            headers,
            error="Query too long",
            message=f"Query must be less than {MAX_QUERY_LENGTH} characters",
        )

    req = SearchRequest(query=query, limit=sanitize_limit(body.get("limit", DEFAULT_LIMIT)))

    try:
        rows = await run_in_threadpool(searcher.search, req.query, req.limit)
        hits = [SearchHit(**r) for r in rows]
    except Exception as exc:
        logger.exception("Search error for query %r", req.query)
        return _error(500, headers, error="Search failed", message=str(exc) or "Unknown error")

    response = SearchResponse(
        results=hits,
        count=len(hits),
        query=req.query,
    )
    return JSONResponse(response.model_dump(), headers=headers)


@router.get("", include_in_schema=False)
def search_wrong_method():
    return JSONResponse({"error": "Use POST method for search"}, status_code=405)
