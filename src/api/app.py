"""FastAPI application factory.

Creates the app, registers routers, and wires up lifespan events: component
initialization and the search rate limiter's background sweep.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.deps import get_db, init_components, is_initialized
from src.api.models import HealthResponse
from src.api.rate_limit import RateLimitConfig, RateLimiter
from src.api.routes_articles import router as articles_router
from src.api.routes_search import router as search_router
from src.config import Config

logger = logging.getLogger(__name__)


def build_search_limiter(config: Config) -> RateLimiter:
    """Rate limiter for the search endpoint (20 requests per minute by default)."""
    return RateLimiter(
        RateLimitConfig(
            max_requests=config.search_rate_limit_max_requests,
            window_seconds=config.search_rate_limit_window_seconds,
        ),
        client_id_headers=config.rate_limit_client_headers,
        sweep_interval_seconds=config.rate_limit_sweep_interval_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize heavy components and start the limiter sweep; stop it on shutdown."""
    if not is_initialized():
        logger.info("Starting docsite search API — loading models...")
        init_components()
        logger.info("Startup complete")
    with app.state.search_limiter:
        yield
    logger.info("Shutting down")


def create_app(search_limiter: RateLimiter | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Docsite Search",
        description="Semantic search and article API for the documentation site.",
        version="0.1.0",
        lifespan=lifespan,
    )
    if search_limiter is None:
        search_limiter = build_search_limiter(Config())
    app.state.search_limiter = search_limiter

    # CORS: allow the site's dev servers during development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:4321", "http://localhost:3000"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset",
            "Retry-After",
        ],
    )

    app.include_router(search_router, prefix="/api")
    app.include_router(articles_router, prefix="/api")

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def health_check():
        db = get_db()
        return HealthResponse(status="ok", article_count=db.get_article_count())

    return app


app = create_app()
