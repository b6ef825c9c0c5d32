"""FastAPI dependency injection — shared component singletons.

Lazily initializes heavy components (embedding model, vector store, article
database) once, then provides them via FastAPI Depends(). The search rate
limiter is owned by the app instance (``app.state.search_limiter``) rather
than living here, so each app gets its own quota store.
"""

import logging

from fastapi import Request

from src.api.rate_limit import RateLimiter
from src.config import Config, get_config
from src.ingestion.embeddings import EmbeddingGenerator
from src.retrieval.searcher import ArticleSearcher
from src.storage.chroma_store import ChromaStore
from src.storage.sqlite_db import ArticleDB

logger = logging.getLogger(__name__)

# ── Singletons (populated by init_components) ───────────────────────

_config: Config | None = None
_db: ArticleDB | None = None
_searcher: ArticleSearcher | None = None


def init_components(config: Config | None = None) -> None:
    """Initialize all heavy components. Call once at startup.

    Raises:
        ConfigError: If the configuration fails validation; nothing is built.
    """
    global _config, _db, _searcher

    config = config or get_config()
    config.validate()
    _config = config
    _db = ArticleDB(_config.sqlite_db_path)
    _db.create_schema()  # Ensure tables exist (idempotent)
    chroma = ChromaStore(_config.chroma_db_path)

    if _config.embedding_provider != "local":
        logger.warning(
            "EMBEDDING_PROVIDER=%s is not supported by this server, "
            "using local model %s",
            _config.embedding_provider,
            _config.embedding_model,
        )
    embed_gen = EmbeddingGenerator(_config.embedding_model)

    _searcher = ArticleSearcher(db=_db, chroma_store=chroma, embedding_generator=embed_gen)
    logger.info(
        "All components initialized (%d articles, %d vectors)",
        _db.get_article_count(),
        chroma.count(),
    )


def is_initialized() -> bool:
    """Check if components have been initialized (or mocked for testing)."""
    return _db is not None and _searcher is not None


def get_db() -> ArticleDB:
    assert _db is not None, "Components not initialized — call init_components()"
    return _db


def get_searcher() -> ArticleSearcher:
    assert _searcher is not None, "Components not initialized — call init_components()"
    return _searcher


def get_search_limiter(request: Request) -> RateLimiter:
    return request.app.state.search_limiter
