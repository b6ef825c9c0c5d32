"""Semantic article search via ChromaDB cosine distance.

Encodes a query, asks ChromaDB for the nearest article ids, and resolves
the article rows from SQLite.
"""

import logging

from src.ingestion.embeddings import EmbeddingGenerator
from src.storage.chroma_store import ChromaStore
from src.storage.sqlite_db import ArticleDB

logger = logging.getLogger(__name__)


class ArticleSearcher:
    """Dense vector search over indexed articles."""

    def __init__(
        self,
        db: ArticleDB,
        chroma_store: ChromaStore,
        embedding_generator: EmbeddingGenerator,
    ):
        self.db = db
        self.chroma_store = chroma_store
        self.embedding_generator = embedding_generator

    def search(self, query: str, limit: int = 10, folder: str | None = None) -> list[dict]:
        """Search articles by embedding similarity.

        Args:
            query: Raw query string.
            limit: Maximum results to return.
            folder: Optional folder to restrict results to.

        Returns:
            Article dicts with keys id, title, slug, folder, tags, distance,
            content, created_at. Sorted by ascending distance.
        """
        query_embedding = self.embedding_generator.encode_query(query)
        matches = self.chroma_store.nearest(query_embedding, n_results=limit, folder=folder)
        articles = self.db.get_articles_by_ids([m.article_id for m in matches])

        hits = []
        for match in matches:
            article = articles.get(match.article_id)
            if article is None:
                # Stale vector: the row was removed after indexing
                logger.warning("Article %s in vector index but not in database", match.article_id)
                continue
            hits.append({
                "id": article["id"],
                "title": article["title"],
                "slug": article["slug"],
                "folder": article["folder"],
                "tags": article["tags"],
                "distance": match.distance,
                "content": article["content"],
                "created_at": article["created_at"],
            })

        hits.sort(key=lambda h: h["distance"])
        return hits
