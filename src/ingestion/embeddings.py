"""Embedding generation using sentence-transformers.

Encodes article documents into vectors and stores them in ChromaDB.
"""

import logging

from sentence_transformers import SentenceTransformer

from src.ingestion.content_loader import ArticleRecord
from src.storage.chroma_store import ChromaStore

logger = logging.getLogger(__name__)


class EmbeddingGenerator:
    """Generate embeddings for articles and queries."""

    def __init__(self, model_name: str = "sentence-transformers/all-mpnet-base-v2"):
        logger.info("Loading embedding model: %s", model_name)
        self.model = SentenceTransformer(model_name)
        self.model_name = model_name
        logger.info("Embedding model loaded (dim=%d)", self.model.get_sentence_embedding_dimension())

    def encode(self, texts: list[str], batch_size: int = 32) -> list[list[float]]:
        """Encode texts into normalized embedding vectors."""
        embeddings = self.model.encode(
            texts,
            batch_size=batch_size,
            show_progress_bar=False,
            normalize_embeddings=True,
        )
        return embeddings.tolist()

    def encode_query(self, query: str) -> list[float]:
        """Encode a single query string."""
        embedding = self.model.encode(query, normalize_embeddings=True)
        return embedding.tolist()

    def embed_and_store(
        self,
        articles: list[ArticleRecord],
        article_ids: list[int],
        chroma_store: ChromaStore,
    ):
        """Encode articles and store their embeddings keyed by SQLite row id.

        Args:
            articles: Articles to embed.
            article_ids: SQLite row ids, parallel to ``articles``.
            chroma_store: ChromaStore instance.
        """
        if not articles:
            logger.warning("No articles to embed")
            return

        embeddings = self.encode([a.document_text() for a in articles])
        chroma_store.upsert_articles(
            article_ids=article_ids,
            embeddings=embeddings,
            slugs=[a.slug for a in articles],
            folders=[a.folder for a in articles],
        )
