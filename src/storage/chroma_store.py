"""Article vector index backed by a persistent ChromaDB collection.

Vectors are keyed by the article's SQLite row id (stored as a string, as
ChromaDB requires) and carry only ``slug`` and ``folder`` as metadata;
article text stays in SQLite. Embeddings are computed by
``src/ingestion/embeddings.py`` before they reach this module.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import chromadb

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VectorMatch:
    """One nearest-neighbour hit from the index."""

    article_id: int
    distance: float
    slug: str | None = None
    folder: str | None = None


class ChromaStore:
    """Upsert, query and prune article embeddings."""

    COLLECTION_NAME = "articles"

    def __init__(self, persist_path: str | Path, collection_name: str = COLLECTION_NAME):
        self.persist_path = str(persist_path)
        self.collection_name = collection_name
        self._client = None
        self._collection = None

    @property
    def client(self) -> chromadb.ClientAPI:
        if self._client is None:
            self._client = chromadb.PersistentClient(path=self.persist_path)
        return self._client

    @property
    def collection(self) -> chromadb.Collection:
        # Cosine distance; embeddings are normalized at encode time
        if self._collection is None:
            self._collection = self.client.get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        return self._collection

    def upsert_articles(
        self,
        article_ids: list[int],
        embeddings: list[list[float]],
        slugs: list[str],
        folders: list[str],
        batch_size: int = 500,
    ) -> int:
        """Insert or replace the vectors for the given articles.

        All four sequences are parallel. Re-indexing an article overwrites
        its previous vector.

        Returns:
            Number of vectors written.
        """
        if not (len(article_ids) == len(embeddings) == len(slugs) == len(folders)):
            raise ValueError("article_ids, embeddings, slugs and folders must be the same length")

        total = len(article_ids)
        for start in range(0, total, batch_size):
            end = start + batch_size
            self.collection.upsert(
                ids=[str(i) for i in article_ids[start:end]],
                embeddings=embeddings[start:end],
                metadatas=[
                    {"slug": slug, "folder": folder}
                    for slug, folder in zip(slugs[start:end], folders[start:end])
                ],
            )
        logger.debug("Upserted %d article vectors", total)
        return total

    def nearest(
        self,
        query_embedding: list[float],
        n_results: int = 10,
        folder: str | None = None,
    ) -> list[VectorMatch]:
        """Closest articles to ``query_embedding``, nearest first.

        Entries whose id is not an article row id are dropped with a warning.
        """
        kwargs = {
            "query_embeddings": [query_embedding],
            "n_results": n_results,
            "include": ["metadatas", "distances"],
        }
        if folder:
            kwargs["where"] = {"folder": folder}
        result = self.collection.query(**kwargs)

        ids = result["ids"][0]
        metadatas = result.get("metadatas")
        metadatas = metadatas[0] if metadatas else [None] * len(ids)
        matches = []
        for raw_id, distance, meta in zip(ids, result["distances"][0], metadatas):
            try:
                article_id = int(raw_id)
            except (TypeError, ValueError):
                logger.warning("Ignoring vector with non-article id %r", raw_id)
                continue
            meta = meta or {}
            matches.append(VectorMatch(
                article_id=article_id,
                distance=distance,
                slug=meta.get("slug"),
                folder=meta.get("folder"),
            ))
        return matches

    def article_ids(self) -> set[int]:
        """Row ids of every article that has a vector."""
        ids = set()
        for raw_id in self.collection.get(include=[])["ids"]:
            try:
                ids.add(int(raw_id))
            except (TypeError, ValueError):
                continue
        return ids

    def delete_articles(self, article_ids: list[int]) -> None:
        if not article_ids:
            return
        self.collection.delete(ids=[str(i) for i in article_ids])
        logger.info("Deleted %d article vectors", len(article_ids))

    def count(self) -> int:
        return self.collection.count()

    def reset(self):
        """Drop every vector by deleting and recreating the collection."""
        if self.collection_name in _collection_names(self.client):
            self.client.delete_collection(self.collection_name)
        self._collection = None
        logger.info("Vector collection '%s' reset", self.collection_name)


def _collection_names(client) -> set[str]:
    # list_collections returns names on chromadb >= 0.6 and Collection objects before
    return {getattr(c, "name", c) for c in client.list_collections()}
