"""Retrieval — semantic article search over ChromaDB + SQLite."""

from src.retrieval.searcher import ArticleSearcher

__all__ = [
    "ArticleSearcher",
]
