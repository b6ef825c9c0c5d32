"""CLI: Index markdown content into SQLite and ChromaDB.

Loads every markdown file under the content directory, upserts the articles
into SQLite, then embeds them and stores the vectors in ChromaDB.

Usage:
    python scripts/index_content.py                       # defaults
    python scripts/index_content.py --content-dir ./content
    python scripts/index_content.py --reset               # rebuild vectors
"""

import argparse
import logging
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import get_config
from src.ingestion.content_loader import ArticleRecord, load_content_dir
from src.ingestion.embeddings import EmbeddingGenerator
from src.storage.chroma_store import ChromaStore
from src.storage.sqlite_db import ArticleDB

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Index markdown content for semantic search")
    parser.add_argument("--content-dir", type=str, default=None,
                        help="Directory of markdown files (default: CONTENT_DIR)")
    parser.add_argument("--reset", action="store_true",
                        help="Drop the vector collection before indexing")
    args = parser.parse_args()

    config = get_config()
    content_dir = Path(args.content_dir) if args.content_dir else config.content_dir

    db = ArticleDB(config.sqlite_db_path)
    db.create_schema()
    chroma = ChromaStore(config.chroma_db_path)
    if args.reset:
        chroma.reset()

    logger.info("Starting content indexing...")
    articles = load_content_dir(content_dir)
    if not articles:
        logger.warning("No markdown files found under %s", content_dir)
        return

    embed_gen = EmbeddingGenerator(config.embedding_model)

    start_time = time.time()
    succeeded: list[ArticleRecord] = []
    failed = 0
    total = len(articles)
    for i, article in enumerate(articles, start=1):
        logger.info("[%d/%d] Indexing: %s", i, total, article.source_path or article.slug)
        try:
            ids = db.upsert_articles([article])
            embed_gen.embed_and_store([article], ids, chroma)
            succeeded.append(article)
        except Exception:
            logger.exception("Failed to index %s", article.slug)
            failed += 1

    indexed = chroma.article_ids()
    stale = indexed - set(db.get_articles_by_ids(sorted(indexed)))
    if stale:
        logger.info("Removing %d vectors with no article row", len(stale))
        chroma.delete_articles(sorted(stale))

    logger.info("Indexing complete in %.1fs", time.time() - start_time)
    logger.info("Successfully indexed %d/%d documents", len(succeeded), total)
    if failed > 0:
        logger.warning("Failed to index %d documents", failed)


if __name__ == "__main__":
    main()
