"""CLI: Initialize the article database schema and vector collection.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --db-path ./data/local.db
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import get_config
from src.storage.chroma_store import ChromaStore
from src.storage.sqlite_db import ArticleDB

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Initialize the docsite article database")
    parser.add_argument("--db-path", type=str, default=None, help="Override database path")
    args = parser.parse_args()

    config = get_config()
    db_path = args.db_path or config.sqlite_db_path

    logger.info("Initializing database schema...")
    db = ArticleDB(db_path)
    db.create_schema()

    if not db.table_exists("articles"):
        logger.error("Table creation verification failed")
        sys.exit(1)

    chroma = ChromaStore(config.chroma_db_path)
    logger.info("Vector collection '%s' ready (%d vectors)", chroma.COLLECTION_NAME, chroma.count())
    logger.info("Database initialized at: %s", db_path)


if __name__ == "__main__":
    main()
