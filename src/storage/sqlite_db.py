"""SQLite storage layer for articles — hand-written SQL, no ORM.

The schema mirrors the libSQL ``articles`` table used in production, minus
the embedding column: vectors live in ChromaDB and are joined back by id.
All values are bound as parameters, never interpolated.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from src.ingestion.content_loader import ArticleRecord

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS articles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    slug TEXT UNIQUE NOT NULL,        -- "guides/getting-started"
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    folder TEXT NOT NULL DEFAULT 'root',
    tags TEXT DEFAULT '[]',           -- JSON array
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS articles_folder_idx ON articles(folder);
CREATE INDEX IF NOT EXISTS articles_slug_idx ON articles(slug);
"""

_COLUMNS = "id, slug, title, content, folder, tags, created_at, updated_at"


def _row_to_article(row: sqlite3.Row) -> dict:
    article = dict(row)
    article["tags"] = json.loads(article.get("tags") or "[]")
    return article


class ArticleDB:
    """SQLite database interface for indexed documentation articles."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def get_connection(self) -> sqlite3.Connection:
        """Get a new database connection with row factory enabled."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def create_schema(self):
        """Create the articles table and indexes."""
        conn = self.get_connection()
        try:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
            logger.info("Database schema created at %s", self.db_path)
        finally:
            conn.close()

    def table_exists(self, name: str = "articles") -> bool:
        conn = self.get_connection()
        try:
            row = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name = ?",
                (name,),
            ).fetchone()
            return row is not None
        finally:
            conn.close()

    # ── Ingestion ────────────────────────────────────────────────────

    def upsert_articles(self, articles: list[ArticleRecord]) -> list[int]:
        """Insert or update articles by slug. Returns their row ids in order.

        ``created_at`` is preserved for existing slugs; ``updated_at`` is
        always refreshed.
        """
        now = datetime.now(timezone.utc).isoformat()
        conn = self.get_connection()
        try:
            ids = []
            for a in articles:
                conn.execute(
                    """INSERT INTO articles
                       (slug, title, content, folder, tags, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?)
                       ON CONFLICT(slug) DO UPDATE SET
                           title = excluded.title,
                           content = excluded.content,
                           folder = excluded.folder,
                           tags = excluded.tags,
                           updated_at = excluded.updated_at""",
                    (a.slug, a.title, a.content, a.folder, json.dumps(a.tags), now, now),
                )
                row = conn.execute(
                    "SELECT id FROM articles WHERE slug = ?", (a.slug,)
                ).fetchone()
                ids.append(row["id"])
            conn.commit()
            logger.info("Upserted %d articles", len(articles))
            return ids
        finally:
            conn.close()

    # ── Queries ──────────────────────────────────────────────────────

    def get_article_count(self) -> int:
        conn = self.get_connection()
        try:
            return conn.execute("SELECT COUNT(*) FROM articles").fetchone()[0]
        finally:
            conn.close()

    def get_all_articles(self) -> list[dict]:
        conn = self.get_connection()
        try:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM articles ORDER BY folder, slug"
            ).fetchall()
            return [_row_to_article(r) for r in rows]
        finally:
            conn.close()

    def get_article_by_slug(self, slug: str) -> dict | None:
        conn = self.get_connection()
        try:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM articles WHERE slug = ?", (slug,)
            ).fetchone()
            return _row_to_article(row) if row else None
        finally:
            conn.close()

    def get_articles_by_ids(self, ids: list[int]) -> dict[int, dict]:
        """Fetch articles keyed by id. Missing ids are simply absent."""
        if not ids:
            return {}
        placeholders = ",".join("?" for _ in ids)
        conn = self.get_connection()
        try:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM articles WHERE id IN ({placeholders})",
                list(ids),
            ).fetchall()
            return {r["id"]: _row_to_article(r) for r in rows}
        finally:
            conn.close()

    def get_articles_by_folder(self, folder: str) -> list[dict]:
        conn = self.get_connection()
        try:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM articles WHERE folder = ? ORDER BY slug",
                (folder,),
            ).fetchall()
            return [_row_to_article(r) for r in rows]
        finally:
            conn.close()

    def get_folders(self) -> list[str]:
        conn = self.get_connection()
        try:
            rows = conn.execute(
                "SELECT DISTINCT folder FROM articles ORDER BY folder"
            ).fetchall()
            return [r["folder"] for r in rows]
        finally:
            conn.close()
