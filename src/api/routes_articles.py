"""Article endpoints — list and fetch indexed documentation articles."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from src.api.deps import get_db
from src.api.models import Article
from src.storage.sqlite_db import ArticleDB

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/articles", tags=["articles"])


@router.get("", response_model=list[Article])
def list_articles(db: ArticleDB = Depends(get_db)):
    """All articles, ordered by folder then slug."""
    return [Article(**a) for a in db.get_all_articles()]


@router.get("/{slug:path}", response_model=Article)
def get_article(slug: str, db: ArticleDB = Depends(get_db)):
    """Get a single article by slug; slugs may include folder segments."""
    slug = slug.strip("/ ")
    if not slug:
        raise HTTPException(status_code=400, detail="Slug is required")

    article = db.get_article_by_slug(slug)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    return Article(**article)
