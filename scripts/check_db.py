"""CLI: Show what is in the article database, grouped by folder.

Usage:
    python scripts/check_db.py
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import get_config
from src.storage.sqlite_db import ArticleDB
from src.utils import format_folder_name, truncate


def main():
    config = get_config()
    db = ArticleDB(config.sqlite_db_path)

    if not db.table_exists("articles"):
        print("Articles table does not exist!")
        print("Run: python scripts/init_db.py")
        sys.exit(1)

    articles = db.get_all_articles()
    if not articles:
        print("No articles found in database!")
        print("Run: python scripts/index_content.py")
        sys.exit(1)

    print(f"Found {len(articles)} articles:")
    for folder in db.get_folders():
        print(f"\n{format_folder_name(folder)} ({folder}/)")
        for article in db.get_articles_by_folder(folder):
            print(f"   - {article['slug']}")
            print(f"     Title: {truncate(article['title'], 60)}")
            print(f"     Content length: {len(article['content'])} chars")
            print(f"     Tags: {article['tags']}")

    print(f"\nTotal: {len(articles)} articles indexed")


if __name__ == "__main__":
    main()
