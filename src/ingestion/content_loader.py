"""Content layer: canonical ArticleRecord schema and markdown directory loader.

Every markdown file under the content directory becomes one ArticleRecord.
The folder is the file's parent directory relative to the content root
(``root`` for top-level files), and the slug is the slugified relative path
without extension, e.g. ``guides/getting-started``.

Optional YAML frontmatter (between ``---`` lines at the top of the file)
may set ``title`` and ``tags``; tags are either a YAML list or a
comma-separated string.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.utils import slugify
from src.validation import is_valid_slug

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = (".md", ".mdx", ".markdown")
FRONTMATTER_DELIMITER = "---"

_HEADING_RE = re.compile(r"^#\s+(.+?)\s*#*\s*$", re.MULTILINE)


@dataclass
class ArticleRecord:
    """Canonical schema for one documentation article."""

    slug: str
    title: str
    content: str
    folder: str = "root"
    tags: list[str] = field(default_factory=list)
    source_path: Path | None = None

    def document_text(self) -> str:
        """Text that gets embedded: title first so it weighs in the vector."""
        return f"{self.title}\n\n{self.content}"


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """Return ``(frontmatter_block, body)``; the block is None when absent or unterminated."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return None, text
    for i in range(1, len(lines)):
        if lines[i].strip() == FRONTMATTER_DELIMITER:
            return "".join(lines[1:i]), "".join(lines[i + 1:])
    return None, text


def parse_frontmatter(text: str, source: Path | str = "<string>") -> tuple[dict[str, Any], str]:
    """Split YAML frontmatter from the body and load it with ``yaml.safe_load``.

    An empty block, a non-mapping document, or invalid YAML yields ``{}``;
    the delimiters are stripped from the body either way.
    """
    block, body = split_frontmatter(text)
    if block is None:
        return {}, body

    try:
        meta = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        logger.warning("Ignoring invalid frontmatter in %s: %s", source, exc)
        return {}, body

    if not isinstance(meta, dict):
        return {}, body
    return {str(key).lower(): value for key, value in meta.items()}, body


def parse_tags(raw: Any) -> list[str]:
    """Normalize a frontmatter ``tags`` value to a list of non-empty strings."""
    if raw is None:
        return []
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        items = raw
    else:
        items = [raw]
    tags = (str(item).strip() for item in items if item is not None)
    return [tag for tag in tags if tag]


def load_article(path: Path, content_root: Path) -> ArticleRecord:
    """Read one markdown file into an ArticleRecord.

    Raises:
        ValueError: If a path segment does not slugify to a usable slug.
    """
    text = path.read_text(encoding="utf-8")
    meta, body = parse_frontmatter(text, source=path)

    relative = path.relative_to(content_root).with_suffix("")
    parts = [slugify(p) for p in relative.parts]
    if not all(is_valid_slug(p) for p in parts):
        raise ValueError(f"Cannot derive a slug from {relative.as_posix()!r}")
    folder = "/".join(parts[:-1]) or "root"

    title = meta.get("title")
    if title is None or not str(title).strip():
        heading = _HEADING_RE.search(body)
        title = heading.group(1) if heading else relative.stem.replace("-", " ").title()

    return ArticleRecord(
        slug="/".join(parts),
        title=str(title).strip(),
        content=body.strip(),
        folder=folder,
        tags=parse_tags(meta.get("tags")),
        source_path=path,
    )


def load_content_dir(content_root: str | Path) -> list[ArticleRecord]:
    """Load every markdown file under ``content_root``, sorted by path.

    Files whose names cannot be turned into a slug are skipped with a warning.
    """
    content_root = Path(content_root)
    if not content_root.is_dir():
        raise FileNotFoundError(f"Content directory not found: {content_root}")

    paths = sorted(
        p for p in content_root.rglob("*")
        if p.is_file() and p.suffix.lower() in MARKDOWN_SUFFIXES
    )
    articles = []
    for path in paths:
        try:
            articles.append(load_article(path, content_root))
        except ValueError as exc:
            logger.warning("Skipping %s: %s", path, exc)
    logger.info("Loaded %d articles from %s", len(articles), content_root)
    return articles
