"""Small text helpers for content indexing and display."""

import re


def slugify(text: str) -> str:
    """Generate a URL slug from a title or file stem."""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def format_folder_name(folder: str) -> str:
    """Convert a kebab-case folder name to Title Case for display."""
    if folder == "root":
        return "Documentation"
    return " ".join(word[:1].upper() + word[1:] for word in folder.split("-"))


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return f"{text[:max_length].strip()}..."
