"""Utility functions for Folio.

This module contains small helpers used throughout the Folio codebase:
string processing, path checks, date handling, and value normalization
for front matter fields.

Key functions:
    slugify: Convert filenames or titles to URL slugs.
    titleize: Convert filenames to human-readable titles.
    extract_date_from_name: Extract date from a YYYY-MM-DD filename prefix.
    parse_date: Coerce a front matter date value into a datetime.
    normalize_list: Coerce a YAML list or space-separated string to a list.
    is_markdown: Check if a path is a Markdown file.
    is_html: Check if a path is an HTML file.
    ensure_clean_dir: Ensure a directory exists and is empty.
    build_tags_index: Build index of posts by tag.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Iterable
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

MARKDOWN_SUFFIXES = (".md", ".markdown", ".mkd", ".mkdn")
HTML_SUFFIXES = (".html", ".htm")

# Jekyll accepts these in front matter; the zone suffix is optional.
DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
)


def _strip_date_prefix(name: str) -> str:
    parts = name.split("-")
    if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
        return "-".join(parts[3:])
    return name


def slugify(name: str) -> str:
    """Convert a filename stem or title to a slug, dropping any date prefix.

    Args:
        name: Filename stem or title.

    Returns:
        URL-friendly slug.
    """
    cleaned = _strip_date_prefix(name)
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Args:
        filename: Filename with or without extension.

    Returns:
        Human-readable title string.

    Examples:
        >>> titleize("2011-06-14-mocking-with-phpunit.md")
        'Mocking With Phpunit'
    """
    base = _strip_date_prefix(Path(filename).stem)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> datetime | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        datetime object if a valid date prefix is found, None otherwise.
    """
    parts = name.split("-")
    if len(parts) >= 3 and all(p.isdigit() for p in parts[:3]):
        try:
            return datetime(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            return None
    return None


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_date(value: Any) -> datetime | None:
    """Coerce a front matter date into a naive UTC datetime.

    YAML already turns most timestamps into datetime or date objects;
    strings cover the forms YAML leaves alone, such as
    ``2011-06-14 18:52:47 +0000``.

    Args:
        value: Raw front matter value.

    Returns:
        datetime, or None when the value cannot be understood.
    """
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return _naive_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue
    try:
        return _naive_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def normalize_list(value: Any) -> list[str]:
    """Coerce a tags/categories value into a list of strings.

    Jekyll accepts a YAML list or a single whitespace-separated string.

    Args:
        value: Raw front matter value.

    Returns:
        List of non-empty strings, first occurrence order kept.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split()
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = [str(item).strip() for item in value if item is not None]
    else:
        items = [str(value)]
    seen: list[str] = []
    for item in items:
        if item and item not in seen:
            seen.append(item)
    return seen


def stringify(value: Any) -> str:
    """Render a scalar front matter value as a string.

    Booleans use YAML spelling, lists are comma-joined and None is empty.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(stringify(item) for item in value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    return str(value)


def first_paragraph(text: str, limit: int | None = 160) -> str:
    """Extract and clean the first prose paragraph from text.

    Skips headings, code regions and Liquid tags, strips HTML tags,
    collapses whitespace and truncates to the specified limit.

    Args:
        text: Text content to extract from.
        limit: Maximum character length of result, None for no limit.

    Returns:
        Cleaned first paragraph, truncated to limit characters.
    """
    paragraphs = [p.strip() for p in re.split(r"\n[ \t]*\n", text) if p.strip()]
    for para in paragraphs:
        if para.startswith(("#", "```", "~~~", "{%", "![", "<pre")):
            continue
        para = re.sub(r"<[^>]+>", "", para)
        para = re.sub(r"\{[%{].*?[%}]\}", "", para)
        collapsed = " ".join(para.split())
        if collapsed:
            return collapsed[:limit]
    return ""


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path))
    path.mkdir(parents=True, exist_ok=True)


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True for .md, .markdown, .mkd and .mkdn (case-insensitive).
    """
    return path.suffix.lower() in MARKDOWN_SUFFIXES


def is_html(path: Path) -> bool:
    """Check if a path is an HTML file.

    Args:
        path: Path to check.

    Returns:
        True if the file has an .html or .htm extension.
    """
    return path.suffix.lower() in HTML_SUFFIXES


def build_tags_index(posts: Iterable) -> dict[str, list]:
    """Build an index mapping tags to lists of posts carrying that tag.

    Args:
        posts: Iterable of Post objects with a 'tags' attribute.

    Returns:
        Dictionary mapping tag names (sorted) to lists of posts.
    """
    tags: dict[str, list] = {}
    for post in posts:
        for tag in sorted(post.tags):
            tags.setdefault(tag, []).append(post)
    return dict(sorted(tags.items()))
