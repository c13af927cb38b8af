"""Metadata extractors for Folio.

This module contains implementations of the MetadataExtractor protocol.
Each extractor reads one kind of metadata from a post's front matter and
body, and the composite merges their results.

Key classes:
- TitleExtractor: Title from front matter, first heading, or filename.
- TaxonomyExtractor: Tags and categories.
- DateExtractor: Date from front matter, filename, or file metadata.
- StatusExtractor: Publication flag.
- DescriptionExtractor: Description and excerpt.
- SeoExtractor: Keywords from SEO fields.
- MetadataFlattener: Remaining front matter as a string mapping.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any

from .codeblocks import extract_code_blocks
from .html_utils import strip_tags
from .utils import (
    extract_date_from_name,
    first_paragraph,
    normalize_list,
    parse_date,
    stringify,
    titleize,
)

# Keys that map to dedicated Post attributes rather than free metadata
STRUCTURAL_KEYS = frozenset(
    {
        "layout",
        "title",
        "tags",
        "tag",
        "categories",
        "category",
        "published",
        "status",
        "date",
        "permalink",
        "excerpt",
        "meta",
    }
)
PUBLISHED_STATUSES = ("publish", "published")
PARAGRAPH_RE = re.compile(r"\n[ \t]*\n")

# WordPress exports keep SEO plugin fields under `meta`
SEO_DESCRIPTION_KEYS = (
    "description",
    "seo_description",
    "_aioseop_description",
    "_yoast_wpseo_metadesc",
)
SEO_KEYWORDS_KEYS = (
    "keywords",
    "seo_keywords",
    "_aioseop_keywords",
    "_yoast_wpseo_focuskw",
)


def _meta(frontmatter: dict[str, Any]) -> dict[str, Any]:
    meta = frontmatter.get("meta")
    return meta if isinstance(meta, dict) else {}


def _lookup(frontmatter: dict[str, Any], keys: tuple[str, ...]) -> str:
    """Return the first non-empty value for keys, top level before meta."""
    for source in (frontmatter, _meta(frontmatter)):
        for key in keys:
            value = source.get(key)
            if value not in (None, ""):
                return stringify(value).strip()
    return ""


class TitleExtractor:
    """Extracts the post title.

    Uses the front matter ``title``, then a level-1 ``# Title`` line in
    the body, then the titleized filename. Lines inside code blocks are
    not headings.
    """

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        title = frontmatter.get("title")
        if title not in (None, ""):
            return {"title": stringify(title).strip()}
        for line in _prose_lines(body):
            stripped = line.strip()
            if stripped.startswith("# "):
                return {"title": stripped.lstrip("# ").strip()}
        return {"title": titleize(path.name)}


def _prose_lines(body: str) -> list[str]:
    """Body lines outside fenced and Liquid code blocks."""
    prose: list[str] = []
    position = 0
    for block in extract_code_blocks(body):
        prose.extend(body[position : block.start].splitlines())
        position = block.end
    prose.extend(body[position:].splitlines())
    return prose


class TaxonomyExtractor:
    """Extracts tags and categories.

    Both accept Jekyll's singular and plural keys, as YAML lists or
    whitespace-separated strings.
    """

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        tags = normalize_list(frontmatter.get("tags")) + normalize_list(
            frontmatter.get("tag")
        )
        categories = normalize_list(frontmatter.get("categories"))
        for category in normalize_list(frontmatter.get("category")):
            if category not in categories:
                categories.append(category)
        return {"tags": set(tags), "categories": categories}


class DateExtractor:
    """Extracts the publication date.

    Looks at the front matter ``date``, then a YYYY-MM-DD filename
    prefix, falling back to the file modification time.
    """

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        date = parse_date(frontmatter.get("date"))
        if date is None:
            date = extract_date_from_name(path.stem)
        if date is None:
            date = datetime.fromtimestamp(path.stat().st_mtime)
        return {"date": date}


class StatusExtractor:
    """Extracts whether the post is published.

    ``published: false`` or a WordPress ``status`` other than
    ``publish`` marks the post unpublished.
    """

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        published = frontmatter.get("published", True)
        if published is None:
            published = True
        elif isinstance(published, str):
            published = published.strip().lower() not in ("false", "no", "0")
        status = frontmatter.get("status")
        if status is not None and str(status).strip().lower() not in PUBLISHED_STATUSES:
            published = False
        return {"published": bool(published)}


class DescriptionExtractor:
    """Extracts description and excerpt.

    The excerpt is the front matter ``excerpt`` or the text before the
    excerpt separator. The description prefers SEO fields and falls back
    to the first paragraph, truncated to 160 characters.

    Attributes:
        excerpt_separator: Marker ending the excerpt in the body.
    """

    def __init__(self, excerpt_separator: str = "\n\n"):
        self.excerpt_separator = excerpt_separator

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        description = _lookup(frontmatter, SEO_DESCRIPTION_KEYS) or first_paragraph(body)
        return {"description": description, "excerpt": self._extract_excerpt(frontmatter, body)}

    def _extract_excerpt(self, frontmatter: dict[str, Any], body: str) -> str:
        explicit = frontmatter.get("excerpt")
        if explicit not in (None, ""):
            return strip_tags(stringify(explicit))
        separator = self.excerpt_separator
        if separator and separator.strip() and separator in body:
            chunk = body.split(separator, 1)[0]
            paragraphs = (first_paragraph(p, limit=None) for p in PARAGRAPH_RE.split(chunk))
            return " ".join(p for p in paragraphs if p)
        return first_paragraph(body, limit=None)


class SeoExtractor:
    """Extracts SEO keywords as a list."""

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        raw = _lookup(frontmatter, SEO_KEYWORDS_KEYS)
        keywords = [word.strip() for word in raw.split(",") if word.strip()]
        return {"keywords": keywords}


class MetadataFlattener:
    """Collects the free-form front matter as a string mapping.

    Structural keys are excluded. Entries of a WordPress ``meta`` block
    are merged without prefix; top-level keys win on collision. Nested
    mappings become ``parent.child`` keys.
    """

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        metadata = _flatten(_meta(frontmatter))
        for key, value in frontmatter.items():
            if key in STRUCTURAL_KEYS:
                continue
            if isinstance(value, dict):
                metadata.update(_flatten(value, f"{key}."))
            else:
                metadata[key] = stringify(value)
        return {"metadata": metadata}


def _flatten(mapping: dict[Any, Any], prefix: str = "") -> dict[str, str]:
    flat: dict[str, str] = {}
    for key, value in mapping.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{name}."))
        else:
            flat[name] = stringify(value)
    return flat


class CompositeMetadataExtractor:
    """Combines multiple metadata extractors.

    Runs every extractor and merges their results; later extractors can
    override earlier ones.
    """

    def __init__(self, extractors: list | None = None, excerpt_separator: str = "\n\n"):
        """Initialize with a list of extractors.

        Args:
            extractors: MetadataExtractor implementations. If None, uses
                the default set.
            excerpt_separator: Separator for the default DescriptionExtractor.
        """
        if extractors is None:
            self._extractors = [
                TitleExtractor(),
                TaxonomyExtractor(),
                DateExtractor(),
                StatusExtractor(),
                DescriptionExtractor(excerpt_separator),
                SeoExtractor(),
                MetadataFlattener(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        """Add an extractor to the composite."""
        self._extractors.append(extractor)

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        """Extract all metadata for a post.

        Args:
            frontmatter: Parsed front matter mapping.
            body: Body text after the front matter.
            path: Path to the source file.

        Returns:
            Dictionary with all extracted metadata.
        """
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(frontmatter, body, path))
        return result


# Default composite extractor instance
default_metadata_extractor = CompositeMetadataExtractor()
