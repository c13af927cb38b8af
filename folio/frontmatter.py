"""Front matter parsing for Folio.

This module splits a post into its YAML front matter and body text.
Front matter is the block at the very top of a file, opened by a ``---``
line and closed by the next ``---`` (or ``...``) line.

Key functions:
- split_frontmatter: Split raw text into (metadata, body).
- dump_frontmatter: Serialize metadata and body back into a post.
- has_frontmatter: Check whether text opens a front matter block.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

BOM = "\ufeff"
OPEN_RE = re.compile(r"---[ \t]*(?:\r?\n|\Z)")
CLOSE_RE = re.compile(r"^(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)", re.MULTILINE)


class FrontMatterError(ValueError):
    """Malformed front matter.

    Attributes:
        message: Human-readable description of the problem.
        line: 1-based line number in the source file, when known.
        path: Source file, when known.
    """

    def __init__(
        self,
        message: str,
        line: int | None = None,
        path: Path | None = None,
    ):
        self.message = message
        self.line = line
        self.path = path
        super().__init__(self._format())

    def _format(self) -> str:
        location = str(self.path) if self.path else ""
        if self.line is not None:
            location = f"{location}:{self.line}" if location else f"line {self.line}"
        return f"{location}: {self.message}" if location else self.message

    def with_path(self, path: Path) -> FrontMatterError:
        """Return a copy of this error attributed to ``path``."""
        return FrontMatterError(self.message, line=self.line, path=path)


class _UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that rejects repeated mapping keys."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            if key_node.tag == "tag:yaml.org,2002:merge":
                continue
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                continue
            if duplicate:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def has_frontmatter(text: str) -> bool:
    """Check whether text starts with a front matter delimiter.

    Args:
        text: Raw file content.

    Returns:
        True if the first line is a ``---`` delimiter.
    """
    return OPEN_RE.match(text.removeprefix(BOM)) is not None


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split raw post text into front matter and body.

    Text without an opening delimiter has no front matter and is
    returned unchanged as the body.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (metadata dict, remaining body text).

    Raises:
        FrontMatterError: If the block is never closed, is not valid
            YAML, is not a mapping, or repeats a key.

    Examples:
        >>> split_frontmatter("---\\ntitle: X\\n---\\nHello")
        ({'title': 'X'}, 'Hello')
    """
    offset = len(BOM) if text.startswith(BOM) else 0
    opening = OPEN_RE.match(text, offset)
    if not opening:
        return {}, text

    closing = CLOSE_RE.search(text, opening.end())
    if not closing:
        raise FrontMatterError("front matter opened on line 1 is never closed", line=1)

    block = text[opening.end() : closing.start()]
    body = text[closing.end() :]
    return _load_block(block), body


def _load_block(block: str) -> dict[str, Any]:
    """Parse the YAML between the delimiters.

    Args:
        block: YAML source without delimiter lines.

    Returns:
        Mapping with string keys.
    """
    try:
        data = yaml.load(block, Loader=_UniqueKeyLoader)  # noqa: S506 - SafeLoader subclass
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        # +1 for 1-based lines, +1 for the opening delimiter
        line = mark.line + 2 if mark is not None else None
        problem = getattr(exc, "problem", None) or str(exc)
        raise FrontMatterError(f"invalid YAML: {problem}", line=line) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"front matter must be a mapping, not {type(data).__name__}", line=2
        )
    return {str(key): value for key, value in data.items()}


def dump_frontmatter(metadata: dict[str, Any], body: str) -> str:
    """Serialize metadata and body into post text.

    Args:
        metadata: Front matter mapping. Key order is preserved.
        body: Body text placed after the closing delimiter.

    Returns:
        Text that split_frontmatter() parses back into (metadata, body).
    """
    if not metadata:
        return f"---\n---\n{body}"
    dumped = yaml.safe_dump(
        dict(metadata),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=1000,
    )
    return f"---\n{dumped}---\n{body}"
