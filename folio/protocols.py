"""Protocol definitions for Folio.

This module defines the interfaces used between Folio's components so
renderers, extractors and loaders can be swapped or faked in tests.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import Heading, Post


@runtime_checkable
class ContentRenderer(Protocol):
    """Protocol for rendering a post body.

    Implementations handle one body format (Markdown, HTML).
    """

    @abstractmethod
    def can_render(self, path: Path) -> bool:
        """Check if this renderer can handle the given file.

        Args:
            path: Path to the source file.

        Returns:
            True if this renderer can process the file.
        """
        ...

    @abstractmethod
    def render(self, content: str) -> tuple[str, list[Heading]]:
        """Render a body to HTML.

        Args:
            content: Body text, front matter already removed.

        Returns:
            Tuple of (rendered HTML, list of headings for TOC).
        """
        ...

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Return the source type identifier (e.g., 'markdown', 'html')."""
        ...


@runtime_checkable
class MetadataExtractor(Protocol):
    """Protocol for extracting one kind of post metadata."""

    @abstractmethod
    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        """Extract metadata.

        Args:
            frontmatter: Parsed front matter mapping.
            body: Body text after the front matter.
            path: Path to the source file.

        Returns:
            Dictionary of extracted metadata.
        """
        ...


@runtime_checkable
class ContentLoader(Protocol):
    """Protocol for discovering post files."""

    @abstractmethod
    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        """List post files.

        Args:
            include_drafts: Whether to include drafts.

        Returns:
            List of paths to post files.
        """
        ...

    @abstractmethod
    def is_draft(self, path: Path) -> bool:
        """Check whether a discovered file is a draft."""
        ...


@runtime_checkable
class PostBuilder(Protocol):
    """Protocol for building Post objects."""

    @abstractmethod
    def build(self, path: Path, draft: bool = False) -> Post:
        """Build a Post from a source file.

        Args:
            path: Path to the source file.
            draft: Whether this is a draft.

        Returns:
            Post object.
        """
        ...
