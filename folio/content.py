"""Content processing for Folio.

This module loads post files, splits their front matter, extracts
metadata, renders the body and creates Post objects.

Key classes:
- Post: Dataclass representing a blog post with all its metadata.
- PostStatus: Draft or published.
- Heading: Dataclass representing a heading for TOC generation.
- FileContentLoader: Discovers post and draft files.
- UrlDeriver: Expands Jekyll-style permalink patterns.
- DefaultPostBuilder: Builds a Post from one file.
- ContentProcessor: Loads every post, skipping malformed files.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from .codeblocks import CodeBlock, extract_code_blocks
from .extractors import CompositeMetadataExtractor, default_metadata_extractor
from .frontmatter import FrontMatterError, split_frontmatter
from .renderers import RendererRegistry, default_renderer_registry
from .utils import is_html, is_markdown, slugify

# Named permalink styles understood by Jekyll
PERMALINK_STYLES = {
    "date": "/:categories/:year/:month/:day/:title:output_ext",
    "pretty": "/:categories/:year/:month/:day/:title/",
    "ordinal": "/:categories/:year/:y_day/:title:output_ext",
    "none": "/:categories/:title:output_ext",
}
DEFAULT_PERMALINK = PERMALINK_STYLES["pretty"]
PLACEHOLDER_RE = re.compile(r":(categories|year|month|day|y_day|title|slug|output_ext)")


class PostStatus(enum.Enum):
    """Publication status of a post."""

    DRAFT = "draft"
    PUBLISHED = "published"


@dataclass
class Heading:
    """Represents a heading extracted from post content for TOC generation.

    Attributes:
        id: Anchor ID for the heading (URL-friendly slug).
        text: The text content of the heading.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


@dataclass
class Post:
    """Represents a blog post with all its metadata and content.

    Attributes:
        title: Human-readable title.
        layout: Layout name for the external site generator.
        tags: Set of tags.
        status: Draft or published.
        metadata: Free-form front matter flattened to strings, SEO
            fields included.
        body: Raw body text after the front matter.
        content: Rendered HTML fragment.
        excerpt: Plain-text excerpt.
        description: Short description, from SEO fields or first paragraph.
        keywords: SEO keywords.
        date: Publication date (naive, UTC when the source had a zone).
        slug: URL-friendly slug.
        url: URL path for the post.
        categories: Ordered categories.
        path: Path to the source file.
        filename: Name of the source file.
        source_type: "markdown" or "html".
        frontmatter: Front matter exactly as parsed.
        code_blocks: Code regions found in the body.
        toc: Headings in document order.
    """

    title: str
    layout: str
    tags: set[str]
    status: PostStatus
    metadata: dict[str, str]
    body: str
    content: str = ""
    excerpt: str = ""
    description: str = ""
    keywords: list[str] = field(default_factory=list)
    date: datetime = field(default_factory=datetime.now)
    slug: str = ""
    url: str = ""
    categories: list[str] = field(default_factory=list)
    path: Path | None = None
    filename: str = ""
    source_type: str = "markdown"
    frontmatter: dict[str, Any] = field(default_factory=dict)
    code_blocks: list[CodeBlock] = field(default_factory=list)
    toc: list[Heading] = field(default_factory=list)

    @property
    def draft(self) -> bool:
        return self.status is PostStatus.DRAFT

    @property
    def languages(self) -> list[str]:
        """Distinct code block languages, in order of first use."""
        seen: list[str] = []
        for block in self.code_blocks:
            if block.language and block.language not in seen:
                seen.append(block.language)
        return seen


@dataclass
class SkippedFile:
    """A post file that could not be loaded.

    Attributes:
        path: Path to the source file.
        error: The front matter error raised for it.
    """

    path: Path
    error: FrontMatterError


class PostLoadError(Exception):
    """A post file failed to load for a reason other than front matter.

    Attributes:
        path: Path to the source file.
        original_error: The exception raised while building the post.
    """

    def __init__(self, path: Path, original_error: Exception):
        self.path = path
        self.original_error = original_error
        super().__init__(f"{path}: {original_error}")


@dataclass
class LoadResult:
    """Posts loaded from a directory, plus files that were skipped."""

    posts: list[Post]
    skipped: list[SkippedFile] = field(default_factory=list)


class FileContentLoader:
    """Discovers post files.

    Posts live under the posts directory (recursively); drafts under
    the drafts directory. Hidden files are ignored.

    Attributes:
        source_dir: Root of the Jekyll source tree.
        posts_dir: Directory holding published posts.
        drafts_dir: Directory holding drafts.
    """

    def __init__(self, source_dir: Path, posts_dir: str = "_posts", drafts_dir: str = "_drafts"):
        self.source_dir = source_dir
        self.posts_dir = source_dir / posts_dir
        self.drafts_dir = source_dir / drafts_dir

    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        """List post files.

        Args:
            include_drafts: Whether to include files from the drafts directory.

        Returns:
            Sorted list of paths to post files.
        """
        roots = [self.posts_dir]
        if include_drafts:
            roots.append(self.drafts_dir)
        files: list[Path] = []
        for root in roots:
            if not root.is_dir():
                continue
            for path in sorted(root.rglob("*")):
                if path.is_dir() or path.name.startswith("."):
                    continue
                if is_markdown(path) or is_html(path):
                    files.append(path)
        return files

    def is_draft(self, path: Path) -> bool:
        """Check whether a path lives in the drafts directory."""
        return self.drafts_dir in path.parents


class UrlDeriver:
    """Derives post URLs from a Jekyll-style permalink pattern.

    Supports the named styles (``date``, ``pretty``, ``ordinal``,
    ``none``) and the ``:categories :year :month :day :y_day :title
    :slug :output_ext`` placeholders.
    """

    def __init__(self, pattern: str = DEFAULT_PERMALINK):
        self.pattern = PERMALINK_STYLES.get(pattern, pattern)

    def derive(
        self,
        slug: str,
        date: datetime,
        categories: list[str] | None = None,
        permalink: str | None = None,
    ) -> str:
        """Derive the URL for a post.

        Args:
            slug: URL-friendly slug.
            date: Publication date.
            categories: Post categories.
            permalink: Explicit front matter permalink, used verbatim.

        Returns:
            URL path for the post.
        """
        pattern = permalink or self.pattern
        values = {
            "categories": "/".join(slugify(c) for c in categories or []),
            "year": date.strftime("%Y"),
            "month": date.strftime("%m"),
            "day": date.strftime("%d"),
            "y_day": date.strftime("%j"),
            "title": slug,
            "slug": slug,
            "output_ext": ".html",
        }
        url = PLACEHOLDER_RE.sub(lambda m: values[m.group(1)], pattern)
        url = re.sub(r"/{2,}", "/", f"/{url}")
        return url


class DefaultPostBuilder:
    """Builds Post objects from source files.

    Coordinates the splitter, extractors, renderers and URL deriver.

    Attributes:
        renderer_registry: Registry of content renderers.
        metadata_extractor: Composite metadata extractor.
        url_deriver: URL deriver instance.
        default_layout: Layout used when front matter names none.
    """

    def __init__(
        self,
        renderer_registry: RendererRegistry | None = None,
        metadata_extractor: CompositeMetadataExtractor | None = None,
        url_deriver: UrlDeriver | None = None,
        default_layout: str = "post",
    ):
        self.renderer_registry = renderer_registry or default_renderer_registry
        self.metadata_extractor = metadata_extractor or default_metadata_extractor
        self.url_deriver = url_deriver or UrlDeriver()
        self.default_layout = default_layout

    def build(self, path: Path, draft: bool = False) -> Post:
        """Build a Post from a source file.

        Args:
            path: Path to the source file.
            draft: Force draft status (e.g. the file lives in _drafts).

        Returns:
            Post object.

        Raises:
            FrontMatterError: If the file's front matter is malformed.
        """
        raw = path.read_text(encoding="utf-8")
        try:
            frontmatter, body = split_frontmatter(raw)
        except FrontMatterError as exc:
            raise exc.with_path(path) from exc
        return self.build_from_parts(path, frontmatter, body, draft=draft)

    def build_from_parts(
        self,
        path: Path,
        frontmatter: dict[str, Any],
        body: str,
        draft: bool = False,
    ) -> Post:
        """Build a Post from an already split file."""
        metadata = self.metadata_extractor.extract(frontmatter, body, path)

        renderer = self.renderer_registry.get_renderer(path)
        if renderer:
            source_type = renderer.source_type
            content, toc = renderer.render(body)
        else:
            source_type = "unknown"
            content, toc = body, []

        published = metadata.get("published", True) and not draft
        date = metadata.get("date") or datetime.now()
        categories = metadata.get("categories", [])
        slug = slugify(str(frontmatter.get("slug") or path.stem))
        permalink = frontmatter.get("permalink")
        url = self.url_deriver.derive(
            slug, date, categories, str(permalink) if permalink else None
        )

        return Post(
            title=metadata.get("title", path.stem),
            layout=str(frontmatter.get("layout") or self.default_layout),
            tags=metadata.get("tags", set()),
            status=PostStatus.PUBLISHED if published else PostStatus.DRAFT,
            metadata=metadata.get("metadata", {}),
            body=body,
            content=content,
            excerpt=metadata.get("excerpt", ""),
            description=metadata.get("description", ""),
            keywords=metadata.get("keywords", []),
            date=date,
            slug=slug,
            url=url,
            categories=categories,
            path=path,
            filename=path.name,
            source_type=source_type,
            frontmatter=frontmatter,
            code_blocks=extract_code_blocks(body),
            toc=toc,
        )


class ContentProcessor:
    """Loads every post under a source directory.

    Files with malformed front matter are fatal to that post only: they
    are recorded in the result and the rest still load.

    Attributes:
        source_dir: Root of the Jekyll source tree.
    """

    def __init__(
        self,
        source_dir: Path,
        content_loader: FileContentLoader | None = None,
        post_builder: DefaultPostBuilder | None = None,
    ):
        self.source_dir = source_dir
        self._content_loader = content_loader or FileContentLoader(source_dir)
        self._post_builder = post_builder or DefaultPostBuilder()

    def load(self, include_drafts: bool = False, strict: bool = False) -> LoadResult:
        """Load all post files and create Post objects.

        Args:
            include_drafts: Whether to include drafts.
            strict: Re-raise the first FrontMatterError instead of skipping.

        Returns:
            LoadResult with the posts and any skipped files.

        Raises:
            FrontMatterError: In strict mode, for the first malformed file.
            PostLoadError: If a file cannot be read or rendered.
        """
        result = LoadResult(posts=[])
        for path in self._content_loader.iter_files(include_drafts):
            try:
                post = self._post_builder.build(
                    path, draft=self._content_loader.is_draft(path)
                )
            except FrontMatterError as exc:
                if strict:
                    raise
                result.skipped.append(SkippedFile(path=path, error=exc))
                continue
            except Exception as exc:
                raise PostLoadError(path, exc) from exc
            result.posts.append(post)
        return result


def load_post(
    path: Path,
    builder: DefaultPostBuilder | None = None,
    drafts_dir: Path | None = None,
) -> Post:
    """Build a single post, treating files under the drafts directory as drafts.

    Args:
        path: Path to the post file.
        builder: Optional configured builder.
        drafts_dir: Configured drafts directory. When omitted, any
            ``_drafts`` path component marks a draft.

    Returns:
        Post object.
    """
    builder = builder or DefaultPostBuilder()
    if drafts_dir is None:
        draft = "_drafts" in path.parts
    else:
        draft = drafts_dir.resolve() in path.resolve().parents
    return builder.build(path, draft=draft)
