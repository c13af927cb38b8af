"""Post building for Folio.

This module loads configuration, renders every post into an HTML
fragment and writes a JSON manifest the site generator can consume.

Key functions:
- build_posts: Render all posts into the output directory.
- load_config: Load configuration from _config.yml and folio.yaml.
- create_processor: Build a ContentProcessor wired from configuration.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from . import __version__
from .collections import PostCollection, TagCollection
from .content import (
    ContentProcessor,
    DefaultPostBuilder,
    FileContentLoader,
    Post,
    PostLoadError,
    SkippedFile,
    UrlDeriver,
)
from .extractors import CompositeMetadataExtractor
from .frontmatter import FrontMatterError
from .renderers import RendererRegistry, highlight_css
from .utils import build_tags_index, ensure_clean_dir


class BuildError(Exception):
    """Error during a build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


DEFAULT_CONFIG = {
    "source": ".",
    "posts_dir": "_posts",
    "drafts_dir": "_drafts",
    "output_dir": "_folio",
    "permalink": "pretty",
    "layout": "post",
    "excerpt_separator": "\n\n",
    "highlight_style": "default",
    "highlight_class": "highlight",
}

# Settings shared with Jekyll's own configuration file
JEKYLL_KEYS = ("source", "permalink", "excerpt_separator")

MANIFEST_NAME = "posts.json"
CSS_NAME = "highlight.css"


@dataclass
class BuildResult:
    """Result of a build.

    Attributes:
        posts: Posts that were rendered.
        output_dir: Directory where fragments were written.
        skipped: Files left out because of malformed front matter.
    """

    posts: list[Post]
    output_dir: Path
    skipped: list[SkippedFile] = field(default_factory=list)


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}
    return loaded if isinstance(loaded, dict) else {}


def load_config(project_root: Path) -> dict[str, Any]:
    """Load configuration.

    Defaults are overlaid with the Jekyll settings Folio shares from
    ``_config.yml``, then with everything in ``folio.yaml``.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.
    """
    config = DEFAULT_CONFIG.copy()
    jekyll = _read_yaml(project_root / "_config.yml")
    config.update({key: jekyll[key] for key in JEKYLL_KEYS if key in jekyll})
    config.update(_read_yaml(project_root / "folio.yaml"))
    return config


def create_builder(config: dict[str, Any]) -> DefaultPostBuilder:
    """Create a post builder from configuration.

    Args:
        config: Configuration from load_config().

    Returns:
        Configured DefaultPostBuilder.
    """
    return DefaultPostBuilder(
        renderer_registry=RendererRegistry(
            cssclass=str(config["highlight_class"]), style=str(config["highlight_style"])
        ),
        metadata_extractor=CompositeMetadataExtractor(
            excerpt_separator=str(config["excerpt_separator"])
        ),
        url_deriver=UrlDeriver(str(config["permalink"])),
        default_layout=str(config["layout"]),
    )


def create_processor(project_root: Path, config: dict[str, Any]) -> ContentProcessor:
    """Create a content processor from configuration.

    Args:
        project_root: Root directory of the project.
        config: Configuration from load_config().

    Returns:
        ContentProcessor reading the configured posts and drafts directories.
    """
    source_dir = project_root / str(config["source"])
    loader = FileContentLoader(
        source_dir, posts_dir=str(config["posts_dir"]), drafts_dir=str(config["drafts_dir"])
    )
    return ContentProcessor(source_dir, content_loader=loader, post_builder=create_builder(config))


def build_posts(
    project_root: Path,
    include_drafts: bool = False,
    strict: bool = False,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Render every post into HTML fragments and a manifest.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to include drafts.
        strict: Fail on the first malformed file instead of skipping it.
        clean_output: Whether to wipe the output directory first.
        output_dir_override: Write here instead of the configured output_dir.

    Returns:
        BuildResult with the rendered posts and skipped files.

    Raises:
        BuildError: If a post cannot be loaded or written.
    """
    config = load_config(project_root)
    output_dir = output_dir_override or (project_root / str(config["output_dir"]))
    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    processor = create_processor(project_root, config)
    try:
        loaded = processor.load(include_drafts=include_drafts, strict=strict)
    except FrontMatterError as exc:
        raise BuildError(exc.path or project_root, exc.message, exc) from exc
    except PostLoadError as exc:
        raise BuildError(
            exc.path, _format_error_message(exc.original_error), exc.original_error
        ) from exc

    posts = PostCollection(loaded.posts).sorted()
    for post in posts:
        try:
            _write_fragment(output_dir, post)
        except OSError as exc:
            raise BuildError(post.path, _format_error_message(exc), exc) from exc

    _write_manifest(output_dir, project_root, posts)
    (output_dir / CSS_NAME).write_text(
        highlight_css(str(config["highlight_style"]), str(config["highlight_class"])),
        encoding="utf-8",
    )
    return BuildResult(posts=list(posts), output_dir=output_dir, skipped=loaded.skipped)


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    error_msg = str(exc)
    if isinstance(exc, UnicodeDecodeError):
        return f"File is not valid UTF-8: {error_msg}"
    if isinstance(exc, OSError):
        return f"I/O error: {error_msg}"
    return f"{error_type}: {error_msg}"


def _write_fragment(output_dir: Path, post: Post) -> None:
    """Write a rendered post fragment under its URL path.

    Raises:
        BuildError: If the URL points outside the output directory.
    """
    url_path = post.url.strip("/")
    if url_path.endswith(".html"):
        target = output_dir / url_path
    else:
        target = output_dir / url_path / "index.html"
    if output_dir.resolve() not in target.resolve().parents:
        raise BuildError(post.path, f"URL {post.url} points outside the output directory")
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        f.write(post.content)


def manifest_entry(post: Post, project_root: Path | None = None) -> dict[str, Any]:
    """Describe a post as JSON-serializable data.

    Args:
        post: Post to describe.
        project_root: When given, source paths are made relative to it.

    Returns:
        Dictionary for the manifest.
    """
    source = post.path
    if source is not None and project_root is not None:
        try:
            source = source.relative_to(project_root)
        except ValueError:
            pass
    return {
        "title": post.title,
        "layout": post.layout,
        "url": post.url,
        "slug": post.slug,
        "date": post.date.isoformat(),
        "status": post.status.value,
        "tags": sorted(post.tags),
        "categories": post.categories,
        "description": post.description,
        "excerpt": post.excerpt,
        "keywords": post.keywords,
        "metadata": post.metadata,
        "source": source.as_posix() if source is not None else None,
        "source_type": post.source_type,
        "code_blocks": [
            {
                "language": block.language,
                "linenos": block.linenos,
                "lines": block.line_count,
            }
            for block in post.code_blocks
        ],
    }


def _write_manifest(output_dir: Path, project_root: Path, posts: PostCollection) -> None:
    """Write posts.json with every post and the tag index."""
    tags = TagCollection(build_tags_index(posts))
    payload = {
        "generator": f"folio {__version__}",
        "posts": [manifest_entry(post, project_root) for post in posts],
        "tags": {tag: [post.url for post in tagged] for tag, tagged in tags.items()},
    }
    (output_dir / MANIFEST_NAME).write_text(
        json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
    )
