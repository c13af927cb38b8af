"""Command-line interface for Folio.

This module defines the CLI commands using the Click framework.

Commands:
- render: Render one post to an HTML fragment or standalone preview.
- check: Validate the front matter of posts.
- blocks: List the code blocks of a post.
- build: Render all posts into fragments and a manifest.
- css: Print Pygments CSS for highlighted code.
- new: Create a new post interactively.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import click
import questionary

from . import __version__
from .build import create_builder, load_config
from .content import FileContentLoader, load_post
from .frontmatter import FrontMatterError, dump_frontmatter, split_frontmatter
from .renderers import highlight_css
from .utils import slugify


@click.group()
@click.version_option(version=__version__, prog_name="folio")
def cli():
    """Folio: front matter and code highlighting for Jekyll-style posts."""


def _fail(header: str, path: Path | None, message: str) -> None:
    click.echo(click.style(header, fg="red", bold=True), err=True)
    if path is not None:
        click.echo(click.style(f"  File: {path}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {message}", fg="white"), err=True)
    raise SystemExit(1)


def _location(exc: FrontMatterError) -> str:
    return f"line {exc.line}: {exc.message}" if exc.line is not None else exc.message


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--standalone", is_flag=True, help="Wrap the fragment in a preview page")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write to a file instead of stdout",
)
def render(path: Path, standalone: bool, output: Path | None):
    """Render one post to HTML."""
    project_root = Path.cwd()
    config = load_config(project_root)
    drafts_dir = project_root / str(config["source"]) / str(config["drafts_dir"])
    try:
        post = load_post(path, create_builder(config), drafts_dir=drafts_dir)
    except FrontMatterError as exc:
        _fail("Render failed:", path, _location(exc))
    except UnicodeDecodeError:
        _fail("Render failed:", path, "not valid UTF-8")

    if standalone:
        from .preview import PreviewRenderer

        html = PreviewRenderer(
            style=str(config["highlight_style"]), cssclass=str(config["highlight_class"])
        ).render(post)
    else:
        html = post.content

    if output is None:
        click.echo(html, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(html, encoding="utf-8")
    click.echo(f"Rendered {path} into {output}")


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--drafts", is_flag=True, help="Include drafts")
def check(paths: tuple[Path, ...], drafts: bool):
    """Validate front matter of posts (all posts when no PATHS are given)."""
    project_root = Path.cwd()
    if paths:
        files = list(paths)
    else:
        config = load_config(project_root)
        loader = FileContentLoader(
            project_root / str(config["source"]),
            posts_dir=str(config["posts_dir"]),
            drafts_dir=str(config["drafts_dir"]),
        )
        files = loader.iter_files(include_drafts=drafts)

    failures = 0
    for path in files:
        try:
            split_frontmatter(path.read_text(encoding="utf-8"))
        except FrontMatterError as exc:
            failures += 1
            click.echo(click.style(f"{path}: {_location(exc)}", fg="red"), err=True)
        except UnicodeDecodeError:
            failures += 1
            click.echo(click.style(f"{path}: not valid UTF-8", fg="red"), err=True)

    checked = len(files)
    if failures:
        click.echo(
            click.style(f"{failures} of {checked} files have malformed front matter", bold=True),
            err=True,
        )
        raise SystemExit(1)
    click.echo(f"Checked {checked} files, front matter OK")


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Print blocks as JSON")
def blocks(path: Path, as_json: bool):
    """List the code blocks of a post."""
    from .codeblocks import extract_code_blocks

    try:
        _, body = split_frontmatter(path.read_text(encoding="utf-8"))
    except FrontMatterError as exc:
        _fail("Cannot read post:", path, _location(exc))
    except UnicodeDecodeError:
        _fail("Cannot read post:", path, "not valid UTF-8")

    found = extract_code_blocks(body)
    if as_json:
        payload = [
            {
                "language": block.language,
                "linenos": block.linenos,
                "options": block.options,
                "syntax": block.syntax,
                "source": block.source,
            }
            for block in found
        ]
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    for number, block in enumerate(found, start=1):
        flags = " linenos" if block.linenos else ""
        language = block.language or "(none)"
        click.echo(f"{number}. {language}{flags} [{block.syntax}] {block.line_count} lines")
    click.echo(f"{len(found)} code blocks")


@cli.command()
@click.option("--drafts", is_flag=True, help="Include drafts")
@click.option("--strict", is_flag=True, help="Fail on the first malformed post")
def build(drafts: bool, strict: bool):
    """Render all posts into the output directory."""
    project_root = Path.cwd()
    from .build import BuildError, build_posts

    try:
        result = build_posts(project_root, include_drafts=drafts, strict=strict)
    except BuildError as exc:
        try:
            rel_path = exc.source_path.relative_to(project_root)
        except ValueError:
            rel_path = exc.source_path
        _fail("Build failed:", rel_path, exc.message)

    for skipped in result.skipped:
        click.echo(
            click.style(f"Skipped {skipped.path}: {_location(skipped.error)}", fg="yellow"),
            err=True,
        )
    click.echo(f"Built {len(result.posts)} posts into {result.output_dir}")


@cli.command()
@click.option("--style", default=None, help="Pygments style (overrides folio.yaml)")
def css(style: str | None):
    """Print CSS for highlighted code blocks."""
    config = load_config(Path.cwd())
    click.echo(
        highlight_css(style or str(config["highlight_style"]), str(config["highlight_class"]))
    )


@cli.command()
def new():
    """Create a new post interactively."""
    project_root = Path.cwd()
    config = load_config(project_root)
    source_dir = project_root / str(config["source"])

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()

    tags = questionary.text("Tags (space separated):", style=_questionary_style()).ask()
    if tags is None:
        raise click.Abort()

    as_draft = questionary.confirm(
        "Save as draft?", default=True, style=_questionary_style()
    ).ask()
    if as_draft is None:
        raise click.Abort()

    slug = slugify(title.strip())
    now = datetime.now().replace(microsecond=0)
    if as_draft:
        target_dir = source_dir / str(config["drafts_dir"])
        filename = f"{slug}.md"
    else:
        target_dir = source_dir / str(config["posts_dir"])
        filename = f"{now:%Y-%m-%d}-{slug}.md"
    target_path = target_dir / filename

    existing = _get_existing_slugs(target_dir)
    if target_path.exists() or slug in existing:
        raise click.ClickException(f"A post with slug '{slug}' already exists in {target_dir}")

    metadata = {
        "layout": str(config["layout"]),
        "title": title.strip(),
        "date": now.strftime("%Y-%m-%d %H:%M:%S"),
        "tags": tags.split(),
    }
    if as_draft:
        metadata["published"] = False
    target_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(dump_frontmatter(metadata, "\n"), encoding="utf-8")
    click.echo(f"Created {target_path.relative_to(project_root)}")


def _get_existing_slugs(folder: Path) -> set[str]:
    """Get set of existing slugs in a folder."""
    slugs = set()
    if folder.exists():
        for f in folder.iterdir():
            if f.is_file():
                slugs.add(slugify(f.stem))
    return slugs


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
