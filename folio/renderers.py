"""Content renderers for Folio.

This module contains implementations of the ContentRenderer protocol
for the body formats a post may use. Each renderer handles a single
responsibility: rendering one type of content.

Key items:
- highlight_code: Pygments highlighting for a single code block.
- MarkdownRenderer: Renders Markdown to HTML with syntax highlighting.
- HTMLRenderer: Passes HTML through, highlighting Liquid code blocks.
- RendererRegistry: Picks a renderer for a file.
"""

from __future__ import annotations

import re
from pathlib import Path

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .codeblocks import CodeBlock, parse_info_string, replace_highlight_tags, to_fence
from .html_utils import escape_html
from .utils import is_html, is_markdown

PHP_ALIASES = {"php", "php3", "php4", "php5"}
DEFAULT_CSS_CLASS = "highlight"
DEFAULT_STYLE = "default"


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text (may contain inline markup).

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-") or "section"


def _line_numbers(value: str) -> list[int]:
    return [int(n) for n in re.split(r"[\s,]+", value) if n.isdigit()]


def highlight_code(
    code: str,
    language: str,
    options: dict[str, str] | None = None,
    cssclass: str = DEFAULT_CSS_CLASS,
    style: str = DEFAULT_STYLE,
) -> str:
    """Render a code block with Pygments.

    Args:
        code: Source text of the block.
        language: Declared language tag.
        options: Display options (``linenos``, ``mark_lines``, ``hl_lines``).
        cssclass: CSS class of the wrapping element.
        style: Pygments style name.

    Returns:
        Highlighted HTML, or an escaped ``<pre><code>`` block when the
        language is unknown.
    """
    options = options or {}
    if not language:
        return _plain_code_block(code, language)

    lexer_options = {"stripnl": True}
    # Blog posts usually quote PHP without the opening tag
    if language.lower() in PHP_ALIASES and "<?" not in code:
        lexer_options["startinline"] = True
    try:
        lexer = get_lexer_by_name(language, **lexer_options)
    except ClassNotFound:
        return _plain_code_block(code, language)

    formatter_options: dict = {"cssclass": cssclass, "style": style}
    linenos = options.get("linenos", "false").lower()
    if linenos not in ("false", "no", "0"):
        formatter_options["linenos"] = "inline" if linenos == "inline" else "table"
    marked = options.get("mark_lines") or options.get("hl_lines")
    if marked:
        formatter_options["hl_lines"] = _line_numbers(marked)
    return highlight(code, lexer, HtmlFormatter(**formatter_options))


def _plain_code_block(code: str, language: str) -> str:
    lang_class = f' class="language-{escape_html(language)}"' if language else ""
    escaped = (
        code.rstrip("\n").replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    )
    return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


def highlight_css(style: str = DEFAULT_STYLE, cssclass: str = DEFAULT_CSS_CLASS) -> str:
    """Return Pygments CSS rules for highlighted blocks.

    Args:
        style: Pygments style name.
        cssclass: CSS class used when highlighting.

    Returns:
        CSS string scoped to ``.cssclass``.
    """
    return HtmlFormatter(style=style).get_style_defs(f".{cssclass}")


class _HighlightRenderer(mistune.HTMLRenderer):
    """Markdown renderer with heading anchors and syntax highlighting.

    Attributes:
        headings: List of Heading objects extracted during rendering.
    """

    def __init__(self, cssclass: str = DEFAULT_CSS_CLASS, style: str = DEFAULT_STYLE):
        super().__init__(escape=False)
        self.cssclass = cssclass
        self.style = style
        self.headings: list = []
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading with a unique id and track it for the TOC."""
        # Import here to avoid circular imports
        from .content import Heading

        base_id = _generate_heading_id(text)
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        self.headings.append(Heading(id=heading_id, text=text, level=level))
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a fenced code block through Pygments.

        Args:
            code: The code content.
            info: Fence info string, e.g. ``"php linenos"``.

        Returns:
            HTML string with highlighted code.
        """
        language, options = parse_info_string(info)
        return highlight_code(
            code, language, options, cssclass=self.cssclass, style=self.style
        )


class MarkdownRenderer:
    """Renders Markdown post bodies to HTML.

    Liquid highlight blocks are turned into fences first, so both
    notations end up in the same Pygments path.
    """

    def __init__(self, cssclass: str = DEFAULT_CSS_CLASS, style: str = DEFAULT_STYLE):
        self.cssclass = cssclass
        self.style = style

    @property
    def source_type(self) -> str:
        """Return the source type identifier."""
        return "markdown"

    def can_render(self, path: Path) -> bool:
        return is_markdown(path)

    def render(self, content: str) -> tuple[str, list]:
        """Render Markdown content to HTML.

        Args:
            content: Markdown body.

        Returns:
            Tuple of (rendered HTML, list of Heading objects).
        """
        source = replace_highlight_tags(content, to_fence)
        renderer = _HighlightRenderer(self.cssclass, self.style)
        markdown = mistune.create_markdown(
            renderer=renderer, plugins=["strikethrough", "footnotes", "table", "url"]
        )
        html = markdown(source)
        return html, renderer.headings


class HTMLRenderer:
    """Passes HTML post bodies through.

    Only Liquid highlight blocks are rewritten, into highlighted HTML.
    """

    def __init__(self, cssclass: str = DEFAULT_CSS_CLASS, style: str = DEFAULT_STYLE):
        self.cssclass = cssclass
        self.style = style

    @property
    def source_type(self) -> str:
        """Return the source type identifier."""
        return "html"

    def can_render(self, path: Path) -> bool:
        return is_html(path)

    def render(self, content: str) -> tuple[str, list]:
        """Highlight Liquid code blocks inside HTML content.

        Args:
            content: HTML body.

        Returns:
            Tuple of (HTML, empty heading list).
        """

        def replace(block: CodeBlock) -> str:
            return highlight_code(
                block.source,
                block.language,
                block.options,
                cssclass=self.cssclass,
                style=self.style,
            )

        return replace_highlight_tags(content, replace), []


class RendererRegistry:
    """Registry for content renderers.

    New renderers can be registered without modifying existing code.
    """

    def __init__(self, cssclass: str = DEFAULT_CSS_CLASS, style: str = DEFAULT_STYLE):
        self._renderers: list = []
        self.register(MarkdownRenderer(cssclass, style))
        self.register(HTMLRenderer(cssclass, style))

    def register(self, renderer) -> None:
        """Register a new renderer.

        Args:
            renderer: A ContentRenderer implementation.
        """
        self._renderers.append(renderer)

    def get_renderer(self, path: Path):
        """Get the renderer for a file.

        Args:
            path: Path to the source file.

        Returns:
            The first renderer that can handle the file, or None.
        """
        for renderer in self._renderers:
            if renderer.can_render(path):
                return renderer
        return None


# Default renderer registry instance
default_renderer_registry = RendererRegistry()
