"""Standalone post previews for Folio.

Folio only produces HTML fragments; page layouts belong to the site
generator. This module wraps a single rendered post in a minimal
self-contained document so it can be opened in a browser.

Key items:
- render_toc: Nested table of contents from post headings.
- PreviewRenderer: Jinja2 rendering of the preview document.
"""

from __future__ import annotations

from jinja2 import DictLoader, Environment, select_autoescape
from markupsafe import Markup

from .content import Heading, Post
from .html_utils import escape_html
from .renderers import DEFAULT_CSS_CLASS, DEFAULT_STYLE, highlight_css

__all__ = ["PREVIEW_TEMPLATE", "PreviewRenderer", "render_toc"]

PREVIEW_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ post.title }}</title>
{% if post.description %}<meta name="description" content="{{ post.description }}">
{% endif %}{% if post.keywords %}<meta name="keywords" content="{{ post.keywords | join(', ') }}">
{% endif %}<style>
{{ css }}
</style>
</head>
<body>
<article class="post{% if post.draft %} draft{% endif %}">
<header>
<h1>{{ post.title }}</h1>
<p class="meta"><time datetime="{{ post.date.strftime('%Y-%m-%d') }}">{{ post.date.strftime('%d %b %Y') }}</time>
{%- for tag in post.tags | sort %} <span class="tag">{{ tag }}</span>{% endfor %}</p>
</header>
{% if toc %}<nav class="toc">{{ toc }}</nav>
{% endif %}{{ content }}
</article>
</body>
</html>
"""


def render_toc(post: Post) -> Markup:
    """Render a table of contents as nested HTML from post headings.

    Args:
        post: Post whose toc (list of Heading objects) is rendered.

    Returns:
        Markup-safe HTML string of the nested TOC, or empty Markup if no headings.
    """
    if not post.toc:
        return Markup("")
    return _render_toc_from_headings(post.toc)


def _render_toc_from_headings(headings: list[Heading]) -> Markup:
    html_parts: list[str] = []
    level_stack: list[int] = []

    for heading in headings:
        level = heading.level

        # Close nested lists if going to a shallower level
        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")

        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        else:
            html_parts.append("<ul>")
            level_stack.append(level)

        html_parts.append(
            f'<li><a href="#{escape_html(heading.id)}">{escape_html(heading.text)}</a>'
        )

    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")

    return Markup("".join(html_parts))


class PreviewRenderer:
    """Renders a post into a standalone HTML preview.

    Attributes:
        style: Pygments style for the inline CSS.
        cssclass: CSS class used for highlighted blocks.
        env: Jinja2 environment.
    """

    def __init__(self, style: str = DEFAULT_STYLE, cssclass: str = DEFAULT_CSS_CLASS):
        self.style = style
        self.cssclass = cssclass
        self.env = Environment(
            loader=DictLoader({"preview.html": PREVIEW_TEMPLATE}),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, post: Post, with_toc: bool = True) -> str:
        """Render the preview document.

        Args:
            post: Post to preview.
            with_toc: Whether to include a table of contents.

        Returns:
            Complete HTML document.
        """
        template = self.env.get_template("preview.html")
        return template.render(
            post=post,
            content=Markup(post.content),
            toc=render_toc(post) if with_toc else Markup(""),
            css=Markup(highlight_css(self.style, self.cssclass)),
        )
