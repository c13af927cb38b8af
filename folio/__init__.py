"""Folio post processor.

Folio reads Jekyll-style blog posts: it splits and validates the YAML
front matter, renders Markdown or HTML bodies with Pygments syntax
highlighting for fenced and ``{% highlight %}`` code blocks, and writes
HTML fragments plus a JSON manifest for a static-site generator to
assemble into pages.

The main entry point is the CLI module, which provides commands for
rendering, checking and building posts.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
