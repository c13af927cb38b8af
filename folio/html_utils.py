"""HTML utility functions for Folio.

Functions:
    escape_html: Escape special HTML characters in a string.
    strip_tags: Remove markup, leaving plain text.
"""

from __future__ import annotations

import re

_TAG_RE = re.compile(r"<[^>]+>")


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Converts the following characters to their HTML entity equivalents:
    - & becomes &amp;
    - < becomes &lt;
    - > becomes &gt;
    - " becomes &quot;

    Args:
        text: The string to escape.

    Returns:
        The escaped string, safe for inclusion in HTML.

    Examples:
        >>> escape_html('<?php echo "hi"; ?>')
        '&lt;?php echo &quot;hi&quot;; ?&gt;'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def strip_tags(html: str) -> str:
    """Remove HTML tags and collapse whitespace.

    Args:
        html: HTML fragment.

    Returns:
        Plain text content.
    """
    return " ".join(_TAG_RE.sub("", html).split())
