"""Code block scanning for Folio.

Posts carry code samples in two forms: Markdown fences (```` ```php ````)
and Jekyll's Liquid highlight tag::

    {% highlight php linenos %}
    $mock = $this->getMock('Socket');
    {% endhighlight %}

This module finds both in document order and lets callers rewrite the
Liquid form into something their renderer understands.

Key items:
- CodeBlock: Dataclass describing one code region.
- extract_code_blocks: Scan a body for code regions.
- replace_highlight_tags: Rewrite Liquid highlight blocks via a callback.
- parse_options: Parse ``key`` / ``key=value`` display options.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

FENCE_OPEN_RE = re.compile(
    r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>[^\n]*?)[ \t]*$"
)
HIGHLIGHT_OPEN_RE = re.compile(
    r"^[ \t]*\{%-?[ \t]*highlight[ \t]+(?P<lang>[A-Za-z0-9.+#_-]+)"
    r"(?P<options>[^%]*?)[ \t]*-?%\}(?P<rest>.*)$"
)
HIGHLIGHT_CLOSE_RE = re.compile(r"\{%-?[ \t]*endhighlight[ \t]*-?%\}")
OPTION_RE = re.compile(r'([A-Za-z_][\w-]*)(?:=("[^"]*"|\'[^\']*\'|[^\s"\']+))?')


@dataclass
class CodeBlock:
    """A code region embedded in a post body.

    Attributes:
        language: Declared language tag, empty when none was given.
        linenos: Whether line numbers were requested.
        source: Literal code text, without the surrounding markers.
        options: Display options as written (e.g. ``{"linenos": "table"}``).
        syntax: ``"fence"`` or ``"liquid"``.
        start: Offset of the line holding the opening marker.
        end: Offset just past the closing marker, including its newline
            when nothing else follows it on that line.
    """

    language: str
    linenos: bool
    source: str
    options: dict[str, str] = field(default_factory=dict)
    syntax: str = "fence"
    start: int = 0
    end: int = 0

    @property
    def line_count(self) -> int:
        return len(self.source.splitlines())


def parse_options(text: str) -> dict[str, str]:
    """Parse display options such as ``linenos mark_lines="1 2"``.

    Args:
        text: Option string following the language tag.

    Returns:
        Mapping of option name to value. Bare flags map to ``"true"``.

    Examples:
        >>> parse_options('linenos=table mark_lines="1 2"')
        {'linenos': 'table', 'mark_lines': '1 2'}
    """
    options: dict[str, str] = {}
    for name, value in OPTION_RE.findall(text or ""):
        if value[:1] in ('"', "'"):
            value = value[1:-1]
        options[name] = value or "true"
    return options


def parse_info_string(info: str | None) -> tuple[str, dict[str, str]]:
    """Split a fence info string into language and options.

    Args:
        info: Text after the opening fence, e.g. ``"php linenos"``.

    Returns:
        Tuple of (language, options).
    """
    parts = (info or "").strip().split(None, 1)
    if not parts:
        return "", {}
    language = parts[0]
    options = parse_options(parts[1]) if len(parts) > 1 else {}
    return language, options


def _wants_linenos(options: dict[str, str]) -> bool:
    value = options.get("linenos")
    return value is not None and value.lower() not in ("false", "no", "0")


def _iter_lines(text: str) -> Iterator[tuple[int, str, str]]:
    """Yield (offset, line without newline, newline) for each line."""
    offset = 0
    for raw in text.splitlines(keepends=True):
        line = raw.rstrip("\r\n")
        yield offset, line, raw[len(line) :]
        offset += len(raw)


def _strip_indent(line: str, indent: int) -> str:
    removable = len(line) - len(line.lstrip(" "))
    return line[min(indent, removable) :]


def extract_code_blocks(body: str) -> list[CodeBlock]:
    """Find fenced and Liquid code blocks in a post body.

    Args:
        body: Post body text (front matter already removed).

    Returns:
        CodeBlock instances in document order.
    """
    blocks: list[CodeBlock] = []
    lines = list(_iter_lines(body))
    index = 0
    while index < len(lines):
        offset, line, _ = lines[index]

        fence = FENCE_OPEN_RE.match(line)
        if fence and not (fence.group("fence")[0] == "`" and "`" in fence.group("info")):
            block, index = _read_fence(lines, index, fence, len(body))
            blocks.append(block)
            continue

        highlight = HIGHLIGHT_OPEN_RE.match(line)
        if highlight:
            block, index = _read_highlight(lines, index, highlight, len(body))
            if block is not None:
                blocks.append(block)
                continue
        index += 1
    return blocks


def _read_fence(lines, index, match, body_length) -> tuple[CodeBlock, int]:
    start = lines[index][0]
    marker = match.group("fence")
    indent = len(match.group("indent"))
    language, options = parse_info_string(match.group("info"))
    close_re = re.compile(
        r"^ {0,3}" + re.escape(marker[0]) + "{" + str(len(marker)) + r",}[ \t]*$"
    )

    content: list[str] = []
    end = body_length
    cursor = index + 1
    while cursor < len(lines):
        offset, line, newline = lines[cursor]
        if close_re.match(line):
            end = offset + len(line) + len(newline)
            cursor += 1
            break
        content.append(_strip_indent(line, indent))
        cursor += 1

    block = CodeBlock(
        language=language,
        linenos=_wants_linenos(options),
        source="\n".join(content),
        options=options,
        syntax="fence",
        start=start,
        end=end,
    )
    return block, cursor


def _read_highlight(lines, index, match, body_length) -> tuple[CodeBlock | None, int]:
    start = lines[index][0]
    options = parse_options(match.group("options"))

    content: list[str] = []
    pending = match.group("rest")
    cursor = index
    while True:
        close = HIGHLIGHT_CLOSE_RE.search(pending)
        if close:
            content.append(pending[: close.start()])
            offset, line, newline = lines[cursor]
            if pending[close.end() :].strip():
                end = offset + len(line) - len(pending) + close.end()
            else:
                end = offset + len(line) + len(newline)
            break
        content.append(pending)
        cursor += 1
        if cursor >= len(lines):
            # Unclosed tag is left as literal text
            return None, index + 1
        pending = lines[cursor][1]

    source = "\n".join(content).strip("\r\n")
    block = CodeBlock(
        language=match.group("lang"),
        linenos=_wants_linenos(options),
        source=source,
        options=options,
        syntax="liquid",
        start=start,
        end=end,
    )
    return block, cursor + 1


def replace_highlight_tags(body: str, replace: Callable[[CodeBlock], str]) -> str:
    """Rewrite every Liquid highlight block in a body.

    Fenced blocks are left untouched, including any highlight tags
    written literally inside them.

    Args:
        body: Post body text.
        replace: Callback returning the replacement text for a block.

    Returns:
        Body with each ``{% highlight %}`` region replaced.
    """
    parts: list[str] = []
    cursor = 0
    for block in extract_code_blocks(body):
        if block.syntax != "liquid":
            continue
        parts.append(body[cursor : block.start])
        parts.append(replace(block))
        cursor = block.end
    parts.append(body[cursor:])
    return "".join(parts)


def to_fence(block: CodeBlock) -> str:
    """Express a code block as a Markdown fence.

    The fence is made longer than any backtick run inside the code.

    Args:
        block: Code block to convert.

    Returns:
        Fenced code block text, ending with a newline.
    """
    longest = max((len(run) for run in re.findall(r"`+", block.source)), default=0)
    marker = "`" * max(3, longest + 1)
    info = " ".join([block.language, *_format_options(block.options)]).strip()
    return f"{marker}{info}\n{block.source}\n{marker}\n"


def _format_options(options: dict[str, str]) -> list[str]:
    formatted = []
    for name, value in options.items():
        if value == "true":
            formatted.append(name)
        elif re.search(r"\s", value):
            formatted.append(f'{name}="{value}"')
        else:
            formatted.append(f"{name}={value}")
    return formatted
