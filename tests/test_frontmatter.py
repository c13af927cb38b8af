from datetime import date
from pathlib import Path

import pytest

from folio.frontmatter import (
    FrontMatterError,
    dump_frontmatter,
    has_frontmatter,
    split_frontmatter,
)


def test_split_simple_example():
    assert split_frontmatter("---\ntitle: X\n---\nHello") == ({"title": "X"}, "Hello")


def test_body_length_is_input_minus_block():
    text = "---\nlayout: post\ntitle: Mocking sockets\ntags: [php, tdd]\n---\n\nBody text.\n"
    metadata, body = split_frontmatter(text)
    block = "---\nlayout: post\ntitle: Mocking sockets\ntags: [php, tdd]\n---\n"
    assert metadata == {"layout": "post", "title": "Mocking sockets", "tags": ["php", "tdd"]}
    assert len(body) == len(text) - len(block)
    assert body == "\nBody text.\n"


def test_text_without_frontmatter_is_all_body():
    text = "# Just a heading\n\n---\n\nAfter a rule"
    assert split_frontmatter(text) == ({}, text)
    assert not has_frontmatter(text)


def test_unclosed_block_raises():
    with pytest.raises(FrontMatterError) as excinfo:
        split_frontmatter("---\ntitle: X\nHello")
    assert excinfo.value.line == 1
    assert "never closed" in str(excinfo.value)


def test_delimiter_only_raises():
    with pytest.raises(FrontMatterError):
        split_frontmatter("---")


def test_invalid_yaml_reports_line():
    with pytest.raises(FrontMatterError) as excinfo:
        split_frontmatter("---\ntitle: X\ntags: [php\n---\nbody")
    assert "invalid YAML" in excinfo.value.message
    assert excinfo.value.line is not None


def test_non_mapping_raises():
    with pytest.raises(FrontMatterError) as excinfo:
        split_frontmatter("---\n- one\n- two\n---\nbody")
    assert "mapping" in excinfo.value.message


def test_duplicate_keys_raise():
    with pytest.raises(FrontMatterError) as excinfo:
        split_frontmatter("---\ntitle: A\ntitle: B\n---\nbody")
    assert "duplicate key" in excinfo.value.message
    assert excinfo.value.line == 3


def test_duplicate_keys_in_nested_mapping_raise():
    with pytest.raises(FrontMatterError):
        split_frontmatter("---\nmeta:\n  a: 1\n  a: 2\n---\n")


def test_empty_block_and_dots_closer():
    assert split_frontmatter("---\n---\nbody") == ({}, "body")
    assert split_frontmatter("---\ntitle: X\n...\nbody") == ({"title": "X"}, "body")


def test_bom_crlf_and_trailing_spaces():
    text = "\ufeff--- \r\ntitle: X\r\n---  \r\nHello\r\n"
    metadata, body = split_frontmatter(text)
    assert metadata == {"title": "X"}
    assert body == "Hello\r\n"
    assert has_frontmatter(text)


def test_closing_delimiter_at_end_of_file():
    assert split_frontmatter("---\ntitle: X\n---") == ({"title": "X"}, "")


def test_keys_are_strings_and_values_keep_yaml_types():
    metadata, _ = split_frontmatter("---\n2011: year\npublished: true\ndate: 2011-06-14\n---\n")
    assert metadata == {"2011": "year", "published": True, "date": date(2011, 6, 14)}


def test_error_with_path():
    error = FrontMatterError("broken", line=4).with_path(Path("_posts/a.md"))
    assert error.path == Path("_posts/a.md")
    assert str(error) == "_posts/a.md:4: broken"


def test_round_trip():
    metadata = {
        "layout": "post",
        "title": "Test-driven development: mocks with PHPUnit",
        "tags": ["php", "phpunit", "tdd"],
        "published": True,
        "meta": {"_aioseop_description": "Mocking a socket in PHPUnit"},
    }
    body = "Intro paragraph.\n\n{% highlight php %}\n$x = 1;\n{% endhighlight %}\n"
    parsed, parsed_body = split_frontmatter(dump_frontmatter(metadata, body))
    assert parsed == metadata
    assert parsed_body == body


def test_round_trip_preserves_key_order_and_empty_metadata():
    dumped = dump_frontmatter({"title": "B", "layout": "post"}, "x")
    assert dumped.index("title") < dumped.index("layout")
    assert split_frontmatter(dump_frontmatter({}, "body")) == ({}, "body")
