import json
from pathlib import Path

import pytest

from folio.build import (
    BuildError,
    CSS_NAME,
    MANIFEST_NAME,
    _format_error_message,
    build_posts,
    load_config,
    manifest_entry,
)
from folio.content import DefaultPostBuilder

POST = """---
layout: post
title: Mocking sockets
date: 2011-06-14 18:52:47 +0000
tags: [php, tdd]
meta:
  _aioseop_keywords: phpunit, mocks
---
Sockets are hard to test.

## The mock

{% highlight php %}
$socket = $this->getMock('Socket');
{% endhighlight %}
"""


def create_project(root: Path) -> Path:
    (root / "_posts").mkdir()
    (root / "_drafts").mkdir()
    (root / "_posts" / "2011-06-14-mocking-sockets.md").write_text(POST, encoding="utf-8")
    (root / "_posts" / "2011-05-01-older.md").write_text(
        "---\ntitle: Older\ntags: php\n---\nOlder post.\n", encoding="utf-8"
    )
    (root / "_drafts" / "idea.md").write_text("---\ntitle: Idea\n---\nLater.\n", encoding="utf-8")
    return root


def test_load_config_defaults_and_overrides(tmp_path):
    assert load_config(tmp_path)["output_dir"] == "_folio"

    (tmp_path / "_config.yml").write_text(
        "title: My blog\npermalink: date\nexcerpt_separator: <!--more-->\n", encoding="utf-8"
    )
    config = load_config(tmp_path)
    assert config["permalink"] == "date"
    assert config["excerpt_separator"] == "<!--more-->"
    assert "title" not in config

    (tmp_path / "folio.yaml").write_text(
        "permalink: none\nhighlight_style: monokai\n", encoding="utf-8"
    )
    config = load_config(tmp_path)
    assert config["permalink"] == "none"
    assert config["highlight_style"] == "monokai"


def test_build_writes_fragments_manifest_and_css(tmp_path):
    root = create_project(tmp_path)
    result = build_posts(root)

    assert [p.title for p in result.posts] == ["Mocking sockets", "Older"]
    assert result.skipped == []
    out = root / "_folio"
    assert result.output_dir == out

    fragment = (out / "2011" / "06" / "14" / "mocking-sockets" / "index.html").read_text(encoding="utf-8")
    assert fragment.startswith("<p>Sockets are hard to test.</p>")
    assert '<h2 id="the-mock">' in fragment
    assert '<div class="highlight">' in fragment
    assert not (out / "2011" / "06" / "14" / "idea").exists()

    manifest = json.loads((out / MANIFEST_NAME).read_text(encoding="utf-8"))
    assert manifest["generator"].startswith("folio ")
    first = manifest["posts"][0]
    assert first["url"] == "/2011/06/14/mocking-sockets/"
    assert first["date"] == "2011-06-14T18:52:47"
    assert first["status"] == "published"
    assert first["keywords"] == ["phpunit", "mocks"]
    assert first["source"] == "_posts/2011-06-14-mocking-sockets.md"
    assert first["code_blocks"] == [{"language": "php", "linenos": False, "lines": 1}]
    assert manifest["tags"] == {
        "php": ["/2011/06/14/mocking-sockets/", "/2011/05/01/older/"],
        "tdd": ["/2011/06/14/mocking-sockets/"],
    }

    assert ".highlight" in (out / CSS_NAME).read_text(encoding="utf-8")


def test_build_with_drafts_and_html_permalinks(tmp_path):
    root = create_project(tmp_path)
    (root / "folio.yaml").write_text("permalink: none\noutput_dir: public\n", encoding="utf-8")
    result = build_posts(root, include_drafts=True)
    assert {p.title for p in result.posts} == {"Mocking sockets", "Older", "Idea"}
    assert (root / "public" / "idea.html").exists()
    manifest = json.loads((root / "public" / MANIFEST_NAME).read_text(encoding="utf-8"))
    statuses = {entry["title"]: entry["status"] for entry in manifest["posts"]}
    assert statuses["Idea"] == "draft"


def test_build_skips_malformed_unless_strict(tmp_path):
    root = create_project(tmp_path)
    broken = root / "_posts" / "2011-07-01-broken.md"
    broken.write_text("---\ntitle: [unterminated\n---\nbody", encoding="utf-8")

    result = build_posts(root)
    assert len(result.posts) == 2
    assert [s.path for s in result.skipped] == [broken]

    with pytest.raises(BuildError) as excinfo:
        build_posts(root, strict=True)
    assert excinfo.value.source_path == broken
    assert "invalid YAML" in excinfo.value.message


def test_build_cleans_output_unless_told_not_to(tmp_path):
    root = create_project(tmp_path)
    out = tmp_path / "elsewhere"
    out.mkdir()
    (out / "stale.txt").write_text("old", encoding="utf-8")
    build_posts(root, clean_output=False, output_dir_override=out)
    assert (out / "stale.txt").exists()
    build_posts(root, output_dir_override=out)
    assert not (out / "stale.txt").exists()
    assert (out / MANIFEST_NAME).exists()


def test_manifest_entry_without_root(tmp_path):
    path = tmp_path / "2011-06-14-post.md"
    path.write_text("---\ntitle: Post\n---\nBody", encoding="utf-8")
    entry = manifest_entry(DefaultPostBuilder().build(path))
    assert entry["source"] == path.as_posix()
    assert entry["tags"] == []


def test_format_error_message():
    assert _format_error_message(OSError("disk full")) == "I/O error: disk full"
    assert _format_error_message(KeyError("x")) == "KeyError: 'x'"


def test_build_rejects_permalink_outside_output(tmp_path):
    root = tmp_path / "site"
    root.mkdir()
    create_project(root)
    escaping = root / "_posts" / "2011-08-01-escape.md"
    escaping.write_text("---\npermalink: /../../escaped/\n---\nx", encoding="utf-8")

    with pytest.raises(BuildError) as excinfo:
        build_posts(root)
    assert excinfo.value.source_path == escaping
    assert "outside the output directory" in excinfo.value.message
    assert not (tmp_path / "escaped").exists()


def test_build_error_names_unreadable_post(tmp_path):
    root = create_project(tmp_path)
    bad = root / "_posts" / "2011-01-01-bad.md"
    bad.write_bytes(b"---\ntitle: Bad\n---\n\xff\xfe")

    with pytest.raises(BuildError) as excinfo:
        build_posts(root)
    assert excinfo.value.source_path == bad
    assert excinfo.value.message.startswith("File is not valid UTF-8")
    assert isinstance(excinfo.value.original_error, UnicodeDecodeError)
