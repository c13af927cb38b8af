from datetime import datetime
from pathlib import Path

import pytest

from folio.content import (
    ContentProcessor,
    DefaultPostBuilder,
    FileContentLoader,
    PostLoadError,
    PostStatus,
    UrlDeriver,
    load_post,
)
from folio.frontmatter import FrontMatterError

MOCK_POST = """---
layout: post
title: "TDD and mock objects with PHPUnit"
date: 2011-06-14 18:52:47 +0000
tags:
- php
- phpunit
- tdd
categories: [testing]
published: true
status: publish
type: post
meta:
  _edit_last: '1'
  _aioseop_keywords: phpunit, mock objects
  _aioseop_description: Using PHPUnit mocks to test a socket wrapper.
---
Test-driven development gets awkward when a class talks to the network.

## Mocking the socket

{% highlight php linenos %}
<?php
class ClientTest extends PHPUnit_Framework_TestCase
{
    public function testSendWritesToSocket()
    {
        $socket = $this->getMock('Socket', array('write'));
        $socket->expects($this->once())->method('write');
    }
}
{% endhighlight %}

Run it with `phpunit ClientTest.php`.
"""


def create_site(tmp_path: Path) -> Path:
    site = tmp_path
    (site / "_posts").mkdir()
    (site / "_drafts").mkdir()
    (site / "_posts" / "2011-06-14-tdd-mock-objects.md").write_text(MOCK_POST, encoding="utf-8")
    (site / "_posts" / "2011-01-02-hello.markdown").write_text(
        "---\ntitle: Hello\ntags: intro\n---\n# Hello\n\nFirst post.\n", encoding="utf-8"
    )
    (site / "_posts" / "2011-03-01-imported.html").write_text(
        "---\ntitle: Imported\n---\n<p>From WordPress</p>\n"
        "{% highlight php %}\necho 'hi';\n{% endhighlight %}\n",
        encoding="utf-8",
    )
    (site / "_posts" / "2011-02-01-broken.md").write_text(
        "---\ntitle: Broken\nNo closing delimiter\n", encoding="utf-8"
    )
    (site / "_posts" / "notes.txt").write_text("ignored", encoding="utf-8")
    (site / "_posts" / ".hidden.md").write_text("ignored", encoding="utf-8")
    (site / "_drafts" / "work-in-progress.md").write_text(
        "---\ntitle: WIP\n---\nNot yet.\n", encoding="utf-8"
    )
    return site


def test_load_builds_posts_and_skips_malformed(tmp_path):
    site = create_site(tmp_path)
    result = ContentProcessor(site).load()

    assert sorted(p.filename for p in result.posts) == [
        "2011-01-02-hello.markdown",
        "2011-03-01-imported.html",
        "2011-06-14-tdd-mock-objects.md",
    ]
    assert len(result.skipped) == 1
    skipped = result.skipped[0]
    assert skipped.path.name == "2011-02-01-broken.md"
    assert skipped.error.path == skipped.path
    assert skipped.error.line == 1


def test_strict_load_raises(tmp_path):
    site = create_site(tmp_path)
    with pytest.raises(FrontMatterError):
        ContentProcessor(site).load(strict=True)


def test_post_fields(tmp_path):
    site = create_site(tmp_path)
    post = next(
        p for p in ContentProcessor(site).load().posts if p.slug == "tdd-mock-objects"
    )
    assert post.title == "TDD and mock objects with PHPUnit"
    assert post.layout == "post"
    assert post.tags == {"php", "phpunit", "tdd"}
    assert post.categories == ["testing"]
    assert post.status is PostStatus.PUBLISHED
    assert not post.draft
    assert post.date == datetime(2011, 6, 14, 18, 52, 47)
    assert post.url == "/testing/2011/06/14/tdd-mock-objects/"
    assert post.metadata == {
        "_edit_last": "1",
        "_aioseop_keywords": "phpunit, mock objects",
        "_aioseop_description": "Using PHPUnit mocks to test a socket wrapper.",
        "type": "post",
    }
    assert post.description == "Using PHPUnit mocks to test a socket wrapper."
    assert post.keywords == ["phpunit", "mock objects"]
    assert post.excerpt.startswith("Test-driven development gets awkward")
    assert post.source_type == "markdown"
    assert post.frontmatter["status"] == "publish"
    assert post.body.startswith("Test-driven development")

    (block,) = post.code_blocks
    assert block.language == "php"
    assert block.linenos is True
    assert block.source.startswith("<?php")
    assert post.languages == ["php"]

    assert '<h2 id="mocking-the-socket">' in post.content
    assert "highlighttable" in post.content
    assert "<code>phpunit ClientTest.php</code>" in post.content
    assert "{% highlight" not in post.content
    assert [h.text for h in post.toc] == ["Mocking the socket"]


def test_html_post_and_title_from_heading(tmp_path):
    site = create_site(tmp_path)
    posts = {p.slug: p for p in ContentProcessor(site).load().posts}

    imported = posts["imported"]
    assert imported.source_type == "html"
    assert imported.content.startswith("<p>From WordPress</p>\n")
    assert '<div class="highlight">' in imported.content

    hello = posts["hello"]
    assert hello.tags == {"intro"}
    assert hello.url == "/2011/01/02/hello/"


def test_drafts(tmp_path):
    site = create_site(tmp_path)
    result = ContentProcessor(site).load(include_drafts=True)
    draft = next(p for p in result.posts if p.title == "WIP")
    assert draft.status is PostStatus.DRAFT
    assert draft.draft

    unpublished = site / "_posts" / "2011-07-01-hidden.md"
    unpublished.write_text("---\npublished: false\n---\nx", encoding="utf-8")
    post = DefaultPostBuilder().build(unpublished)
    assert post.draft


def test_file_content_loader(tmp_path):
    site = create_site(tmp_path)
    loader = FileContentLoader(site)
    names = [p.name for p in loader.iter_files()]
    assert "notes.txt" not in names
    assert ".hidden.md" not in names
    assert "work-in-progress.md" not in names
    assert "work-in-progress.md" in [p.name for p in loader.iter_files(include_drafts=True)]
    assert loader.is_draft(site / "_drafts" / "work-in-progress.md")
    assert not loader.is_draft(site / "_posts" / "2011-01-02-hello.markdown")
    assert FileContentLoader(tmp_path / "missing").iter_files() == []


def test_url_deriver_patterns():
    date = datetime(2011, 6, 14)
    assert UrlDeriver().derive("post", date) == "/2011/06/14/post/"
    assert UrlDeriver("date").derive("post", date, ["Dev Notes"]) == "/dev-notes/2011/06/14/post.html"
    assert UrlDeriver("none").derive("post", date) == "/post.html"
    assert UrlDeriver("/blog/:year/:slug/").derive("post", date) == "/blog/2011/post/"
    assert UrlDeriver().derive("post", date, permalink="/about-mocks/") == "/about-mocks/"


def test_frontmatter_slug_and_permalink(tmp_path):
    path = tmp_path / "2011-06-14-original.md"
    path.write_text("---\nslug: Custom Slug\n---\nx", encoding="utf-8")
    post = DefaultPostBuilder().build(path)
    assert post.slug == "custom-slug"
    assert post.url == "/2011/06/14/custom-slug/"

    path.write_text("---\npermalink: /fixed/\n---\nx", encoding="utf-8")
    assert DefaultPostBuilder().build(path).url == "/fixed/"


def test_file_without_frontmatter_still_builds(tmp_path):
    path = tmp_path / "plain.md"
    path.write_text("# Plain\n\nText", encoding="utf-8")
    post = DefaultPostBuilder().build(path)
    assert post.title == "Plain"
    assert post.frontmatter == {}
    assert post.metadata == {}


def test_load_post_marks_drafts(tmp_path):
    drafts = tmp_path / "_drafts"
    drafts.mkdir()
    path = drafts / "idea.md"
    path.write_text("---\ntitle: Idea\n---\nx", encoding="utf-8")
    assert load_post(path).draft


def test_unreadable_post_raises_with_path(tmp_path):
    site = create_site(tmp_path)
    bad = site / "_posts" / "2011-01-01-bad.md"
    bad.write_bytes(b"\xff\xfe")
    with pytest.raises(PostLoadError) as excinfo:
        ContentProcessor(site).load()
    assert excinfo.value.path == bad
    assert isinstance(excinfo.value.original_error, UnicodeDecodeError)


def test_load_post_with_configured_drafts_dir(tmp_path):
    notes = tmp_path / "notes"
    notes.mkdir()
    path = notes / "idea.md"
    path.write_text("---\ntitle: Idea\n---\nx", encoding="utf-8")
    assert not load_post(path).draft
    assert load_post(path, drafts_dir=notes).draft
    assert not load_post(path, drafts_dir=tmp_path / "_drafts").draft
