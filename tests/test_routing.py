"""Tests for sitegen.routing."""

from __future__ import annotations

from pathlib import Path

import pytest

from sitegen.content import ContentUnit, PageMeta
from sitegen.routing import out_path_for, slugify, url_for_out_path


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Hello World", "hello-world"),
        ("  Rust & Go  ", "rust-go"),
        ("a--b__c..d", "a-b-c-d"),
        ("Ünïcode only", "ncode-only"),
        ("!!!", "untitled"),
        ("trailing-", "trailing"),
    ],
)
def test_slugify(value: str, expected: str) -> None:
    assert slugify(value) == expected


class TestOutPathFor:
    def test_index_stays_in_place(self) -> None:
        unit = ContentUnit(path=Path("/s/docs/index.md"), rel="docs/index.md", raw="")
        assert out_path_for(Path("/o"), unit) == Path("/o/docs/index.html")

    def test_page_becomes_directory(self) -> None:
        unit = ContentUnit(path=Path("/s/posts/First Post.md"), rel="posts/First Post.md", raw="")
        assert out_path_for(Path("/o"), unit) == Path("/o/posts/first-post/index.html")

    def test_slug_overrides_stem(self) -> None:
        unit = ContentUnit(
            path=Path("/s/a.md"), rel="a.md", raw="", meta=PageMeta(slug="Custom Slug")
        )
        assert out_path_for(Path("/o"), unit) == Path("/o/custom-slug/index.html")


class TestUrlForOutPath:
    def test_root_index(self) -> None:
        assert url_for_out_path(Path("/o"), Path("/o/index.html")) == "/"

    def test_directory_index(self) -> None:
        assert url_for_out_path(Path("/o"), Path("/o/posts/a/index.html")) == "/posts/a/"

    def test_plain_file(self) -> None:
        assert url_for_out_path(Path("/o"), Path("/o/docs/x.html")) == "/docs/x.html"
