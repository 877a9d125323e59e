"""Tests for sitegen.frontmatter."""

from __future__ import annotations

import pytest

from sitegen.errors import ContentError
from sitegen.frontmatter import split_fence, split_frontmatter


class TestSplitFrontmatter:
    def test_yaml(self) -> None:
        fm, body = split_frontmatter(
            "---\ntitle: Hello\ntags: [rust, ssg]\ndraft: false\n---\n# Heading\nBody here.\n"
        )
        assert fm == {"title": "Hello", "tags": ["rust", "ssg"], "draft": False}
        assert body.splitlines()[0] == "# Heading"

    def test_toml(self) -> None:
        fm, body = split_frontmatter('+++\ntitle = "Hello"\ntags = ["a"]\n+++\nbody\n')
        assert fm == {"title": "Hello", "tags": ["a"]}
        assert body == "body\n"

    def test_no_front_matter(self) -> None:
        fm, body = split_frontmatter("# No FM\nPlain text")
        assert fm is None
        assert body.startswith("# No FM")

    def test_empty_block(self) -> None:
        fm, body = split_frontmatter("---\n---\nbody")
        assert fm == {}
        assert body == "body"

    def test_leading_blank_lines_and_bom(self) -> None:
        fm, _ = split_frontmatter("\ufeff\n\n---\ntitle: Hi\n---\n")
        assert fm == {"title": "Hi"}

    def test_crlf_line_endings(self) -> None:
        fm, body = split_frontmatter("---\r\ntitle: Hi\r\n---\r\nline\r\n")
        assert fm == {"title": "Hi"}
        assert body == "line\n"

    def test_unclosed_yaml(self) -> None:
        with pytest.raises(ContentError, match="Unclosed YAML"):
            split_frontmatter("---\ntitle: Hi\nbody")

    def test_unclosed_toml(self) -> None:
        with pytest.raises(ContentError, match="Unclosed TOML"):
            split_frontmatter("+++\ntitle = 1\n")

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ContentError, match="YAML"):
            split_frontmatter("---\ntitle: [unclosed\n---\nbody")

    def test_invalid_toml(self) -> None:
        with pytest.raises(ContentError, match="TOML"):
            split_frontmatter("+++\nnot toml\n+++\nbody")

    def test_non_mapping(self) -> None:
        with pytest.raises(ContentError, match="mapping"):
            split_frontmatter("---\n- a\n- b\n---\nbody")


def test_split_fence_reports_fence() -> None:
    assert split_fence("+++\na = 1\n+++\n")[0] == "+++"
    assert split_fence("text")[0] is None
