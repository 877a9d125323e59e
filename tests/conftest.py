"""Shared fixtures for sitegen tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

BASE_TEMPLATE = (
    "<!doctype html><title>{% block title %}{{ page.title }} - {{ site.title }}"
    "{% endblock %}</title>{% block content %}{% endblock %}"
)
POST_TEMPLATE = (
    '{% extends "base.html" %}{% block content %}<h1>{{ page.title }}</h1>'
    "{{ page.content | safe }}{% endblock %}"
)
TAG_TEMPLATE = (
    "<h1>{{ tag.name }}</h1><ul>{% for p in tag.pages %}"
    '<li><a href="{{ p.url }}">{{ p.title }}</a></li>{% endfor %}</ul>'
    "{% if tag.page.next_url %}<a href=\"{{ tag.page.next_url }}\">next</a>{% endif %}"
)
TAGS_TEMPLATE = (
    "<ul>{% for t in tags %}<li>{{ t.name }} ({{ t.count }})</li>{% endfor %}</ul>"
)

PAST = 1_000_000_000


def write_min_site(root: Path) -> None:
    """A small site: home page, one post, base + post templates, config."""
    (root / "templates").mkdir(parents=True, exist_ok=True)
    (root / "templates" / "base.html").write_text(BASE_TEMPLATE)
    (root / "templates" / "post.html").write_text(POST_TEMPLATE)
    (root / "index.md").write_text("---\ntitle: Home\n---\n# Hello\n")
    (root / "posts").mkdir(exist_ok=True)
    (root / "posts" / "first.md").write_text(
        "---\ntitle: First\ntags: [rust, ssg]\n---\n# First\n"
    )
    (root / "site.toml").write_text('title = "T"\nbase_url = "http://localhost/"\n')


def add_tag_templates(root: Path) -> None:
    (root / "templates" / "tag.html").write_text(TAG_TEMPLATE)
    (root / "templates" / "tags.html").write_text(TAGS_TEMPLATE)


def age(path: Path, when: int = PAST) -> int:
    """Push a file's mtime into the past; return the new mtime in ns."""
    os.utime(path, (when, when))
    return path.stat().st_mtime_ns


@pytest.fixture
def site(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    root.mkdir()
    write_min_site(root)
    return root


@pytest.fixture
def out(tmp_path: Path) -> Path:
    return tmp_path / "dist"
