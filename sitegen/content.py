from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from sitegen.errors import ContentError
from sitegen.frontmatter import split_frontmatter
from sitegen.log import get_logger
from sitegen.paths import TEMPLATES_DIRNAME

logger = get_logger("content")


@dataclass(frozen=True)
class PageMeta:
    title: str | None = None
    date: str | None = None
    draft: bool = False
    tags: tuple[str, ...] = ()
    template: str | None = None
    slug: str | None = None

    @classmethod
    def from_mapping(cls, data: dict | None) -> PageMeta:
        """Build metadata from parsed front matter, ignoring unknown keys."""
        if not data:
            return cls()

        def optional_str(key: str) -> str | None:
            value = data.get(key)
            if value is None:
                return None
            return str(value)

        tags = data.get("tags") or ()
        if isinstance(tags, str):
            tags = (tags,)
        elif not isinstance(tags, (list, tuple)):
            raise ContentError("'tags' must be a list of strings")

        draft = data.get("draft")
        if draft is None:
            draft = False
        elif not isinstance(draft, bool):
            raise ContentError("'draft' must be true or false")

        return cls(
            title=optional_str("title"),
            date=optional_str("date"),
            draft=draft,
            tags=tuple(str(tag) for tag in tags),
            template=optional_str("template"),
            slug=optional_str("slug"),
        )


@dataclass(frozen=True)
class ContentUnit:
    path: Path
    rel: str
    raw: str
    meta: PageMeta = field(default_factory=PageMeta)
    body: str = ""
    has_front_matter: bool = False

    @property
    def title(self) -> str:
        return self.meta.title or "Untitled"


def relative_key(source_root: Path, path: Path) -> str:
    """Cache key for a content file: its posix path relative to the source."""
    try:
        return path.relative_to(source_root).as_posix()
    except ValueError:
        return path.as_posix()


def _is_within(path: Path, root: Path | None) -> bool:
    if root is None:
        return False
    return path == root or root in path.parents


def collect_markdown_files(
    source_root: Path, *, exclude: Path | None = None
) -> list[Path]:
    """Collect Markdown files under the source root.

    Skips dot-directories, the templates directory and ``exclude`` (the output
    tree, when it is nested inside the source). Walk errors are logged and the
    affected directory is dropped.
    """
    templates_dir = source_root / TEMPLATES_DIRNAME
    excluded = exclude.resolve() if exclude is not None else None

    def on_error(err: OSError) -> None:
        logger.warning("walk: %s", err)

    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(source_root, onerror=on_error):
        current = Path(dirpath)
        dirnames[:] = sorted(
            name
            for name in dirnames
            if not name.startswith(".")
            and current / name != templates_dir
            and not _is_within((current / name).resolve(), excluded)
        )
        for name in sorted(filenames):
            if name.lower().endswith(".md"):
                found.append(current / name)
    return found


def load_unit(source_root: Path, path: Path) -> ContentUnit:
    """Read a content file and parse its front matter."""
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ContentError(f"{path}: not valid UTF-8") from exc

    fm, body = split_frontmatter(raw)
    return ContentUnit(
        path=path,
        rel=relative_key(source_root, path),
        raw=raw,
        meta=PageMeta.from_mapping(fm),
        body=body,
        has_front_matter=fm is not None,
    )
