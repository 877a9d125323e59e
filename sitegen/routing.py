from __future__ import annotations

from pathlib import Path

from sitegen.content import ContentUnit
from sitegen.paths import INDEX_FILENAME

_SEPARATORS = frozenset(" -_.")


def slugify(value: str) -> str:
    """Lowercase ASCII slug; runs of separators collapse into one dash."""
    out: list[str] = []
    dash = False
    for ch in value.lower():
        if ch.isascii() and ch.isalnum():
            out.append(ch)
            dash = False
        elif ch in _SEPARATORS and not dash and out:
            out.append("-")
            dash = True
    if out and out[-1] == "-":
        out.pop()
    return "".join(out) or "untitled"


def out_path_for(output_root: Path, unit: ContentUnit) -> Path:
    """Output file for a content unit.

    ``index.md`` renders next to itself as ``index.html``; any other file
    becomes ``<parent>/<slug>/index.html``.
    """
    rel = Path(unit.rel)
    if rel.stem == "index":
        return output_root / rel.with_suffix(".html")

    slug = slugify(unit.meta.slug or rel.stem)
    return output_root / rel.parent / slug / INDEX_FILENAME


def url_for_out_path(output_root: Path, out_path: Path) -> str:
    """Public URL for a written file, directory-style for index pages."""
    rel = out_path.relative_to(output_root).as_posix()
    if rel == INDEX_FILENAME:
        return "/"
    if rel.endswith("/" + INDEX_FILENAME):
        return "/" + rel[: -len(INDEX_FILENAME)]
    return "/" + rel
