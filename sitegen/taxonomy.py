from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from sitegen.paginate import PageInfo, neighbors, paginate
from sitegen.paths import INDEX_FILENAME, TAG_TEMPLATE, TAGS_INDEX_TEMPLATE
from sitegen.routing import slugify
from sitegen.static import write_atomic

if TYPE_CHECKING:
    from sitegen.config import SiteConfig
    from sitegen.render import TemplateSet


@dataclass(frozen=True)
class PageSummary:
    title: str
    url: str
    tags: tuple[str, ...]


def summary_sort_key(summary: PageSummary) -> tuple[str, str]:
    return summary.url, summary.title


def group_by_tag(pages: Sequence[PageSummary]) -> dict[str, list[PageSummary]]:
    """Group pages by lowercased tag, keeping input order inside each group."""
    groups: dict[str, list[PageSummary]] = {}
    for page in pages:
        seen: set[str] = set()
        for tag in page.tags:
            key = tag.lower()
            if key in seen:
                continue
            seen.add(key)
            groups.setdefault(key, []).append(page)
    return groups


def tag_url(tag: str, page_number: int = 1) -> str:
    base = f"/tags/{slugify(tag)}/"
    if page_number <= 1:
        return base
    return f"{base}page/{page_number}/"


def _tag_out_path(output_root: Path, tag: str, page_number: int) -> Path:
    out = output_root / "tags" / slugify(tag)
    if page_number > 1:
        out = out / "page" / str(page_number)
    return out / INDEX_FILENAME


def write_tag_pages(
    templates: TemplateSet,
    config: SiteConfig,
    output_root: Path,
    pages: Sequence[PageSummary],
) -> list[Path]:
    """Render one listing per tag plus the tags index. Return written files.

    ``pages`` must already be in a stable order; listings keep that order.
    """
    groups = group_by_tag(pages)
    written: list[Path] = []

    for name in sorted(groups):
        chunks = paginate(groups[name], config.tag_page_size)
        for index, chunk in enumerate(chunks):
            prev, nxt = neighbors(PageInfo(index=index, total_pages=len(chunks)))
            tag = {
                "name": name,
                "url": tag_url(name, index + 1),
                "pages": [asdict(page) for page in chunk],
                "page": {
                    "number": index + 1,
                    "total": len(chunks),
                    "prev_url": tag_url(name, prev + 1) if prev is not None else None,
                    "next_url": tag_url(name, nxt + 1) if nxt is not None else None,
                },
            }
            html = templates.render_with(TAG_TEMPLATE, config, tag=tag)
            out_path = _tag_out_path(output_root, name, index + 1)
            write_atomic(out_path, html.encode("utf-8"))
            written.append(out_path)

    index_view = [
        {"name": name, "count": len(groups[name]), "url": tag_url(name)}
        for name in sorted(groups)
    ]
    html = templates.render_with(TAGS_INDEX_TEMPLATE, config, tags=index_view)
    out_path = output_root / "tags" / INDEX_FILENAME
    write_atomic(out_path, html.encode("utf-8"))
    written.append(out_path)
    return written
