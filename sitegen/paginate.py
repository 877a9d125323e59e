from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PageInfo:
    index: int
    total_pages: int


def paginate(items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split items into consecutive chunks of ``size``."""
    if size <= 0:
        return []
    return [items[start : start + size] for start in range(0, len(items), size)]


def neighbors(info: PageInfo) -> tuple[int | None, int | None]:
    """Indexes of the previous and next pages, if any."""
    prev = info.index - 1 if info.index > 0 else None
    nxt = info.index + 1 if info.index + 1 < info.total_pages else None
    return prev, nxt
