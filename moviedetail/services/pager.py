"""Client-side windowing over an already-fetched comment list."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, TypeVar

from moviedetail.models.common import Pagination

__all__ = [
    "page",
    "total_pages",
    "can_advance",
    "can_retreat",
    "clamp_page",
    "Pager",
]

T = TypeVar("T")


def _check_page_size(page_size: int) -> None:
    if page_size < 1:
        raise ValueError(f"page_size must be a positive integer, got {page_size}")


def page(items: Sequence[T], page_number: int, page_size: int) -> List[T]:
    """Return the items on 1-based page *page_number*.

    Out-of-range pages (including anything below 1) give an empty list;
    *items* is never modified.
    """

    _check_page_size(page_size)
    if page_number < 1:
        return []
    start = (page_number - 1) * page_size
    return list(items[start : start + page_size])


def total_pages(length: int, page_size: int) -> int:
    _check_page_size(page_size)
    return (length + page_size - 1) // page_size


def can_advance(items: Sequence[T], page_number: int, page_size: int) -> bool:
    # Empty lists have zero pages, so no cursor can advance.
    return page_number < total_pages(len(items), page_size)


def can_retreat(page_number: int) -> bool:
    return page_number > 1


def clamp_page(page_number: int, length: int, page_size: int) -> int:
    """Pull *page_number* back into ``[1, total_pages]`` (1 for empty lists)."""

    last = max(total_pages(length, page_size), 1)
    return min(max(page_number, 1), last)


@dataclass(frozen=True)
class Pager:
    """Page-size bound helpers for one list; holds no cursor."""

    page_size: int

    def __post_init__(self) -> None:
        _check_page_size(self.page_size)

    def slice(self, items: Sequence[T], page_number: int) -> List[T]:
        return page(items, page_number, self.page_size)

    def next(self, items: Sequence[T], page_number: int) -> int:
        """Cursor after a "next" click; unchanged on the last page."""

        if can_advance(items, page_number, self.page_size):
            return page_number + 1
        return page_number

    def previous(self, page_number: int) -> int:
        if can_retreat(page_number):
            return page_number - 1
        return page_number

    def describe(self, items: Sequence[T], page_number: int) -> Pagination:
        """Navigation facts a pager widget needs for the current cursor."""

        return Pagination(
            currentPage=page_number,
            pageSize=self.page_size,
            totalItems=len(items),
            totalPages=total_pages(len(items), self.page_size),
            hasNextPage=can_advance(items, page_number, self.page_size),
            hasPreviousPage=can_retreat(page_number),
        )
