from __future__ import annotations

from dataclasses import dataclass
import math

import pandas as pd

from .config import PAGE_SIZE, PAGE_WINDOW


@dataclass(frozen=True, eq=False)
class Page:
    rows: pd.DataFrame
    page_number: int
    total_pages: int
    window: list[int]

    @property
    def has_previous(self) -> bool:
        return self.page_number > 1

    @property
    def has_next(self) -> bool:
        return self.page_number < self.total_pages


def total_pages(row_count: int, page_size: int = PAGE_SIZE) -> int:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return math.ceil(row_count / page_size)


def clamp_page(page_number: int, pages: int) -> int:
    return max(1, min(page_number, max(pages, 1)))


def page_window(page_number: int, pages: int, size: int = PAGE_WINDOW) -> list[int]:
    """Page buttons to show: up to `size` consecutive pages around the current one."""
    # The inner min runs first, so a short page list still starts at 1.
    start = max(1, min(page_number - 2, pages - (size - 1)))
    return list(range(start, start + min(size, pages)))


def paginate(frame: pd.DataFrame, page_number: int = 1, page_size: int = PAGE_SIZE) -> Page:
    pages = total_pages(len(frame), page_size)
    current = clamp_page(page_number, pages)
    first = (current - 1) * page_size
    return Page(
        rows=frame.iloc[first : first + page_size],
        page_number=current,
        total_pages=pages,
        window=page_window(current, pages),
    )
