"""Derived table view: filter -> sort -> paginate.

`derive_view` is a pure function of (rows, filters, page size). `ViewState`
holds the interactive controls and applies the page-reset rules: changing a
filter or the sort goes back to page 1, and a page that fell out of range
after the result set shrank is clamped down on the next derivation.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from cascade.filters import SortDirection, ViewFilters
from cascade.rows import GoalRow

_CHUNK_RE = re.compile(r"(\d+)")

# Primary order: punctuation/space < digits < Cyrillic < Latin and other letters.
_RANK_PUNCT, _RANK_DIGITS, _RANK_CYRILLIC, _RANK_LETTER = 0, 1, 2, 3


def _char_rank(ch: str) -> int:
    if "\u0400" <= ch <= "\u04ff":
        return _RANK_CYRILLIC
    if ch.isalpha():
        return _RANK_LETTER
    return _RANK_PUNCT


def collation_key(value: str) -> Tuple[Tuple[int, int, str], ...]:
    """Russian-locale, numeric-aware key ("2" < "10", Cyrillic before Latin, "ё" sorts with "е")."""
    text = value.casefold().replace("ё", "е")
    key = []
    for chunk in _CHUNK_RE.split(text):
        if not chunk:
            continue
        if chunk.isdigit():
            key.append((_RANK_DIGITS, int(chunk), ""))
        else:
            key.extend((_char_rank(ch), 0, ch) for ch in chunk)
    return tuple(key)


def filter_rows(rows: Iterable[GoalRow], text: Mapping[str, str]) -> List[GoalRow]:
    needles = {k: v.strip().lower() for k, v in text.items() if v and v.strip()}
    if not needles:
        return list(rows)
    return [r for r in rows if all(n in r.get(k).lower() for k, n in needles.items())]


def sort_rows(rows: Sequence[GoalRow], sort_key: Optional[str], direction: SortDirection = "asc") -> List[GoalRow]:
    if not sort_key:
        return list(rows)
    decorated = []
    for index, row in enumerate(rows):
        value = row.get(sort_key).strip()
        decorated.append((index, row, value, collation_key(value) if value else ()))

    def compare(a, b) -> int:
        empty_a, empty_b = not a[2], not b[2]
        if empty_a and empty_b:
            return a[0] - b[0]
        if empty_a:
            return 1
        if empty_b:
            return -1
        result = (a[3] > b[3]) - (a[3] < b[3])
        if result == 0:
            return a[0] - b[0]
        return result if direction == "asc" else -result

    return [item[1] for item in sorted(decorated, key=cmp_to_key(compare))]


def total_pages(count: int, page_size: int) -> int:
    return max(1, math.ceil(count / page_size))


def page_window(page: int, pages: int, size: int = 12) -> List[int]:
    """At most `size` consecutive page numbers, kept around the current page."""
    page = min(max(1, page), max(1, pages))
    start = max(1, min(page - size // 2, pages - size + 1))
    return list(range(start, min(pages, start + size - 1) + 1))


def clamp_page(page: int, count: int, page_size: int) -> int:
    return min(max(1, page), total_pages(count, page_size))


def paginate(rows: Sequence[GoalRow], page: int, page_size: int) -> Tuple[List[GoalRow], int]:
    page = clamp_page(page, len(rows), page_size)
    start = (page - 1) * page_size
    return list(rows[start : start + page_size]), page


@dataclass(frozen=True)
class ViewResult:
    rows: Tuple[GoalRow, ...]
    page_rows: Tuple[GoalRow, ...]
    page: int
    page_size: int
    total_pages: int
    total_count: int

    @property
    def filtered_count(self) -> int:
        return len(self.rows)

    @property
    def page_start(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def empty_state(self) -> Optional[str]:
        if self.total_count == 0:
            return "empty"
        if not self.rows:
            return "no_matches"
        return None

    def pages(self) -> List[List[GoalRow]]:
        return [list(self.rows[i : i + self.page_size]) for i in range(0, len(self.rows), self.page_size)]


def derive_view(rows: Sequence[GoalRow], filters: ViewFilters, page_size: int) -> ViewResult:
    filtered = filter_rows(rows, filters.text)
    ordered = sort_rows(filtered, filters.sort_key, filters.sort_direction)
    page_rows, page = paginate(ordered, filters.page, page_size)
    return ViewResult(
        rows=tuple(ordered),
        page_rows=tuple(page_rows),
        page=page,
        page_size=page_size,
        total_pages=total_pages(len(ordered), page_size),
        total_count=len(rows),
    )


@dataclass
class ViewState:
    page_size: int
    text: Dict[str, str] = field(default_factory=dict)
    sort_key: Optional[str] = None
    sort_direction: SortDirection = "asc"
    page: int = 1

    def to_filters(self) -> ViewFilters:
        return ViewFilters(text=dict(self.text), sort_key=self.sort_key, sort_direction=self.sort_direction, page=self.page)

    def set_filter(self, key: str, value: str) -> None:
        value = value or ""
        if self.text.get(key, "") == value:
            return
        if value:
            self.text[key] = value
        else:
            self.text.pop(key, None)
        self.page = 1

    def toggle_sort(self, key: str) -> None:
        if self.sort_key == key:
            self.sort_direction = "desc" if self.sort_direction == "asc" else "asc"
        else:
            self.sort_key = key
            self.sort_direction = "asc"
        self.page = 1

    def clear_sort(self) -> None:
        if self.sort_key is not None:
            self.sort_key = None
            self.sort_direction = "asc"
            self.page = 1

    def set_page(self, page: int) -> None:
        self.page = max(1, int(page))

    def derive(self, rows: Sequence[GoalRow]) -> ViewResult:
        result = derive_view(rows, self.to_filters(), self.page_size)
        self.page = result.page
        return result
