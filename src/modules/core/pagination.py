"""Page request / page result primitives.

Page numbers are 0-based.  A page beyond the last one is valid and comes
back with empty ``content`` and the real totals, so clients can always
read ``total_elements`` / ``total_pages``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")
U = TypeVar("U")

ASC = "asc"
DESC = "desc"


@dataclass(frozen=True)
class PageRequest:
    page: int = 0
    size: int = 10
    sort_field: str = "created_at"
    direction: str = DESC

    def __post_init__(self) -> None:
        if self.page < 0:
            raise ValueError("Page index must not be negative.")
        if self.size < 1:
            raise ValueError("Page size must be at least 1.")
        if self.direction not in (ASC, DESC):
            raise ValueError(f"Unknown sort direction: {self.direction!r}.")

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def ordering(self) -> str:
        """Django ``order_by`` expression for the sort field."""
        prefix = "-" if self.direction == DESC else ""
        return f"{prefix}{self.sort_field}"


@dataclass(frozen=True)
class Page(Generic[T]):
    content: List[T]
    number: int
    size: int
    total_elements: int
    total_pages: int = field(init=False)

    def __post_init__(self) -> None:
        pages = math.ceil(self.total_elements / self.size) if self.size else 0
        object.__setattr__(self, "total_pages", pages)

    def map(self, func: Callable[[T], U]) -> Page[U]:
        """Return a page with each element transformed, metadata untouched."""
        return Page(
            content=[func(element) for element in self.content],
            number=self.number,
            size=self.size,
            total_elements=self.total_elements,
        )
