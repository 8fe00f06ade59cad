"""Page request and page result types for key listings."""

import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")

SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class SortOrder:
    """One ``field,direction`` sort criterion."""

    field: str
    direction: str = "asc"

    @classmethod
    def parse(cls, value: str) -> "SortOrder":
        """Parse ``name`` or ``name,desc``; direction is validated by the service."""
        field_name, _, direction = value.partition(",")
        return cls(field=field_name.strip(), direction=(direction.strip() or "asc").lower())


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page number, page size and sort criteria."""

    page: int = 0
    size: int = 20
    sort: tuple[SortOrder, ...] = field(default_factory=lambda: (SortOrder("id"),))

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus the totals needed to navigate."""

    items: list[T]
    number: int
    size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.size) if self.size else 0
