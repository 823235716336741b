"""Query value objects shared by both backends.

Both backends derive their WHERE clause from `active_filters` /
`active_ranges`, so the emptiness rule and the filter order are identical
whichever backend builds the final query.
"""

import math
from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

FilterValue = Any


def is_empty_filter(value: FilterValue) -> bool:
    """None, "" and empty collections never become a condition."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, list | tuple | set | frozenset):
        return len(value) == 0
    return False


def is_collection(value: FilterValue) -> bool:
    return isinstance(value, list | tuple | set | frozenset)


class OrderBy(BaseModel):
    """Single-column sort."""

    model_config = ConfigDict(frozen=True)

    column: str
    ascending: bool = True


class ValueRange(BaseModel):
    """Inclusive bounds for a column (either bound may be omitted)."""

    model_config = ConfigDict(frozen=True)

    gte: Any = None
    lte: Any = None

    @property
    def is_empty(self) -> bool:
        return self.gte is None and self.lte is None


class QueryOptions(BaseModel):
    """
    Description of a read operation.

    Application order is fixed: filters and ranges, then order, then
    limit/offset. `offset` only applies together with `limit`.
    """

    model_config = ConfigDict(frozen=True)

    select: list[str] | None = None
    filters: dict[str, FilterValue] = Field(default_factory=dict)
    ranges: dict[str, ValueRange] = Field(default_factory=dict)
    order_by: OrderBy | None = None
    limit: int | None = Field(default=None, gt=0)
    offset: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _offset_requires_limit(self) -> "QueryOptions":
        if self.offset and self.limit is None:
            raise ValueError("offset requires limit")
        return self


def active_filters(filters: dict[str, FilterValue] | None) -> Iterator[tuple[str, FilterValue]]:
    """Yield (column, value) pairs that must become conditions, in mapping order."""
    for column, value in (filters or {}).items():
        if is_empty_filter(value):
            continue
        yield column, list(value) if is_collection(value) else value


def active_ranges(ranges: dict[str, ValueRange] | None) -> Iterator[tuple[str, ValueRange]]:
    for column, bounds in (ranges or {}).items():
        if bounds is None or bounds.is_empty:
            continue
        yield column, bounds


class QueryResult(BaseModel):
    """Normalized result: plain dict rows plus the number returned."""

    rows: list[dict[str, Any]] = Field(default_factory=list)
    count: int = 0


class PaginationInfo(BaseModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationInfo":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class Page(BaseModel):
    """Page of rows returned by BaseRepository.find_all."""

    data: list[dict[str, Any]]
    pagination: PaginationInfo
