"""Page envelope returned by ``QueryBuilder.paginate``."""
from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

RowT = TypeVar("RowT")


class Paginated(BaseModel, Generic[RowT]):
    """One page of a result set plus the totals needed to navigate it.

    Attributes:
        total: Number of rows matched by the query, ignoring pagination.
        total_pages: ``ceil(total / per_page)``.
        page: 1-based page number.
        per_page: Page size.
        data: Rows on this page.
    """

    model_config = ConfigDict(frozen=True)

    total: int
    total_pages: int
    page: int
    per_page: int
    data: list[RowT] = Field(default_factory=list)


def total_pages(total: int, per_page: int) -> int:
    """Return the number of pages needed for ``total`` rows."""
    pages, remainder = divmod(total, per_page)
    if remainder:
        pages += 1
    return pages
