"""
Request and response schemas for paginated, filtered queries.

- `FilterQuery`: rule list, conjunction, ordering and page parameters.
- `PaginationBase`: one page of results with its pagination metadata.
"""

import enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from has_filters.core.config import get_app_settings
from has_filters.schemas._filters import _FilterModel
from has_filters.schemas.rules import Conjunction

DataT = TypeVar("DataT", bound=BaseModel)


class OrderDirection(str, enum.Enum):
    asc = "asc"
    desc = "desc"


class FilterQuery(_FilterModel):
    """
    Query parameters for `RepositoryFilterable.page_all`.

    `rules` is kept as raw input so the compiler reports malformed rules with
    its own errors.
    """

    rules: list[Any] = Field(default_factory=list)
    conjunction: Conjunction = Conjunction.exclusive
    order_by: str | None = None
    """Comma separated column names, each optionally suffixed with `:asc` or `:desc`."""
    order_direction: OrderDirection = OrderDirection.asc
    page: int = Field(default=1, ge=-1)
    """1-indexed page, -1 is the last page"""
    per_page: int = Field(default_factory=lambda: get_app_settings().DEFAULT_PER_PAGE, ge=-1)
    """-1 returns every row on one page"""


class PaginationBase(BaseModel, Generic[DataT]):
    page: int = 1
    per_page: int = 10
    total: int = 0
    total_pages: int = 0
    items: list[DataT]
