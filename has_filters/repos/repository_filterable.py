"""
Session-bound access to filtered queries of one model.

`RepositoryFilterable` compiles rules with the model's registered filter surface,
runs them on its session and validates the rows into a pydantic schema. Limit,
offset and pagination are always applied to the composed query, never threaded
through the filter composition itself.
"""

from __future__ import annotations

from collections.abc import Sequence
from math import ceil
from typing import Any, Generic, TypeVar

import sqlalchemy as sa
from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.orm.session import Session

from has_filters.core.exceptions import HasFiltersError, InvalidFilterError, UnfilterableAttrError
from has_filters.core.root_logger import get_logger
from has_filters.filters.composer import filter_query
from has_filters.filters.registry import get_filter_surface
from has_filters.filters.surface import FilterSurface
from has_filters.schemas.response.pagination import FilterQuery, OrderDirection, PaginationBase
from has_filters.schemas.rules import Conjunction

Schema = TypeVar("Schema", bound=BaseModel)
Model = TypeVar("Model")


class RepositoryFilterable(Generic[Schema, Model]):
    """
    Filtered reads for one model.

    Type Parameters:
        Schema: The pydantic schema rows are validated into.
        Model: The SQLAlchemy model being queried.
    """

    session: Session
    """The SQLAlchemy session used for database interactions."""

    model: type[Model]
    """The SQLAlchemy model class this repository reads."""

    schema: type[Schema]
    """The pydantic schema (with `from_attributes`) results are validated into."""

    def __init__(
        self,
        session: Session,
        sql_model: type[Model],
        schema: type[Schema],
        surface: FilterSurface | None = None,
    ) -> None:
        """
        Args:
            session (Session): The SQLAlchemy session for database operations.
            sql_model (type[Model]): The SQLAlchemy model class.
            schema (type[Schema]): The pydantic schema for results.
            surface (FilterSurface | None): Filters to compile with. Defaults to the
                surface registered for `sql_model`, looked up on each use.
        """
        self.session = session
        self.model = sql_model
        self.schema = schema
        self._surface = surface
        self.logger = get_logger()

    @property
    def surface(self) -> FilterSurface:
        return self._surface if self._surface is not None else get_filter_surface(self.model)

    def _query(self) -> Select:
        return select(self.model)

    def filter_query(
        self,
        rules: Sequence[Any] = (),
        conjunction: Conjunction | str = Conjunction.exclusive,
        query: Select | None = None,
    ) -> Select:
        """
        Compiles `rules` onto `query` (the model's base query by default).

        Filter errors are logged and re-raised unchanged.
        """
        try:
            return filter_query(self.surface, rules, conjunction, query=query if query is not None else self._query())
        except HasFiltersError as e:
            self.logger.error(f"Invalid filter for Repo model={self.model.__name__}: {e}")
            raise

    def filter_all(
        self,
        rules: Sequence[Any] = (),
        conjunction: Conjunction | str = Conjunction.exclusive,
        query: Select | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Schema]:
        """
        Returns every row matching `rules`, optionally limited.

        Args:
            rules (Sequence[Any]): Rule list, see `filter_query`.
            conjunction (Conjunction | str): "exclusive" or "inclusive".
            query (Select | None): Base query to refine.
            limit (int | None): Maximum number of rows, applied after composition.
            offset (int | None): Rows to skip, applied after composition.

        Returns:
            list[Schema]: The matching rows validated into `self.schema`.
        """
        stmt = self.filter_query(rules, conjunction, query=query)
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)

        result = self.session.execute(stmt).unique().scalars().all()
        return [self.schema.model_validate(row) for row in result]

    def count(
        self,
        rules: Sequence[Any] = (),
        conjunction: Conjunction | str = Conjunction.exclusive,
        query: Select | None = None,
    ) -> int:
        stmt = self.filter_query(rules, conjunction, query=query)
        return self._count(stmt)

    def _count(self, stmt: Select) -> int:
        count_subquery = (
            stmt.with_only_columns(func.count(self.surface.primary_key))
            .order_by(None)
            .limit(None)
            .offset(None)
            .scalar_subquery()
        )
        return self.session.scalar(select(count_subquery)) or 0

    def page_all(self, pagination: FilterQuery, query: Select | None = None) -> PaginationBase[Schema]:
        """
        Returns one page of rows matching the rules in `pagination`.

        Args:
            pagination (FilterQuery): Rules, ordering and page parameters.
            query (Select | None): Base query to refine.

        Returns:
            PaginationBase[Schema]: The page of items with total and page counts.
        """
        stmt = self.filter_query(pagination.rules, pagination.conjunction, query=query)
        stmt, total, total_pages, page, per_page = self.add_pagination_to_query(stmt, pagination)

        result = self.session.execute(stmt).unique().scalars().all()
        return PaginationBase(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=total_pages,
            items=[self.schema.model_validate(row) for row in result],
        )

    def add_pagination_to_query(self, query: Select, pagination: FilterQuery) -> tuple[Select, int, int, int, int]:
        """
        Applies ordering, limit and offset to an already filtered query.

        Returns:
            tuple: The paginated query, the total row count, the page count, and the
                   effective page and per_page values.
        """
        count = self._count(query)

        # -1 means every row on a single page
        per_page = pagination.per_page if pagination.per_page != -1 else max(count, 1)
        total_pages = ceil(count / per_page) if per_page > 0 else 0

        page = pagination.page
        if page == -1:
            page = max(total_pages, 1)
        page = max(page, 1)

        query = self.add_order_by_to_query(query, pagination)
        if pagination.per_page != -1:
            query = query.limit(per_page).offset((page - 1) * per_page)

        return query, count, total_pages, page, per_page

    def add_order_by_to_query(self, query: Select, pagination: FilterQuery) -> Select:
        """
        Orders by the `order_by` columns, then by primary key so pages are stable.

        Raises:
            UnfilterableAttrError: If an `order_by` field is not a column of the model.
        """
        primary_key = self.surface.primary_key
        if not pagination.order_by:
            return query.order_by(primary_key)

        for statement in pagination.order_by.split(","):
            statement = statement.strip()
            if not statement:
                continue

            field_name, _, direction = statement.partition(":")
            try:
                order_direction = OrderDirection(direction.lower()) if direction else pagination.order_direction
            except ValueError as e:
                raise InvalidFilterError(f"Invalid order direction: {direction}") from e

            if field_name not in sa.inspect(self.model).columns:
                self.logger.warning(f"Invalid order_by statement: '{statement}'")
                raise UnfilterableAttrError(f"{self.model.__name__} cannot be ordered by {field_name}")

            column = getattr(self.model, field_name)
            query = query.order_by(column.desc() if order_direction == OrderDirection.desc else column.asc())

        return query.order_by(primary_key)
