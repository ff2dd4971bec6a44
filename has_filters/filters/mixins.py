from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import Select

from has_filters.schemas.rules import Conjunction

from .composer import filter_query
from .registry import get_filter_surface, has_filters
from .surface import FilterSurface


class HasFilters:
    """
    Mixin for declarative models that registers and applies filters from the class itself.

    ```python
    class User(SqlAlchemyBase, HasFilters):
        ...

    User.has_filters("name", scopes=["active"])
    session.scalars(User.filter([{"column": "name", "operator": "containing", "param": "an"}]))
    ```
    """

    @classmethod
    def has_filters(
        cls,
        *configs: str,
        scopes: Iterable[str] = (),
        aliases: Mapping[str, str] | None = None,
    ) -> FilterSurface:
        return has_filters(cls, *configs, scopes=scopes, aliases=aliases)

    @classmethod
    def filter_surface(cls) -> FilterSurface:
        return get_filter_surface(cls)

    @classmethod
    def filterable_attrs(cls) -> tuple[str, ...]:
        return cls.filter_surface().filterable_attrs

    @classmethod
    def allowed_scopes(cls) -> frozenset[str]:
        return cls.filter_surface().allowed_scopes

    @classmethod
    def filter(
        cls,
        rules: Any = (),
        conjunction: Conjunction | str = Conjunction.exclusive,
        query: Select | None = None,
    ) -> Select:
        return filter_query(cls.filter_surface(), rules, conjunction, query=query)

    @classmethod
    def by(cls, attr: str, rule: Any, query: Select | None = None) -> Select:
        return cls.filter_surface().by(attr, rule, query=query)
