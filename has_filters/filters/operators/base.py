from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from sqlalchemy import Select
from sqlalchemy.sql.elements import ColumnElement

from has_filters.core.exceptions import FilterTypeMismatchError, InvalidFilterParam
from has_filters.filters.columns import FilterTarget, coerce_literal, is_value_list

COMPARABLE_TYPES = frozenset(["datetime", "date", "integer", "float"])


class Operator:
    """
    A named predicate-producing strategy bound to a set of column types.

    The allowed-type check runs on construction, so a mismatched operator never
    gets as far as building a predicate. Virtual targets skip the check.
    """

    allowed_types: ClassVar[frozenset[str] | None] = None
    """declared column types the operator applies to, None allows any type"""

    def __init__(self, scope: Select, target: FilterTarget, value: Any) -> None:
        self.scope = scope
        self.target = target
        self.value = value

        if not target.virtual and self.allowed_types is not None and target.declared_type not in self.allowed_types:
            raise FilterTypeMismatchError(f"Cannot apply {type(self).__name__} rule to {target.declared_type}")

    @property
    def expression(self) -> ColumnElement:
        return self.target.expression

    def criterion(self) -> ColumnElement[bool]:
        raise NotImplementedError

    def query(self) -> Select:
        return self.scope.where(self.criterion())

    def _comparable(self, value: Any) -> Any:
        if is_value_list(value) or isinstance(value, Mapping):
            raise InvalidFilterParam(f"{type(self).__name__} rule needs a single value, got {value!r}")
        try:
            return coerce_literal(self.target, value)
        except ValueError as e:
            raise InvalidFilterParam(f"{value!r} cannot be compared with {self.target.name}") from e
