from collections.abc import Iterable, Mapping
from typing import Any

import sqlalchemy as sa
from sqlalchemy.sql.elements import ColumnElement

from has_filters.core.exceptions import InvalidFilterParam

from .base import COMPARABLE_TYPES, Operator


class Range(Operator):
    """
    Inclusive range between the smallest and largest value of the operand.

    The operand may be a `range`, any non-string iterable (in any order) or a
    mapping with "min" and "max" keys.
    """

    allowed_types = COMPARABLE_TYPES

    def criterion(self) -> ColumnElement[bool]:
        lower, upper = self.bounds()
        return sa.and_(self.expression >= lower, self.expression <= upper)

    def bounds(self) -> tuple[Any, Any]:
        """
        Returns the (min, max) pair of the operand.

        Raises:
            InvalidFilterParam: If no min/max can be derived from the operand.
        """
        values = [self._comparable(value) for value in self._values()]
        if not values:
            raise InvalidFilterParam("Range filter param must not be empty")

        try:
            return min(values), max(values)
        except TypeError as e:
            raise InvalidFilterParam(f"Range filter param values are not comparable: {self.value!r}") from e

    def _values(self) -> list[Any]:
        if isinstance(self.value, Mapping):
            if "min" not in self.value or "max" not in self.value:
                raise InvalidFilterParam("Range filter mapping must have min and max keys")
            return [self.value["min"], self.value["max"]]

        if isinstance(self.value, range):
            return [self.value[0], self.value[-1]] if self.value else []

        if isinstance(self.value, str | bytes) or not isinstance(self.value, Iterable):
            raise InvalidFilterParam(
                "Range filter param must be a range, a sequence, or a mapping with min and max"
            )
        return list(self.value)
