from typing import Any

import sqlalchemy as sa
from sqlalchemy.sql.elements import ColumnElement

from has_filters.filters.columns import coerce_literal, is_value_list

from .base import Operator


class Exact(Operator):
    """
    Equality. `None` compiles to IS NULL and a list to IN.

    String literals are coerced to the column's type. A literal that cannot be
    coerced can never equal a stored value, so it matches nothing instead of
    raising.
    """

    def criterion(self) -> ColumnElement[bool]:
        if self.value is None:
            return self.expression.is_(None)

        if is_value_list(self.value):
            values = [v for v in (self._coerced(item) for item in self.value) if v is not _NO_MATCH]
            if not values:
                return sa.false()
            return self.expression.in_(values)

        value = self._coerced(self.value)
        if value is _NO_MATCH:
            return sa.false()
        return self.expression == value

    def _coerced(self, value: Any) -> Any:
        if self.target.virtual:
            return value
        try:
            return coerce_literal(self.target, value)
        except ValueError:
            return _NO_MATCH


_NO_MATCH = object()
