from sqlalchemy.sql.elements import ColumnElement

from .base import COMPARABLE_TYPES, Operator


class Lesser(Operator):
    """Inclusive upper bound: column <= value."""

    allowed_types = COMPARABLE_TYPES

    def criterion(self) -> ColumnElement[bool]:
        return self.expression <= self._comparable(self.value)
