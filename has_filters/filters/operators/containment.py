import sqlalchemy as sa
from sqlalchemy.sql.elements import ColumnElement

from .base import Operator


class Containment(Operator):
    """Case-insensitive substring match, LIKE wildcards in the value are escaped."""

    allowed_types = frozenset(["string", "text"])

    def criterion(self) -> ColumnElement[bool]:
        if self.value is None:
            return sa.false()

        lowered = sa.func.lower(self.expression, type_=sa.String())
        return lowered.contains(str(self.value).lower(), autoescape=True)
