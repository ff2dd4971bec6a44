"""
Column targets and declared-type lookup for filter operators.

An operator never works on a raw attribute name. It receives a *target* that
knows the SQL expression to compare against and, for physical columns, the
declared type used by the operator's allowed-type check:

- `ColumnTarget`: a mapped column on a SQLAlchemy model.
- `VirtualTarget`: a raw SQL expression registered as an alias (see `aliases.py`).

This module also holds the string-literal coercion shared by the operators, so
that values decoded from JSON/query strings can be compared against typed columns.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar

import sqlalchemy as sa
from dateutil import parser as date_parser
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql import sqltypes
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.types import TypeDecorator, TypeEngine

from has_filters.core.exceptions import UnfilterableAttrError

TRUE_TOKENS = frozenset(["true", "t", "yes", "y", "1", "on"])
FALSE_TOKENS = frozenset(["false", "f", "no", "n", "0", "off"])


def declared_type(sql_type: TypeEngine) -> str:
    """
    Maps a SQLAlchemy column type onto the small closed set of declared types
    the operators know about.

    `TypeDecorator` types are unwrapped to the type they decorate. Subclass
    checks run from most to least specific: `Enum` and `Text` are both `String`
    subclasses. `Float` is checked on its own since it is not a `Numeric`
    subclass in every SQLAlchemy release.

    Args:
        sql_type (TypeEngine): The column's SQLAlchemy type instance.

    Returns:
        str: One of "enum", "text", "string", "boolean", "datetime", "date",
             "integer", "float", or the lower-cased visit name for anything else.
    """
    if isinstance(sql_type, TypeDecorator):
        sql_type = sql_type.impl_instance

    if isinstance(sql_type, sqltypes.Enum):
        return "enum"
    if isinstance(sql_type, sqltypes.Text):
        return "text"
    if isinstance(sql_type, sqltypes.String):
        return "string"
    if isinstance(sql_type, sqltypes.Boolean):
        return "boolean"
    if isinstance(sql_type, sqltypes.DateTime):
        return "datetime"
    if isinstance(sql_type, sqltypes.Date):
        return "date"
    if isinstance(sql_type, sqltypes.Integer):
        return "integer"
    if isinstance(sql_type, sqltypes.Float | sqltypes.Numeric):
        return "float"
    return str(sql_type.__visit_name__).lower()


def declared_column_type(model: type, attr: str) -> str | None:
    """Returns the declared type of `model.attr`, or None if it is not a mapped column."""
    columns = sa.inspect(model).columns
    if attr not in columns:
        return None
    return declared_type(columns[attr].type)


@dataclass(frozen=True)
class ColumnTarget:
    """A physical, mapped column on a model."""

    name: str
    attribute: InstrumentedAttribute
    declared_type: str
    sql_type: TypeEngine

    virtual: ClassVar[bool] = False

    @property
    def expression(self) -> ColumnElement:
        return self.attribute

    @classmethod
    def for_attribute(cls, model: type, attr: str) -> ColumnTarget:
        """
        Builds the target for a mapped column attribute.

        Raises:
            UnfilterableAttrError: If `attr` is not a mapped column of `model`.
        """
        columns = sa.inspect(model).columns
        if attr not in columns:
            raise UnfilterableAttrError(f"{model.__name__} has no column named {attr}")

        column = columns[attr]
        return cls(
            name=attr,
            attribute=getattr(model, attr),
            declared_type=declared_type(column.type),
            sql_type=column.type,
        )


@dataclass(frozen=True)
class VirtualTarget:
    """A computed column, referenced by its raw SQL expression text."""

    name: str
    sql: str

    virtual: ClassVar[bool] = True
    declared_type: ClassVar[str | None] = None
    sql_type: ClassVar[TypeEngine | None] = None

    @property
    def expression(self) -> ColumnElement:
        # parenthesised so operators bind to the whole expression
        return sa.literal_column(f"({self.sql})")


FilterTarget = ColumnTarget | VirtualTarget


def _coerce_boolean(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_TOKENS:
        return True
    if lowered in FALSE_TOKENS:
        return False
    raise ValueError(f"invalid boolean value: {value}")


def _coerce_enum(sql_type: TypeEngine | None, value: str) -> Any:
    if isinstance(sql_type, TypeDecorator):
        sql_type = sql_type.impl_instance

    enum_class = getattr(sql_type, "enum_class", None)
    if enum_class is not None:
        if value in enum_class.__members__:
            return enum_class[value]
        for member in enum_class:
            if member.value == value:
                return member
        raise ValueError(f"{value} is not a member of {enum_class.__name__}")

    if sql_type is not None and value not in getattr(sql_type, "enums", ()):
        raise ValueError(f"{value} is not among the defined enum values")
    return value


def coerce_literal(target: FilterTarget, value: Any) -> Any:
    """
    Converts a string literal to the Python type of the target column.

    Non-string values are returned as they are, except datetimes compared
    against a date column, which are truncated to their date. Virtual
    targets have no declared type and are never coerced.

    Args:
        target (FilterTarget): The column (or expression) being compared.
        value (Any): The raw operand.

    Returns:
        Any: The coerced operand.

    Raises:
        ValueError: If a string literal cannot represent a value of the column's type.
    """
    column_type = target.declared_type

    if isinstance(value, datetime) and column_type == "date":
        return value.date()
    if not isinstance(value, str) or column_type is None:
        return value

    try:
        if column_type == "integer":
            return int(value.strip())
        if column_type == "float":
            return float(value.strip())
        if column_type == "datetime":
            return date_parser.parse(value)
        if column_type == "date":
            return date_parser.parse(value).date()
    except OverflowError as e:
        raise ValueError(f"invalid {column_type} value: {value}") from e

    if column_type == "boolean":
        return _coerce_boolean(value)
    if column_type == "enum":
        return _coerce_enum(target.sql_type, value)
    return value


def is_value_list(value: Any) -> bool:
    """True for the collection types that `is` treats as a set of allowed values."""
    return isinstance(value, list | tuple | set | frozenset)
