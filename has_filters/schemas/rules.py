"""
Pydantic schemas for filter rules.

A rule tree arrives as plain mappings. `has_filters.filters.parser.RuleParser`
turns every node into exactly one of the variants below, so the rest of the
compiler works on a closed set of shapes:

- `BlankRule`: `{}`, matches every row.
- `LeafRule`: `{column, operator, param, invert}`, one operator applied to one filter.
- `ScopeRule`: `{column, param}`, where `column` names an allowed scope.
- `CompositeRule`: `{rules, conjunction}`, a nested rule set with its own conjunction.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal

from pydantic import ConfigDict, Field, field_validator

from has_filters.core.exceptions import InvalidFilterError
from has_filters.schemas._filters import _FilterModel

FALSE_VALUES = frozenset(["false", "f", "0", "off", "no", "n"])


def cast_boolean(value: Any) -> bool:
    """
    Casts a loosely typed flag the way form and query-string input expects.

    `None`, empty strings and the false tokens (in any case) are False,
    every other value is True.
    """
    if value is None:
        return False
    if isinstance(value, str):
        stripped = value.strip().lower()
        return bool(stripped) and stripped not in FALSE_VALUES
    return value is not False and value != 0


class Conjunction(str, enum.Enum):
    """
    How sibling rules are combined.
    """

    exclusive = "exclusive"  # AND, every rule narrows the result further
    inclusive = "inclusive"  # OR, union of the rows each rule matches

    @classmethod
    def _missing_(cls, value: object) -> Conjunction | None:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    @classmethod
    def parse(cls, value: Any) -> Conjunction:
        """
        Reads a conjunction from a string, enum member or enum-like value.

        Raises:
            InvalidFilterError: If the value is not "exclusive" or "inclusive".
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, enum.Enum):
            value = value.value
        try:
            return cls(value)
        except ValueError as e:
            raise InvalidFilterError(f"Unknown conjunction: {value!r}") from e


class _Rule(_FilterModel):
    model_config = ConfigDict(frozen=True)


class BlankRule(_Rule):
    kind: Literal["blank"] = "blank"


class LeafRule(_Rule):
    kind: Literal["leaf"] = "leaf"
    column: str
    operator: str
    param: Any = None
    invert: bool = False

    @field_validator("invert", mode="before")
    @classmethod
    def cast_invert(cls, value: Any) -> bool:
        return cast_boolean(value)


class ScopeRule(_Rule):
    kind: Literal["scope"] = "scope"
    column: str
    param: Any = None


class CompositeRule(_Rule):
    kind: Literal["composite"] = "composite"
    rules: tuple[Rule, ...] = ()
    conjunction: Conjunction = Conjunction.exclusive


Rule = Annotated[BlankRule | LeafRule | ScopeRule | CompositeRule, Field(discriminator="kind")]

CompositeRule.model_rebuild()
