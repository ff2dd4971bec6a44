from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from has_filters.core.exceptions import InvalidFilterError
from has_filters.schemas.rules import LeafRule, cast_boolean

DEFAULT_OPERATOR = "is"


@dataclass(frozen=True)
class FilterCriteria:
    """The argument handed to a `by_*` filter: one operator, its operand and the invert flag."""

    operator: str = DEFAULT_OPERATOR
    param: Any = None
    invert: bool = False

    @classmethod
    def from_argument(cls, argument: Any) -> FilterCriteria:
        """
        Reads the shorthand accepted by `FilterSurface.by`.

        A mapping names the operator as its first key other than "invert",
        e.g. `{"more_than": 5, "invert": True}`. Any other value is an exact
        match, so `by("name", None)` means `{"is": None}`.

        Raises:
            InvalidFilterError: If a mapping names no operator.
        """
        if isinstance(argument, cls):
            return argument

        if isinstance(argument, Mapping):
            operators = [key for key in argument if key != "invert"]
            if not operators:
                raise InvalidFilterError(f"No operator given in {argument!r}")

            return cls(
                operator=str(operators[0]),
                param=argument[operators[0]],
                invert=cast_boolean(argument.get("invert")),
            )

        return cls(param=argument)

    @classmethod
    def from_rule(cls, rule: LeafRule) -> FilterCriteria:
        return cls(operator=rule.operator, param=rule.param, invert=rule.invert)

    def without_invert(self) -> FilterCriteria:
        return replace(self, invert=False)
