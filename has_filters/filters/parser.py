"""
Parses raw rule input into the tagged rule variants of `has_filters.schemas.rules`.

Parsing is done once, up front, for the whole tree. Any malformed node makes the
whole filter fail with `InvalidFilterError` before a single rule is resolved.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence
from typing import Any

from humps import decamelize
from pydantic import BaseModel, ValidationError

from has_filters.core.config import get_app_settings
from has_filters.core.exceptions import InvalidFilterError
from has_filters.schemas.rules import BlankRule, CompositeRule, Conjunction, LeafRule, Rule, ScopeRule

from .operators import resolve_operator

LEAF_KEYS = ("column", "operator", "param")


def as_rule_mapping(raw: Any) -> dict[str, Any] | None:
    """
    Converts one rule to a plain dict with snake_case keys.

    Mappings, pydantic models (including parsed rules) and named tuples are
    accepted. Anything else returns None.
    """
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    elif hasattr(raw, "_asdict"):
        raw = raw._asdict()

    if not isinstance(raw, Mapping):
        return None

    # "kind" is the variant tag of an already parsed rule
    return {decamelize(str(key)): value for key, value in raw.items() if key != "kind"}


def is_rule_sequence(rules: Any) -> bool:
    return isinstance(rules, Sequence) and not isinstance(rules, str | bytes)


def is_blank(rule: Mapping[str, Any]) -> bool:
    return all(value is None or value == "" for value in rule.values())


class RuleParser:
    """
    Parses rule trees for one model.

    Args:
        allowed_scopes (Collection[str]): Scope names a rule's "column" may reference.
        max_depth (int | None): How deeply composite rules may nest. Defaults to
            the `MAX_RULE_DEPTH` setting.
        filter_names (Collection[str]): Registered `by_*` filter names. A column that
            names one of them, or a scope, is kept as given instead of being decamelized.
    """

    def __init__(
        self,
        allowed_scopes: Collection[str],
        max_depth: int | None = None,
        filter_names: Collection[str] = (),
    ) -> None:
        self.allowed_scopes = frozenset(allowed_scopes)
        self.filter_names = frozenset(filter_names)
        self.max_depth = max_depth if max_depth is not None else get_app_settings().MAX_RULE_DEPTH

    def parse_many(self, rules: Any, depth: int = 0) -> tuple[Rule, ...]:
        """
        Parses a rule list.

        Raises:
            InvalidFilterError: If `rules` is not a sequence, an element cannot be
                converted to a mapping, or any rule in the tree is malformed.
        """
        if not is_rule_sequence(rules):
            raise InvalidFilterError("Invalid rules object")

        mappings = [as_rule_mapping(rule) for rule in rules]
        if any(mapping is None for mapping in mappings):
            raise InvalidFilterError("Invalid rules object")

        return tuple(self._parse(mapping, depth) for mapping in mappings)

    def parse(self, rule: Any) -> Rule:
        mapping = as_rule_mapping(rule)
        if mapping is None:
            raise InvalidFilterError(f"Invalid rule object: {rule!r}")
        return self._parse(mapping, 0)

    def _parse(self, rule: dict[str, Any], depth: int) -> Rule:
        if is_blank(rule):
            return BlankRule()

        column = rule.get("column")
        if column is not None and not isinstance(column, str):
            raise InvalidFilterError(f"Invalid rule column: {column!r}")
        if column is not None:
            column = self._column_name(column)

        if column in self.allowed_scopes:
            return self._validated(ScopeRule, column=column, param=rule.get("param"))

        if "rules" in rule:
            if depth >= self.max_depth:
                raise InvalidFilterError(f"Rules may not be nested more than {self.max_depth} levels deep")
            return self._validated(
                CompositeRule,
                rules=self.parse_many(rule["rules"], depth + 1),
                conjunction=Conjunction.parse(rule.get("conjunction") or Conjunction.exclusive),
            )

        if not all(key in rule for key in LEAF_KEYS):
            raise InvalidFilterError(f"Invalid rule object: {rule!r}")

        if resolve_operator(rule["operator"]) is None:
            raise InvalidFilterError(f"No rule identified by {rule['operator']}")

        return self._validated(
            LeafRule,
            column=column,
            operator=rule["operator"],
            param=rule["param"],
            invert=rule.get("invert"),
        )

    def _column_name(self, column: str) -> str:
        if column in self.allowed_scopes or f"by_{column}" in self.filter_names:
            return column
        return decamelize(column)

    @staticmethod
    def _validated(rule_class: type[BaseModel], **values: Any) -> Rule:
        try:
            return rule_class.model_validate(values)
        except ValidationError as e:
            raise InvalidFilterError(f"Invalid rule object: {e}") from e
