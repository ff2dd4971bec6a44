"""
Filter Composer.

Folds a list of rules into one query under a conjunction:

- exclusive (AND): each rule narrows the scope left by the previous one,
  starting from the unscoped model query;
- inclusive (OR): each rule runs on its own against the unscoped model query
  and the result keeps every row whose primary key any of them matched.

Composite rules compose their children with their own conjunction and narrow
the surrounding scope by the keys they match.

`filter_query` is the entry point. The composed filter is merged into the
caller's base query as a primary key subquery, so limit and offset on the base
only ever apply after composition.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import sqlalchemy as sa
from sqlalchemy import Select

from has_filters.core.root_logger import get_logger
from has_filters.schemas.rules import CompositeRule, Conjunction, Rule

from ._utils import identity_subquery
from .parser import RuleParser
from .resolver import resolve_rule
from .surface import FilterSurface


def apply_rule(surface: FilterSurface, rule: Rule, scope: Select) -> Select:
    resolved = resolve_rule(rule)

    if isinstance(resolved, CompositeRule):
        if not resolved.rules:
            return scope
        nested = compose_filters(surface, resolved.rules, resolved.conjunction)
        return scope.where(surface.primary_key.in_(identity_subquery(nested, surface.primary_key)))

    return resolved.apply(surface, scope)


def compose_filters(surface: FilterSurface, rules: Sequence[Rule], conjunction: Conjunction) -> Select:
    """
    Composes parsed rules against the unscoped model query.

    Args:
        surface (FilterSurface): The model's compiled filters.
        rules (Sequence[Rule]): Parsed rules, in evaluation order.
        conjunction (Conjunction): How sibling rules combine.

    Returns:
        Select: A query over the model matching the composed rules.
    """
    unscoped = surface.unscoped()

    if conjunction is Conjunction.exclusive:
        composed = unscoped
        for rule in rules:
            composed = apply_rule(surface, rule, composed)
        return composed

    if not rules:
        return unscoped

    primary_key = surface.primary_key
    matches = [identity_subquery(apply_rule(surface, rule, unscoped), primary_key) for rule in rules]
    return unscoped.where(sa.or_(*(primary_key.in_(match) for match in matches)))


def filter_query(
    surface: FilterSurface,
    rules: Any = (),
    conjunction: Conjunction | str = Conjunction.exclusive,
    query: Select | None = None,
    max_depth: int | None = None,
) -> Select:
    """
    Compiles a rule list into a query over the surface's model.

    Args:
        surface (FilterSurface): The model's compiled filters.
        rules (Any): A sequence of rule mappings (or pydantic models / named tuples).
        conjunction (Conjunction | str): "exclusive" (default) or "inclusive", any case.
        query (Select | None): Base query to refine. Defaults to `select(model)`.
        max_depth (int | None): Nesting limit, defaults to the `MAX_RULE_DEPTH` setting.

    Returns:
        Select: The base query, unchanged for an empty rule list, otherwise
                narrowed to the rows the rules match.

    Raises:
        InvalidFilterError: Malformed rules, unknown operator or conjunction.
        UnfilterableAttrError: A rule targets a filter or scope the model does not expose.
        InvalidFilterParam: An operand has no usable value for its operator.
        FilterTypeMismatchError: An operator does not apply to the column's type.
    """
    conjunction = Conjunction.parse(conjunction)
    parser = RuleParser(surface.allowed_scopes, max_depth=max_depth, filter_names=surface.filter_names)
    parsed = parser.parse_many(rules)

    base = query if query is not None else surface.unscoped()
    if not parsed:
        return base

    get_logger().debug(f"Composing {len(parsed)} {conjunction.value} rule(s) for {surface.model.__name__}")

    composed = compose_filters(surface, parsed, conjunction)
    return base.where(surface.primary_key.in_(identity_subquery(composed, surface.primary_key)))
