"""
Rule Resolver.

Turns one parsed rule into what should run against a scope:

1. a blank rule resolves to the identity filter,
2. a scope rule resolves to a call of that scope with the rule's param,
3. a composite rule is handed back to the composer to recurse into,
4. a leaf rule resolves to the `by_{column}` filter with its criteria.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from humps import decamelize
from sqlalchemy import Select

from has_filters.core.exceptions import UnfilterableAttrError
from has_filters.schemas.rules import BlankRule, CompositeRule, LeafRule, Rule, ScopeRule

from .criteria import FilterCriteria

if TYPE_CHECKING:
    from .surface import FilterSurface


def scope_arguments(param: Any) -> tuple[tuple[Any, ...], dict[str, Any]]:
    """
    Spreads a scope rule's param into call arguments.

    A mapping becomes keyword arguments (keys decamelized), a list or tuple
    becomes positional arguments, None means no arguments and any other value
    is a single positional argument.
    """
    if param is None:
        return (), {}
    if isinstance(param, Mapping):
        return (), {decamelize(str(key)): value for key, value in param.items()}
    if isinstance(param, list | tuple):
        return tuple(param), {}
    return (param,), {}


@dataclass(frozen=True)
class ResolvedFilter:
    """A filter or scope name and the arguments to call it with. No name is the identity filter."""

    name: str | None = None
    criteria: FilterCriteria | None = None
    is_scope: bool = False
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)

    def apply(self, surface: FilterSurface, scope: Select) -> Select:
        """
        Runs the resolved filter against `scope`.

        Raises:
            UnfilterableAttrError: If the surface has no filter or scope under `name`.
        """
        if self.name is None:
            return scope

        if self.is_scope:
            scope_callable = surface.scope(self.name)
            if scope_callable is None:
                raise UnfilterableAttrError(f"could not compose scope named {self.name}")
            return scope_callable(scope, *self.args, **self.kwargs)

        return surface.apply(self.name, scope, self.criteria or FilterCriteria())


IDENTITY = ResolvedFilter()


def resolve_rule(rule: Rule) -> ResolvedFilter | CompositeRule:
    if isinstance(rule, BlankRule):
        return IDENTITY

    if isinstance(rule, ScopeRule):
        args, kwargs = scope_arguments(rule.param)
        return ResolvedFilter(name=rule.column, is_scope=True, args=args, kwargs=kwargs)

    if isinstance(rule, CompositeRule):
        return rule

    if isinstance(rule, LeafRule):
        return ResolvedFilter(name=f"by_{rule.column}", criteria=FilterCriteria.from_rule(rule))

    raise TypeError(f"Unexpected rule type: {type(rule).__name__}")
