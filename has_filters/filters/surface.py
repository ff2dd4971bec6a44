"""
The compiled filter surface of a model.

`FilterSurface.compile` turns a `FilterableSpec` into a read-only mapping from
filter name to handler:

- `by_{column}` for every physical column,
- `by_{alias}` for every alias,
- `by_{assoc}` and `by_{assoc}_{attr}` for every association.

Association scopes (`{assoc}_{scope}`) are compiled alongside. The model's
own scopes are looked up on the model class when they are used.

Resolving a filter at call time is a dictionary lookup; an unknown name is
reported as `UnfilterableAttrError` before anything is invoked.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import sqlalchemy as sa
from sqlalchemy import Select

from has_filters.core.exceptions import UnfilterableAttrError

from .aliases import resolve_aliases
from .associations import association_filters, association_scopes
from .columns import ColumnTarget, FilterTarget
from .criteria import FilterCriteria
from .operators import derive_query
from .spec import AssociationBinding, FilterableSpec

FilterHandler = Callable[[Select, FilterCriteria], Select]
ScopeCallable = Callable[..., Select]


def lookup_scope(model: type, name: str) -> ScopeCallable | None:
    """
    Finds a named scope on a model class.

    A scope is a callable attribute taking the query to narrow as its first
    argument, usually a classmethod: `def recent(cls, query, days): ...`.
    """
    scope = getattr(model, name, None)
    if scope is None or not callable(scope):
        return None
    return scope


@dataclass(frozen=True)
class AttributeFilter:
    """The `by_{attr}` filter of a column or alias."""

    target: FilterTarget
    primary_key: Any

    def __call__(self, scope: Select, criteria: FilterCriteria) -> Select:
        return derive_query(scope, self.target, criteria, self.primary_key)


@dataclass(frozen=True)
class FilterSurface:
    spec: FilterableSpec
    primary_key: Any
    handlers: Mapping[str, FilterHandler]
    association_scopes: Mapping[str, ScopeCallable]

    @classmethod
    def compile(cls, spec: FilterableSpec) -> FilterSurface:
        """
        Builds every handler the spec declares.

        Raises:
            ValueError: If the model does not have exactly one primary key column.
        """
        primary_keys = sa.inspect(spec.model).primary_key
        if len(primary_keys) != 1:
            raise ValueError(f"{spec.model.__name__} must have exactly one primary key column to be filterable")
        primary_key = getattr(spec.model, sa.inspect(spec.model).get_property_by_column(primary_keys[0]).key)

        handlers: dict[str, FilterHandler] = {}
        for column in spec.columns:
            target = ColumnTarget.for_attribute(spec.model, column)
            handlers[f"by_{column}"] = AttributeFilter(target=target, primary_key=primary_key)

        for name, target in resolve_aliases(spec.aliases).items():
            handlers[f"by_{name}"] = AttributeFilter(target=target, primary_key=primary_key)

        scopes: dict[str, ScopeCallable] = {}
        for binding in spec.associations:
            handlers.update(association_filters(binding, primary_key))
            scopes.update(association_scopes(binding, primary_key))

        return cls(
            spec=spec,
            primary_key=primary_key,
            handlers=MappingProxyType(handlers),
            association_scopes=MappingProxyType(scopes),
        )

    @property
    def model(self) -> type:
        return self.spec.model

    @property
    def filterable_attrs(self) -> tuple[str, ...]:
        return self.spec.filterable_attrs

    @property
    def allowed_scopes(self) -> frozenset[str]:
        return self.spec.allowed_scopes

    @property
    def aliases(self) -> Mapping[str, str]:
        return self.spec.aliases

    @property
    def associations(self) -> tuple[AssociationBinding, ...]:
        return self.spec.associations

    @property
    def filter_names(self) -> frozenset[str]:
        return frozenset(self.handlers)

    def unscoped(self) -> Select:
        return sa.select(self.model)

    def handler(self, name: str) -> FilterHandler | None:
        return self.handlers.get(name)

    def scope(self, name: str) -> ScopeCallable | None:
        """Association scopes first, then a scope defined on the model class."""
        if name in self.association_scopes:
            return self.association_scopes[name]
        return lookup_scope(self.model, name)

    def apply(self, name: str, scope: Select, criteria: FilterCriteria) -> Select:
        """
        Runs the filter registered under `name` against `scope`.

        Raises:
            UnfilterableAttrError: If no filter is registered under `name`.
        """
        handler = self.handler(name)
        if handler is None:
            raise UnfilterableAttrError(f"could not compose filter named {name}")
        return handler(scope, criteria)

    def by(self, attr: str, rule: Any, query: Select | None = None) -> Select:
        """
        Applies the `by_{attr}` filter with the shorthand rule syntax.

        Examples:
            surface.by("name", "Jane")                          # exact match
            surface.by("name", {"containing": "an"})
            surface.by("friend_name", {"is": None, "invert": True})
        """
        name = attr if attr.startswith("by_") else f"by_{attr}"
        scope = query if query is not None else self.unscoped()
        return self.apply(name, scope, FilterCriteria.from_argument(rule))
