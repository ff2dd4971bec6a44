from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import InstrumentedAttribute

from has_filters.core.exceptions import UnfilterableAttrError, UnfilterableJoinError

from .columns import declared_column_type

if TYPE_CHECKING:
    from .surface import FilterSurface


IDENTITY_ATTR = "id"


@dataclass(frozen=True)
class AssociationBinding:
    """A relationship the owning model filters through, with the related model's compiled surface."""

    name: str
    attribute: InstrumentedAttribute
    related: FilterSurface

    @property
    def related_attrs(self) -> tuple[str, ...]:
        """The related model's filterable attrs, its identity first."""
        return tuple(dict.fromkeys((IDENTITY_ATTR, *self.related.filterable_attrs)))

    def attr_name(self, attr: str) -> str:
        """`{assoc}` for the related identity, `{assoc}_{attr}` for any other related attr."""
        if attr == IDENTITY_ATTR:
            return self.name
        return f"{self.name}_{attr}"

    @property
    def filterable_attrs(self) -> tuple[str, ...]:
        return tuple(self.attr_name(attr) for attr in self.related_attrs)


@dataclass(frozen=True)
class FilterableSpec:
    """
    The declared filterable surface of one model.

    Built once by `FilterableSpec.declare` and never mutated; registering the
    model again produces a new value.
    """

    model: type
    columns: tuple[str, ...]
    aliases: Mapping[str, str]
    allowed_scopes: frozenset[str]
    associations: tuple[AssociationBinding, ...]

    @property
    def filterable_attrs(self) -> tuple[str, ...]:
        """
        Physical columns, then aliases, then the `{assoc}` / `{assoc}_{attr}` names
        of every association, in declaration order.

        Association names include the related model's own association names, so
        a chain like order -> person -> city exposes `person_city_name` on order.
        """
        names = [*self.columns, *self.aliases]
        for binding in self.associations:
            names.extend(binding.filterable_attrs)
        return tuple(dict.fromkeys(names))

    @classmethod
    def declare(
        cls,
        model: type,
        configs: Iterable[str],
        scopes: Iterable[str] = (),
        aliases: Mapping[str, str] | None = None,
        related_surface: Callable[[type], FilterSurface | None] = lambda _: None,
    ) -> FilterableSpec:
        """
        Classifies every configured name as a column or a relationship.

        Args:
            model (type): The mapped class being registered.
            configs (Iterable[str]): Column and relationship names.
            scopes (Iterable[str]): Scope names rules may reference directly.
            aliases (Mapping[str, str] | None): Alias name to raw SQL expression.
            related_surface (Callable): Looks up the registered surface of a related model.

        Raises:
            UnfilterableAttrError: If a name is neither a column nor a relationship.
            UnfilterableJoinError: If a related model has no registered surface.
        """
        relationships = sa.inspect(model).relationships
        columns: list[str] = []
        associations: list[AssociationBinding] = []

        for config in configs:
            name = str(config)
            if name in relationships:
                related_model = relationships[name].mapper.class_
                related = related_surface(related_model)
                if related is None:
                    raise UnfilterableJoinError(f"{model.__name__} is not filterable by {related_model.__name__}")
                associations.append(AssociationBinding(name=name, attribute=getattr(model, name), related=related))
            elif declared_column_type(model, name) is not None:
                columns.append(name)
            else:
                raise UnfilterableAttrError(f"{model.__name__} has no column or relationship named {name}")

        if isinstance(scopes, str):
            scopes = (scopes,)

        return cls(
            model=model,
            columns=tuple(dict.fromkeys(columns)),
            aliases=MappingProxyType({str(k): v for k, v in (aliases or {}).items()}),
            allowed_scopes=frozenset(str(scope) for scope in scopes),
            associations=tuple(associations),
        )
