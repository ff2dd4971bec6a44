"""
Association Delegator.

For every relationship an owner registers, two kinds of entries are compiled
into the owner's surface:

- filters `by_{assoc}` (related identity) and `by_{assoc}_{attr}` for each
  filterable attribute of the related model, its own association names
  included, so chained associations resolve one hop at a time. The rule is
  delegated to the related model's own surface and the owners whose related
  rows match are selected through an outer join.
- scopes `{assoc}_{scope}` for each allowed scope of the related model.

Inversion is taken off the rule before delegation and applied to the owning
rows: an inverted association filter keeps every owner whose key is not in
the matched set, including owners without any related row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import sqlalchemy as sa
from sqlalchemy import Select

from has_filters.core.exceptions import UnfilterableAttrError

from .columns import ColumnTarget
from .criteria import FilterCriteria
from .operators import derive_query
from .spec import IDENTITY_ATTR, AssociationBinding


def association_scope_name(association: str, scope: str) -> str:
    return f"{association}_{scope}"


def matching_owner_ids(owner_key: Any, binding: AssociationBinding, related_query: Select) -> Select:
    """
    Selects the keys of owners joined to a row matched by `related_query`.

    The related query contributes its WHERE criteria. Without criteria every
    owner matches, with or without a related row.
    """
    matched = sa.select(owner_key).outerjoin(binding.attribute)

    criterion = related_query.whereclause
    if criterion is not None:
        matched = matched.where(criterion)

    return matched.correlate(None)


@dataclass(frozen=True)
class AssociationFilter:
    """The `by_{assoc}` / `by_{assoc}_{attr}` filter of an owning model."""

    binding: AssociationBinding
    attr: str
    owner_key: Any

    def __call__(self, scope: Select, criteria: FilterCriteria) -> Select:
        matched = matching_owner_ids(self.owner_key, self.binding, self.related_query(criteria.without_invert()))

        if criteria.invert:
            return scope.where(self.owner_key.not_in(matched))
        return scope.where(self.owner_key.in_(matched))

    def related_query(self, criteria: FilterCriteria) -> Select:
        related = self.binding.related

        if self.attr == IDENTITY_ATTR:
            target = ColumnTarget.for_attribute(related.model, related.primary_key.key)
            return derive_query(related.unscoped(), target, criteria, related.primary_key)

        return related.apply(f"by_{self.attr}", related.unscoped(), criteria)


@dataclass(frozen=True)
class AssociationScope:
    """The `{assoc}_{scope}` scope of an owning model, running a related model's scope."""

    binding: AssociationBinding
    scope_name: str
    owner_key: Any

    def __call__(self, query: Select, *args: Any, **kwargs: Any) -> Select:
        related = self.binding.related

        related_scope = related.scope(self.scope_name)
        if related_scope is None:
            raise UnfilterableAttrError(f"{related.model.__name__} has no scope named {self.scope_name}")

        related_query = related_scope(related.unscoped(), *args, **kwargs)
        return query.where(self.owner_key.in_(matching_owner_ids(self.owner_key, self.binding, related_query)))


def association_filters(binding: AssociationBinding, owner_key: Any) -> dict[str, AssociationFilter]:
    """All filters an association contributes to the owner's surface, keyed by filter name."""
    return {
        f"by_{binding.attr_name(attr)}": AssociationFilter(binding=binding, attr=attr, owner_key=owner_key)
        for attr in binding.related_attrs
    }


def association_scopes(binding: AssociationBinding, owner_key: Any) -> dict[str, AssociationScope]:
    """All scopes an association exposes on the owner, keyed by `{assoc}_{scope}`."""
    return {
        association_scope_name(binding.name, scope): AssociationScope(
            binding=binding, scope_name=scope, owner_key=owner_key
        )
        for scope in sorted(binding.related.allowed_scopes)
    }
