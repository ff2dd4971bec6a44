"""
Filter rule compiler for SQLAlchemy models.

Models declare which columns, aliases, associations and scopes may be
filtered; untrusted rule trees are then compiled into a `Select`.
"""

from has_filters.core.exceptions import (
    FilterTypeMismatchError,
    HasFiltersError,
    InvalidFilterError,
    InvalidFilterParam,
    UnfilterableAttrError,
    UnfilterableJoinError,
)
from has_filters.filters.composer import compose_filters, filter_query
from has_filters.filters.mixins import HasFilters
from has_filters.filters.registry import FilterRegistry, filter_registry, get_filter_surface, has_filters
from has_filters.filters.surface import FilterSurface
from has_filters.schemas.rules import Conjunction

__all__ = [
    "Conjunction",
    "FilterRegistry",
    "FilterSurface",
    "FilterTypeMismatchError",
    "HasFilters",
    "HasFiltersError",
    "InvalidFilterError",
    "InvalidFilterParam",
    "UnfilterableAttrError",
    "UnfilterableJoinError",
    "compose_filters",
    "filter_query",
    "filter_registry",
    "get_filter_surface",
    "has_filters",
]
