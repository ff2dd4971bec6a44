"""
Virtual/Alias Resolver.

An alias gives a name to a raw SQL expression, e.g.
`{"full_name": "first_name || ' ' || last_name"}`. Filters on the alias use the
expression text as their left-hand operand and skip the column type check, so
the expression must be valid SQL for the database the query runs against.
"""

from collections.abc import Mapping
from types import MappingProxyType

from has_filters.core.exceptions import InvalidFilterError

from .columns import VirtualTarget


def virtual_target(name: str, expression: str) -> VirtualTarget:
    """
    Builds the target an operator uses for an alias.

    Raises:
        InvalidFilterError: If the expression is not a non-empty string.
    """
    if not isinstance(expression, str) or not expression.strip():
        raise InvalidFilterError(f"Alias {name} must map to a SQL expression string")
    return VirtualTarget(name=name, sql=expression.strip())


def resolve_aliases(aliases: Mapping[str, str] | None) -> MappingProxyType[str, VirtualTarget]:
    """Resolves every declared alias into its virtual target, keyed by alias name."""
    return MappingProxyType({str(name): virtual_target(str(name), sql) for name, sql in (aliases or {}).items()})
