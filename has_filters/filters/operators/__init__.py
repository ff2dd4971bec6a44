"""
Operator Registry.

Maps operator names, as they appear in a rule's "operator" key, to their
implementation. Several names may share an implementation: "within" and
"between" are both `Range`, "after" is `Greater` and "before" is `Lesser`.
"""

from types import MappingProxyType
from typing import Any

from sqlalchemy import Select

from has_filters.core.exceptions import InvalidFilterError
from has_filters.filters._utils import identity_subquery
from has_filters.filters.columns import FilterTarget
from has_filters.filters.criteria import FilterCriteria

from .base import Operator
from .containment import Containment
from .exact import Exact
from .greater import Greater
from .lesser import Lesser
from .range import Range

OPERATORS_BY_NAME: MappingProxyType[str, type[Operator]] = MappingProxyType(
    {
        "is": Exact,
        "containing": Containment,
        "within": Range,
        "between": Range,
        "more_than": Greater,
        "after": Greater,
        "less_than": Lesser,
        "before": Lesser,
    }
)


def resolve_operator(name: Any) -> type[Operator] | None:
    """Returns the operator registered under `name`, or None."""
    if not isinstance(name, str):
        return None
    return OPERATORS_BY_NAME.get(name)


def derive_query(scope: Select, target: FilterTarget, criteria: FilterCriteria, primary_key: Any) -> Select:
    """
    Applies one operator to `scope`.

    Inversion is a set complement over the primary key rather than a NOT on the
    predicate, so rows where the column is NULL are part of the inverted result.

    Args:
        scope (Select): The query to narrow.
        target (FilterTarget): The column or alias expression being filtered.
        criteria (FilterCriteria): Operator name, operand and invert flag.
        primary_key (Any): Primary key attribute of the scope's model.

    Returns:
        Select: `scope` narrowed by the operator.

    Raises:
        InvalidFilterError: If no operator is registered under `criteria.operator`.
    """
    operator_class = resolve_operator(criteria.operator)
    if operator_class is None:
        raise InvalidFilterError(f"No rule identified by {criteria.operator}")

    query = operator_class(scope, target, criteria.param).query()

    if criteria.invert:
        query = scope.where(primary_key.not_in(identity_subquery(query, primary_key)))

    return query


__all__ = [
    "OPERATORS_BY_NAME",
    "Containment",
    "Exact",
    "Greater",
    "Lesser",
    "Operator",
    "Range",
    "derive_query",
    "resolve_operator",
]
