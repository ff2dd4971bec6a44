from typing import Any

from sqlalchemy import Select


def identity_subquery(query: Select, primary_key: Any) -> Select:
    """
    Reduces a query to the primary keys of the rows it matches.

    Ordering, limit and offset are dropped: the result is only ever used as a
    set in `IN`/`NOT IN`. Correlation is disabled so the subquery keeps its own
    FROM clause when nested in a query over the same table.
    """
    return query.with_only_columns(primary_key).order_by(None).limit(None).offset(None).correlate(None)
