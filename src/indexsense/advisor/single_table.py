"""
Index column extraction for queries against one known table.

Columns compared in WHERE come first, ordered by predicate priority
(equality, IN, range, LIKE, inequality, NOT LIKE); ORDER BY columns
follow in the table's declaration order.
"""

from __future__ import annotations

from collections.abc import Sequence

from indexsense.advisor.clauses import order_by_body, where_body
from indexsense.advisor.conditions import classify_conditions
from indexsense.advisor.models import QueryComplexity

# Characters kept when looking back for an IN keyword before "("
_PAREN_LOOKBACK = 20


def where_columns(sql: str, known_columns: Sequence[str]) -> list[str]:
    """Known columns used in WHERE predicates, by predicate priority."""
    body = where_body(sql)
    if body is None:
        return []
    return [col for col, _ in classify_conditions(body, known_columns)]


def order_by_columns(sql: str, known_columns: Sequence[str]) -> list[str]:
    """Known columns mentioned in ORDER BY, in declaration order."""
    body = order_by_body(sql)
    if body is None:
        return []
    lowered = body.lower()
    return [col for col in known_columns if col.lower() in lowered]


def extract_index_columns(sql: str, known_columns: Sequence[str]) -> list[str]:
    """
    Columns worth indexing for a single-table query, in index order.

    Example:
        >>> extract_index_columns(
        ...     "SELECT * FROM tasks WHERE tenant_id = $1 ORDER BY created_at",
        ...     ["id", "tenant_id", "created_at"],
        ... )
        ['tenant_id', 'created_at']
    """
    columns = where_columns(sql, known_columns)
    for col in order_by_columns(sql, known_columns):
        if col not in columns:
            columns.append(col)
    return columns


def has_or_conditions(sql: str) -> bool:
    """Whether the WHERE clause contains an OR."""
    body = where_body(sql)
    if body is None:
        return False
    lowered = body.lower()
    return " or " in lowered or lowered.endswith(" or")


def has_parentheses(sql: str) -> bool:
    """Whether the WHERE clause groups conditions with parentheses (IN lists excluded)."""
    body = where_body(sql)
    if body is None:
        return False

    window = ""
    for ch in body.lower():
        if ch == "(" and not (window.endswith("in") or window.endswith("in ")):
            return True
        window = (window + ch)[-_PAREN_LOOKBACK:]
    return False


def has_subquery(sql: str) -> bool:
    """Whether SELECT appears more than once."""
    return sql.lower().count("select") >= 2


def analyze_query_complexity(sql: str) -> QueryComplexity:
    return QueryComplexity(
        has_or=has_or_conditions(sql),
        has_parentheses=has_parentheses(sql),
        has_subquery=has_subquery(sql),
    )
