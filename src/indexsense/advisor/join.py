"""
Per-table index columns for JOIN queries.

Collects qualified column references (alias.column) from ON conditions,
the WHERE clause and ORDER BY, resolves each alias to its table, and
groups the columns per table in the order they were found.
"""

from __future__ import annotations

import logging
import re

from indexsense.advisor.aliases import AliasMap
from indexsense.advisor.clauses import (
    ON_BOUNDARIES,
    WHERE_BOUNDARIES,
    bound,
    clause_body,
    find_all_keywords,
)
from indexsense.advisor.models import TableIndexRecommendation

logger = logging.getLogger(__name__)

QualifiedColumn = tuple[str, str]

QUALIFIED_PATTERN = re.compile(r"(\w+)\.(\w+)")

# Qualified column followed by a comparison, in match order
CONDITION_PATTERNS = (
    re.compile(r"(\w+)\.(\w+)\s*="),
    re.compile(r"(\w+)\.(\w+)\s*>"),
    re.compile(r"(\w+)\.(\w+)\s*<"),
    re.compile(r"(\w+)\.(\w+)\s*>="),
    re.compile(r"(\w+)\.(\w+)\s*<="),
    re.compile(r"(\w+)\.(\w+)\s+IN\b", re.IGNORECASE),
    re.compile(r"(\w+)\.(\w+)\s+LIKE\b", re.IGNORECASE),
)

REASON_FULL = "ON/WHERE/ORDER BY in JOIN query"
REASON_ON_WHERE = "ON/WHERE in JOIN query"
REASON_WHERE_ONLY = "WHERE condition in JOIN query"


def _collect(
    text: str,
    patterns: tuple[re.Pattern[str], ...],
    columns: list[QualifiedColumn],
) -> None:
    for pattern in patterns:
        for match in pattern.finditer(text):
            pair = (match.group(1), match.group(2))
            if pair not in columns:
                columns.append(pair)


def extract_on_columns(sql: str) -> list[QualifiedColumn]:
    """
    Qualified columns from every ON condition.

    Both sides of an equality are kept since either table may need the index.
    """
    columns: list[QualifiedColumn] = []
    for pos in find_all_keywords(sql, " on "):
        start = pos + len(" on ")
        rest = sql[start:]
        condition = rest[:bound(rest, ON_BOUNDARIES)]
        _collect(condition, (QUALIFIED_PATTERN,), columns)
    return columns


def extract_qualified_columns(sql: str, clause: str) -> list[QualifiedColumn]:
    """
    Qualified columns compared in a WHERE or ORDER BY clause.

    Args:
        sql: Raw query text
        clause: "where" or "order by"

    Returns:
        Distinct (table_ref, column) pairs. ORDER BY also accepts bare
        references with no operator after them.
    """
    body = clause_body(sql, clause, WHERE_BOUNDARIES)
    if not body:
        return []

    columns: list[QualifiedColumn] = []
    _collect(body, CONDITION_PATTERNS, columns)
    if clause.lower() == "order by":
        _collect(body, (QUALIFIED_PATTERN,), columns)
    return columns


class _TableBuckets:
    """Insertion-ordered per-table column buckets."""

    def __init__(self, aliases: AliasMap) -> None:
        self._aliases = aliases
        self._columns: dict[str, list[str]] = {}
        self._reasons: dict[str, str] = {}

    def add(self, table_ref: str, column: str, reason: str) -> None:
        table = self._aliases.resolve(table_ref)
        if table not in self._columns:
            self._columns[table] = []
            self._reasons[table] = reason
        self._columns[table].append(column)

    def recommendations(self) -> list[TableIndexRecommendation]:
        return [
            TableIndexRecommendation(
                table_name=table,
                columns=tuple(dict.fromkeys(columns)),
                reason=self._reasons[table],
            )
            for table, columns in self._columns.items()
        ]


def recommend_for_join(sql: str, aliases: AliasMap) -> list[TableIndexRecommendation]:
    """
    One index recommendation per table referenced in ON/WHERE/ORDER BY.

    Args:
        sql: Raw JOIN query text
        aliases: Alias map from `resolve_aliases(sql)`

    Returns:
        Recommendations in the order tables were first touched. Empty
        when no qualified column is found.

    Example:
        >>> sql = "SELECT o.* FROM orders o JOIN users u ON o.user_id = u.id"
        >>> [r.table_name for r in recommend_for_join(sql, resolve_aliases(sql))]
        ['orders', 'users']
    """
    lowered = sql.lower()
    has_order_by = "order by" in lowered
    has_on_clause = " on " in lowered

    buckets = _TableBuckets(aliases)

    on_reason = REASON_FULL if has_order_by else REASON_ON_WHERE
    for table_ref, column in extract_on_columns(sql):
        buckets.add(table_ref, column, on_reason)

    if has_order_by:
        where_reason = REASON_FULL
    elif has_on_clause:
        where_reason = REASON_ON_WHERE
    else:
        where_reason = REASON_WHERE_ONLY
    for table_ref, column in extract_qualified_columns(sql, "where"):
        buckets.add(table_ref, column, where_reason)

    for table_ref, column in extract_qualified_columns(sql, "order by"):
        buckets.add(table_ref, column, REASON_FULL)

    recommendations = buckets.recommendations()
    if not recommendations:
        logger.debug("No qualified columns found in JOIN query")
    return recommendations
