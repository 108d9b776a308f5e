"""
Table alias resolution.

Builds an alias -> table map from the FROM clause, every JOIN target and,
recursively, every SELECT subquery. Subquery aliases are merged into one
flat map: an alias defined anywhere is visible everywhere. That is not SQL
scoping, and it is what callers rely on to resolve qualified columns that
appear inside subqueries.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping

from indexsense.advisor.clauses import (
    FROM_BOUNDARIES,
    JOIN_KEYWORDS,
    JOIN_TARGET_BOUNDARIES,
    bound,
    find_all_keywords,
    find_keyword,
    partition_subqueries,
)

logger = logging.getLogger(__name__)

# Second tokens that end a table reference rather than name an alias
_NON_ALIAS_TOKENS = frozenset({"ON", "WHERE", ","})


class AliasMap(Mapping[str, str]):
    """
    Maps table aliases (and bare table names) to canonical table names.

    Lookups of unknown names fall back to the name itself, so
    `resolve()` is total.
    """

    def __init__(self, aliases: Mapping[str, str] | None = None) -> None:
        self._aliases: dict[str, str] = dict(aliases or {})

    def add_alias(self, alias: str, table: str) -> None:
        self._aliases[alias] = table

    def merge(self, other: Mapping[str, str]) -> None:
        """Copy every pair from `other`, overwriting existing aliases."""
        for alias, table in other.items():
            self.add_alias(alias, table)

    def resolve(self, alias_or_table: str) -> str:
        """
        Canonical table for an alias; unknown names resolve to themselves.

        Implicit aliases are stored lower-cased, so a miss retries with the
        lower-cased name before falling back.
        """
        if alias_or_table in self._aliases:
            return self._aliases[alias_or_table]
        return self._aliases.get(alias_or_table.lower(), alias_or_table)

    def __getitem__(self, key: str) -> str:
        return self._aliases[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._aliases)

    def __len__(self) -> int:
        return len(self._aliases)

    def __repr__(self) -> str:
        return f"AliasMap({self._aliases!r})"


def parse_table_reference(clause: str, aliases: AliasMap) -> None:
    """
    Record the table (and alias) named at the start of a FROM/JOIN target.

    Supports "table", "table AS alias" and "table alias". Bracketed
    placeholders such as "[Self]" are kept verbatim as the table name.
    """
    parts = clause.split()
    if not parts:
        return

    table_name = parts[0]

    if len(parts) >= 3 and parts[1].upper() == "AS":
        aliases.add_alias(parts[2], table_name)
    elif len(parts) >= 2 and parts[1].upper() not in _NON_ALIAS_TOKENS and parts[1].upper() != "AS":
        aliases.add_alias(parts[1].lower(), table_name)
    else:
        aliases.add_alias(table_name, table_name)


def resolve_aliases(sql: str, max_depth: int | None = None) -> AliasMap:
    """
    Build the alias map for a query and all of its subqueries.

    Args:
        sql: Raw query text
        max_depth: Deepest subquery level to visit. Defaults to the
            configured `max_subquery_depth`.

    Returns:
        AliasMap (possibly empty). Never raises.

    Example:
        >>> m = resolve_aliases("SELECT * FROM merchant AS m WHERE m.id = $1")
        >>> m.resolve("m")
        'merchant'
    """
    if max_depth is None:
        from indexsense.config import get_config

        max_depth = get_config().max_subquery_depth
    return _resolve(sql, depth=0, max_depth=max_depth)


def _resolve(sql: str, depth: int, max_depth: int) -> AliasMap:
    aliases = AliasMap()

    from_pos = find_keyword(sql, "from")
    if from_pos != -1:
        rest = sql[from_pos:]
        end = bound(rest, FROM_BOUNDARIES)
        if end > 0:
            parse_table_reference(rest[len("from"):end], aliases)

    for keyword in JOIN_KEYWORDS:
        for pos in find_all_keywords(sql, keyword):
            target_start = pos + len(keyword)
            rest = sql[target_start:]
            end = bound(rest, JOIN_TARGET_BOUNDARIES)
            if end > 0:
                parse_table_reference(rest[:end], aliases)

    _, subqueries = partition_subqueries(sql)
    if subqueries and depth >= max_depth:
        logger.debug(
            "Skipping %d subquer%s beyond depth %d",
            len(subqueries),
            "y" if len(subqueries) == 1 else "ies",
            max_depth,
        )
        return aliases

    for subquery in subqueries:
        aliases.merge(_resolve(subquery, depth + 1, max_depth))

    return aliases
