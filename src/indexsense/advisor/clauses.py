"""
Keyword-bounded clause extraction and subquery partitioning.

Nothing here parses SQL. Clauses are located by case-insensitive keyword
search and end at the earliest boundary keyword that follows them.
"""

from __future__ import annotations

# Boundary keyword sets, one per clause kind
WHERE_BOUNDARIES = ("order by", "group by", "having", "limit", "offset", "union")
ORDER_BY_BOUNDARIES = ("group by", "order by", "limit", "offset", "union")
FROM_BOUNDARIES = ("where", "order by", "group by", "having", "limit")
# "on" is deliberately absent so "table alias ON ..." keeps its alias token
JOIN_TARGET_BOUNDARIES = (
    "where", "order by", "group by", "inner join", "left join", "right join", "join",
)
ON_BOUNDARIES = (
    "where", "order by", "group by", "having", "limit",
    "inner join", "left join", "right join", "join",
)

JOIN_KEYWORDS = ("inner join", "left join", "right join", "join")

SUBQUERY_PLACEHOLDER = "($1)"


def bound(text: str, boundaries: tuple[str, ...]) -> int:
    """Offset of the earliest boundary keyword in `text`, else len(text)."""
    lowered = text.lower()
    end = len(text)
    for keyword in boundaries:
        pos = lowered.find(keyword)
        if pos != -1 and pos < end:
            end = pos
    return end


def find_keyword(text: str, keyword: str, start: int = 0) -> int:
    """Case-insensitive `str.find`."""
    return text.lower().find(keyword.lower(), start)


def find_all_keywords(text: str, keyword: str) -> list[int]:
    """Start offsets of every non-overlapping occurrence of `keyword`."""
    lowered = text.lower()
    keyword = keyword.lower()
    positions: list[int] = []
    pos = lowered.find(keyword)
    while pos != -1:
        positions.append(pos)
        pos = lowered.find(keyword, pos + len(keyword))
    return positions


def clause_body(
    sql: str,
    keyword: str,
    boundaries: tuple[str, ...],
) -> str | None:
    """
    Text following the first occurrence of `keyword`, up to its boundary.

    Returns None when the keyword does not occur.
    """
    pos = find_keyword(sql, keyword)
    if pos == -1:
        return None
    rest = sql[pos + len(keyword):]
    return rest[:bound(rest, boundaries)]


def where_body(sql: str) -> str | None:
    """Body of the first WHERE clause."""
    return clause_body(sql, "where", WHERE_BOUNDARIES)


def order_by_body(sql: str) -> str | None:
    """Body of the first ORDER BY clause."""
    return clause_body(sql, "order by", ORDER_BY_BOUNDARIES)


def partition_subqueries(sql: str) -> tuple[str, list[str]]:
    """
    Split `sql` into (outer text with placeholders, subquery bodies).

    Only top-level parenthesized groups starting with SELECT count as
    subqueries; each is replaced by "($1)". Other parentheses, such as
    IN lists or function calls, are copied through. A subquery whose
    closing parenthesis never arrives is dropped and not captured.

    Example:
        >>> partition_subqueries("SELECT * FROM t WHERE id IN (SELECT x FROM u)")
        ('SELECT * FROM t WHERE id IN ($1)', ['SELECT x FROM u'])
    """
    output: list[str] = []
    subqueries: list[str] = []
    depth = 0
    in_subquery = False
    subquery_start = 0

    for i, ch in enumerate(sql):
        if ch == "(":
            depth += 1
            if depth == 1 and not in_subquery:
                if sql[i + 1:].lstrip().upper().startswith("SELECT"):
                    in_subquery = True
                    subquery_start = i + 1
                    continue
        elif ch == ")" and depth > 0:
            depth -= 1
            if in_subquery and depth == 0:
                in_subquery = False
                subqueries.append(sql[subquery_start:i].strip())
                output.append(SUBQUERY_PLACEHOLDER)
                continue

        if not in_subquery:
            output.append(ch)

    return "".join(output), subqueries
