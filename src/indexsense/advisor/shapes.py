"""
Special index shapes: functional, partial and covering.

Each detector looks at the raw query text only. A functional match wins
over everything else; partial and INCLUDE columns decorate an ordinary
composite recommendation.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from indexsense.advisor.clauses import find_keyword, where_body
from indexsense.advisor.conditions import contains_word

# Function calls worth a functional index, in detection order
FUNCTION_PATTERNS = (
    "lower(",
    "upper(",
    "trim(",
    "date(",
    "year(",
    "month(",
    "day(",
    "substring(",
    "substr(",
    "concat(",
    "coalesce(",
)

SOFT_DELETE_CONDITION = "deleted_at is null"
PARTIAL_STATUS_LITERALS = ("active", "inactive", "pending")


@dataclass(frozen=True)
class FunctionalMatch:
    """A function call over a known column, e.g. LOWER(email)."""
    expression: str
    column: str


def _matching_paren_end(text: str) -> int:
    """Offset just past the parenthesis closing the first "(" in `text`, or -1."""
    depth = 0
    for i, ch in enumerate(text):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i + 1
    return -1


def detect_functional_index(
    sql: str,
    known_columns: Sequence[str],
) -> FunctionalMatch | None:
    """
    Find the first function call whose first argument is a known column.

    Only the first occurrence of each function name is inspected. The
    argument must match a column name exactly.

    Example:
        >>> detect_functional_index("SELECT * FROM users WHERE LOWER(email) = $1", ["email"])
        FunctionalMatch(expression='LOWER(email)', column='email')
    """
    lowered = sql.lower()
    for pattern in FUNCTION_PATTERNS:
        pos = lowered.find(pattern)
        if pos == -1:
            continue

        remaining = sql[pos:]
        end = _matching_paren_end(remaining)
        if end == -1:
            continue

        expression = remaining[:end]
        args = expression[len(pattern):]
        if "," in args:
            candidate = args[:args.index(",")].strip()
        else:
            candidate = args.strip().rstrip(")").strip()

        if candidate in known_columns:
            return FunctionalMatch(expression=expression, column=candidate)

    return None


def should_be_partial_index(sql: str) -> bool:
    """
    Whether the query filters on a fixed predicate worth a partial index.

    Recognizes soft deletes ("deleted_at IS NULL") and a literal status
    filter. Bound parameters ("status = $1") never qualify.
    """
    lowered = sql.lower()
    if SOFT_DELETE_CONDITION in lowered:
        return True

    where_pos = lowered.find("where")
    if where_pos == -1:
        return False
    after_where = lowered[where_pos + len("where"):]
    return any(f"status = '{literal}'" in after_where for literal in PARTIAL_STATUS_LITERALS)


def extract_partial_condition(sql: str) -> str | None:
    """First conjunct of the WHERE clause, when a partial index applies."""
    if not should_be_partial_index(sql):
        return None

    body = where_body(sql)
    if body is None:
        return None

    for separator in (" AND ", " and "):
        if separator in body:
            return body[:body.index(separator)].strip()
    return body.strip()


def select_list(sql: str) -> str | None:
    """Text between SELECT and FROM, or None if either is missing."""
    select_pos = find_keyword(sql, "select")
    if select_pos == -1:
        return None
    after_select = sql[select_pos + len("select"):]
    from_pos = find_keyword(after_select, " from ")
    if from_pos == -1:
        return None
    return after_select[:from_pos]


def detect_include_columns(
    sql: str,
    index_columns: Sequence[str],
    known_columns: Sequence[str],
) -> list[str]:
    """
    Selected columns that could ride along in a covering index.

    A bare "SELECT *" selects nothing specific, so it yields no
    INCLUDE candidates.
    """
    selected = select_list(sql)
    if selected is None or selected.strip() == "*":
        return []

    return [
        col for col in known_columns
        if col not in index_columns and contains_word(selected, col)
    ]
