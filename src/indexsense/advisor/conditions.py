"""
WHERE-condition classification for single-table queries.

Given a WHERE body and the table's known columns, find which columns are
compared and how. Matching is done by scanning for whole-word column
names rather than by parsing:

- A column occurrence is valid only when the characters around it are
  whitespace, "(", ")", ",", "=" or a string boundary. An operator glued
  to the end of the name ("priority>$4") also closes the word.
- Longer column names are tried first, so "user_id" is claimed before
  "id" gets a chance.
- Every category is scanned independently; a column keeps the first
  (highest-priority) category it matched.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from indexsense.advisor.models import ConditionCategory

BOUNDARY_CHARS = frozenset(" \t\r\n(),=")
# Operators that may directly follow a column name
_ATTACHED_OPERATOR_CHARS = frozenset("<>!")

# Text expected right after the column, per category, in priority order
CATEGORY_TRIGGERS: tuple[tuple[ConditionCategory, tuple[str, ...]], ...] = (
    (ConditionCategory.EQUALITY, ("=", " =")),
    (ConditionCategory.IN_CLAUSE, (" in ", " in(")),
    (ConditionCategory.RANGE, (">=", "<=", " >=", " <=", ">", "<", " >", " <")),
    (ConditionCategory.LIKE, (" like",)),
    (ConditionCategory.INEQUALITY, ("!=", "<>", " !=", " <>")),
    (ConditionCategory.NOT_LIKE, (" not like",)),
)
# "<>" is an inequality even though it starts like a range operator
_CATEGORY_EXCLUSIONS: dict[ConditionCategory, tuple[str, ...]] = {
    ConditionCategory.RANGE: ("<>", " <>"),
}


def _is_boundary(ch: str) -> bool:
    return ch in BOUNDARY_CHARS or ch.isspace()


def word_occurrences(text: str, word: str) -> list[int]:
    """
    Offsets where `word` occurs in `text` as a whole word.

    Case-insensitive. See the module docstring for what counts as a
    word boundary.
    """
    if not word:
        return []
    lowered = text.lower()
    needle = word.lower()
    positions: list[int] = []
    start = 0
    while True:
        pos = lowered.find(needle, start)
        if pos == -1:
            return positions
        after = pos + len(needle)
        valid_before = pos == 0 or _is_boundary(lowered[pos - 1])
        valid_after = (
            after >= len(lowered)
            or _is_boundary(lowered[after])
            or lowered[after] in _ATTACHED_OPERATOR_CHARS
        )
        if valid_before and valid_after:
            positions.append(pos)
        start = pos + 1


def contains_word(text: str, word: str) -> bool:
    """Whether `word` occurs in `text` as a whole word."""
    return bool(word_occurrences(text, word))


def _longest_first(columns: Iterable[str]) -> list[str]:
    # sorted() is stable: equal lengths keep declaration order
    return sorted(columns, key=len, reverse=True)


def _matches_category(
    lowered_body: str,
    column: str,
    triggers: tuple[str, ...],
    exclusions: tuple[str, ...] = (),
) -> bool:
    for pos in word_occurrences(lowered_body, column):
        following = lowered_body[pos + len(column):]
        if following.startswith(triggers) and not (exclusions and following.startswith(exclusions)):
            return True
    return False


def columns_in_category(
    where_body: str,
    columns: Sequence[str],
    category: ConditionCategory,
) -> list[str]:
    """Known columns that appear in `where_body` with the given predicate kind."""
    triggers = dict(CATEGORY_TRIGGERS)[category]
    exclusions = _CATEGORY_EXCLUSIONS.get(category, ())
    lowered = where_body.lower()
    return [
        col for col in _longest_first(columns)
        if _matches_category(lowered, col, triggers, exclusions)
    ]


def classify_conditions(
    where_body: str,
    known_columns: Sequence[str],
) -> list[tuple[str, ConditionCategory]]:
    """
    Classify the known columns mentioned in a WHERE body.

    Args:
        where_body: Text of the WHERE clause (without the keyword)
        known_columns: The table's column names

    Returns:
        Distinct (column, category) pairs ordered by category priority,
        then longest column name first.

    Example:
        >>> classify_conditions("status = $1 AND created_at > $2", ["status", "created_at"])
        [('status', <ConditionCategory.EQUALITY: 1>), ('created_at', <ConditionCategory.RANGE: 3>)]
    """
    if not where_body or not known_columns:
        return []

    seen: set[str] = set()
    classified: list[tuple[str, ConditionCategory]] = []

    for category, _ in CATEGORY_TRIGGERS:
        for col in columns_in_category(where_body, known_columns, category):
            if col not in seen:
                seen.add(col)
                classified.append((col, category))

    classified.sort(key=lambda pair: pair[1])
    return classified
