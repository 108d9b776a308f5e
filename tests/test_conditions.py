"""
Tests for WHERE-condition classification.

The classifier scans for whole-word column names; these tests pin the
word-boundary rule, longest-name-first matching and category priority.
"""

from __future__ import annotations

import pytest

from indexsense.advisor.conditions import (
    classify_conditions,
    columns_in_category,
    contains_word,
    word_occurrences,
)
from indexsense.advisor.models import ConditionCategory


class TestWordBoundaries:
    """Test whole-word column matching."""

    def test_suffix_of_longer_name_ignored(self) -> None:
        """'id' inside 'user_id' is not a match."""
        assert word_occurrences("user_id = $1 AND id = $2", "id") == [17]

    def test_operator_attached_to_name(self) -> None:
        assert contains_word("priority>$4", "priority")
        assert contains_word("status!=$1", "status")

    def test_parenthesis_and_comma_are_boundaries(self) -> None:
        assert contains_word("(status = $1)", "status")
        assert contains_word("a,status", "status")

    def test_case_insensitive(self) -> None:
        assert contains_word("STATUS = $1", "status")

    def test_prefix_of_longer_name_ignored(self) -> None:
        assert not contains_word("status_code = $1", "status")

    def test_empty_word(self) -> None:
        assert word_occurrences("anything", "") == []


class TestCategories:
    """Test per-category detection."""

    @pytest.mark.parametrize(
        "body,category",
        [
            ("status = $1", ConditionCategory.EQUALITY),
            ("status=$1", ConditionCategory.EQUALITY),
            ("status IN ($1, $2)", ConditionCategory.IN_CLAUSE),
            ("status IN($1)", ConditionCategory.IN_CLAUSE),
            ("status > $1", ConditionCategory.RANGE),
            ("status >= $1", ConditionCategory.RANGE),
            ("status<$1", ConditionCategory.RANGE),
            ("status LIKE $1", ConditionCategory.LIKE),
            ("status != $1", ConditionCategory.INEQUALITY),
            ("status <> $1", ConditionCategory.INEQUALITY),
            ("status NOT LIKE $1", ConditionCategory.NOT_LIKE),
        ],
    )
    def test_single_condition(self, body: str, category: ConditionCategory) -> None:
        assert classify_conditions(body, ["status"]) == [("status", category)]

    def test_not_equal_is_not_a_range(self) -> None:
        assert columns_in_category("status <> $1", ["status"], ConditionCategory.RANGE) == []

    def test_unknown_column_ignored(self) -> None:
        assert classify_conditions("other = $1", ["status"]) == []

    def test_is_null_not_classified(self) -> None:
        assert classify_conditions("deleted_at IS NULL", ["deleted_at"]) == []


class TestClassifyConditions:
    """Test ordering and de-duplication."""

    def test_priority_order(self) -> None:
        body = " priority > $1 AND status IN ($2) AND tenant_id = $3"
        result = classify_conditions(body, ["priority", "status", "tenant_id"])

        assert result == [
            ("tenant_id", ConditionCategory.EQUALITY),
            ("status", ConditionCategory.IN_CLAUSE),
            ("priority", ConditionCategory.RANGE),
        ]

    def test_first_category_wins(self) -> None:
        """A column used twice keeps its highest-priority category."""
        body = "created_at > $1 AND created_at = $2"
        assert classify_conditions(body, ["created_at"]) == [
            ("created_at", ConditionCategory.EQUALITY)
        ]

    def test_longest_column_first_within_category(self) -> None:
        body = "id = $1 AND user_id = $2"
        result = classify_conditions(body, ["id", "user_id"])

        assert result == [
            ("user_id", ConditionCategory.EQUALITY),
            ("id", ConditionCategory.EQUALITY),
        ]

    def test_longer_name_does_not_shadow_shorter(self) -> None:
        body = "user_id = $1"
        assert classify_conditions(body, ["id", "user_id"]) == [
            ("user_id", ConditionCategory.EQUALITY)
        ]

    def test_empty_inputs(self) -> None:
        assert classify_conditions("", ["a"]) == []
        assert classify_conditions("a = $1", []) == []
