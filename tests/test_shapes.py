"""
Tests for functional, partial and covering index detection.
"""

from __future__ import annotations

from indexsense.advisor.shapes import (
    FunctionalMatch,
    detect_functional_index,
    detect_include_columns,
    extract_partial_condition,
    select_list,
    should_be_partial_index,
)


class TestFunctionalIndex:
    """Test function-call detection."""

    def test_lower_over_known_column(self) -> None:
        match = detect_functional_index("SELECT * FROM users WHERE LOWER(email) = $1", ["email"])
        assert match == FunctionalMatch(expression="LOWER(email)", column="email")

    def test_unknown_argument(self) -> None:
        assert detect_functional_index("SELECT * FROM users WHERE LOWER(name) = $1", ["email"]) is None

    def test_first_argument_of_multi_argument_call(self) -> None:
        sql = "SELECT * FROM users WHERE COALESCE(nickname, username) = $1"
        match = detect_functional_index(sql, ["username", "nickname"])
        assert match == FunctionalMatch(expression="COALESCE(nickname, username)", column="nickname")

    def test_nested_call_falls_through_to_inner(self) -> None:
        """LOWER(TRIM(email)) has no bare column argument; TRIM(email) does."""
        match = detect_functional_index("SELECT * FROM users WHERE LOWER(TRIM(email)) = $1", ["email"])
        assert match == FunctionalMatch(expression="TRIM(email)", column="email")

    def test_unbalanced_call(self) -> None:
        assert detect_functional_index("SELECT * FROM users WHERE LOWER(email", ["email"]) is None

    def test_no_function(self) -> None:
        assert detect_functional_index("SELECT * FROM users WHERE email = $1", ["email"]) is None


class TestPartialIndex:
    """Test partial index detection."""

    def test_soft_delete(self) -> None:
        assert should_be_partial_index("SELECT * FROM users WHERE deleted_at IS NULL")

    def test_literal_status(self) -> None:
        assert should_be_partial_index("SELECT * FROM t WHERE status = 'active'")
        assert should_be_partial_index("SELECT * FROM t WHERE status = 'pending'")

    def test_bound_status_not_partial(self) -> None:
        assert not should_be_partial_index("SELECT * FROM t WHERE status = $1")

    def test_other_literal_not_partial(self) -> None:
        assert not should_be_partial_index("SELECT * FROM t WHERE status = 'archived'")

    def test_literal_outside_where(self) -> None:
        assert not should_be_partial_index("UPDATE t SET status = 'active'")

    def test_condition_is_first_conjunct(self) -> None:
        sql = "SELECT * FROM users WHERE deleted_at IS NULL AND email = $1"
        assert extract_partial_condition(sql) == "deleted_at IS NULL"

    def test_lowercase_conjunction(self) -> None:
        sql = "select * from users where deleted_at is null and email = $1"
        assert extract_partial_condition(sql) == "deleted_at is null"

    def test_single_condition(self) -> None:
        assert extract_partial_condition("SELECT * FROM t WHERE status = 'active'") == "status = 'active'"

    def test_no_condition_when_not_partial(self) -> None:
        assert extract_partial_condition("SELECT * FROM t WHERE status = $1") is None


class TestIncludeColumns:
    """Test covering index candidates."""

    def test_select_list(self) -> None:
        assert select_list("SELECT id, email FROM users") == " id, email"
        assert select_list("SELECT 1") is None

    def test_selected_non_key_columns(self, user_columns: list[str]) -> None:
        sql = "SELECT id, email, username FROM users WHERE email = $1"
        assert detect_include_columns(sql, ["email"], user_columns) == ["id", "username"]

    def test_star_selects_nothing(self, user_columns: list[str]) -> None:
        sql = "SELECT * FROM users WHERE email = $1"
        assert detect_include_columns(sql, ["email"], user_columns) == []

    def test_key_columns_excluded(self, user_columns: list[str]) -> None:
        sql = "SELECT email FROM users WHERE email = $1"
        assert detect_include_columns(sql, ["email"], user_columns) == []
