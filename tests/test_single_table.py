"""
Tests for single-table column extraction and complexity checks.
"""

from __future__ import annotations

from indexsense.advisor.models import QueryComplexity
from indexsense.advisor.single_table import (
    analyze_query_complexity,
    extract_index_columns,
    has_or_conditions,
    has_parentheses,
    has_subquery,
    order_by_columns,
    where_columns,
)

TASK_QUERY = (
    "SELECT * FROM tasks WHERE tenant_id = $1 AND status IN ($2, $3) "
    "AND priority > $4 ORDER BY created_at DESC"
)


class TestExtractIndexColumns:
    """Test index column extraction."""

    def test_priority_then_order_by(self, task_columns: list[str]) -> None:
        assert extract_index_columns(TASK_QUERY, task_columns) == [
            "tenant_id", "status", "priority", "created_at"
        ]

    def test_where_columns_only(self, task_columns: list[str]) -> None:
        assert where_columns(TASK_QUERY, task_columns) == ["tenant_id", "status", "priority"]

    def test_order_by_columns_only(self, task_columns: list[str]) -> None:
        assert order_by_columns(TASK_QUERY, task_columns) == ["created_at"]

    def test_order_by_column_not_repeated(self, task_columns: list[str]) -> None:
        sql = "SELECT * FROM tasks WHERE created_at > $1 ORDER BY created_at"
        assert extract_index_columns(sql, task_columns) == ["created_at"]

    def test_no_where_or_order_by(self, task_columns: list[str]) -> None:
        assert extract_index_columns("SELECT * FROM tasks", task_columns) == []

    def test_unknown_columns_ignored(self, task_columns: list[str]) -> None:
        sql = "SELECT * FROM tasks WHERE owner = $1"
        assert extract_index_columns(sql, task_columns) == []

    def test_suffix_column_not_confused(self) -> None:
        sql = "SELECT * FROM tasks WHERE tenant_id = $1"
        assert extract_index_columns(sql, ["id", "tenant_id"]) == ["tenant_id"]

    def test_lowercase_keywords(self, task_columns: list[str]) -> None:
        sql = "select * from tasks where status = $1 order by priority"
        assert extract_index_columns(sql, task_columns) == ["status", "priority"]


class TestComplexityChecks:
    """Test OR, parenthesis and subquery detection."""

    def test_or_in_where(self) -> None:
        assert has_or_conditions("SELECT * FROM t WHERE a = $1 OR b = $2")

    def test_or_outside_where_ignored(self) -> None:
        assert not has_or_conditions("SELECT * FROM t WHERE a = $1 ORDER BY b")
        assert not has_or_conditions("SELECT * FROM t")

    def test_grouping_parentheses(self) -> None:
        assert has_parentheses("SELECT * FROM t WHERE (a = $1 OR b = $2) AND c = $3")

    def test_in_list_is_not_grouping(self) -> None:
        assert not has_parentheses("SELECT * FROM t WHERE id IN ($1, $2)")
        assert not has_parentheses("SELECT * FROM t WHERE id IN($1)")

    def test_no_where_no_parentheses(self) -> None:
        assert not has_parentheses("SELECT COUNT(*) FROM t")

    def test_subquery(self) -> None:
        assert has_subquery("SELECT * FROM t WHERE id IN (SELECT id FROM u)")
        assert not has_subquery("SELECT * FROM t")

    def test_analyze_query_complexity(self) -> None:
        sql = "SELECT * FROM t WHERE (a = $1 OR b = $2) AND c = $3"
        assert analyze_query_complexity(sql) == QueryComplexity(
            has_or=True, has_parentheses=True, has_subquery=False
        )

    def test_simple_query_has_no_complexity(self) -> None:
        assert analyze_query_complexity("SELECT * FROM t WHERE a = $1") == QueryComplexity()
