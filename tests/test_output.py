"""
Tests for output renderers and the JSON schema.
"""

from __future__ import annotations

import json

import pytest

from indexsense.advisor import advise_query
from indexsense.output import (
    SCHEMA_VERSION,
    OutputFormat,
    get_json_schema,
    render,
    render_json,
    render_results_json,
    render_text,
)
from indexsense.output.renderers import scan_report_to_dict
from indexsense.output.report import IndexReport, IndexStatement

JOIN_SQL = "SELECT o.* FROM orders o JOIN users u ON o.user_id = u.id WHERE o.status = $1"
EMAIL_SQL = "SELECT * FROM users WHERE email = $1"


class TestJsonRenderer:
    """Test schema-backed JSON output."""

    def test_single_table(self) -> None:
        data = json.loads(render_json(advise_query(EMAIL_SQL, ["id", "email"])))

        assert data["version"] == SCHEMA_VERSION
        assert data["kind"] == "single_table"
        assert data["table_recommendations"] == []

        [rec] = data["index_recommendations"]
        assert rec["index_name"] == "idx_email"
        assert rec["columns"] == ["email"]
        assert rec["index_type"] == "Hash"
        assert rec["column_cardinality"] == ["Very High"]

    def test_join(self) -> None:
        data = json.loads(render_json(advise_query(JOIN_SQL)))

        assert data["kind"] == "join"
        assert data["table_recommendations"] == [
            {"table_name": "orders", "columns": ["user_id", "status"], "reason": "ON/WHERE in JOIN query"},
            {"table_name": "users", "columns": ["id"], "reason": "ON/WHERE in JOIN query"},
        ]

    def test_results_array(self) -> None:
        results = [advise_query(EMAIL_SQL, ["email"]), advise_query(JOIN_SQL)]
        data = json.loads(render_results_json(results))
        assert [item["kind"] for item in data] == ["single_table", "join"]

    def test_json_schema(self) -> None:
        schema = get_json_schema()
        assert {"version", "sql", "kind", "index_recommendations"} <= set(schema["properties"])


class TestTextRenderer:
    """Test plain-text output."""

    def test_recommendation(self) -> None:
        text = render_text(advise_query(EMAIL_SQL, ["id", "email"]))

        assert "[1] ✨ idx_email (Hash)" in text
        assert "Cardinality: email=Very High" in text

    def test_join_tables(self) -> None:
        text = render_text(advise_query(JOIN_SQL))
        assert "📊 Table: orders" in text

    def test_empty(self) -> None:
        assert "✓ No index recommended" in render_text(advise_query("SELECT 1"))

    def test_dispatch(self) -> None:
        result = advise_query(EMAIL_SQL, ["email"])

        assert render(result, OutputFormat.TEXT) == render_text(result)
        assert render(result, OutputFormat.JSON) == render_json(result)

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError):
            render(advise_query(EMAIL_SQL), "xml")  # type: ignore[arg-type]


class TestScanReport:
    """Test scan report serialization."""

    def test_empty_report(self) -> None:
        assert scan_report_to_dict(IndexReport(), 0) == {
            "version": SCHEMA_VERSION,
            "queries_found": 0,
            "statements": [],
            "create_script": None,
            "drop_script": None,
        }

    def test_statements(self) -> None:
        statement = IndexStatement(
            table="user", columns=("email",), index_name="idx_user_email",
            reason="Single column index: email", source="user.rs:3",
        )
        data = scan_report_to_dict(IndexReport(statements=[statement]), 1)

        assert data["queries_found"] == 1
        assert data["statements"][0]["sql"] == (
            'CREATE INDEX IF NOT EXISTS idx_user_email ON "user" ("email");'
        )

    def test_unquoted_report(self) -> None:
        statement = IndexStatement(
            table="user", columns=("email",), index_name="idx_user_email",
            reason="Single column index: email", source="user.rs:3",
        )
        data = scan_report_to_dict(IndexReport(statements=[statement], quote=False), 1)

        assert data["statements"][0]["sql"] == "CREATE INDEX IF NOT EXISTS idx_user_email ON user (email);"
