"""
Tests for CREATE/DROP INDEX script generation.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from indexsense.exceptions import ReportError
from indexsense.output.report import (
    CREATE_SCRIPT_NAME,
    DROP_SCRIPT_NAME,
    IndexStatement,
    build_index_statements,
    candidate_columns,
    find_project_root,
    render_create_script,
    render_drop_script,
    sanitize_table_name,
    statements_for_query,
    to_snake_case,
    write_report,
)
from indexsense.scanner import ExtractedQuery

USER_COLUMNS = ("id", "email", "username", "status", "deleted_at", "created_at")


def _query(sql: str, table: str = "User", query_type: str = "make_query", line: int = 1) -> ExtractedQuery:
    return ExtractedQuery(table=table, query_type=query_type, sql=sql, file="src/user.rs", line=line)


class TestNaming:
    """Test table name handling."""

    @pytest.mark.parametrize(
        "name,expected",
        [("User", "user"), ("UserProfile", "user_profile"), ("users", "users"), ("APIKey", "a_p_i_key")],
    )
    def test_snake_case(self, name: str, expected: str) -> None:
        assert to_snake_case(name) == expected

    def test_self_placeholder(self) -> None:
        assert sanitize_table_name("[Self]", "MerchantChannel") == "merchant_channel"
        assert sanitize_table_name("orders", "MerchantChannel") == "orders"

    def test_candidate_columns(self) -> None:
        sql = "SELECT * FROM t WHERE status = $1 AND kind IN ($2) AND name LIKE $3 ORDER BY created_at"
        assert candidate_columns(sql) == ["status", "kind", "name", "created_at"]


class TestIndexStatement:
    """Test SQL rendering of one statement."""

    def test_quoted(self) -> None:
        statement = IndexStatement(
            table="user", columns=("email",), index_name="idx_user_email", reason="r", source="user.rs:1"
        )

        assert statement.create_sql() == 'CREATE INDEX IF NOT EXISTS idx_user_email ON "user" ("email");'
        assert statement.drop_sql() == "DROP INDEX IF EXISTS idx_user_email;"

    def test_unquoted(self) -> None:
        statement = IndexStatement(
            table="user", columns=("email",), index_name="idx_user_email", reason="r", source="user.rs:1"
        )
        assert statement.create_sql(quote=False) == "CREATE INDEX IF NOT EXISTS idx_user_email ON user (email);"

    def test_include_and_partial(self) -> None:
        statement = IndexStatement(
            table="user",
            columns=("email",),
            index_name="idx_user_email",
            reason="r",
            source="user.rs:1",
            include_columns=("id",),
            partial_condition="deleted_at IS NULL",
        )
        assert statement.create_sql() == (
            'CREATE INDEX IF NOT EXISTS idx_user_email ON "user" ("email") '
            'INCLUDE ("id") WHERE deleted_at IS NULL;'
        )

    def test_functional_expression_unquoted(self) -> None:
        statement = IndexStatement(
            table="user",
            columns=("LOWER(email)",),
            index_name="idx_user_lower_email",
            reason="r",
            source="user.rs:1",
            is_functional=True,
        )
        assert statement.create_sql() == (
            'CREATE INDEX IF NOT EXISTS idx_user_lower_email ON "user" (LOWER(email));'
        )


class TestStatementsForQuery:
    """Test advisor output to statements."""

    def test_single_table_with_struct_columns(self) -> None:
        query = _query("email = $1", query_type="where_query", line=7)
        [statement] = statements_for_query(query, USER_COLUMNS)

        assert statement.table == "user"
        assert statement.columns == ("email",)
        assert statement.index_name == "idx_user_email"
        assert statement.source == "user.rs:7"
        assert statement.query_sql == "email = $1"

    def test_candidate_columns_without_struct(self) -> None:
        [statement] = statements_for_query(_query("SELECT * FROM users WHERE status = $1"))
        assert statement.columns == ("status",)

    def test_functional(self) -> None:
        [statement] = statements_for_query(
            _query("SELECT * FROM users WHERE LOWER(email) = $1"), USER_COLUMNS
        )

        assert statement.is_functional
        assert statement.columns == ("LOWER(email)",)
        assert statement.index_name == "idx_user_lower_email"

    def test_partial(self) -> None:
        [statement] = statements_for_query(
            _query("deleted_at IS NULL AND email = $1", query_type="where_query"), USER_COLUMNS
        )
        assert statement.partial_condition == "deleted_at IS NULL"

    def test_join_with_self_placeholder(self) -> None:
        sql = (
            "SELECT m.* FROM [Self] AS m JOIN merchant_channel AS mc "
            "ON mc.merchant_id = m.merchant_id WHERE mc.channel_id = $1"
        )
        statements = statements_for_query(_query(sql, table="Merchant"))

        assert [(s.table, s.columns) for s in statements] == [
            ("merchant_channel", ("merchant_id", "channel_id")),
            ("merchant", ("merchant_id",)),
        ]
        assert statements[0].index_name == "idx_merchant_channel_merchant_id_channel_id"

    def test_nothing_to_index(self) -> None:
        assert statements_for_query(_query("SELECT 1")) == []


class TestBuildIndexStatements:
    """Test batching and de-duplication."""

    def test_first_query_wins(self) -> None:
        queries = [
            _query("email = $1", query_type="where_query", line=3),
            _query("email = $1", query_type="count_query", line=9),
        ]
        statements = build_index_statements(queries, {"User": USER_COLUMNS})

        assert len(statements) == 1
        assert statements[0].source == "user.rs:3"

    def test_distinct_columns_kept(self) -> None:
        queries = [
            _query("email = $1", query_type="where_query"),
            _query("status = $1", query_type="where_query"),
        ]
        statements = build_index_statements(queries, {"User": USER_COLUMNS})
        assert [s.index_name for s in statements] == ["idx_user_email", "idx_user_status"]


class TestScripts:
    """Test script rendering and writing."""

    @pytest.fixture
    def statements(self) -> list[IndexStatement]:
        return [
            IndexStatement(
                table="user", columns=("email",), index_name="idx_user_email",
                reason="Single column index: email", source="user.rs:3", query_sql="email  =\n $1",
            ),
            IndexStatement(
                table="user", columns=("status",), index_name="idx_user_status",
                reason="Single column index: status", source="user.rs:9",
            ),
        ]

    def test_create_script(self, statements: list[IndexStatement]) -> None:
        script = render_create_script(statements, quote=True)

        assert script.startswith("-- Auto-generated by indexsense\n")
        assert "BEGIN;" in script
        assert "-- Single column index: email: user.rs:3\n-- Query: email = $1\n" in script
        assert 'CREATE INDEX IF NOT EXISTS idx_user_status ON "user" ("status");' in script
        assert script.endswith("COMMIT;\n")

    def test_create_script_quote_from_environment(
        self, statements: list[IndexStatement], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from indexsense.config import reset_config

        monkeypatch.setenv("INDEXSENSE_QUOTE_IDENTIFIERS", "false")
        reset_config()

        assert "ON user (email);" in render_create_script(statements)

    def test_drop_script_reversed(self, statements: list[IndexStatement]) -> None:
        script = render_drop_script(statements)
        assert script.index("idx_user_status") < script.index("idx_user_email")
        assert script.endswith("COMMIT;\n")

    def test_write_report(self, statements: list[IndexStatement], tmp_path: Path) -> None:
        output_dir = tmp_path / "target" / "indexes"
        report = write_report(statements, output_dir)

        assert report.create_path == output_dir / CREATE_SCRIPT_NAME
        assert report.drop_path == output_dir / DROP_SCRIPT_NAME
        assert "idx_user_email" in report.create_path.read_text()
        assert "DROP INDEX IF EXISTS idx_user_email;" in report.drop_path.read_text()

    def test_write_report_failure(self, statements: list[IndexStatement], tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(ReportError) as exc_info:
            write_report(statements, blocker / "out")
        assert exc_info.value.output_dir == str(blocker / "out")


class TestProjectRoot:
    """Test project root discovery."""

    def test_marker_in_ancestor(self, tmp_path: Path) -> None:
        (tmp_path / "Cargo.toml").write_text("[package]\n")
        src = tmp_path / "src" / "models"
        src.mkdir(parents=True)

        assert find_project_root(src) == tmp_path.resolve()

    def test_file_path_uses_parent(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("")
        source = tmp_path / "user.rs"
        source.write_text("")

        assert find_project_root(source) == tmp_path.resolve()
