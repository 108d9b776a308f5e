"""
CREATE/DROP INDEX script generation for scanned queries.

Every scanned query is run through the advisor; recommendations are
turned into PostgreSQL statements and de-duplicated across queries on
(snake_case table, key columns). The create script is wrapped in a
transaction; the drop script undoes it in reverse order.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from indexsense.advisor import IndexRecommendation, advise_query
from indexsense.exceptions import ReportError
from indexsense.scanner import ExtractedQuery

logger = logging.getLogger(__name__)

CREATE_SCRIPT_NAME = "indexes_postgres.sql"
DROP_SCRIPT_NAME = "drop_indexes_postgres.sql"
SELF_PLACEHOLDERS = ("[Self]", "[self]")
PROJECT_MARKERS = ("Cargo.toml", "pyproject.toml", ".git")

# "column <op> $n" in a statement with no struct to supply its columns
_CANDIDATE_PATTERNS = (
    re.compile(r"(\w+)\s*(?:=|>=|<=|>|<)\s*\$\d+"),
    re.compile(r"(\w+)\s+IN\s*\(\s*\$\d+", re.IGNORECASE),
    re.compile(r"(\w+)\s+LIKE\s+\$\d+", re.IGNORECASE),
    re.compile(r"ORDER\s+BY\s+(\w+)", re.IGNORECASE),
)


def to_snake_case(name: str) -> str:
    """
    PascalCase/camelCase to snake_case.

    Example:
        >>> to_snake_case("UserProfile")
        'user_profile'
    """
    out = []
    for i, ch in enumerate(name):
        if i > 0 and ch.isupper():
            out.append("_")
        out.append(ch.lower())
    return "".join(out)


def quote_identifier(identifier: str) -> str:
    """Double-quote an identifier so reserved words ("user", "key") stay valid."""
    return f'"{identifier}"'


def sanitize_table_name(table_name: str, context_table: str) -> str:
    """Replace a [Self] placeholder with the snake_cased owning table."""
    if table_name in SELF_PLACEHOLDERS:
        return to_snake_case(context_table)
    return table_name


def candidate_columns(sql: str) -> list[str]:
    """Identifiers compared against bind parameters or used in ORDER BY."""
    columns: list[str] = []
    for pattern in _CANDIDATE_PATTERNS:
        for match in pattern.finditer(sql):
            if match.group(1) not in columns:
                columns.append(match.group(1))
    return columns


@dataclass(frozen=True)
class IndexStatement:
    """
    One CREATE INDEX statement and where it came from.

    Attributes:
        table: snake_case table name
        columns: Key columns (or the indexed expression)
        index_name: idx_<table>_<columns>
        reason: Why the index is recommended
        source: "file:line" of the originating call site
        query_sql: The query that produced the recommendation
        include_columns: Covering columns
        partial_condition: Partial index predicate
        is_functional: Whether `columns` holds an expression
    """
    table: str
    columns: tuple[str, ...]
    index_name: str
    reason: str
    source: str
    query_sql: str = ""
    include_columns: tuple[str, ...] = ()
    partial_condition: str | None = None
    is_functional: bool = False

    @property
    def key(self) -> tuple[str, tuple[str, ...]]:
        return self.table, self.columns

    def create_sql(self, quote: bool = True) -> str:
        q = quote_identifier if quote else (lambda name: name)
        if self.is_functional:
            key_sql = ", ".join(self.columns)
        else:
            key_sql = ", ".join(q(col) for col in self.columns)

        sql = f"CREATE INDEX IF NOT EXISTS {self.index_name} ON {q(self.table)} ({key_sql})"
        if self.include_columns:
            sql += f" INCLUDE ({', '.join(q(col) for col in self.include_columns)})"
        if self.partial_condition:
            sql += f" WHERE {self.partial_condition}"
        return sql + ";"

    def drop_sql(self) -> str:
        return f"DROP INDEX IF EXISTS {self.index_name};"


def _index_name(table: str, columns: Iterable[str]) -> str:
    suffix = "_".join(re.sub(r"\W+", "_", col).strip("_").lower() for col in columns)
    return f"idx_{table}_{suffix}"


def _source(query: ExtractedQuery) -> str:
    return f"{Path(query.file).name}:{query.line}"


def _single_table_statement(
    query: ExtractedQuery,
    rec: IndexRecommendation,
) -> IndexStatement:
    table = to_snake_case(query.table)
    columns = (rec.functional_expression,) if rec.is_functional else rec.columns
    return IndexStatement(
        table=table,
        columns=columns,
        index_name=_index_name(table, columns),
        reason=rec.reason,
        source=_source(query),
        query_sql=query.sql,
        include_columns=rec.include_columns,
        partial_condition=rec.partial_condition if rec.is_partial else None,
        is_functional=rec.is_functional,
    )


def statements_for_query(
    query: ExtractedQuery,
    known_columns: Sequence[str] | None = None,
) -> list[IndexStatement]:
    """
    Index statements for one scanned query.

    Args:
        query: Scanned call-site query
        known_columns: Column names of the query's table. When missing,
            identifiers compared against bind parameters are used.
    """
    sql = query.statement()
    columns = known_columns if known_columns else candidate_columns(sql)
    result = advise_query(sql, columns)

    statements = []
    for table_rec in result.table_recommendations:
        table = to_snake_case(sanitize_table_name(table_rec.table_name, query.table))
        statements.append(
            IndexStatement(
                table=table,
                columns=table_rec.columns,
                index_name=_index_name(table, table_rec.columns),
                reason=table_rec.reason,
                source=_source(query),
                query_sql=query.sql,
            )
        )
    for rec in result.index_recommendations:
        statements.append(_single_table_statement(query, rec))

    if not statements:
        logger.debug("No index recommended for %s (%s)", _source(query), query.sql)
    return statements


def build_index_statements(
    queries: Iterable[ExtractedQuery],
    known_columns_by_table: Mapping[str, Sequence[str]] | None = None,
) -> list[IndexStatement]:
    """
    De-duplicated index statements for a batch of scanned queries.

    The first query to produce a given (table, columns) pair wins.
    """
    known_columns_by_table = known_columns_by_table or {}
    seen: set[tuple[str, tuple[str, ...]]] = set()
    statements: list[IndexStatement] = []

    for query in queries:
        known = known_columns_by_table.get(query.table)
        for statement in statements_for_query(query, known):
            if statement.key in seen:
                continue
            seen.add(statement.key)
            statements.append(statement)

    return statements


@dataclass
class IndexReport:
    """Statements plus the paths they were written to (once saved)."""
    statements: list[IndexStatement] = field(default_factory=list)
    create_path: Path | None = None
    drop_path: Path | None = None
    quote: bool = True


def render_create_script(statements: Sequence[IndexStatement], quote: bool | None = None) -> str:
    if quote is None:
        from indexsense.config import get_config

        quote = get_config().quote_identifiers

    lines = [
        "-- Auto-generated by indexsense",
        "-- Scan all source files for queries",
        "",
        "BEGIN;",
        "",
    ]
    for statement in statements:
        lines.append(f"-- {statement.reason}: {statement.source}")
        if statement.query_sql:
            lines.append(f"-- Query: {' '.join(statement.query_sql.split())}")
        lines.append(statement.create_sql(quote=quote))
        lines.append("")
    lines.append("COMMIT;")
    return "\n".join(lines) + "\n"


def render_drop_script(statements: Sequence[IndexStatement]) -> str:
    lines = ["-- Auto-generated rollback script", "", "BEGIN;", ""]
    for statement in reversed(statements):
        lines.append(statement.drop_sql())
        lines.append("")
    lines.append("COMMIT;")
    return "\n".join(lines) + "\n"


def find_project_root(scan_path: Path) -> Path:
    """Nearest ancestor holding a project marker, else the scan directory."""
    start = scan_path if scan_path.is_dir() else scan_path.parent
    start = start.resolve()
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in PROJECT_MARKERS):
            return candidate
    return start


def write_report(
    statements: Sequence[IndexStatement],
    output_dir: Path,
    quote: bool | None = None,
) -> IndexReport:
    """
    Write the create and drop scripts into `output_dir`.

    Raises:
        ReportError: If the directory or files cannot be written.
    """
    if quote is None:
        from indexsense.config import get_config

        quote = get_config().quote_identifiers

    create_path = output_dir / CREATE_SCRIPT_NAME
    drop_path = output_dir / DROP_SCRIPT_NAME
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        create_path.write_text(render_create_script(statements, quote=quote), encoding="utf-8")
        drop_path.write_text(render_drop_script(statements), encoding="utf-8")
    except OSError as e:
        raise ReportError(f"Cannot write index scripts: {e}", output_dir=output_dir) from e

    logger.info("Wrote %d index statements to %s", len(statements), output_dir)
    return IndexReport(
        statements=list(statements),
        create_path=create_path,
        drop_path=drop_path,
        quote=quote,
    )
