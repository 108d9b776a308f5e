"""
IndexSense CLI - static index advisor for SQL query strings.

Usage:
    indexsense advise "SELECT * FROM users WHERE email = $1" --columns id,email
    indexsense advise --file queries.sql --columns id,email,status
    indexsense scan src/
    indexsense --help
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import sqlparse
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from indexsense import __version__
from indexsense.advisor import AdvisorResult, IndexRecommendation, advise_query
from indexsense.config import get_config
from indexsense.exceptions import IndexSenseError
from indexsense.output.renderers import render_results_json, scan_report_to_dict
from indexsense.output.report import (
    IndexReport,
    build_index_statements,
    find_project_root,
    write_report,
)
from indexsense.scanner import collect_table_columns, scan_path

app = typer.Typer(
    name="indexsense",
    help="Static index advisor for SQL query strings",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"IndexSense version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging."),
    ] = False,
) -> None:
    """IndexSense - static index advisor."""
    try:
        config = get_config()
    except IndexSenseError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=1)

    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def split_statements(text: str) -> list[str]:
    """Split SQL text into statements, dropping comments and empty statements."""
    statements = []
    for raw in sqlparse.split(text):
        cleaned = sqlparse.format(raw, strip_comments=True).strip().rstrip(";").strip()
        if cleaned:
            statements.append(cleaned)
    return statements


def parse_columns(value: str | None) -> list[str]:
    if not value:
        return []
    return [col.strip() for col in value.split(",") if col.strip()]


def _print_recommendation(rec: IndexRecommendation) -> None:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Field", style="dim")
    table.add_column("Value")

    table.add_row("Columns", ", ".join(rec.columns))
    table.add_row("Type", rec.index_type)
    if rec.is_functional:
        table.add_row("Expression", rec.functional_expression or "")
    if rec.include_columns:
        table.add_row("INCLUDE", ", ".join(rec.include_columns))
    if rec.is_partial:
        table.add_row("WHERE", rec.partial_condition or "")
    table.add_row("Reason", rec.reason)
    table.add_row("Effectiveness", str(rec.effectiveness_score))
    table.add_row("Estimated gain", rec.estimated_performance_gain or "-")
    table.add_row("Query cost", rec.estimated_query_cost or "-")
    table.add_row(
        "Cardinality",
        ", ".join(f"{col}={card.value}" for col, card in zip(rec.columns, rec.column_cardinality)),
    )

    console.print(f"[bold green]✨ {rec.index_name}[/bold green]")
    console.print(table)

    for hint in rec.database_hints:
        console.print(f"   [yellow]•[/yellow] {hint}")
    for alternative in rec.alternative_strategies:
        console.print(f"   [blue]→[/blue] {alternative}")
    console.print()


def _print_result(result: AdvisorResult) -> None:
    console.print(f"[dim]{result.sql}[/dim]\n")

    if result.is_empty:
        console.print(Panel(
            "[green]No index recommended for this query.[/green]",
            title="IndexSense",
            border_style="green",
        ))
        return

    if result.table_recommendations:
        table = Table(title="JOIN index recommendations")
        table.add_column("Table", style="cyan")
        table.add_column("Columns")
        table.add_column("Reason", style="dim")
        for rec in result.table_recommendations:
            table.add_row(rec.table_name, ", ".join(rec.columns), rec.reason)
        console.print(table)
        console.print()

    for rec in result.index_recommendations:
        _print_recommendation(rec)


@app.command()
def advise(
    sql: Annotated[
        Optional[str],
        typer.Argument(help="SQL query to advise on"),
    ] = None,
    columns: Annotated[
        Optional[str],
        typer.Option(
            "--columns",
            "-c",
            help="Comma-separated column names of the queried table",
        ),
    ] = None,
    sql_file: Annotated[
        Optional[Path],
        typer.Option(
            "--file",
            "-f",
            help="Read one or more SQL statements from a file",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """
    Recommend indexes for SQL queries.

    Single-table queries need the table's columns (--columns); JOIN
    queries are advised per table from their qualified column references.

    Examples:

        $ indexsense advise "SELECT * FROM users WHERE email = $1" -c id,email

        $ indexsense advise --file queries.sql -c id,status,created_at --json
    """
    if sql is None and sql_file is None:
        error_console.print("[red]Error:[/red] Provide a SQL query or --file")
        raise typer.Exit(code=1)

    if sql_file is not None:
        statements = split_statements(sql_file.read_text(encoding="utf-8"))
    else:
        statements = split_statements(sql)

    known_columns = parse_columns(columns)
    results = [advise_query(statement, known_columns) for statement in statements]

    if json_output:
        console.print_json(render_results_json(results))
        return

    if not results:
        console.print("[yellow]No SQL statements found.[/yellow]")
        return

    for result in results:
        _print_result(result)


@app.command()
def scan(
    path: Annotated[
        Path,
        typer.Argument(help="Source file or directory to scan"),
    ] = Path("src"),
    output_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--output-dir",
            "-o",
            help="Where to write the CREATE/DROP scripts (default: <project>/target/indexsense_indexes)",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """
    Scan source code for query call sites and write index scripts.

    Finds Type::where_query!("..."), Type::make_query("...") and the
    other call-site forms, advises on each query, and writes
    indexes_postgres.sql plus a drop_indexes_postgres.sql rollback.
    """
    try:
        queries = scan_path(path)
        if not queries:
            if json_output:
                console.print_json(json.dumps(scan_report_to_dict(IndexReport(), 0)))
                return
            console.print(Panel(
                "No queries found!\n\n"
                "Make sure you're using:\n"
                '  User::where_query!("email = $1")\n'
                '  User::count_query!("status = $1")',
                title="IndexSense",
                border_style="yellow",
            ))
            return

        statements = build_index_statements(queries, collect_table_columns(path))

        if output_dir is None:
            output_dir = find_project_root(path) / get_config().output_dir
        report = write_report(statements, output_dir)

        if json_output:
            console.print_json(json.dumps(scan_report_to_dict(report, len(queries))))
            return

        console.print(f"[bold]Found {len(queries)} queries[/bold]\n")
        table = Table(title="Index recommendations")
        table.add_column("Index", style="green")
        table.add_column("Table", style="cyan")
        table.add_column("Columns")
        table.add_column("Source", style="dim")
        table.add_column("Reason", style="dim")
        for statement in report.statements:
            table.add_row(
                statement.index_name,
                statement.table,
                ", ".join(statement.columns),
                statement.source,
                statement.reason,
            )
        console.print(table)
        console.print(f"\n   💾 Saved: {report.create_path}")
        console.print(f"   💾 Saved: {report.drop_path}")

    except IndexSenseError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
