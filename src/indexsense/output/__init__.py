"""
Output module - Separates rendering from analysis.

Provides:
- render_text / render_json: one advised query, for the CLI
- report: CREATE/DROP INDEX scripts for scanned source trees

Usage:
    from indexsense.output import render_json

    print(render_json(advise_query(sql, columns)))
"""

from indexsense.output.renderers import (
    OutputFormat,
    render,
    render_json,
    render_results_json,
    render_text,
)
from indexsense.output.report import (
    IndexReport,
    IndexStatement,
    build_index_statements,
    render_create_script,
    render_drop_script,
    write_report,
)
from indexsense.output.schema import (
    SCHEMA_VERSION,
    AdvisorReportSchema,
    IndexRecommendationSchema,
    TableIndexRecommendationSchema,
    get_json_schema,
)

__all__ = [
    # Renderers
    "OutputFormat",
    "render",
    "render_json",
    "render_results_json",
    "render_text",
    # Scripts
    "IndexReport",
    "IndexStatement",
    "build_index_statements",
    "render_create_script",
    "render_drop_script",
    "write_report",
    # Schema
    "SCHEMA_VERSION",
    "AdvisorReportSchema",
    "IndexRecommendationSchema",
    "TableIndexRecommendationSchema",
    "get_json_schema",
]
