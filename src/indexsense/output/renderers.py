"""
Output renderers for advisor results and scan reports.

Uses schema.py Pydantic models as the single source of truth
for JSON serialization.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

from indexsense.output.schema import (
    AdvisorReportSchema,
    IndexRecommendationSchema,
    IndexStatementSchema,
    ScanReportSchema,
    TableIndexRecommendationSchema,
)

if TYPE_CHECKING:
    from indexsense.advisor.models import AdvisorResult, IndexRecommendation
    from indexsense.output.report import IndexReport


class OutputFormat(str, Enum):
    """Supported output formats."""

    TEXT = "text"
    JSON = "json"


def render(result: "AdvisorResult", format: OutputFormat = OutputFormat.TEXT) -> str:
    if format == OutputFormat.TEXT:
        return render_text(result)
    elif format == OutputFormat.JSON:
        return render_json(result)
    else:
        raise ValueError(f"Unknown output format: {format}")


# =============================================================================
# Schema-based serialization
# =============================================================================


def _recommendation_to_schema(rec: "IndexRecommendation") -> IndexRecommendationSchema:
    return IndexRecommendationSchema(
        index_name=rec.index_name,
        columns=list(rec.columns),
        reason=rec.reason,
        index_type=rec.index_type,
        is_unique=rec.is_unique,
        is_partial=rec.is_partial,
        partial_condition=rec.partial_condition,
        include_columns=list(rec.include_columns),
        estimated_size_bytes=rec.estimated_size_bytes,
        is_functional=rec.is_functional,
        functional_expression=rec.functional_expression,
        effectiveness_score=rec.effectiveness_score,
        database_hints=list(rec.database_hints),
        recommend_intersection=rec.recommend_intersection,
        column_cardinality=[card.value for card in rec.column_cardinality],
        estimated_performance_gain=rec.estimated_performance_gain,
        alternative_strategies=list(rec.alternative_strategies),
        execution_plan_hints=list(rec.execution_plan_hints),
        visual_representation=rec.visual_representation,
        estimated_query_cost=rec.estimated_query_cost,
    )


def result_to_schema(result: "AdvisorResult") -> AdvisorReportSchema:
    """Convert an AdvisorResult to the Pydantic schema model."""
    return AdvisorReportSchema(
        sql=result.sql,
        kind=result.kind,
        table_recommendations=[
            TableIndexRecommendationSchema(
                table_name=rec.table_name,
                columns=list(rec.columns),
                reason=rec.reason,
            )
            for rec in result.table_recommendations
        ],
        index_recommendations=[
            _recommendation_to_schema(rec) for rec in result.index_recommendations
        ],
    )


def render_json(result: "AdvisorResult", indent: int = 2) -> str:
    """Render one advised query as stable JSON."""
    return json.dumps(result_to_schema(result).model_dump(mode="json"), indent=indent)


def render_results_json(results: Sequence["AdvisorResult"], indent: int = 2) -> str:
    """Render several advised queries as a JSON array."""
    data = [result_to_schema(r).model_dump(mode="json") for r in results]
    return json.dumps(data, indent=indent)


def scan_report_to_dict(report: "IndexReport", queries_found: int) -> dict[str, Any]:
    schema = ScanReportSchema(
        queries_found=queries_found,
        statements=[
            IndexStatementSchema(
                table=s.table,
                columns=list(s.columns),
                index_name=s.index_name,
                reason=s.reason,
                source=s.source,
                sql=s.create_sql(quote=report.quote),
            )
            for s in report.statements
        ],
        create_script=str(report.create_path) if report.create_path else None,
        drop_script=str(report.drop_path) if report.drop_path else None,
    )
    return schema.model_dump(mode="json")


# =============================================================================
# Text renderer
# =============================================================================


def render_text(result: "AdvisorResult") -> str:
    """Render one advised query as plain text."""
    lines: list[str] = []
    lines.append("=" * 60)
    lines.append("IndexSense Recommendations")
    lines.append("=" * 60)
    lines.append("")
    lines.append(f"Query: {result.sql}")
    lines.append("")

    if result.is_empty:
        lines.append("✓ No index recommended")
        lines.append("")
        lines.append("=" * 60)
        return "\n".join(lines)

    for rec in result.table_recommendations:
        lines.append(f"📊 Table: {rec.table_name}")
        lines.append(f"    Columns: {', '.join(rec.columns)}")
        lines.append(f"    Reason: {rec.reason}")
        lines.append("")

    for i, rec in enumerate(result.index_recommendations, 1):
        lines.append(f"[{i}] ✨ {rec.index_name} ({rec.index_type})")
        lines.append(f"    Columns: {', '.join(rec.columns)}")
        if rec.is_functional:
            lines.append(f"    Expression: {rec.functional_expression}")
        if rec.include_columns:
            lines.append(f"    INCLUDE: {', '.join(rec.include_columns)}")
        if rec.is_partial:
            lines.append(f"    WHERE: {rec.partial_condition}")
        lines.append(f"    Reason: {rec.reason}")
        lines.append(f"    Effectiveness: {rec.effectiveness_score}")
        if rec.estimated_performance_gain:
            lines.append(f"    Estimated gain: {rec.estimated_performance_gain}")
        if rec.estimated_query_cost:
            lines.append(f"    Query cost: {rec.estimated_query_cost}")
        cardinality = ", ".join(
            f"{col}={card.value}" for col, card in zip(rec.columns, rec.column_cardinality)
        )
        lines.append(f"    Cardinality: {cardinality}")

        if rec.database_hints:
            lines.append("")
            lines.append("    Hints:")
            for hint in rec.database_hints:
                lines.append(f"      • {hint}")

        if rec.alternative_strategies:
            lines.append("")
            lines.append("    Alternatives:")
            for alternative in rec.alternative_strategies:
                lines.append(f"      • {alternative}")

        if rec.execution_plan_hints:
            lines.append("")
            lines.append("    Execution plan:")
            for hint in rec.execution_plan_hints:
                lines.append(f"      {hint}")
        lines.append("")

    lines.append("=" * 60)
    return "\n".join(lines)
