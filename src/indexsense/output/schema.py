"""
JSON Schema definitions for stable advisor output.

Used by the JSON renderer for `indexsense advise --json` and
`indexsense scan --json`. The schema is stable across minor versions.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Schema version - increment on breaking changes
SCHEMA_VERSION = "1.0"


class IndexRecommendationSchema(BaseModel):
    """Schema for a single-table index recommendation."""

    model_config = ConfigDict(frozen=True)

    index_name: str = Field(..., description="Suggested index name")
    columns: list[str] = Field(..., description="Ordered key columns")
    reason: str = Field(..., description="Why the index is recommended")
    index_type: str = Field("B-tree", description="B-tree or Hash")
    is_unique: bool = Field(False, description="Whether a unique index is plausible")
    is_partial: bool = Field(False, description="Whether the index is partial")
    partial_condition: str | None = Field(None, description="Partial index predicate")
    include_columns: list[str] = Field(default_factory=list, description="Covering (INCLUDE) columns")
    estimated_size_bytes: int | None = Field(None, description="Rough per-entry size")
    is_functional: bool = Field(False, description="Whether the index is over an expression")
    functional_expression: str | None = Field(None, description="Indexed expression")
    effectiveness_score: int = Field(100, description="Heuristic score (0-110)")
    database_hints: list[str] = Field(default_factory=list, description="Engine-specific hints")
    recommend_intersection: bool = Field(False, description="Whether index intersection is advised")
    column_cardinality: list[str] = Field(default_factory=list, description="Cardinality per key column")
    estimated_performance_gain: str | None = Field(None, description="Heuristic gain range")
    alternative_strategies: list[str] = Field(default_factory=list, description="Other strategies")
    execution_plan_hints: list[str] = Field(default_factory=list, description="Expected plan notes")
    visual_representation: str | None = Field(None, description="Text diagram of index use")
    estimated_query_cost: str | None = Field(None, description="Relative cost label")


class TableIndexRecommendationSchema(BaseModel):
    """Schema for one table of a JOIN query."""

    model_config = ConfigDict(frozen=True)

    table_name: str = Field(..., description="Canonical table name")
    columns: list[str] = Field(..., description="Columns in first-seen order")
    reason: str = Field(..., description="Clauses that drove the recommendation")


class AdvisorReportSchema(BaseModel):
    """
    Top-level schema for one advised query.

    Exactly one of the recommendation lists is populated, as named by `kind`.
    """

    model_config = ConfigDict(frozen=True)

    version: str = Field(SCHEMA_VERSION, description="Schema version")
    sql: str = Field(..., description="The advised query")
    kind: str = Field(..., description="join or single_table")
    table_recommendations: list[TableIndexRecommendationSchema] = Field(
        default_factory=list, description="Per-table recommendations (JOIN queries)"
    )
    index_recommendations: list[IndexRecommendationSchema] = Field(
        default_factory=list, description="Detailed recommendations (single-table queries)"
    )


class IndexStatementSchema(BaseModel):
    """Schema for a generated CREATE INDEX statement."""

    model_config = ConfigDict(frozen=True)

    table: str = Field(..., description="snake_case table name")
    columns: list[str] = Field(..., description="Key columns or expression")
    index_name: str = Field(..., description="Index name")
    reason: str = Field(..., description="Why the index is recommended")
    source: str = Field(..., description="file:line of the call site")
    sql: str = Field(..., description="CREATE INDEX statement")


class ScanReportSchema(BaseModel):
    """Top-level schema for `indexsense scan --json`."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(SCHEMA_VERSION, description="Schema version")
    queries_found: int = Field(0, description="Call-site queries found")
    statements: list[IndexStatementSchema] = Field(default_factory=list, description="De-duplicated statements")
    create_script: str | None = Field(None, description="Path of the CREATE script")
    drop_script: str | None = Field(None, description="Path of the DROP script")


def get_json_schema() -> dict[str, Any]:
    """JSON Schema of the advise output, for documentation."""
    return AdvisorReportSchema.model_json_schema()
