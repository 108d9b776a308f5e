"""
Immutable records produced by the index advisor.

Two recommendation shapes exist:
- TableIndexRecommendation: one per table touched by a JOIN query.
- IndexRecommendation: the detailed single-table record, carrying the
  index shape, heuristic scores and explain-style hints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum


class ConditionCategory(IntEnum):
    """
    Kind of predicate a WHERE column participates in.

    The integer value is the column's priority inside a composite index:
    lower values lead.
    """
    EQUALITY = 1
    IN_CLAUSE = 2
    RANGE = 3
    LIKE = 4
    INEQUALITY = 5
    NOT_LIKE = 6


class Cardinality(str, Enum):
    """Name-based cardinality bucket for a column."""
    VERY_HIGH = "Very High"
    HIGH = "High"
    MEDIUM_HIGH = "Medium-High"
    MEDIUM = "Medium"
    MEDIUM_LOW = "Medium-Low"
    LOW = "Low"
    VERY_LOW = "Very Low"

    @property
    def rank(self) -> int:
        """Ordering weight: higher means more distinct values."""
        return _CARDINALITY_RANK[self]


_CARDINALITY_RANK = {
    Cardinality.VERY_HIGH: 5,
    Cardinality.HIGH: 4,
    Cardinality.MEDIUM_HIGH: 3,
    Cardinality.MEDIUM: 2,
    Cardinality.MEDIUM_LOW: 1,
    Cardinality.LOW: 0,
    Cardinality.VERY_LOW: -1,
}


@dataclass(frozen=True)
class QueryComplexity:
    """
    Crude shape checks over a query.

    Attributes:
        has_or: WHERE clause contains an OR
        has_parentheses: WHERE clause groups conditions (IN lists excluded)
        has_subquery: Query text contains more than one SELECT
    """
    has_or: bool = False
    has_parentheses: bool = False
    has_subquery: bool = False


@dataclass(frozen=True)
class TableIndexRecommendation:
    """
    Index columns for one table of a JOIN query.

    Attributes:
        table_name: Canonical table name (aliases already resolved)
        columns: Columns in first-seen order (ON, then WHERE, then ORDER BY)
        reason: Which clauses drove the recommendation
    """
    table_name: str
    columns: tuple[str, ...]
    reason: str


@dataclass(frozen=True)
class IndexRecommendation:
    """
    A detailed single-table index recommendation.

    Attributes:
        index_name: Suggested index name
        columns: Ordered key columns
        is_unique: Whether a unique index is plausible
        is_partial: Whether to restrict the index with a predicate
        partial_condition: Predicate for a partial index
        include_columns: Non-key columns for a covering (INCLUDE) index
        reason: Human-readable explanation
        estimated_size_bytes: Rough per-entry size estimate
        index_type: "B-tree" or "Hash"
        is_functional: Whether the index is over an expression
        functional_expression: The expression for a functional index
        effectiveness_score: Heuristic score in [0, 110]
        database_hints: Engine-specific suggestions
        recommend_intersection: Whether index intersection/merge is advised
        column_cardinality: Cardinality bucket per key column
        estimated_performance_gain: Heuristic gain, e.g. "85-95%"
        alternative_strategies: Other indexing strategies worth weighing
        execution_plan_hints: Bullet points about the expected plan
        visual_representation: Text diagram of index use
        estimated_query_cost: Relative cost label, e.g. "Low (20 vs full scan)"
    """
    index_name: str
    columns: tuple[str, ...]
    reason: str
    index_type: str = "B-tree"
    is_unique: bool = False
    is_partial: bool = False
    partial_condition: str | None = None
    include_columns: tuple[str, ...] = ()
    estimated_size_bytes: int | None = None
    is_functional: bool = False
    functional_expression: str | None = None
    effectiveness_score: int = 100
    database_hints: tuple[str, ...] = ()
    recommend_intersection: bool = False
    column_cardinality: tuple[Cardinality, ...] = ()
    estimated_performance_gain: str | None = None
    alternative_strategies: tuple[str, ...] = ()
    execution_plan_hints: tuple[str, ...] = ()
    visual_representation: str | None = None
    estimated_query_cost: str | None = None

    def __post_init__(self) -> None:
        if len(self.columns) != len(self.column_cardinality):
            raise ValueError("column_cardinality must have one entry per column")
        if self.is_partial and self.partial_condition is None:
            raise ValueError("partial index requires a partial_condition")


@dataclass(frozen=True)
class AdvisorResult:
    """
    Outcome of advising on one query.

    Exactly one of the two lists is populated, depending on `kind`.
    """
    sql: str
    kind: str  # "join" or "single_table"
    table_recommendations: list[TableIndexRecommendation] = field(default_factory=list)
    index_recommendations: list[IndexRecommendation] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.table_recommendations and not self.index_recommendations
