"""
Recommendation synthesis.

A single-table query gets exactly one of three strategies:

- FunctionalStrategy: a function call over a known column
  (LOWER(email) = $1) gets one expression index. Takes precedence.
- OrFanOutStrategy: OR across two or more columns gets one
  single-column index per column, since a composite index cannot serve
  either branch alone.
- CompositeStrategy: everything else gets one composite index over the
  reordered key columns.

`choose_strategy` picks the strategy; `build_recommendations` turns it
into IndexRecommendation records.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from indexsense.advisor import heuristics
from indexsense.advisor.aliases import resolve_aliases
from indexsense.advisor.join import recommend_for_join
from indexsense.advisor.models import AdvisorResult, IndexRecommendation, QueryComplexity
from indexsense.advisor.shapes import (
    FunctionalMatch,
    detect_functional_index,
    detect_include_columns,
    extract_partial_condition,
    should_be_partial_index,
)
from indexsense.advisor.single_table import analyze_query_complexity, extract_index_columns

logger = logging.getLogger(__name__)

_JOIN_KEYWORD = re.compile(r"\bjoin\b", re.IGNORECASE)

FUNCTIONAL_PERFORMANCE_GAIN = "90-95%"
OR_FAN_OUT_SCORE = 60
OR_FAN_OUT_HINTS = (
    "Consider using index merge optimization if supported",
    "Alternatively, rewrite query using UNION instead of OR",
)
INTERSECTION_STRATEGY = "Use index intersection/union if database supports it"


@dataclass(frozen=True)
class FunctionalStrategy:
    match: FunctionalMatch
    extracted_columns: tuple[str, ...]


@dataclass(frozen=True)
class OrFanOutStrategy:
    columns: tuple[str, ...]


@dataclass(frozen=True)
class CompositeStrategy:
    """Composite index over `columns` (already reordered)."""
    columns: tuple[str, ...]
    extracted_columns: tuple[str, ...]


Strategy = FunctionalStrategy | OrFanOutStrategy | CompositeStrategy


def choose_strategy(
    sql: str,
    known_columns: Sequence[str],
    complexity: QueryComplexity,
) -> Strategy | None:
    """
    Decide how to index a single-table query.

    Returns:
        The strategy to apply, or None when no known column is used.
    """
    extracted = tuple(extract_index_columns(sql, known_columns))

    functional = detect_functional_index(sql, known_columns)
    if functional is not None:
        return FunctionalStrategy(match=functional, extracted_columns=extracted)

    if not extracted:
        return None

    if complexity.has_or and len(extracted) >= 2:
        return OrFanOutStrategy(columns=extracted)

    optimized = tuple(heuristics.optimize_column_order(extracted, sql))
    return CompositeStrategy(columns=optimized, extracted_columns=extracted)


def _plan_fields(sql: str, columns: Sequence[str], complexity: QueryComplexity) -> dict:
    """Cardinality and explain-style fields shared by every strategy."""
    cardinality = heuristics.estimate_column_cardinality(columns)
    return {
        "column_cardinality": cardinality,
        "execution_plan_hints": tuple(
            heuristics.generate_execution_plan_hints(sql, columns, complexity)
        ),
        "visual_representation": heuristics.generate_visual_representation(
            sql, columns, cardinality
        ),
        "estimated_query_cost": heuristics.estimate_query_cost(sql, columns, complexity),
    }


def _functional(
    strategy: FunctionalStrategy,
    sql: str,
    complexity: QueryComplexity,
) -> list[IndexRecommendation]:
    col = strategy.match.column
    columns = (col,)
    return [
        IndexRecommendation(
            index_name=f"idx_{col.replace('(', '').replace(')', '')}_functional",
            columns=columns,
            reason=f"Functional index for expression: {strategy.match.expression}",
            index_type="B-tree",
            estimated_size_bytes=heuristics.estimate_index_size(columns),
            is_functional=True,
            functional_expression=strategy.match.expression,
            effectiveness_score=heuristics.calculate_effectiveness_score(
                sql, strategy.extracted_columns, complexity
            ),
            database_hints=tuple(heuristics.generate_database_hints(sql, columns)),
            estimated_performance_gain=FUNCTIONAL_PERFORMANCE_GAIN,
            **_plan_fields(sql, columns, complexity),
        )
    ]


def _or_fan_out(
    strategy: OrFanOutStrategy,
    sql: str,
    complexity: QueryComplexity,
) -> list[IndexRecommendation]:
    use_intersection = heuristics.should_use_index_intersection(sql, strategy.columns)
    gain = "60-75% (with merge)" if use_intersection else "40-60%"
    alternatives = (INTERSECTION_STRATEGY,) if use_intersection else ()

    recommendations = []
    for col in strategy.columns:
        columns = (col,)
        recommendations.append(
            IndexRecommendation(
                index_name=f"idx_{col}_separate",
                columns=columns,
                reason=f"Separate index for OR condition on {col}",
                index_type="B-tree",
                estimated_size_bytes=heuristics.estimate_index_size(columns),
                effectiveness_score=OR_FAN_OUT_SCORE,
                database_hints=OR_FAN_OUT_HINTS,
                recommend_intersection=use_intersection,
                estimated_performance_gain=gain,
                alternative_strategies=alternatives,
                **_plan_fields(sql, columns, complexity),
            )
        )
    return recommendations


def _composite(
    strategy: CompositeStrategy,
    sql: str,
    known_columns: Sequence[str],
    complexity: QueryComplexity,
) -> list[IndexRecommendation]:
    columns = strategy.columns
    is_partial = should_be_partial_index(sql)
    partial_condition = extract_partial_condition(sql)
    return [
        IndexRecommendation(
            index_name=heuristics.generate_index_name(columns),
            columns=columns,
            reason=heuristics.explain_recommendation_reason(columns, complexity),
            index_type=heuristics.recommend_index_type(sql, columns),
            is_unique=heuristics.is_unique_index(columns),
            is_partial=is_partial and partial_condition is not None,
            partial_condition=partial_condition,
            include_columns=tuple(detect_include_columns(sql, columns, known_columns)),
            estimated_size_bytes=heuristics.estimate_index_size(columns),
            effectiveness_score=heuristics.calculate_effectiveness_score(
                sql, strategy.extracted_columns, complexity
            ),
            database_hints=tuple(heuristics.generate_database_hints(sql, columns)),
            estimated_performance_gain=heuristics.estimate_performance_gain(
                sql, columns, complexity
            ),
            alternative_strategies=tuple(
                heuristics.generate_alternative_strategies(sql, columns, complexity)
            ),
            **_plan_fields(sql, columns, complexity),
        )
    ]


def build_recommendations(
    strategy: Strategy,
    sql: str,
    known_columns: Sequence[str],
    complexity: QueryComplexity,
) -> list[IndexRecommendation]:
    if isinstance(strategy, FunctionalStrategy):
        return _functional(strategy, sql, complexity)
    if isinstance(strategy, OrFanOutStrategy):
        return _or_fan_out(strategy, sql, complexity)
    return _composite(strategy, sql, known_columns, complexity)


def recommend_for_single_table(
    sql: str,
    known_columns: Sequence[str],
) -> list[IndexRecommendation]:
    """
    Index recommendations for a query against one table.

    Args:
        sql: Raw query text
        known_columns: The table's column names, in declaration order

    Returns:
        Zero, one (functional or composite) or several (OR fan-out)
        recommendations.

    Example:
        >>> recs = recommend_for_single_table(
        ...     "SELECT * FROM users WHERE email = $1", ["id", "email"]
        ... )
        >>> recs[0].index_name, recs[0].index_type
        ('idx_email', 'Hash')
    """
    complexity = analyze_query_complexity(sql)
    strategy = choose_strategy(sql, known_columns, complexity)
    if strategy is None:
        logger.debug("No indexable columns in query: %s", sql)
        return []

    logger.debug("Using %s for query: %s", type(strategy).__name__, sql)
    return build_recommendations(strategy, sql, known_columns, complexity)


class SingleTableAdvisor:
    """
    Advisor bound to one table's column list.

    Example:
        >>> advisor = SingleTableAdvisor(["id", "status", "created_at"])
        >>> advisor.extract_index_columns("SELECT * FROM t WHERE status = $1")
        ['status']
    """

    def __init__(self, known_columns: Sequence[str]) -> None:
        self.known_columns = tuple(known_columns)

    def extract_index_columns(self, sql: str) -> list[str]:
        return extract_index_columns(sql, self.known_columns)

    def recommend(self, sql: str) -> list[IndexRecommendation]:
        return recommend_for_single_table(sql, self.known_columns)


def is_join_query(sql: str) -> bool:
    """True when JOIN appears as a whole word, so `joined_at` does not count."""
    return _JOIN_KEYWORD.search(sql) is not None


def advise_query(sql: str, known_columns: Sequence[str] = ()) -> AdvisorResult:
    """
    Advise on one query, routing JOIN queries to the per-table aggregator.

    Args:
        sql: Raw query text
        known_columns: Column names of the queried table; only used for
            single-table queries

    Returns:
        AdvisorResult whose `kind` says which list is populated.
    """
    if is_join_query(sql):
        return AdvisorResult(
            sql=sql,
            kind="join",
            table_recommendations=recommend_for_join(sql, resolve_aliases(sql)),
        )
    return AdvisorResult(
        sql=sql,
        kind="single_table",
        index_recommendations=recommend_for_single_table(sql, known_columns),
    )
