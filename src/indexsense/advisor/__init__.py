"""
Index advisor - text-level index recommendations for SQL query strings.

Module responsibilities (one concept, one module):
- clauses.py: Keyword-bounded clause extraction, subquery partitioning
- aliases.py: AliasMap and alias resolution across subqueries
- conditions.py: Word-boundary WHERE condition classification
- single_table.py: Index column extraction and complexity checks
- join.py: Per-table column aggregation for JOIN queries
- shapes.py: Functional, partial and covering index detection
- heuristics.py: Cardinality, column order, scores, hints and cost
- synthesis.py: Strategy selection and recommendation assembly
- models.py: Immutable recommendation records
"""

from indexsense.advisor.aliases import AliasMap, resolve_aliases
from indexsense.advisor.join import recommend_for_join
from indexsense.advisor.models import (
    AdvisorResult,
    Cardinality,
    ConditionCategory,
    IndexRecommendation,
    QueryComplexity,
    TableIndexRecommendation,
)
from indexsense.advisor.single_table import analyze_query_complexity, extract_index_columns
from indexsense.advisor.synthesis import (
    CompositeStrategy,
    FunctionalStrategy,
    OrFanOutStrategy,
    SingleTableAdvisor,
    advise_query,
    choose_strategy,
    recommend_for_single_table,
)

__all__ = [
    # Alias resolution
    "AliasMap",
    "resolve_aliases",
    # Entry points
    "advise_query",
    "recommend_for_join",
    "recommend_for_single_table",
    "extract_index_columns",
    "analyze_query_complexity",
    "SingleTableAdvisor",
    # Strategies
    "choose_strategy",
    "FunctionalStrategy",
    "OrFanOutStrategy",
    "CompositeStrategy",
    # Models
    "AdvisorResult",
    "Cardinality",
    "ConditionCategory",
    "IndexRecommendation",
    "QueryComplexity",
    "TableIndexRecommendation",
]
