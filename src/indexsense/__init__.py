"""IndexSense - Static index advisor for SQL query strings."""

__version__ = "0.3.0"
__license__ = "MIT"

# Exception hierarchy (import first so other modules can use it)
from indexsense.exceptions import (
    IndexSenseError,
    ConfigurationError,
    ScanError,
    ReportError,
)

# Public API exports
from indexsense.advisor import (
    AdvisorResult,
    AliasMap,
    Cardinality,
    ConditionCategory,
    IndexRecommendation,
    QueryComplexity,
    SingleTableAdvisor,
    TableIndexRecommendation,
    advise_query,
    analyze_query_complexity,
    extract_index_columns,
    recommend_for_join,
    recommend_for_single_table,
    resolve_aliases,
)
from indexsense.config import (
    Config,
    get_config,
)
from indexsense.scanner import (
    ExtractedQuery,
    scan_path,
    scan_source,
)

__all__ = [
    # Exception hierarchy
    "IndexSenseError",
    "ConfigurationError",
    "ScanError",
    "ReportError",
    # Core
    "advise_query",
    "resolve_aliases",
    "recommend_for_join",
    "recommend_for_single_table",
    "extract_index_columns",
    "analyze_query_complexity",
    "SingleTableAdvisor",
    # Models
    "AdvisorResult",
    "AliasMap",
    "Cardinality",
    "ConditionCategory",
    "IndexRecommendation",
    "QueryComplexity",
    "TableIndexRecommendation",
    # Scanner
    "ExtractedQuery",
    "scan_path",
    "scan_source",
    # Configuration
    "Config",
    "get_config",
    # Metadata
    "__version__",
    "__license__",
]
