"""
Source scanner: finds literal query strings at macro-style call sites.

Recognized call sites (macro and runtime forms):

    User::where_query!("email = $1")
    User::count_query("status = $1")
    User::delete_where_query!("deleted_at < $1")
    User::make_query!("SELECT * FROM users WHERE ...")
    User::make_execute("UPDATE users SET ...")

Each SELECT subquery inside a found query is reported again as its own
query, typed `<type>_subquery` and attributed to the table after its FROM.

The scanner also reads struct definitions so single-table queries can be
advised against the struct's field list.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from indexsense.advisor.clauses import partition_subqueries
from indexsense.exceptions import ScanError

logger = logging.getLogger(__name__)

CALL_SITE_KINDS = (
    "where_query",
    "count_query",
    "delete_where_query",
    "make_query",
    "make_execute",
)

# (pattern, query_type): macro form first, then the runtime method form
CALL_SITE_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(rf'(\w+)::{kind}!\("([^"]+)"\)'), kind) for kind in CALL_SITE_KINDS
) + tuple(
    (re.compile(rf'(\w+)::{kind}\("([^"]+)"\)'), f"{kind}_runtime") for kind in CALL_SITE_KINDS
)

COMMENT_PREFIXES = ("//", "/*")

STRUCT_PATTERN = re.compile(r"\bstruct\s+(\w+)\s*\{(.*?)\}", re.DOTALL)
FIELD_PATTERN = re.compile(r"^\s*(?:pub(?:\([^)]*\))?\s+)?(\w+)\s*:", re.MULTILINE)

# Statement templates for call sites that only carry a WHERE fragment
_FRAGMENT_TEMPLATES = {
    "where_query": "SELECT * FROM {table} WHERE {sql}",
    "count_query": "SELECT COUNT(*) FROM {table} WHERE {sql}",
    "delete_where_query": "DELETE FROM {table} WHERE {sql}",
}


@dataclass(frozen=True)
class ExtractedQuery:
    """
    One query string found in source code.

    Attributes:
        table: Struct (or, for subqueries, table) the query belongs to
        query_type: Call-site kind, e.g. "where_query" or "make_query_runtime"
        sql: The literal query text as written
        file: Source file path
        line: 1-based line number of the call site
        is_from_subquery: True for subqueries split out of another query
    """
    table: str
    query_type: str
    sql: str
    file: str
    line: int
    is_from_subquery: bool = False

    @property
    def base_type(self) -> str:
        """Call-site kind without the _runtime / _subquery suffixes."""
        kind = self.query_type
        for suffix in ("_subquery", "_runtime"):
            kind = kind.removesuffix(suffix)
        return kind

    def statement(self) -> str:
        """
        Full SQL statement for the advisor.

        WHERE-fragment call sites are expanded into the statement the
        macro generates; full queries are returned unchanged.
        """
        template = _FRAGMENT_TEMPLATES.get(self.base_type)
        if self.is_from_subquery or template is None:
            return self.sql
        if self.sql.lstrip().lower().startswith(("select", "delete", "update")):
            return self.sql
        return template.format(table=self.table, sql=self.sql)


def table_from_subquery(subquery: str) -> str | None:
    """First identifier after FROM, stripped of punctuation."""
    from_pos = subquery.lower().find("from")
    if from_pos == -1:
        return None
    words = subquery[from_pos + len("from"):].split()
    if not words:
        return None
    table = re.sub(r"^[^\w]+|[^\w]+$", "", words[0])
    return table or None


def extract_subqueries(query: ExtractedQuery) -> list[ExtractedQuery]:
    """Split the SELECT subqueries of `query` out as separate queries."""
    _, subqueries = partition_subqueries(query.sql)
    extracted = []
    for subquery in subqueries:
        table = table_from_subquery(subquery)
        if table is None:
            logger.debug("Subquery without FROM skipped: %s", subquery)
            continue
        extracted.append(
            ExtractedQuery(
                table=table,
                query_type=f"{query.query_type}_subquery",
                sql=subquery,
                file=query.file,
                line=query.line,
                is_from_subquery=True,
            )
        )
    return extracted


def scan_source(text: str, file: str = "<string>") -> list[ExtractedQuery]:
    """
    Find every call-site query in a source text.

    Lines starting with a comment marker are ignored. A line may hold
    several call sites; each pattern contributes its first match.
    """
    queries: list[ExtractedQuery] = []
    for line_num, line in enumerate(text.splitlines(), start=1):
        if line.strip().startswith(COMMENT_PREFIXES):
            continue

        for pattern, query_type in CALL_SITE_PATTERNS:
            match = pattern.search(line)
            if match is None:
                continue
            query = ExtractedQuery(
                table=match.group(1),
                query_type=query_type,
                sql=match.group(2),
                file=file,
                line=line_num,
            )
            queries.append(query)
            queries.extend(extract_subqueries(query))

    return queries


def scan_struct_fields(text: str) -> dict[str, tuple[str, ...]]:
    """
    Field names of every struct defined in a source text.

    Attribute and comment lines inside the body are ignored.
    """
    structs: dict[str, tuple[str, ...]] = {}
    for match in STRUCT_PATTERN.finditer(text):
        body = "\n".join(
            line for line in match.group(2).splitlines()
            if not line.strip().startswith(("#", "//"))
        )
        fields = tuple(FIELD_PATTERN.findall(body))
        if fields:
            structs[match.group(1)] = fields
    return structs


def _read_source(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read %s: %s", path, e)
        return None


def iter_source_files(
    root: Path,
    extensions: Iterable[str] | None = None,
    skip_dirs: Iterable[str] | None = None,
) -> list[Path]:
    """
    Source files under `root`, sorted, skipping excluded directories.

    Raises:
        ScanError: If `root` is missing or is a file without a scanned extension.
    """
    if extensions is None or skip_dirs is None:
        from indexsense.config import get_config

        config = get_config()
        extensions = config.scan_extensions if extensions is None else extensions
        skip_dirs = config.skip_dirs if skip_dirs is None else skip_dirs

    extensions = tuple(extensions)
    skipped = frozenset(skip_dirs)

    if root.is_file():
        if root.suffix not in extensions:
            raise ScanError(
                f"Not a scannable source file (expected {', '.join(extensions)}): {root}",
                path=root,
            )
        return [root]

    if not root.is_dir():
        raise ScanError(f"Path does not exist: {root}", path=root)

    files = []
    for path in sorted(root.rglob("*")):
        relative_parts = path.relative_to(root).parts[:-1]
        if any(part in skipped for part in relative_parts):
            continue
        if path.is_file() and path.suffix in extensions:
            files.append(path)
    return files


def scan_path(path: Path | str) -> list[ExtractedQuery]:
    """
    Scan a file or directory tree for call-site queries.

    Unreadable files are logged and skipped.

    Raises:
        ScanError: If the scan root itself is invalid.
    """
    queries: list[ExtractedQuery] = []
    for file in iter_source_files(Path(path)):
        text = _read_source(file)
        if text is not None:
            queries.extend(scan_source(text, str(file)))

    logger.info("Found %d queries under %s", len(queries), path)
    return queries


def collect_table_columns(path: Path | str) -> dict[str, tuple[str, ...]]:
    """Struct name -> field names, for every struct under a file or tree."""
    columns: dict[str, tuple[str, ...]] = {}
    for file in iter_source_files(Path(path)):
        text = _read_source(file)
        if text is not None:
            columns.update(scan_struct_fields(text))
    return columns
