import re
from collections.abc import Iterator
from typing import ClassVar

from orm_doctor.domain import Issue, IssueCategory, IssueCollection, QueryRecordCollection, Severity
from orm_doctor.exceptions import ConfigurationError
from orm_doctor.sql import extract_main_table, normalize_query, truncate_query
from orm_doctor.suggestions import SuggestionFactory


class FindAllAnalyzer:
    """Flags SELECTs that read a whole table: no WHERE, no LIMIT."""

    name: str = "Find All Analyzer"
    description: str = "Detects unpaginated SELECT queries that load every row of a table into memory"

    ISSUE_TYPE: ClassVar[str] = "find_all"
    UNKNOWN_ROW_COUNT: ClassVar[int] = 999

    _where: ClassVar[re.Pattern[str]] = re.compile(r"\bWHERE\b", re.IGNORECASE)
    _limit: ClassVar[re.Pattern[str]] = re.compile(
        r"\bLIMIT\b|\bFETCH\s+(?:FIRST|NEXT)\b|\bTOP\s*\(?\s*\d", re.IGNORECASE
    )
    _aggregate: ClassVar[re.Pattern[str]] = re.compile(
        r"\b(?:COUNT|SUM|AVG|MIN|MAX)\s*\(|\bEXISTS\b", re.IGNORECASE
    )

    def __init__(self, suggestion_factory: SuggestionFactory, threshold: int = 99) -> None:
        if threshold < 0:
            raise ConfigurationError(f"Find-all row threshold must not be negative, got {threshold}")
        self._suggestions = suggestion_factory
        self._threshold = threshold

    def analyze(self, queries: QueryRecordCollection) -> IssueCollection:
        def detect() -> Iterator[Issue]:
            seen: set[str] = set()
            for record in queries.only_selects():
                sql = record.sql
                if self._where.search(sql) or self._limit.search(sql) or self._aggregate.search(sql):
                    continue

                rows = record.row_count if record.row_count is not None else self.UNKNOWN_ROW_COUNT
                if rows <= self._threshold:
                    continue

                fingerprint = normalize_query(sql)
                if fingerprint in seen:
                    continue
                seen.add(fingerprint)

                main_table = extract_main_table(sql)
                table = main_table.table if main_table is not None else "unknown"
                query = truncate_query(sql)
                yield Issue(
                    type=self.ISSUE_TYPE,
                    category=IssueCategory.PERFORMANCE,
                    severity=Severity.WARNING,
                    title=f"Unpaginated Query on {table}",
                    description=(
                        f"SELECT on {table} has no WHERE and no LIMIT and returned {rows} rows "
                        f"(threshold: {self._threshold})."
                    ),
                    data={"query": query, "table": table, "row_count": rows},
                    suggestion=self._suggestions.from_template(
                        "find_all_pagination",
                        {"query": query, "table": table, "row_count": rows},
                    ),
                    backtrace=record.backtrace,
                    queries=(record,),
                )

        return IssueCollection.from_generator(detect)
