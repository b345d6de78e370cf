import re
from collections.abc import Iterator
from typing import ClassVar

from orm_doctor.domain import Issue, IssueCategory, IssueCollection, QueryRecordCollection, Severity
from orm_doctor.exceptions import ConfigurationError
from orm_doctor.sql import truncate_query
from orm_doctor.suggestions import SuggestionFactory


class SlowQueryAnalyzer:
    name: str = "Slow Query Analyzer"

    ISSUE_TYPE: ClassVar[str] = "slow_query"
    MAX_THRESHOLD_MS: ClassVar[float] = 100_000.0
    CRITICAL_MS: ClassVar[float] = 1_000.0

    _hints: ClassVar[list[tuple[re.Pattern[str], str]]] = [
        (re.compile(r"\(\s*SELECT\b", re.IGNORECASE), "Rewrite the subquery as a JOIN."),
        (re.compile(r"\bORDER\s+BY\b", re.IGNORECASE), "Index the ORDER BY columns."),
        (re.compile(r"\bGROUP\s+BY\b", re.IGNORECASE), "Index the GROUP BY columns."),
        (
            re.compile(r"\bLIKE\s+'%", re.IGNORECASE),
            "A leading wildcard in LIKE cannot use an index.",
        ),
        (re.compile(r"\bDISTINCT\b", re.IGNORECASE), "Check whether DISTINCT is really needed."),
    ]

    def __init__(self, suggestion_factory: SuggestionFactory, threshold_ms: float = 100.0) -> None:
        if not 0 < threshold_ms <= self.MAX_THRESHOLD_MS:
            raise ConfigurationError(
                f"Slow query threshold must be in (0, {self.MAX_THRESHOLD_MS:.0f}] ms, "
                f"got {threshold_ms}"
            )
        self._suggestions = suggestion_factory
        self._threshold = threshold_ms

    @property
    def description(self) -> str:
        return f"Detects slow queries taking more than {self._threshold:g}ms to execute"

    def analyze(self, queries: QueryRecordCollection) -> IssueCollection:
        def detect() -> Iterator[Issue]:
            for record in queries.filter_slow(self._threshold):
                if not record.sql.strip():
                    continue

                elapsed = record.execution_time_ms
                severity = Severity.CRITICAL if elapsed >= self.CRITICAL_MS else Severity.WARNING
                hints = [hint for pattern, hint in self._hints if pattern.search(record.sql)]
                query = truncate_query(record.sql)
                yield Issue(
                    type=self.ISSUE_TYPE,
                    category=IssueCategory.PERFORMANCE,
                    severity=severity,
                    title=f"Slow Query: {elapsed:.2f}ms",
                    description=(
                        f"Query took {elapsed:.2f}ms to execute (threshold: {self._threshold:g}ms)."
                    ),
                    data={
                        "query": query,
                        "execution_time": elapsed,
                        "threshold": self._threshold,
                        "hints": hints,
                    },
                    suggestion=self._suggestions.from_template(
                        "slow_query",
                        {
                            "query": query,
                            "execution_time": elapsed,
                            "threshold": self._threshold,
                            "hints": " ".join(hints),
                        },
                        severity=severity,
                    ),
                    backtrace=record.backtrace,
                    queries=(record,),
                )

        return IssueCollection.from_generator(detect)
