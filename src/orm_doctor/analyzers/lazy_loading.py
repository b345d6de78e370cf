import logging
import re
from collections.abc import Iterator, Sequence
from typing import ClassVar

from orm_doctor.domain import (
    Issue,
    IssueCategory,
    IssueCollection,
    QueryRecord,
    QueryRecordCollection,
    Severity,
)
from orm_doctor.exceptions import ConfigurationError
from orm_doctor.sql import normalize_query
from orm_doctor.suggestions import SuggestionFactory

logger = logging.getLogger(__name__)


class LazyLoadingAnalyzer:
    """Detects N+1 query storms: runs of single-row primary-key fetches on one table.

    Only adjacency within the input order is considered, so the collection must
    be in execution order. All qualifying fetches on a table are aggregated
    into a single issue per analysis run.
    """

    name: str = "Lazy Loading Analyzer"

    ISSUE_TYPE: ClassVar[str] = "lazy_loading"
    MAX_MEAN_GAP: ClassVar[float] = 5.0
    MIN_THRESHOLD: ClassVar[int] = 2
    MAX_THRESHOLD: ClassVar[int] = 10_000

    _pk_fetch: ClassVar[re.Pattern[str]] = re.compile(
        r"^SELECT\s+.+?\s+FROM\s+(?:\w+\.)?(?P<table>\w+)"
        r"(?:\s+(?:AS\s+)?(?!WHERE\b)(?P<alias>\w+))?"
        r"\s+WHERE\s+(?:(?P<qualifier>\w+)\.)?id\s*=\s*\?"
        r"(?:\s+LIMIT\s+\?)?$",
        re.IGNORECASE | re.DOTALL,
    )
    _table_prefix: ClassVar[re.Pattern[str]] = re.compile(r"^tb(?:l)?_", re.IGNORECASE)
    _getter: ClassVar[re.Pattern[str]] = re.compile(r"^get(?:_(?P<snake>[a-z]\w*)|(?P<camel>[A-Z]\w*))$")

    def __init__(self, suggestion_factory: SuggestionFactory, threshold: int = 10) -> None:
        if not self.MIN_THRESHOLD <= threshold <= self.MAX_THRESHOLD:
            raise ConfigurationError(
                f"Lazy loading threshold must be between {self.MIN_THRESHOLD} and "
                f"{self.MAX_THRESHOLD}, got {threshold}"
            )
        self._suggestions = suggestion_factory
        self._threshold = threshold

    @property
    def description(self) -> str:
        return (
            f"Detects lazy loading (N+1 queries): {self._threshold} or more single-row fetches "
            "on the same table that should be replaced by a JOIN FETCH or other eager loading"
        )

    def analyze(self, queries: QueryRecordCollection) -> IssueCollection:
        def detect() -> Iterator[Issue]:
            for table, matches in self._group_by_table(queries).items():
                if len(matches) < self._threshold:
                    continue
                if not self._is_sequential([index for index, _ in matches]):
                    logger.debug("Fetches on %s are too spread out to be a loop", table)
                    continue
                yield self._build_issue(table, [record for _, record in matches])

        return IssueCollection.from_generator(detect)

    def _group_by_table(
        self, queries: QueryRecordCollection
    ) -> dict[str, list[tuple[int, QueryRecord]]]:
        groups: dict[str, list[tuple[int, QueryRecord]]] = {}
        for index, record in enumerate(queries):
            table = self._match_table(record.sql)
            if table is not None:
                groups.setdefault(table, []).append((index, record))
        return groups

    def _match_table(self, sql: str) -> str | None:
        if not sql.strip():
            return None
        fingerprint = normalize_query(sql).replace('"', "").replace("`", "")
        match = self._pk_fetch.match(fingerprint)
        if match is None:
            return None

        table = match.group("table")
        qualifier = match.group("qualifier")
        if qualifier is not None:
            allowed = {table.lower()}
            if match.group("alias"):
                allowed.add(match.group("alias").lower())
            if qualifier.lower() not in allowed:
                return None
        return table.lower()

    def _is_sequential(self, indices: Sequence[int]) -> bool:
        if len(indices) < 2:
            return True
        mean_gap = (indices[-1] - indices[0]) / (len(indices) - 1)
        return mean_gap <= self.MAX_MEAN_GAP

    def _build_issue(self, table: str, records: Sequence[QueryRecord]) -> Issue:
        count = len(records)
        entity = self.entity_name(table)
        relation = self._relation_name(records)
        total_time = round(sum(record.execution_time_ms for record in records), 2)

        suggestion = self._suggestions.from_template(
            "eager_loading",
            {"entity": entity, "relation": relation, "query_count": count},
        )
        backtrace = next((record.backtrace for record in records if record.backtrace), None)

        return Issue(
            type=self.ISSUE_TYPE,
            category=IssueCategory.PERFORMANCE,
            severity=Severity.WARNING,
            title=f"Lazy Loading Detected: {count} queries on {entity}",
            description=(
                f"{count} sequential queries fetched single {entity} rows from '{table}' by id "
                f"(threshold: {self._threshold}). This is typically {relation} being lazy loaded "
                "inside a loop; load it eagerly with the parent query instead."
            ),
            data={
                "entity": entity,
                "table": table,
                "relation": relation,
                "query_count": count,
                "total_time_ms": total_time,
                "threshold": self._threshold,
            },
            suggestion=suggestion,
            backtrace=backtrace,
            queries=tuple(records),
        )

    @classmethod
    def entity_name(cls, table: str) -> str:
        """``tbl_blog_posts`` -> ``BlogPosts``."""
        stripped = cls._table_prefix.sub("", table)
        return "".join(part[:1].upper() + part[1:] for part in stripped.split("_") if part)

    def _relation_name(self, records: Sequence[QueryRecord]) -> str:
        for record in records:
            for frame in record.backtrace or ():
                if not frame.function:
                    continue
                match = self._getter.match(frame.function)
                if match is None:
                    continue
                if match.group("snake"):
                    return match.group("snake")
                camel = match.group("camel")
                return camel[:1].lower() + camel[1:]
        return "relation"
