"""Ordered query records and lazily produced issue collections."""

import re
from collections import Counter
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any, Self, overload

from orm_doctor.domain.models import Issue, QueryRecord, Severity


class QueryRecordCollection(Sequence[QueryRecord]):
    """Immutable sequence of captured queries in execution order.

    Sequential detectors rely on adjacency, so filters return new collections
    that keep the relative order of the surviving records. Nothing here sorts.
    """

    def __init__(self, records: Iterable[QueryRecord] = ()) -> None:
        self._records: tuple[QueryRecord, ...] = tuple(records)

    @classmethod
    def from_dicts(cls, entries: Iterable[Mapping[str, Any]]) -> Self:
        return cls(QueryRecord.from_dict(entry) for entry in entries)

    @overload
    def __getitem__(self, index: int) -> QueryRecord: ...

    @overload
    def __getitem__(self, index: slice) -> "QueryRecordCollection": ...

    def __getitem__(self, index: int | slice) -> "QueryRecord | QueryRecordCollection":
        if isinstance(index, slice):
            return QueryRecordCollection(self._records[index])
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[QueryRecord]:
        return iter(self._records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryRecordCollection):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        return f"QueryRecordCollection({len(self._records)} records)"

    def filter(self, predicate: Callable[[QueryRecord], bool]) -> "QueryRecordCollection":
        return QueryRecordCollection(record for record in self._records if predicate(record))

    def only_selects(self) -> "QueryRecordCollection":
        return self.filter(lambda record: record.is_select())

    def filter_slow(self, threshold_ms: float) -> "QueryRecordCollection":
        return self.filter(lambda record: record.is_slow(threshold_ms))

    def with_backtrace(self) -> "QueryRecordCollection":
        return self.filter(lambda record: bool(record.backtrace))

    def matching_sql(self, pattern: str | re.Pattern[str]) -> "QueryRecordCollection":
        compiled = re.compile(pattern, re.IGNORECASE) if isinstance(pattern, str) else pattern
        return self.filter(lambda record: compiled.search(record.sql) is not None)

    def with_row_count_above(self, rows: int) -> "QueryRecordCollection":
        return self.filter(lambda record: record.row_count is not None and record.row_count > rows)

    def total_execution_time(self) -> float:
        return sum(record.execution_time_ms for record in self._records)

    def average_execution_time(self) -> float:
        if not self._records:
            return 0.0
        return self.total_execution_time() / len(self._records)

    def slowest(self) -> QueryRecord | None:
        if not self._records:
            return None
        return max(self._records, key=lambda record: record.execution_time_ms)


class IssueCollection:
    """A re-iterable, lazily evaluated sequence of issues.

    The collection wraps a zero-argument factory returning a fresh iterator, so
    analyzers can yield issues as they find them and consumers can iterate
    more than once without the producer buffering everything up front.
    ``to_list`` materializes the issues and drops duplicates by signature.
    """

    def __init__(self, factory: Callable[[], Iterable[Issue]]) -> None:
        self._factory = factory

    @classmethod
    def from_generator(cls, factory: Callable[[], Iterable[Issue]]) -> Self:
        return cls(factory)

    @classmethod
    def from_issues(cls, issues: Iterable[Issue]) -> Self:
        materialized = tuple(issues)
        return cls(lambda: iter(materialized))

    @classmethod
    def empty(cls) -> Self:
        return cls(lambda: iter(()))

    def __iter__(self) -> Iterator[Issue]:
        seen: set[tuple[str, str, str]] = set()
        for issue in self._factory():
            signature = issue.signature
            if signature in seen:
                continue
            seen.add(signature)
            yield issue

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __bool__(self) -> bool:
        return next(iter(self), None) is not None

    def to_list(self) -> list[Issue]:
        # not list(self): list() consults __len__ for a size hint
        return [issue for issue in self]

    def merge(self, other: "IssueCollection") -> "IssueCollection":
        def chained() -> Iterator[Issue]:
            yield from self
            yield from other

        return IssueCollection(chained)

    def filter(self, predicate: Callable[[Issue], bool]) -> "IssueCollection":
        return IssueCollection(lambda: (issue for issue in self if predicate(issue)))

    def filter_by_severity(self, severity: Severity) -> "IssueCollection":
        return self.filter(lambda issue: issue.severity == severity)

    def only_critical(self) -> "IssueCollection":
        return self.filter_by_severity(Severity.CRITICAL)

    def only_warnings(self) -> "IssueCollection":
        return self.filter_by_severity(Severity.WARNING)

    def filter_by_type(self, issue_type: str) -> "IssueCollection":
        return self.filter(lambda issue: issue.type == issue_type)

    def count_by_severity(self) -> dict[Severity, int]:
        counts = Counter(issue.severity for issue in self)
        return {severity: counts.get(severity, 0) for severity in Severity}

    def group_by_type(self) -> dict[str, list[Issue]]:
        groups: dict[str, list[Issue]] = {}
        for issue in self:
            groups.setdefault(issue.type, []).append(issue)
        return groups

    def has_critical(self) -> bool:
        return any(issue.severity == Severity.CRITICAL for issue in self)

    def most_severe(self) -> Issue | None:
        issues = self.to_list()
        if not issues:
            return None
        return max(issues, key=lambda issue: issue.severity)

    def sorted_by_severity(self) -> list[Issue]:
        """Highest severity first; ties keep detection order."""
        return sorted(self, key=lambda issue: issue.severity, reverse=True)
