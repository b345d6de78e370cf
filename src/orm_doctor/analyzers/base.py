from typing import Protocol, runtime_checkable

from orm_doctor.domain import IssueCollection, QueryRecordCollection


@runtime_checkable
class QueryAnalyzer(Protocol):
    """Protocol for analyzers.

    Metadata-driven analyzers accept the query collection for uniformity and
    read their input from a metadata provider instead.
    """

    @property
    def name(self) -> str:
        ...

    @property
    def description(self) -> str:
        ...

    def analyze(self, queries: QueryRecordCollection) -> IssueCollection:
        ...
