import logging
from collections.abc import Iterator

from orm_doctor.analyzers.base import QueryAnalyzer
from orm_doctor.domain import Issue, IssueCollection, QueryRecordCollection

logger = logging.getLogger(__name__)


class AnalyzerRegistry:
    """Registry for managing and orchestrating analyzers."""

    def __init__(self) -> None:
        self._analyzers: list[QueryAnalyzer] = []

    def register(self, analyzer: QueryAnalyzer) -> None:
        self._analyzers.append(analyzer)

    @property
    def analyzers(self) -> tuple[QueryAnalyzer, ...]:
        return tuple(self._analyzers)

    def analyze_all(self, queries: QueryRecordCollection) -> IssueCollection:
        """Concatenate every analyzer's issues in registration order, deduplicated.

        An analyzer that raises is logged and contributes nothing.
        """
        analyzers = self.analyzers

        def collect() -> Iterator[Issue]:
            for analyzer in analyzers:
                try:
                    issues = analyzer.analyze(queries).to_list()
                except Exception:
                    logger.exception("Analyzer %r failed", analyzer.name)
                    continue
                yield from issues

        return IssueCollection.from_generator(collect)
