import logging
from collections.abc import Sequence

from orm_doctor.analyzers import AnalyzerRegistry
from orm_doctor.domain import IssueCollection, QueryRecord, QueryRecordCollection
from orm_doctor.input import QueryInput
from orm_doctor.output import IssueOutput

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """Drains an input, runs every analyzer once and forwards issues to the outputs."""

    def __init__(
        self,
        input_source: QueryInput,
        registry: AnalyzerRegistry,
        outputs: Sequence[IssueOutput],
    ) -> None:
        self._input = input_source
        self._registry = registry
        self._outputs = tuple(outputs)

    async def collect(self) -> QueryRecordCollection:
        records: list[QueryRecord] = []
        async for record in self._input:
            records.append(record)
        return QueryRecordCollection(records)

    async def run(self) -> IssueCollection:
        queries = await self.collect()
        issues = IssueCollection.from_issues(self._registry.analyze_all(queries))
        logger.info(
            "Analyzed %d queries with %d analyzers: %d issue(s)",
            len(queries),
            len(self._registry.analyzers),
            len(issues),
        )

        for issue in issues:
            for output in self._outputs:
                await output.send(issue)
        return issues
