from pathlib import Path

import pytest

from orm_doctor import AnalysisPipeline, LogFileInput, build_registry
from orm_doctor.domain import Issue, Severity

FIXTURE_PATH = Path(__file__).parent.parent / "fixtures" / "slow_queries.log"


class CollectingOutput:
    name: str = "collecting"

    def __init__(self) -> None:
        self.issues: list[Issue] = []

    async def send(self, issue: Issue) -> None:
        self.issues.append(issue)


class TestLogFilePipeline:
    @pytest.fixture
    async def issues(self) -> list[Issue]:
        output = CollectingOutput()
        pipeline = AnalysisPipeline(LogFileInput(FIXTURE_PATH), build_registry(), [output])
        await pipeline.run()
        return output.issues

    @pytest.mark.asyncio
    async def test_reads_every_timed_statement(self) -> None:
        pipeline = AnalysisPipeline(LogFileInput(FIXTURE_PATH), build_registry(), [])

        queries = await pipeline.collect()

        assert len(queries) == 16
        assert queries[13].sql.startswith("SELECT u.id, u.email\nFROM users u")
        assert queries.slowest() == queries[13]

    @pytest.mark.asyncio
    async def test_issue_types_in_registry_order(self, issues: list[Issue]) -> None:
        assert [issue.type for issue in issues] == [
            "join_unused",
            "lazy_loading",
            "slow_query",
            "find_all",
            "division_by_zero",
        ]

    @pytest.mark.asyncio
    async def test_detects_lazy_loading_from_log(self, issues: list[Issue]) -> None:
        (lazy,) = [issue for issue in issues if issue.type == "lazy_loading"]

        assert lazy.title == "Lazy Loading Detected: 12 queries on Authors"
        assert lazy.data["total_time_ms"] == 4.8

    @pytest.mark.asyncio
    async def test_detects_slow_multiline_statement(self, issues: list[Issue]) -> None:
        (slow,) = [issue for issue in issues if issue.type == "slow_query"]
        (unused,) = [issue for issue in issues if issue.type == "join_unused"]

        assert slow.severity is Severity.CRITICAL
        assert slow.title == "Slow Query: 1520.75ms"
        assert unused.data["table"] == "profiles"
        assert unused.data["alias"] == "pr"

    @pytest.mark.asyncio
    async def test_detects_unguarded_division(self, issues: list[Issue]) -> None:
        (division,) = [issue for issue in issues if issue.type == "division_by_zero"]

        assert division.data["dividend"] == "revenue"
        assert division.data["divisor"] == "visits"
