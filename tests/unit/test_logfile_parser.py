from datetime import timezone

import pytest

from orm_doctor.input.logfile.parser import PostgresLogLineParser

STATEMENT_LINE = (
    "2024-01-15 10:30:00.123 UTC [4242] LOG:  duration: 12.345 ms  "
    "statement: SELECT * FROM users WHERE id = 1"
)
EXECUTE_LINE = (
    "2024-01-15 10:30:01 UTC [4243] LOG:  duration: 0.512 ms  "
    "execute <unnamed>: SELECT * FROM posts WHERE id = $1"
)
CHECKPOINT_LINE = "2024-01-15 10:30:02 UTC [4242] LOG:  checkpoint starting: time"
ERROR_LINE = "2024-01-15 10:30:03 UTC [4242] ERROR:  relation \"foo\" does not exist"


class TestPostgresLogLineParser:
    @pytest.fixture
    def parser(self) -> PostgresLogLineParser:
        return PostgresLogLineParser()

    def test_parse_statement_line(self, parser: PostgresLogLineParser) -> None:
        result = parser.parse_line(STATEMENT_LINE)

        assert result is not None
        assert result.statement == "SELECT * FROM users WHERE id = 1"
        assert result.duration_ms == 12.345
        assert result.process_id == 4242

    def test_parse_execute_line(self, parser: PostgresLogLineParser) -> None:
        result = parser.parse_line(EXECUTE_LINE)

        assert result is not None
        assert result.statement == "SELECT * FROM posts WHERE id = $1"
        assert result.duration_ms == 0.512

    def test_parse_extracts_timestamp(self, parser: PostgresLogLineParser) -> None:
        result = parser.parse_line(STATEMENT_LINE)

        assert result is not None
        assert result.timestamp is not None
        assert result.timestamp.year == 2024
        assert result.timestamp.month == 1
        assert result.timestamp.day == 15
        assert result.timestamp.hour == 10
        assert result.timestamp.minute == 30
        assert result.timestamp.second == 0
        assert result.timestamp.tzinfo == timezone.utc

    def test_parse_without_prefix(self, parser: PostgresLogLineParser) -> None:
        result = parser.parse_line("LOG:  duration: 3 ms  statement: SELECT 1")

        assert result is not None
        assert result.duration_ms == 3.0
        assert result.timestamp is None
        assert result.process_id is None

    @pytest.mark.parametrize("line", [CHECKPOINT_LINE, ERROR_LINE, "", "   \n"])
    def test_non_duration_lines_return_none(self, parser: PostgresLogLineParser, line: str) -> None:
        assert parser.parse_line(line) is None

    def test_empty_statement_returns_none(self, parser: PostgresLogLineParser) -> None:
        assert parser.parse_line("LOG:  duration: 1.0 ms  statement: ") is None

    @pytest.mark.parametrize(
        ("line", "expected"),
        [
            ("    FROM users", True),
            ("\tWHERE id = 1", True),
            ("   ", False),
            (STATEMENT_LINE, False),
        ],
    )
    def test_is_continuation(self, line: str, expected: bool) -> None:
        assert PostgresLogLineParser.is_continuation(line) is expected
