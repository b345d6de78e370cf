from collections.abc import Sequence
from pathlib import Path

from orm_doctor.domain import QueryRecord
from orm_doctor.input.logfile.parser import PostgresLogLineParser


class LogFileInput:
    """Reads timed statements from a PostgreSQL ``log_min_duration_statement`` log.

    Indented lines following a duration entry are continuation lines of the
    same statement and are folded into it.
    """

    def __init__(
        self,
        file_path: str | Path,
        parser: PostgresLogLineParser | None = None,
    ) -> None:
        self._file_path = Path(file_path)
        self._parser = parser or PostgresLogLineParser()
        self._lines: Sequence[str] | None = None
        self._index: int = 0

    @classmethod
    def from_lines(
        cls,
        lines: Sequence[str],
        parser: PostgresLogLineParser | None = None,
    ) -> "LogFileInput":
        """Create input from log lines already in memory."""
        instance = cls.__new__(cls)
        instance._file_path = Path("/dev/null")
        instance._parser = parser or PostgresLogLineParser()
        instance._lines = lines
        instance._index = 0
        return instance

    def __aiter__(self) -> "LogFileInput":
        return self

    async def __anext__(self) -> QueryRecord:
        if self._lines is None:
            self._lines = self._read_lines()
        lines = self._lines

        while self._index < len(lines):
            entry = self._parser.parse_line(lines[self._index])
            self._index += 1
            if entry is None:
                continue

            statement = [entry.statement]
            while self._index < len(lines) and self._parser.is_continuation(lines[self._index]):
                statement.append(lines[self._index].strip())
                self._index += 1

            return QueryRecord(
                sql="\n".join(statement),
                execution_time_ms=entry.duration_ms,
                executed_at=entry.timestamp,
                process_id=entry.process_id,
            )

        raise StopAsyncIteration

    def _read_lines(self) -> list[str]:
        if not self._file_path.exists():
            raise FileNotFoundError(f"Log file not found: {self._file_path}")
        return self._file_path.read_text(encoding="utf-8").splitlines()
