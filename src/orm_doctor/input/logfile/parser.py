import re
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True, slots=True)
class DurationLogEntry:
    statement: str
    duration_ms: float
    timestamp: datetime | None = None
    process_id: int | None = None


class PostgresLogLineParser:
    """Parser for PostgreSQL ``log_min_duration_statement`` lines.

    Handles lines such as::

        2024-01-15 10:30:00.123 UTC [4242] LOG:  duration: 12.345 ms  statement: SELECT 1
        2024-01-15 10:30:00 UTC [4242] LOG:  duration: 0.512 ms  execute <unnamed>: SELECT 1
    """

    DURATION_PATTERN = re.compile(
        r"\bLOG:\s+duration:\s*(?P<ms>\d+(?:\.\d+)?)\s*ms\s+"
        r"(?:statement|execute\s+[^:]*):\s*(?P<sql>.*)$"
    )
    PREFIX_PATTERN = re.compile(
        r"^(?P<ts>\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})(?:\.\d+)?(?:\s+(?P<tz>[A-Za-z]+))?"
    )
    PID_PATTERN = re.compile(r"\[(?P<pid>\d+)\]")

    def parse_line(self, line: str) -> DurationLogEntry | None:
        """Parse a log line. Returns None if it does not report a statement duration."""
        line = line.rstrip("\r\n")
        if not line.strip():
            return None

        match = self.DURATION_PATTERN.search(line)
        if not match:
            return None

        statement = match.group("sql").strip()
        if not statement:
            return None

        prefix = line[: match.start()]
        pid_match = self.PID_PATTERN.search(prefix)
        return DurationLogEntry(
            statement=statement,
            duration_ms=float(match.group("ms")),
            timestamp=self._parse_timestamp(prefix),
            process_id=int(pid_match.group("pid")) if pid_match else None,
        )

    @staticmethod
    def is_continuation(line: str) -> bool:
        """Multi-line statements are logged with the extra lines indented."""
        return line[:1] in (" ", "\t") and bool(line.strip())

    def _parse_timestamp(self, prefix: str) -> datetime | None:
        match = self.PREFIX_PATTERN.match(prefix)
        if not match:
            return None
        dt = datetime.strptime(match.group("ts"), "%Y-%m-%d %H:%M:%S")
        tz = match.group("tz")
        if tz is not None and tz.upper() == "UTC":
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
