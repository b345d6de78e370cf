import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from orm_doctor.domain import QueryRecord
from orm_doctor.exceptions import CaptureFormatError

logger = logging.getLogger(__name__)


class CaptureFileInput:
    """Reads queries captured by a profiler as a JSON array or JSON lines.

    Each entry carries ``sql`` plus optional ``executionMS``, ``rowCount``,
    ``params`` and ``backtrace`` keys. Entries that cannot be turned into a
    record are logged and skipped.
    """

    def __init__(self, file_path: str | Path) -> None:
        self._file_path = Path(file_path)
        self._entries: list[Any] | None = None
        self._index: int = 0

    @classmethod
    def from_entries(cls, entries: Sequence[Mapping[str, Any]]) -> "CaptureFileInput":
        """Create input from already decoded entries."""
        instance = cls.__new__(cls)
        instance._file_path = Path("/dev/null")
        instance._entries = list(entries)
        instance._index = 0
        return instance

    def __aiter__(self) -> "CaptureFileInput":
        return self

    async def __anext__(self) -> QueryRecord:
        if self._entries is None:
            self._entries = self._load_entries()

        while self._index < len(self._entries):
            entry = self._entries[self._index]
            self._index += 1

            if not isinstance(entry, Mapping):
                logger.warning("Skipping capture entry %d: not an object", self._index)
                continue
            try:
                return QueryRecord.from_dict(entry)
            except (CaptureFormatError, TypeError, ValueError) as exc:
                logger.warning("Skipping capture entry %d: %s", self._index, exc)

        raise StopAsyncIteration

    def _load_entries(self) -> list[Any]:
        if not self._file_path.exists():
            raise FileNotFoundError(f"Capture file not found: {self._file_path}")

        text = self._file_path.read_text(encoding="utf-8")
        stripped = text.lstrip()
        if stripped.startswith("["):
            try:
                decoded = json.loads(stripped)
            except json.JSONDecodeError as exc:
                raise CaptureFormatError(f"Invalid capture file {self._file_path}: {exc}") from exc
            if isinstance(decoded, list):
                return decoded
            raise CaptureFormatError(f"Expected a JSON array in {self._file_path}")

        entries: list[Any] = []
        for line_number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                entries.append(json.loads(line))
            except json.JSONDecodeError as exc:
                logger.warning("Skipping line %d of %s: %s", line_number, self._file_path, exc)
        return entries
