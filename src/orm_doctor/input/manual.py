from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from orm_doctor.domain import QueryRecord


class ManualInput:
    """Feeds records built in code, e.g. from a test or a profiler hook.

    Mappings are converted with ``QueryRecord.from_dict``, so captured
    entries can be passed as-is. The input is consumed once.
    """

    def __init__(self, records: Iterable[QueryRecord | Mapping[str, Any]]) -> None:
        self._pending: Iterator[QueryRecord] = iter(
            tuple(
                record if isinstance(record, QueryRecord) else QueryRecord.from_dict(record)
                for record in records
            )
        )

    @classmethod
    def from_sql(cls, *statements: str) -> "ManualInput":
        return cls(QueryRecord(sql=statement) for statement in statements)

    def __aiter__(self) -> "ManualInput":
        return self

    async def __anext__(self) -> QueryRecord:
        try:
            return next(self._pending)
        except StopIteration:
            raise StopAsyncIteration from None
