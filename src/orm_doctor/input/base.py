from typing import Protocol, Self, runtime_checkable

from orm_doctor.domain import QueryRecord


@runtime_checkable
class QueryInput(Protocol):
    """Protocol for async sources of captured queries, in execution order."""

    def __aiter__(self) -> Self:
        ...

    async def __anext__(self) -> QueryRecord:
        ...
