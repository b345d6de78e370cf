from typing import Protocol, runtime_checkable

from orm_doctor.domain import Issue


@runtime_checkable
class IssueOutput(Protocol):
    """Destination for detected issues.

    The pipeline calls ``send`` once per issue, in detection order, and does
    not catch what it raises.
    """

    @property
    def name(self) -> str:
        ...

    async def send(self, issue: Issue) -> None:
        ...
