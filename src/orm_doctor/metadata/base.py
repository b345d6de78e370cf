from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from orm_doctor.domain import EntityMetadata


@runtime_checkable
class MetadataProvider(Protocol):
    """Protocol for sources of mapped-entity association metadata."""

    def get_all_metadata(self) -> Iterable[EntityMetadata]:
        ...
