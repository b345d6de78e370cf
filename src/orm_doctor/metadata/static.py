from collections.abc import Iterable

from orm_doctor.domain import AssociationMetadata, EntityMetadata


class StaticMetadataProvider:
    """Serves a fixed snapshot of entity metadata."""

    def __init__(self, entities: Iterable[EntityMetadata]) -> None:
        self._entities: tuple[EntityMetadata, ...] = tuple(entities)

    @classmethod
    def from_associations(cls, associations: Iterable[AssociationMetadata]) -> "StaticMetadataProvider":
        """Group loose associations by their source entity, keeping first-seen order."""
        grouped: dict[str, list[AssociationMetadata]] = {}
        for association in associations:
            grouped.setdefault(association.source_entity, []).append(association)
        return cls(
            EntityMetadata(name=name, associations=tuple(items)) for name, items in grouped.items()
        )

    def get_all_metadata(self) -> tuple[EntityMetadata, ...]:
        return self._entities
