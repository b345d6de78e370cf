"""Association metadata reflected from SQLAlchemy declarative mappings."""

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapper, RelationshipDirection, RelationshipProperty, configure_mappers
from sqlalchemy.orm import registry as orm_registry

from orm_doctor.domain import AssociationMetadata, AssociationType, EntityMetadata
from orm_doctor.exceptions import MetadataError

logger = logging.getLogger(__name__)

# SQLAlchemy cascade flag -> ORM-neutral operation name
_CASCADE_FLAGS = (
    ("save_update", "persist"),
    ("delete", "remove"),
    ("merge", "merge"),
    ("expunge", "detach"),
    ("refresh_expire", "refresh"),
)


class SqlAlchemyMetadataProvider:
    """Reflects every mapper of a declarative base or ``registry``.

    A mapper that cannot be introspected is logged and skipped, so one broken
    model does not hide the others.
    """

    def __init__(self, source: Any) -> None:
        if isinstance(source, orm_registry):
            self._registry = source
        elif isinstance(getattr(source, "registry", None), orm_registry):
            self._registry = source.registry
        else:
            raise MetadataError(f"Not a SQLAlchemy registry or declarative base: {source!r}")

    def get_all_metadata(self) -> list[EntityMetadata]:
        try:
            configure_mappers()
        except SQLAlchemyError as exc:
            # Mappers that did configure can still be reflected individually.
            logger.warning("Mapper configuration failed: %s", exc)

        entities: list[EntityMetadata] = []
        for mapper in sorted(self._registry.mappers, key=lambda m: m.class_.__name__):
            try:
                entities.append(self._reflect_mapper(mapper))
            except (SQLAlchemyError, MetadataError, AttributeError) as exc:
                logger.warning("Skipping entity %s: %s", mapper.class_.__name__, exc)
        return entities

    def _reflect_mapper(self, mapper: Mapper[Any]) -> EntityMetadata:
        name = mapper.class_.__name__
        table = getattr(mapper, "local_table", None)
        associations = tuple(self._reflect_relationships(name, mapper.relationships))
        return EntityMetadata(
            name=name,
            associations=associations,
            table_name=getattr(table, "name", None),
        )

    def _reflect_relationships(
        self, entity: str, relationships: Iterable[RelationshipProperty[Any]]
    ) -> Iterator[AssociationMetadata]:
        for relationship in relationships:
            association_type = self._association_type(relationship)
            cascade = relationship.cascade
            yield AssociationMetadata(
                source_entity=entity,
                field=relationship.key,
                target_entity=relationship.mapper.class_.__name__,
                association_type=association_type,
                cascade=frozenset(
                    operation for flag, operation in _CASCADE_FLAGS if getattr(cascade, flag)
                ),
                nullable_foreign_key=self._foreign_key_nullable(relationship),
                is_inverse_side=relationship.direction is RelationshipDirection.ONETOMANY,
                orphan_removal=bool(cascade.delete_orphan),
                mapped_by=relationship.back_populates,
            )

    @staticmethod
    def _association_type(relationship: RelationshipProperty[Any]) -> AssociationType:
        direction = relationship.direction
        if direction is RelationshipDirection.MANYTOMANY:
            return AssociationType.MANY_TO_MANY
        if direction is RelationshipDirection.MANYTOONE:
            return AssociationType.MANY_TO_ONE
        if direction is RelationshipDirection.ONETOMANY:
            return AssociationType.ONE_TO_MANY if relationship.uselist else AssociationType.ONE_TO_ONE
        raise MetadataError(f"Unsupported relationship direction: {direction!r}")

    @staticmethod
    def _foreign_key_nullable(relationship: RelationshipProperty[Any]) -> bool:
        """Nullability of the foreign-key columns on the owning (child) side."""
        if relationship.direction is RelationshipDirection.MANYTOONE:
            columns = relationship.local_columns
        elif relationship.direction is RelationshipDirection.ONETOMANY:
            columns = relationship.remote_side
        else:
            return True

        foreign_keys = [column for column in columns if column.foreign_keys]
        if not foreign_keys:
            return True
        return all(column.nullable for column in foreign_keys)
