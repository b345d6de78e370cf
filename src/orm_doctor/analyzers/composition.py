"""Signals shared by the cascade and orphan-removal analyzers.

An association is treated as a composition (the parent owns the child's
lifecycle) when at least two of three independent signals hold:

* S1 ``cascade_remove``: the cascade set includes remove.
* S2 ``child_naming``: the target's short name reads like a child record
  (``OrderItem``, ``InvoiceLine``, ``JournalEntry``...).
* S3 ``not_null_fk``: the child's foreign key column is NOT NULL.
"""

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from orm_doctor.domain import AssociationMetadata, EntityMetadata
from orm_doctor.domain.models import short_name
from orm_doctor.exceptions import MetadataError
from orm_doctor.metadata import MetadataProvider

logger = logging.getLogger(__name__)

COMPOSITION_THRESHOLD = 2

CHILD_NAME_PATTERN = re.compile(
    r"(?:Item|Line|Entry|Detail|Part|Element|Attachment|Option|Step|Row)s?(?![a-z])"
)

INDEPENDENT_ENTITY_PATTERN = re.compile(
    r"(?:User|Customer|Account|Member|Client|Company|Organization|Team|Department"
    r"|Product|Category|Brand|Tag|Author|Editor|Publisher)"
)


@dataclass(frozen=True, slots=True)
class CompositionSignals:
    cascade_remove: bool
    child_naming: bool
    not_null_fk: bool

    @property
    def score(self) -> int:
        return sum((self.cascade_remove, self.child_naming, self.not_null_fk))

    @property
    def is_composition(self) -> bool:
        return self.score >= COMPOSITION_THRESHOLD

    def names(self) -> list[str]:
        return [
            name
            for name, present in (
                ("cascade_remove", self.cascade_remove),
                ("child_naming", self.child_naming),
                ("not_null_fk", self.not_null_fk),
            )
            if present
        ]


def has_child_naming(entity: str) -> bool:
    return CHILD_NAME_PATTERN.search(short_name(entity)) is not None


def is_independent_entity(entity: str) -> bool:
    """Whether the entity has a lifecycle of its own.

    A child-named entity (``ProductOption``) stays dependent even when its
    name contains an independent one.
    """
    name = short_name(entity)
    if CHILD_NAME_PATTERN.search(name) is not None:
        return False
    return INDEPENDENT_ENTITY_PATTERN.search(name) is not None


def score_association(association: AssociationMetadata) -> CompositionSignals:
    return CompositionSignals(
        cascade_remove=association.has_cascade_remove,
        child_naming=has_child_naming(association.target_entity),
        not_null_fk=not association.nullable_foreign_key,
    )


def iter_entities(provider: MetadataProvider) -> Iterator[EntityMetadata]:
    """Yield entities as the provider produces them.

    A ``MetadataError`` ends the scan; entities already yielded stand.
    """
    try:
        yield from provider.get_all_metadata()
    except MetadataError as exc:
        logger.warning("Could not load entity metadata: %s", exc)


def iter_associations(provider: MetadataProvider) -> Iterator[AssociationMetadata]:
    for entity in iter_entities(provider):
        yield from entity.associations


def association_data(association: AssociationMetadata, **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "entity": association.source_entity,
        "field": association.field,
        "target_entity": association.target_entity,
        "association_type": association.association_type.value,
        "cascade": sorted(association.cascade),
        "has_cascade_remove": association.has_cascade_remove,
        "nullable_fk": association.nullable_foreign_key,
    }
    data.update(extra)
    return data
