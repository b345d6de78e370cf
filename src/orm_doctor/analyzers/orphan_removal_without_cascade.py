from collections.abc import Iterator
from typing import ClassVar

from orm_doctor.analyzers.composition import association_data, iter_associations
from orm_doctor.domain import (
    AssociationType,
    Issue,
    IssueCategory,
    IssueCollection,
    QueryRecordCollection,
    Severity,
)
from orm_doctor.metadata import MetadataProvider
from orm_doctor.suggestions import SuggestionFactory


class OrphanRemovalWithoutCascadeAnalyzer:
    """Flags orphan removal declared without cascading remove.

    Current ORM versions usually fix this configuration up on their own, so
    the analyzer rarely fires; it guards against older mappings.
    """

    name: str = "Orphan Removal Without Cascade Remove Analyzer"
    description: str = (
        'Detects OneToMany associations with orphan removal but no cascade="remove", an '
        "incomplete configuration that leaves children behind when the parent is deleted"
    )

    ISSUE_TYPE: ClassVar[str] = "orphan_removal_without_cascade"

    def __init__(
        self,
        metadata_provider: MetadataProvider,
        suggestion_factory: SuggestionFactory,
    ) -> None:
        self._metadata = metadata_provider
        self._suggestions = suggestion_factory

    def analyze(self, queries: QueryRecordCollection) -> IssueCollection:
        def detect() -> Iterator[Issue]:
            for association in iter_associations(self._metadata):
                if association.association_type is not AssociationType.ONE_TO_MANY:
                    continue
                if not association.orphan_removal or association.has_cascade_remove:
                    continue

                context = {
                    "entity": association.source_entity,
                    "field": association.field,
                    "target_entity": association.target_entity,
                }
                yield Issue(
                    type=self.ISSUE_TYPE,
                    category=IssueCategory.INTEGRITY,
                    severity=Severity.WARNING,
                    title='orphanRemoval Without cascade="remove" (Incomplete)',
                    description=(
                        f"{association.source_entity}.{association.field} deletes "
                        f"{association.target_entity} children removed from the collection, but "
                        f"deleting the {association.source_entity} itself does not cascade."
                    ),
                    data=association_data(association, orphan_removal=True),
                    suggestion=self._suggestions.from_template("orphan_removal_cascade", context),
                )

        return IssueCollection.from_generator(detect)
