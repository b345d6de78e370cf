from collections.abc import Iterator
from typing import ClassVar

from orm_doctor.analyzers.composition import (
    CompositionSignals,
    association_data,
    is_independent_entity,
    iter_associations,
    score_association,
)
from orm_doctor.domain import (
    AssociationMetadata,
    AssociationType,
    Issue,
    IssueCategory,
    IssueCollection,
    QueryRecordCollection,
    Severity,
)
from orm_doctor.metadata import MetadataProvider
from orm_doctor.suggestions import SuggestionFactory


class MissingOrphanRemovalAnalyzer:
    """Flags composition associations that do not remove orphaned children."""

    name: str = "Missing Orphan Removal Analyzer"
    description: str = (
        "Detects composition relationships (parent owns the child lifecycle) without "
        "orphan removal, which leaves orphan rows behind when children leave the collection"
    )

    ISSUE_TYPE: ClassVar[str] = "missing_orphan_removal"
    _owning_types: ClassVar[frozenset[AssociationType]] = frozenset(
        {AssociationType.ONE_TO_MANY, AssociationType.ONE_TO_ONE}
    )

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
                if association.association_type not in self._owning_types:
                    continue
                if association.orphan_removal:
                    continue
                if is_independent_entity(association.target_entity):
                    continue

                signals = score_association(association)
                if signals.is_composition:
                    yield self._build_issue(association, signals)

        return IssueCollection.from_generator(detect)

    def _build_issue(self, association: AssociationMetadata, signals: CompositionSignals) -> Issue:
        # A NOT NULL foreign key means orphans cannot be detached, only left invalid.
        severity = Severity.CRITICAL if signals.not_null_fk else Severity.WARNING
        context = {
            "entity": association.source_entity,
            "field": association.field,
            "target_entity": association.target_entity,
        }
        return Issue(
            type=self.ISSUE_TYPE,
            category=IssueCategory.INTEGRITY,
            severity=severity,
            title=f"Missing orphanRemoval on {association.source_entity}.{association.field}",
            description=(
                f"{association.target_entity} behaves like a composition child of "
                f"{association.source_entity} ({signals.score}/3 signals: "
                f"{', '.join(signals.names())}) but orphan removal is disabled. Children removed "
                "from the collection stay in the database."
            ),
            data=association_data(association, signals=signals.names()),
            suggestion=self._suggestions.from_template("orphan_removal", context, severity=severity),
        )
