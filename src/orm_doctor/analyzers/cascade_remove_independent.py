from collections.abc import Iterator
from typing import ClassVar

from orm_doctor.analyzers.composition import (
    association_data,
    is_independent_entity,
    iter_associations,
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


class CascadeRemoveIndependentAnalyzer:
    """Flags cascade remove pointing at an entity the source does not own.

    ``cascade="all"`` is left to ``CascadeAllAnalyzer`` so one mapping is
    not reported twice.
    """

    name: str = "Cascade Remove On Independent Entity Analyzer"
    description: str = (
        'Detects cascade="remove" on ManyToOne associations and towards independent entities, '
        "where deleting one row deletes data shared with other rows"
    )

    ISSUE_TYPE: ClassVar[str] = "cascade_remove_independent"

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
                if "remove" not in association.cascade or association.cascades_all:
                    continue

                independent = is_independent_entity(association.target_entity)
                many_to_one = association.association_type is AssociationType.MANY_TO_ONE
                if many_to_one or independent:
                    yield self._build_issue(association, independent)

        return IssueCollection.from_generator(detect)

    def _build_issue(self, association: AssociationMetadata, independent: bool) -> Issue:
        # The parent side of a ManyToOne is shared by every sibling row.
        if association.association_type is AssociationType.MANY_TO_ONE or (
            independent and association.association_type is AssociationType.MANY_TO_MANY
        ):
            severity = Severity.CRITICAL
        else:
            severity = Severity.WARNING

        context = {
            "entity": association.source_entity,
            "field": association.field,
            "target_entity": association.target_entity,
        }
        return Issue(
            type=self.ISSUE_TYPE,
            category=IssueCategory.INTEGRITY,
            severity=severity,
            title=f'cascade="remove" on Independent Entity {association.target_entity}',
            description=(
                f"{association.source_entity}.{association.field} "
                f'({association.association_type.value}) declares cascade="remove". Deleting a '
                f"{association.source_entity} will DELETE the {association.target_entity} it points "
                "to, together with everything else that still references it."
            ),
            data=association_data(association, target_is_independent=independent),
            suggestion=self._suggestions.from_template(
                "cascade_remove_independent", context, severity=severity
            ),
        )
