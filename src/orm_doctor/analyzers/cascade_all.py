from collections.abc import Iterator
from typing import ClassVar

from orm_doctor.analyzers.composition import (
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


class CascadeAllAnalyzer:
    name: str = "Cascade All Analyzer"
    description: str = (
        'Detects dangerous cascade="all" on associations, which propagates every operation '
        "including remove to the related entities"
    )

    ISSUE_TYPE: ClassVar[str] = "cascade_all"

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
                if association.cascades_all:
                    yield self._build_issue(association)

        return IssueCollection.from_generator(detect)

    def _build_issue(self, association: AssociationMetadata) -> Issue:
        independent = is_independent_entity(association.target_entity)
        severity = Severity.CRITICAL if independent else Severity.WARNING
        recommended = self._recommended_cascade(association, independent)

        if independent:
            consequence = (
                f"Removing a {association.source_entity} will also delete the shared "
                f"{association.target_entity} and everything else that references it."
            )
        else:
            consequence = (
                f"Every persist, merge, detach, refresh and remove on {association.source_entity} "
                f"is propagated to {association.target_entity}."
            )

        suggestion = self._suggestions.from_template(
            "cascade_all",
            {
                "entity": association.source_entity,
                "field": association.field,
                "target_entity": association.target_entity,
                "recommended_cascade": recommended,
            },
            severity=severity,
        )
        return Issue(
            type=self.ISSUE_TYPE,
            category=IssueCategory.INTEGRITY,
            severity=severity,
            title='Dangerous cascade="all" Detected',
            description=(
                f'{association.source_entity}.{association.field} ({association.association_type.value}) '
                f'uses cascade="all" towards {association.target_entity}. This is dangerous: '
                f"{consequence}"
            ),
            data=association_data(association, target_is_independent=independent),
            suggestion=suggestion,
        )

    @staticmethod
    def _recommended_cascade(association: AssociationMetadata, independent: bool) -> str:
        if independent or association.association_type in (
            AssociationType.MANY_TO_ONE,
            AssociationType.MANY_TO_MANY,
        ):
            return "['persist']"
        if score_association(association).is_composition:
            return "['persist', 'remove']"
        return "['persist']"
