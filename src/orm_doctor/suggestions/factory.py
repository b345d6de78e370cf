from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from orm_doctor.domain import IssueCategory, Severity, Suggestion, SuggestionMetadata
from orm_doctor.suggestions.templates import DEFAULT_TEMPLATES, SuggestionTemplate


class SuggestionFactory:
    """Builds suggestions so every one carries severity, category and tags."""

    def __init__(self, templates: Mapping[str, SuggestionTemplate] = DEFAULT_TEMPLATES) -> None:
        self._templates: Mapping[str, SuggestionTemplate] = MappingProxyType(dict(templates))

    @property
    def templates(self) -> Mapping[str, SuggestionTemplate]:
        return self._templates

    def has_template(self, name: str) -> bool:
        return name in self._templates

    def create(
        self,
        code: str,
        description: str,
        severity: Severity,
        category: IssueCategory,
        tags: Iterable[str] = (),
        title: str | None = None,
    ) -> Suggestion:
        if title is None:
            title = description.split(". ")[0].rstrip(".")
        metadata = SuggestionMetadata(
            severity=severity,
            category=category,
            title=title,
            tags=tuple(tags),
        )
        return Suggestion(code=code, description=description, metadata=metadata)

    def from_template(
        self,
        name: str,
        context: Mapping[str, Any] | None = None,
        severity: Severity | None = None,
        title: str | None = None,
    ) -> Suggestion:
        """Render the template registered under ``name``.

        Raises KeyError for an unknown template or a missing context value.
        """
        template = self._templates[name]
        values = dict(context or {})
        return self.create(
            code=template.code.format(**values),
            description=template.description.format(**values),
            severity=severity if severity is not None else template.severity,
            category=template.category,
            tags=template.tags,
            title=title if title is not None else template.title.format(**values),
        )
