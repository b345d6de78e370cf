"""Domain models for ORM query and metadata analysis."""

from orm_doctor.domain.collections import IssueCollection, QueryRecordCollection
from orm_doctor.domain.models import (
    MAX_ISSUE_QUERIES,
    AssociationMetadata,
    AssociationType,
    EntityMetadata,
    Issue,
    IssueCategory,
    QueryRecord,
    Severity,
    StackFrame,
    Suggestion,
    SuggestionMetadata,
)

__all__ = [
    "MAX_ISSUE_QUERIES",
    "AssociationMetadata",
    "AssociationType",
    "EntityMetadata",
    "Issue",
    "IssueCategory",
    "IssueCollection",
    "QueryRecord",
    "QueryRecordCollection",
    "Severity",
    "StackFrame",
    "Suggestion",
    "SuggestionMetadata",
]
