"""Core domain models for query and metadata analysis."""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum, StrEnum
from types import MappingProxyType
from typing import Any, ClassVar, Mapping, Self

from orm_doctor.exceptions import CaptureFormatError

MAX_ISSUE_QUERIES = 20


class Severity(IntEnum):
    """Issue severity levels, ordered for comparison (higher value = higher severity)."""

    INFO = 1
    WARNING = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> "Severity":
        try:
            return cls[label.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown severity: {label!r}") from None


class IssueCategory(StrEnum):
    PERFORMANCE = "performance"
    INTEGRITY = "integrity"
    SECURITY = "security"
    CONFIGURATION = "configuration"


@dataclass(frozen=True, slots=True)
class StackFrame:
    """A single call-site frame captured alongside a query."""

    file: str | None = None
    line: int | None = None
    function: str | None = None
    class_name: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        line = data.get("line")
        return cls(
            file=data.get("file"),
            line=int(line) if line is not None else None,
            function=data.get("function"),
            class_name=data.get("class") or data.get("class_name"),
        )


@dataclass(frozen=True, slots=True)
class QueryRecord:
    """A captured query execution."""

    _TYPE_PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"^\s*(SELECT|INSERT|UPDATE|DELETE)\b", re.IGNORECASE)

    sql: str
    execution_time_ms: float = 0.0
    row_count: int | None = None
    backtrace: tuple[StackFrame, ...] | None = None
    params: tuple[Any, ...] = ()
    # when and on which server process the statement ran, if the source records it
    executed_at: datetime | None = None
    process_id: int | None = None

    @property
    def query_type(self) -> str:
        match = self._TYPE_PATTERN.match(self.sql)
        if match is None:
            return "OTHER"
        return match.group(1).upper()

    def is_select(self) -> bool:
        return self.query_type == "SELECT"

    def is_slow(self, threshold_ms: float) -> bool:
        return self.execution_time_ms > threshold_ms

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build a record from a captured query entry.

        Accepts both the profiler keys (``executionMS``, ``rowCount``) and the
        snake_case keys used by this package. Profilers that report seconds
        produce values below 1 in ``executionMS``; those are scaled to ms.
        """
        sql = data.get("sql")
        if not isinstance(sql, str) or not sql.strip():
            raise CaptureFormatError("Captured query has no SQL text")

        if "executionMS" in data:
            execution_time = float(data["executionMS"] or 0.0)
            if 0 < execution_time < 1:
                execution_time *= 1000
        else:
            execution_time = float(data.get("execution_time_ms") or 0.0)
        if execution_time < 0:
            raise CaptureFormatError(f"Negative execution time: {execution_time}")

        raw_rows = data.get("rowCount", data.get("row_count"))
        row_count = int(raw_rows) if raw_rows is not None else None
        if row_count is not None and row_count < 0:
            raise CaptureFormatError(f"Negative row count: {row_count}")

        raw_backtrace = data.get("backtrace")
        backtrace = None
        if raw_backtrace:
            backtrace = tuple(StackFrame.from_dict(frame) for frame in raw_backtrace)

        params = data.get("params") or ()
        if isinstance(params, Mapping):
            params = tuple(params.values())

        return cls(
            sql=sql,
            execution_time_ms=execution_time,
            row_count=row_count,
            backtrace=backtrace,
            params=tuple(params),
        )


@dataclass(frozen=True, slots=True)
class SuggestionMetadata:
    severity: Severity
    category: IssueCategory
    title: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Suggestion:
    """A remediation snippet with its metadata. Built by SuggestionFactory."""

    code: str
    description: str
    metadata: SuggestionMetadata


@dataclass(frozen=True, slots=True)
class Issue:
    """A problem detected by an analyzer."""

    type: str
    category: IssueCategory
    severity: Severity
    title: str
    description: str
    data: Mapping[str, Any] = field(default_factory=dict, hash=False)
    suggestion: Suggestion | None = None
    backtrace: tuple[StackFrame, ...] | None = None
    queries: tuple[QueryRecord, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))
        if len(self.queries) > MAX_ISSUE_QUERIES:
            object.__setattr__(self, "queries", tuple(self.queries[:MAX_ISSUE_QUERIES]))

    @property
    def signature(self) -> tuple[str, str, str]:
        """Identity used for deduplication: type, title and normalized data."""
        data_signature = json.dumps(dict(self.data), sort_keys=True, default=str)
        return (self.type, self.title, data_signature)

    def to_dict(self) -> dict[str, Any]:
        suggestion = None
        if self.suggestion is not None:
            suggestion = {
                "code": self.suggestion.code,
                "description": self.suggestion.description,
                "severity": self.suggestion.metadata.severity.label,
                "category": str(self.suggestion.metadata.category),
                "title": self.suggestion.metadata.title,
                "tags": list(self.suggestion.metadata.tags),
            }
        return {
            "type": self.type,
            "category": str(self.category),
            "severity": self.severity.label,
            "title": self.title,
            "description": self.description,
            "data": json.loads(json.dumps(dict(self.data), default=str)),
            "suggestion": suggestion,
            "queries": [
                {"sql": query.sql, "execution_time_ms": query.execution_time_ms}
                for query in self.queries
            ],
        }


class AssociationType(Enum):
    MANY_TO_ONE = "ManyToOne"
    ONE_TO_MANY = "OneToMany"
    MANY_TO_MANY = "ManyToMany"
    ONE_TO_ONE = "OneToOne"

    @property
    def is_collection(self) -> bool:
        return self in (AssociationType.ONE_TO_MANY, AssociationType.MANY_TO_MANY)


CASCADE_OPERATIONS = frozenset({"persist", "remove", "merge", "detach", "refresh"})


@dataclass(frozen=True, slots=True)
class AssociationMetadata:
    """Read-only snapshot of a declared relationship between two entities."""

    source_entity: str
    field: str
    target_entity: str
    association_type: AssociationType
    cascade: frozenset[str] = frozenset()
    nullable_foreign_key: bool = True
    is_inverse_side: bool = False
    orphan_removal: bool = False
    mapped_by: str | None = None

    def __post_init__(self) -> None:
        normalized = frozenset(op.strip().lower() for op in self.cascade if op.strip())
        object.__setattr__(self, "cascade", normalized)

    @property
    def cascades_all(self) -> bool:
        if "all" in self.cascade:
            return True
        # merge is deprecated in some ORMs, so the other four operations suffice
        return self.cascade <= CASCADE_OPERATIONS and CASCADE_OPERATIONS - {"merge"} <= self.cascade

    @property
    def has_cascade_remove(self) -> bool:
        return "remove" in self.cascade or "all" in self.cascade


def short_name(class_name: str) -> str:
    """Strip module or namespace qualifiers from an entity class name."""
    return re.split(r"[.\\]", class_name)[-1]


@dataclass(frozen=True, slots=True)
class EntityMetadata:
    name: str
    associations: tuple[AssociationMetadata, ...] = ()
    table_name: str | None = None

    @property
    def short_name(self) -> str:
        return short_name(self.name)
