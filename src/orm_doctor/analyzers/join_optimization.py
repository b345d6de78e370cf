import logging
import re
from collections.abc import Iterator, Sequence
from typing import ClassVar

from orm_doctor.analyzers.composition import iter_entities
from orm_doctor.domain import (
    AssociationMetadata,
    AssociationType,
    EntityMetadata,
    Issue,
    IssueCategory,
    IssueCollection,
    QueryRecord,
    QueryRecordCollection,
    Severity,
)
from orm_doctor.domain.models import short_name
from orm_doctor.exceptions import ConfigurationError
from orm_doctor.metadata import MetadataProvider
from orm_doctor.sql import (
    JoinClause,
    TableReference,
    extract_joins,
    extract_main_table,
    is_alias_used,
    normalize_query,
    truncate_query,
)
from orm_doctor.suggestions import SuggestionFactory

logger = logging.getLogger(__name__)


class JoinOptimizationAnalyzer:
    """Flags queries with too many JOINs and JOINs whose alias is never read.

    Given a metadata provider, it also flags LEFT JOINs that follow a
    required ManyToOne relation, where an INNER JOIN returns the same rows.
    """

    name: str = "JOIN Optimization Analyzer"
    description: str = (
        "Detects suboptimal join usage: too many JOINs in one query, unused JOINs "
        "and LEFT JOINs on NOT NULL relations"
    )

    MIN_QUERY_COUNT: ClassVar[int] = 3
    TOO_MANY_TYPE: ClassVar[str] = "join_too_many"
    UNUSED_TYPE: ClassVar[str] = "join_unused"
    LEFT_NOT_NULL_TYPE: ClassVar[str] = "join_left_not_null"

    def __init__(
        self,
        suggestion_factory: SuggestionFactory,
        max_joins_recommended: int = 5,
        max_joins_critical: int = 8,
        metadata_provider: MetadataProvider | None = None,
    ) -> None:
        if max_joins_recommended < 1:
            raise ConfigurationError(
                f"max_joins_recommended must be at least 1, got {max_joins_recommended}"
            )
        if max_joins_critical < max_joins_recommended:
            raise ConfigurationError(
                f"max_joins_critical ({max_joins_critical}) must not be lower than "
                f"max_joins_recommended ({max_joins_recommended})"
            )
        self._suggestions = suggestion_factory
        self._max_recommended = max_joins_recommended
        self._max_critical = max_joins_critical
        self._metadata = metadata_provider

    def analyze(self, queries: QueryRecordCollection) -> IssueCollection:
        def detect() -> Iterator[Issue]:
            if len(queries) < self.MIN_QUERY_COUNT:
                return

            seen: set[tuple[str, ...]] = set()
            tables = self._entities_by_table()
            for record in queries:
                if not record.sql.strip():
                    logger.debug("Skipping empty query")
                    continue
                if not record.is_select():
                    continue

                joins = extract_joins(record.sql)
                if not joins:
                    continue

                yield from self._check_too_many_joins(record, joins, seen)
                yield from self._check_unused_joins(record, joins, seen)
                if tables:
                    yield from self._check_left_joins_on_not_null(record, joins, tables, seen)

        return IssueCollection.from_generator(detect)

    def _check_too_many_joins(
        self,
        record: QueryRecord,
        joins: Sequence[JoinClause],
        seen: set[tuple[str, ...]],
    ) -> Iterator[Issue]:
        join_count = len(joins)
        if join_count <= self._max_recommended:
            return

        title = f"Too Many JOINs in Single Query ({join_count} tables)"
        key = (title, normalize_query(record.sql))
        if key in seen:
            return
        seen.add(key)

        severity = Severity.CRITICAL if join_count > self._max_critical else Severity.WARNING
        query = truncate_query(record.sql)
        suggestion = self._suggestions.from_template(
            "join_too_many",
            {"join_count": join_count, "max_recommended": self._max_recommended, "query": query},
            severity=severity,
        )
        yield Issue(
            type=self.TOO_MANY_TYPE,
            category=IssueCategory.PERFORMANCE,
            severity=severity,
            title=title,
            description=(
                f"Query contains {join_count} JOINs (recommended maximum: {self._max_recommended}, "
                f"critical above {self._max_critical}). Every extra JOIN multiplies the rows the "
                "database has to combine and the ORM has to hydrate."
            ),
            data={
                "query": query,
                "join_count": join_count,
                "max_recommended": self._max_recommended,
                "execution_time": record.execution_time_ms,
            },
            suggestion=suggestion,
            backtrace=record.backtrace,
            queries=(record,),
        )

    def _check_unused_joins(
        self,
        record: QueryRecord,
        joins: Sequence[JoinClause],
        seen: set[tuple[str, ...]],
    ) -> Iterator[Issue]:
        title = "Unused JOIN Detected"
        for join in joins:
            if join.alias is None or is_alias_used(record.sql, join):
                continue

            key = (title, join.table.lower(), join.alias.lower())
            if key in seen:
                continue
            seen.add(key)

            suggestion = self._suggestions.from_template(
                "join_unused",
                {"table": join.table, "alias": join.alias, "join_type": join.type},
            )
            yield Issue(
                type=self.UNUSED_TYPE,
                category=IssueCategory.PERFORMANCE,
                severity=Severity.WARNING,
                title=title,
                description=(
                    f"{join.type} JOIN on {join.table} (alias '{join.alias}') is never referenced "
                    "outside its ON clause."
                ),
                data={
                    "table": join.table,
                    "alias": join.alias,
                    "join_type": join.type,
                    "query": truncate_query(record.sql),
                },
                suggestion=suggestion,
                backtrace=record.backtrace,
                queries=(record,),
            )

    def _entities_by_table(self) -> dict[str, EntityMetadata]:
        if self._metadata is None:
            return {}
        return {
            entity.table_name.lower(): entity
            for entity in iter_entities(self._metadata)
            if entity.table_name
        }

    def _check_left_joins_on_not_null(
        self,
        record: QueryRecord,
        joins: Sequence[JoinClause],
        tables: dict[str, EntityMetadata],
        seen: set[tuple[str, ...]],
    ) -> Iterator[Issue]:
        main = extract_main_table(record.sql)
        if main is None:
            return
        source = tables.get(_bare_table(main.table))
        if source is None:
            return

        title = "Suboptimal LEFT JOIN on NOT NULL Relation"
        for join in joins:
            if join.type != "LEFT" or not _joins_from(join, main):
                continue
            target = tables.get(_bare_table(join.table))
            if target is None:
                continue

            association = _required_many_to_one(source, target)
            if association is None:
                continue

            key = (title, source.name, association.field)
            if key in seen:
                continue
            seen.add(key)

            alias = join.alias or join.table
            suggestion = self._suggestions.from_template(
                "join_left_not_null",
                {
                    "entity": source.short_name,
                    "field": association.field,
                    "table": join.table,
                    "alias": alias,
                },
            )
            yield Issue(
                type=self.LEFT_NOT_NULL_TYPE,
                category=IssueCategory.PERFORMANCE,
                severity=Severity.WARNING,
                title=title,
                description=(
                    f"Query uses LEFT JOIN on {join.table} through {source.short_name}."
                    f"{association.field}, whose foreign key is NOT NULL. An INNER JOIN "
                    "returns the same rows and lets the planner reorder the join."
                ),
                data={
                    "table": join.table,
                    "alias": alias,
                    "join_type": join.type,
                    "entity": source.name,
                    "field": association.field,
                    "query": truncate_query(record.sql),
                    "execution_time": record.execution_time_ms,
                },
                suggestion=suggestion,
                backtrace=record.backtrace,
                queries=(record,),
            )


def _bare_table(table: str) -> str:
    return table.rsplit(".", 1)[-1].lower()


def _joins_from(join: JoinClause, main: TableReference) -> bool:
    """Whether the ON predicate references the FROM table directly."""
    if join.on is None:
        return False
    qualifier = main.alias or main.table
    return re.search(rf"\b{re.escape(qualifier)}\.", join.on, re.IGNORECASE) is not None


def _required_many_to_one(
    source: EntityMetadata, target: EntityMetadata
) -> AssociationMetadata | None:
    """The ManyToOne from ``source`` to ``target`` if every such relation is NOT NULL.

    Two relations to the same target (billing and shipping address) can
    differ in nullability; without join columns the JOIN cannot be matched
    to one of them, so any nullable candidate disqualifies the pair.
    """
    candidates = [
        association
        for association in source.associations
        if association.association_type is AssociationType.MANY_TO_ONE
        and short_name(association.target_entity) == target.short_name
    ]
    if not candidates or any(association.nullable_foreign_key for association in candidates):
        return None
    return candidates[0]
