"""Built-in remediation templates, keyed by suggestion code.

``code`` and ``description`` are ``str.format`` templates rendered with the
context an analyzer passes to ``SuggestionFactory.from_template``.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from orm_doctor.domain import IssueCategory, Severity


@dataclass(frozen=True, slots=True)
class SuggestionTemplate:
    title: str
    code: str
    description: str
    severity: Severity
    category: IssueCategory
    tags: tuple[str, ...] = ()


_TEMPLATES: dict[str, SuggestionTemplate] = {
    "join_too_many": SuggestionTemplate(
        title="Reduce the number of JOINs",
        code=(
            "-- {join_count} JOINs in one statement:\n"
            "-- {query}\n"
            "-- Split the query: load the root rows first, then fetch the\n"
            "-- related rows with WHERE id IN (...) per association, and\n"
            "-- select only the columns you need instead of whole rows."
        ),
        description=(
            "The query joins {join_count} tables (recommended maximum {max_recommended}). "
            "Wide joins multiply result rows and make hydration expensive. "
            "Split the query or denormalize the data that is read together."
        ),
        severity=Severity.WARNING,
        category=IssueCategory.PERFORMANCE,
        tags=("join", "query-design"),
    ),
    "join_unused": SuggestionTemplate(
        title="Remove unused JOIN",
        code=(
            "-- Before\n"
            "... {join_type} JOIN {table} {alias} ON ...\n"
            "-- After: drop the JOIN, nothing reads from {alias}"
        ),
        description=(
            "The table {table} is joined as {alias} but none of its columns are selected, "
            "filtered or sorted on. Remove the JOIN so the database does not read it."
        ),
        severity=Severity.WARNING,
        category=IssueCategory.PERFORMANCE,
        tags=("join", "unused"),
    ),
    "join_left_not_null": SuggestionTemplate(
        title="Use INNER JOIN for {entity}.{field}",
        code=(
            "-- Before\n"
            "... LEFT JOIN {table} {alias} ON ...\n"
            "-- After: the foreign key is NOT NULL, a match always exists\n"
            "... INNER JOIN {table} {alias} ON ..."
        ),
        description=(
            "{entity}.{field} is a required relation, so the LEFT JOIN on {table} can never "
            "produce NULL rows. An INNER JOIN gives the planner more join orders to choose from."
        ),
        severity=Severity.WARNING,
        category=IssueCategory.PERFORMANCE,
        tags=("join", "not-null"),
    ),
    "eager_loading": SuggestionTemplate(
        title="Load {entity}.{relation} eagerly",
        code=(
            "# One query instead of {query_count}:\n"
            "stmt = select(Parent).options(joinedload(Parent.{relation}))\n"
            "# DQL equivalent: SELECT p, r FROM Parent p JOIN FETCH p.{relation} r"
        ),
        description=(
            "{entity} rows were fetched one by one {query_count} times. Use eager loading "
            "(a JOIN FETCH or a batched IN query) so the related rows arrive with the parent."
        ),
        severity=Severity.WARNING,
        category=IssueCategory.PERFORMANCE,
        tags=("n+1", "lazy-loading", "eager-loading"),
    ),
    "cascade_all": SuggestionTemplate(
        title="Replace cascade=\"all\" with an explicit cascade set",
        code=(
            "# {entity}.{field} -> {target_entity}\n"
            "{field} = relationship(\"{target_entity}\", cascade={recommended_cascade})"
        ),
        description=(
            "cascade=\"all\" on {entity}.{field} also cascades remove to {target_entity}. "
            "Declare only the operations you need: {recommended_cascade}."
        ),
        severity=Severity.WARNING,
        category=IssueCategory.INTEGRITY,
        tags=("cascade", "data-loss"),
    ),
    "cascade_remove_independent": SuggestionTemplate(
        title="Stop cascading remove to {target_entity}",
        code=(
            "# {entity}.{field} -> {target_entity}\n"
            "{field} = relationship(\"{target_entity}\", cascade=['persist'])\n"
            "# Delete {target_entity} rows explicitly where that is really intended."
        ),
        description=(
            "{target_entity} exists on its own and is shared with other rows. Removing a "
            "{entity} must not delete it."
        ),
        severity=Severity.CRITICAL,
        category=IssueCategory.INTEGRITY,
        tags=("cascade", "data-loss"),
    ),
    "orphan_removal": SuggestionTemplate(
        title="Enable orphanRemoval on {entity}.{field}",
        code=(
            "# {entity}.{field} owns its {target_entity} rows\n"
            "{field} = relationship(\n"
            "    \"{target_entity}\",\n"
            "    cascade=['persist', 'remove'],\n"
            "    orphan_removal=True,\n"
            ")"
        ),
        description=(
            "{target_entity} looks like a composition child of {entity}. Without orphan removal, "
            "items removed from the collection stay in the database."
        ),
        severity=Severity.WARNING,
        category=IssueCategory.INTEGRITY,
        tags=("orphan-removal", "composition"),
    ),
    "orphan_removal_cascade": SuggestionTemplate(
        title="Add cascade=\"remove\" next to orphanRemoval",
        code=(
            "{field} = relationship(\n"
            "    \"{target_entity}\",\n"
            "    cascade=['persist', 'remove'],\n"
            "    orphan_removal=True,\n"
            ")"
        ),
        description=(
            "{entity}.{field} removes orphans but does not cascade remove, so deleting the "
            "{entity} leaves its {target_entity} rows behind."
        ),
        severity=Severity.WARNING,
        category=IssueCategory.INTEGRITY,
        tags=("orphan-removal", "cascade"),
    ),
    "slow_query": SuggestionTemplate(
        title="Optimize slow query",
        code="EXPLAIN ANALYZE {query};",
        description=(
            "The query took {execution_time:.2f}ms (threshold {threshold:.0f}ms). "
            "Inspect the plan for sequential scans and missing indexes. {hints}"
        ),
        severity=Severity.WARNING,
        category=IssueCategory.PERFORMANCE,
        tags=("slow-query", "index"),
    ),
    "find_all_pagination": SuggestionTemplate(
        title="Paginate unbounded SELECT",
        code=(
            "{query}\n"
            "LIMIT 50 OFFSET 0;"
        ),
        description=(
            "The query loads every row of {table} ({row_count} rows) without WHERE or LIMIT. "
            "Add a filter or paginate the results."
        ),
        severity=Severity.WARNING,
        category=IssueCategory.PERFORMANCE,
        tags=("pagination", "memory"),
    ),
    "division_by_zero": SuggestionTemplate(
        title="Guard division with NULLIF",
        code=(
            "-- Before\n"
            "{dividend} / {divisor}\n"
            "-- After\n"
            "{dividend} / NULLIF({divisor}, 0)"
        ),
        description=(
            "{divisor} can be zero, which makes the statement fail on strict databases. "
            "Wrap the divisor in NULLIF or guard it with CASE WHEN."
        ),
        severity=Severity.CRITICAL,
        category=IssueCategory.SECURITY,
        tags=("division", "runtime-error"),
    ),
}

DEFAULT_TEMPLATES: Mapping[str, SuggestionTemplate] = MappingProxyType(_TEMPLATES)
