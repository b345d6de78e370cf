"""Lexical extraction of JOIN clauses from raw SQL."""

import re
from dataclasses import dataclass

from orm_doctor.sql.normalize import RESERVED_WORDS, strip_identifier_quotes

_JOIN = re.compile(
    r"\b(?:(?P<type>INNER|LEFT|RIGHT)\s+)?(?:OUTER\s+)?JOIN\s+"
    r"(?P<table>[\w.`\"\[\]]+)"
    r"(?:\s+(?:AS\s+)?(?P<alias>\w+))?",
    re.IGNORECASE,
)
_ON = re.compile(r"\s*ON\b", re.IGNORECASE)
_CLAUSE_END = re.compile(
    r"\b(?:(?:INNER|LEFT|RIGHT|CROSS|FULL)\s+)?(?:OUTER\s+)?JOIN\b"
    r"|\bWHERE\b|\bGROUP\s+BY\b|\bORDER\s+BY\b|\bHAVING\b|\bLIMIT\b|\bUNION\b",
    re.IGNORECASE,
)
_SELECT_STAR = re.compile(r"\bSELECT\s+(?:DISTINCT\s+)?\*", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class JoinClause:
    """A JOIN found in a query, with character offsets of its ON predicate."""

    type: str
    table: str
    alias: str | None
    on: str | None = None
    on_span: tuple[int, int] | None = None


def extract_joins(sql: str) -> list[JoinClause]:
    """Scan ``sql`` for JOIN clauses in textual order.

    ``LEFT OUTER`` and ``RIGHT OUTER`` collapse to ``LEFT`` and ``RIGHT``, a
    bare ``JOIN`` is ``INNER``. When no alias is declared but the table name
    is used as a qualifier elsewhere, the table name stands in as the alias.
    """
    joins: list[JoinClause] = []
    position = 0
    while True:
        match = _JOIN.search(sql, position)
        if match is None:
            break

        join_type = (match.group("type") or "INNER").upper()
        table = strip_identifier_quotes(match.group("table"))
        alias = match.group("alias")
        end = match.end()
        if alias is not None and alias.upper() in RESERVED_WORDS:
            # Rewind so the keyword (ON, WHERE, another JOIN) is scanned normally.
            end = match.start("alias")
            alias = None

        if alias is None and re.search(rf"\b{re.escape(table)}\.\w+", sql, re.IGNORECASE):
            alias = table

        on = None
        on_span = None
        on_match = _ON.match(sql, end)
        if on_match is not None:
            predicate_start = on_match.end()
            boundary = _CLAUSE_END.search(sql, predicate_start)
            predicate_end = boundary.start() if boundary is not None else len(sql)
            on = sql[predicate_start:predicate_end].strip()
            on_span = (on_match.start(), predicate_end)
            end = predicate_end

        joins.append(JoinClause(type=join_type, table=table, alias=alias, on=on, on_span=on_span))
        position = max(end, match.start() + 1)

    return joins


def is_alias_used(sql: str, join: JoinClause) -> bool:
    """Check whether ``join.alias`` is referenced outside its own ON predicate.

    References from other joins' ON predicates count as usage, and so does a
    bare ``SELECT *``.
    """
    if join.alias is None:
        return True
    if _SELECT_STAR.search(sql):
        return True

    remainder = sql
    if join.on_span is not None:
        start, end = join.on_span
        remainder = sql[:start] + " " + sql[end:]

    return re.search(rf"\b{re.escape(join.alias)}\.", remainder, re.IGNORECASE) is not None
