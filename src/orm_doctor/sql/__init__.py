"""Targeted lexical SQL inspection. No AST is built.

Known limitations: JOINs inside nested subqueries are scanned as if they
belonged to the outer query, and aliases declared in CTEs are not resolved.
"""

from orm_doctor.sql.joins import JoinClause, extract_joins, is_alias_used
from orm_doctor.sql.normalize import (
    TableReference,
    extract_main_table,
    normalize_query,
    truncate_query,
)

__all__ = [
    "JoinClause",
    "TableReference",
    "extract_joins",
    "extract_main_table",
    "is_alias_used",
    "normalize_query",
    "truncate_query",
]
