import re
from dataclasses import dataclass

# Words that can follow a table name but are never aliases.
RESERVED_WORDS = frozenset(
    {
        "ON",
        "USING",
        "JOIN",
        "INNER",
        "LEFT",
        "RIGHT",
        "OUTER",
        "CROSS",
        "FULL",
        "NATURAL",
        "WHERE",
        "GROUP",
        "ORDER",
        "HAVING",
        "LIMIT",
        "OFFSET",
        "UNION",
        "FOR",
        "SET",
        "VALUES",
        "WINDOW",
    }
)

_UUID_LITERAL = re.compile(
    r"'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}'",
    re.IGNORECASE,
)
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_NUMBER_LITERAL = re.compile(r"(?<![\w.])\d+(?:\.\d+)?\b")
_NAMED_PLACEHOLDER = re.compile(r"(?<!:):\w+|\$\d+|%s|%\(\w+\)s")
_IN_LIST = re.compile(r"\bIN\s*\([^()]*\)", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

_MAIN_TABLE = re.compile(
    r"\bFROM\s+(?P<table>[\w.`\"\[\]]+)(?:\s+(?:AS\s+)?(?P<alias>\w+))?",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class TableReference:
    table: str
    alias: str | None = None


def normalize_query(sql: str) -> str:
    """Replace literal values and placeholders with ``?`` and collapse whitespace.

    The result is a structural fingerprint: two executions of the same
    statement with different bound values normalize to the same text.
    """
    result = _UUID_LITERAL.sub("?", sql)
    result = _STRING_LITERAL.sub("?", result)
    result = _NAMED_PLACEHOLDER.sub("?", result)
    result = _NUMBER_LITERAL.sub("?", result)
    result = _IN_LIST.sub("IN (?)", result)
    result = _WHITESPACE.sub(" ", result).strip()
    return result.rstrip(";").rstrip()


def truncate_query(sql: str, limit: int = 200) -> str:
    if len(sql) <= limit:
        return sql
    return sql[:limit] + "..."


def strip_identifier_quotes(name: str) -> str:
    return name.strip('`"[]')


def extract_main_table(sql: str) -> TableReference | None:
    """Return the first table named in a FROM clause and its alias, if any."""
    match = _MAIN_TABLE.search(sql)
    if match is None:
        return None
    table = strip_identifier_quotes(match.group("table"))
    alias = match.group("alias")
    if alias is not None and alias.upper() in RESERVED_WORDS:
        alias = None
    return TableReference(table=table, alias=alias)
