import re
from collections.abc import Iterator
from typing import ClassVar

from orm_doctor.domain import Issue, IssueCategory, IssueCollection, QueryRecordCollection, Severity
from orm_doctor.sql import truncate_query
from orm_doctor.suggestions import SuggestionFactory


class DivisionByZeroAnalyzer:
    name: str = "Division By Zero Analyzer"
    description: str = (
        "Detects divisions whose divisor is not guarded by NULLIF, COALESCE or CASE WHEN"
    )

    ISSUE_TYPE: ClassVar[str] = "division_by_zero"

    _division: ClassVar[re.Pattern[str]] = re.compile(
        r"(?P<dividend>\w+(?:\.\w+)?)\s*/\s*(?P<divisor>\w+(?:\.\w+)?)"
    )
    _protected: ClassVar[re.Pattern[str]] = re.compile(
        r"\bNULLIF\s*\(|\bCOALESCE\s*\(|\bCASE\s+WHEN\b", re.IGNORECASE
    )
    _string_literal: ClassVar[re.Pattern[str]] = re.compile(r"'(?:[^']|'')*'")
    _number: ClassVar[re.Pattern[str]] = re.compile(r"^\d+(?:\.\d+)?$")

    def __init__(self, suggestion_factory: SuggestionFactory) -> None:
        self._suggestions = suggestion_factory

    def analyze(self, queries: QueryRecordCollection) -> IssueCollection:
        def detect() -> Iterator[Issue]:
            seen: set[tuple[str, str]] = set()
            for record in queries:
                sql = self._string_literal.sub("''", record.sql)
                if self._protected.search(sql):
                    continue

                for match in self._division.finditer(sql):
                    dividend = match.group("dividend")
                    divisor = match.group("divisor")
                    if self._number.match(divisor) and float(divisor) != 0:
                        continue

                    key = (dividend.lower(), divisor.lower())
                    if key in seen:
                        continue
                    seen.add(key)

                    context = {"dividend": dividend, "divisor": divisor}
                    yield Issue(
                        type=self.ISSUE_TYPE,
                        category=IssueCategory.SECURITY,
                        severity=Severity.CRITICAL,
                        title="Potential Division By Zero Error",
                        description=(
                            f"Expression {dividend} / {divisor} fails or returns NULL when "
                            f"{divisor} is zero."
                        ),
                        data={**context, "query": truncate_query(record.sql)},
                        suggestion=self._suggestions.from_template("division_by_zero", context),
                        backtrace=record.backtrace,
                        queries=(record,),
                    )

        return IssueCollection.from_generator(detect)
