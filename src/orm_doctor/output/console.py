from orm_doctor.domain import Issue


class ConsoleIssueOutput:
    """Console output adapter for issues."""

    def __init__(self, prefix: str = "[ORM-DOCTOR]", show_suggestion: bool = False) -> None:
        self._prefix = prefix
        self._show_suggestion = show_suggestion

    @property
    def name(self) -> str:
        return "console"

    async def send(self, issue: Issue) -> None:
        query_count = len(issue.queries)
        print(f"{self._prefix} [{issue.severity.name}] {issue.title} - {query_count} query(s)")
        print(f"  {issue.category}: {issue.description}")

        if self._show_suggestion and issue.suggestion is not None:
            print(f"  suggestion: {issue.suggestion.metadata.title}")
            for line in issue.suggestion.code.splitlines():
                print(f"    {line}")
