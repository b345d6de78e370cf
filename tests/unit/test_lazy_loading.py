import pytest

from orm_doctor.analyzers import LazyLoadingAnalyzer, QueryAnalyzer
from orm_doctor.domain import QueryRecord, QueryRecordCollection, Severity, StackFrame
from orm_doctor.exceptions import ConfigurationError
from orm_doctor.suggestions import SuggestionFactory


def _fetch(table: str, row_id: int, alias: str = "t0", **kwargs: object) -> QueryRecord:
    return QueryRecord(
        sql=f"SELECT {alias}.id, {alias}.title FROM {table} {alias} WHERE {alias}.id = {row_id}",
        execution_time_ms=1.5,
        **kwargs,  # type: ignore[arg-type]
    )


def _unrelated() -> QueryRecord:
    return QueryRecord(sql="SELECT * FROM settings", execution_time_ms=0.5)


def _interleaved(matches: int, gap: int) -> QueryRecordCollection:
    records: list[QueryRecord] = []
    for i in range(matches):
        records.append(_fetch("posts", i))
        if i < matches - 1:
            records.extend(_unrelated() for _ in range(gap))
    return QueryRecordCollection(records)


@pytest.fixture
def analyzer() -> LazyLoadingAnalyzer:
    return LazyLoadingAnalyzer(SuggestionFactory(), threshold=10)


class TestLazyLoadingAnalyzer:
    def test_implements_protocol(self, analyzer: LazyLoadingAnalyzer) -> None:
        assert isinstance(analyzer, QueryAnalyzer)

    def test_description_mentions_threshold_and_eager_loading(
        self, analyzer: LazyLoadingAnalyzer
    ) -> None:
        assert "10" in analyzer.description
        assert "JOIN FETCH" in analyzer.description
        assert "lazy loading" in analyzer.description.lower()

    def test_fifteen_sequential_fetches_yield_one_issue(self, analyzer: LazyLoadingAnalyzer) -> None:
        queries = QueryRecordCollection(_fetch("posts", i) for i in range(15))

        issues = analyzer.analyze(queries).to_list()

        assert len(issues) == 1
        issue = issues[0]
        assert "15 queries" in issue.title
        assert issue.title == "Lazy Loading Detected: 15 queries on Posts"
        assert issue.severity is Severity.WARNING
        assert issue.category == "performance"
        assert issue.data["query_count"] == 15
        assert issue.data["table"] == "posts"
        assert issue.data["total_time_ms"] == 22.5

    def test_nine_fetches_yield_nothing(self, analyzer: LazyLoadingAnalyzer) -> None:
        queries = QueryRecordCollection(_fetch("posts", i) for i in range(9))

        assert analyzer.analyze(queries).to_list() == []

    def test_threshold_is_a_minimum_run_length(self, analyzer: LazyLoadingAnalyzer) -> None:
        queries = QueryRecordCollection(_fetch("posts", i) for i in range(10))

        assert len(analyzer.analyze(queries).to_list()) == 1

    def test_five_unrelated_queries_between_fetches_suppress_detection(
        self, analyzer: LazyLoadingAnalyzer
    ) -> None:
        assert analyzer.analyze(_interleaved(15, gap=5)).to_list() == []

    def test_two_unrelated_queries_between_fetches_still_detected(
        self, analyzer: LazyLoadingAnalyzer
    ) -> None:
        issues = analyzer.analyze(_interleaved(15, gap=2)).to_list()

        assert len(issues) == 1
        assert "15 queries" in issues[0].title

    def test_mean_gap_of_exactly_five_is_sequential(self, analyzer: LazyLoadingAnalyzer) -> None:
        assert len(analyzer.analyze(_interleaved(12, gap=4)).to_list()) == 1

    def test_bare_id_and_unaliased_table(self, analyzer: LazyLoadingAnalyzer) -> None:
        queries = QueryRecordCollection(
            QueryRecord(sql=f"SELECT * FROM users WHERE id = {i}") for i in range(12)
        )

        issues = analyzer.analyze(queries).to_list()

        assert len(issues) == 1
        assert issues[0].data["entity"] == "Users"

    def test_mixed_aliases_on_same_table_are_grouped(self, analyzer: LazyLoadingAnalyzer) -> None:
        queries = QueryRecordCollection(
            _fetch("posts", i, alias="p" if i % 2 else "t0") for i in range(12)
        )

        assert len(analyzer.analyze(queries).to_list()) == 1

    def test_each_table_reported_separately(self, analyzer: LazyLoadingAnalyzer) -> None:
        records: list[QueryRecord] = []
        for i in range(12):
            records.append(_fetch("users", i))
            if i < 11:
                records.append(_fetch("posts", i))

        issues = analyzer.analyze(QueryRecordCollection(records)).to_list()

        assert sorted(issue.data["table"] for issue in issues) == ["posts", "users"]

    def test_disjoint_runs_on_one_table_are_aggregated(self, analyzer: LazyLoadingAnalyzer) -> None:
        records = [_fetch("posts", i) for i in range(10)]
        records.extend(_unrelated() for _ in range(3))
        records.extend(_fetch("posts", i) for i in range(10, 20))

        issues = analyzer.analyze(QueryRecordCollection(records)).to_list()

        assert len(issues) == 1
        assert issues[0].title == "Lazy Loading Detected: 20 queries on Posts"

    def test_attached_queries_are_capped(self, analyzer: LazyLoadingAnalyzer) -> None:
        queries = QueryRecordCollection(_fetch("posts", i) for i in range(25))

        issue = analyzer.analyze(queries).to_list()[0]

        assert len(issue.queries) == 20
        assert issue.data["query_count"] == 25
        assert "25 queries" in issue.title

    def test_non_primary_key_lookups_ignored(self, analyzer: LazyLoadingAnalyzer) -> None:
        queries = QueryRecordCollection(
            QueryRecord(sql=f"SELECT * FROM posts p WHERE p.user_id = {i}") for i in range(15)
        )

        assert analyzer.analyze(queries).to_list() == []

    def test_qualifier_must_match_table_or_alias(self, analyzer: LazyLoadingAnalyzer) -> None:
        queries = QueryRecordCollection(
            QueryRecord(sql=f"SELECT * FROM posts p WHERE x.id = {i}") for i in range(15)
        )

        assert analyzer.analyze(queries).to_list() == []

    def test_table_prefix_is_stripped_from_entity(self, analyzer: LazyLoadingAnalyzer) -> None:
        queries = QueryRecordCollection(_fetch("tbl_blog_posts", i) for i in range(11))

        issue = analyzer.analyze(queries).to_list()[0]

        assert issue.data["entity"] == "BlogPosts"

    @pytest.mark.parametrize(
        ("table", "entity"),
        [("blog_posts", "BlogPosts"), ("tb_user", "User"), ("TBL_order_items", "OrderItems")],
    )
    def test_entity_name(self, table: str, entity: str) -> None:
        assert LazyLoadingAnalyzer.entity_name(table) == entity

    def test_relation_from_getter_in_backtrace(self, analyzer: LazyLoadingAnalyzer) -> None:
        backtrace = (
            StackFrame(file="templates.py", line=3, function="render"),
            StackFrame(file="models.py", line=40, function="getAuthor", class_name="Post"),
        )
        queries = QueryRecordCollection(_fetch("authors", i, backtrace=backtrace) for i in range(11))

        issue = analyzer.analyze(queries).to_list()[0]

        assert issue.data["relation"] == "author"
        assert issue.backtrace == backtrace
        assert issue.suggestion is not None
        assert "JOIN" in issue.suggestion.code
        assert "eager" in issue.suggestion.description

    def test_snake_case_getter(self, analyzer: LazyLoadingAnalyzer) -> None:
        backtrace = (StackFrame(function="get_owner"),)
        queries = QueryRecordCollection(_fetch("owners", i, backtrace=backtrace) for i in range(11))

        assert analyzer.analyze(queries).to_list()[0].data["relation"] == "owner"

    def test_relation_defaults_when_no_getter(self, analyzer: LazyLoadingAnalyzer) -> None:
        queries = QueryRecordCollection(_fetch("posts", i) for i in range(11))

        assert analyzer.analyze(queries).to_list()[0].data["relation"] == "relation"

    @pytest.mark.parametrize("threshold", [0, 1, -5, 10_001])
    def test_invalid_threshold_raises(self, threshold: int) -> None:
        with pytest.raises(ConfigurationError):
            LazyLoadingAnalyzer(SuggestionFactory(), threshold=threshold)

    def test_analysis_is_deterministic(self, analyzer: LazyLoadingAnalyzer) -> None:
        queries = _interleaved(15, gap=1)

        assert analyzer.analyze(queries).to_list() == analyzer.analyze(queries).to_list()
