import pytest

from orm_doctor.analyzers import (
    DivisionByZeroAnalyzer,
    FindAllAnalyzer,
    QueryAnalyzer,
    SlowQueryAnalyzer,
)
from orm_doctor.domain import IssueCategory, QueryRecord, QueryRecordCollection, Severity
from orm_doctor.exceptions import ConfigurationError
from orm_doctor.suggestions import SuggestionFactory


class TestSlowQueryAnalyzer:
    @pytest.fixture
    def analyzer(self) -> SlowQueryAnalyzer:
        return SlowQueryAnalyzer(SuggestionFactory(), threshold_ms=100.0)

    def test_implements_protocol(self, analyzer: SlowQueryAnalyzer) -> None:
        assert isinstance(analyzer, QueryAnalyzer)
        assert "100ms" in analyzer.description

    def test_detects_slow_query(self, analyzer: SlowQueryAnalyzer) -> None:
        queries = QueryRecordCollection(
            [
                QueryRecord(sql="SELECT * FROM users", execution_time_ms=10.0),
                QueryRecord(sql="SELECT * FROM orders ORDER BY created_at", execution_time_ms=250.0),
            ]
        )

        issues = analyzer.analyze(queries).to_list()

        assert len(issues) == 1
        issue = issues[0]
        assert issue.type == "slow_query"
        assert issue.title == "Slow Query: 250.00ms"
        assert issue.severity is Severity.WARNING
        assert issue.category is IssueCategory.PERFORMANCE
        assert issue.data["execution_time"] == 250.0
        assert issue.data["hints"] == ["Index the ORDER BY columns."]
        assert issue.queries == (queries[1],)

    def test_threshold_is_exclusive(self, analyzer: SlowQueryAnalyzer) -> None:
        queries = QueryRecordCollection([QueryRecord(sql="SELECT 1", execution_time_ms=100.0)])

        assert analyzer.analyze(queries).to_list() == []

    def test_one_second_is_critical(self, analyzer: SlowQueryAnalyzer) -> None:
        queries = QueryRecordCollection([QueryRecord(sql="SELECT 1", execution_time_ms=1000.0)])

        assert analyzer.analyze(queries).to_list()[0].severity is Severity.CRITICAL

    def test_hints(self, analyzer: SlowQueryAnalyzer) -> None:
        sql = (
            "SELECT DISTINCT name FROM users WHERE email LIKE '%@example.com' "
            "AND id IN (SELECT user_id FROM orders) GROUP BY name"
        )
        queries = QueryRecordCollection([QueryRecord(sql=sql, execution_time_ms=300.0)])

        hints = analyzer.analyze(queries).to_list()[0].data["hints"]

        assert len(hints) == 4
        assert "Rewrite the subquery as a JOIN." in hints

    def test_each_slow_record_reported(self, analyzer: SlowQueryAnalyzer) -> None:
        queries = QueryRecordCollection(
            [
                QueryRecord(sql="SELECT * FROM users", execution_time_ms=150.0),
                QueryRecord(sql="SELECT * FROM users", execution_time_ms=180.0),
            ]
        )

        assert len(analyzer.analyze(queries)) == 2

    @pytest.mark.parametrize("threshold", [0, -1.0, 100_001])
    def test_invalid_threshold_raises(self, threshold: float) -> None:
        with pytest.raises(ConfigurationError):
            SlowQueryAnalyzer(SuggestionFactory(), threshold_ms=threshold)


class TestFindAllAnalyzer:
    @pytest.fixture
    def analyzer(self) -> FindAllAnalyzer:
        return FindAllAnalyzer(SuggestionFactory())

    def test_unbounded_select_flagged(self, analyzer: FindAllAnalyzer) -> None:
        queries = QueryRecordCollection([QueryRecord(sql="SELECT * FROM products p", row_count=5000)])

        issues = analyzer.analyze(queries).to_list()

        assert len(issues) == 1
        assert issues[0].title == "Unpaginated Query on products"
        assert issues[0].data["row_count"] == 5000
        assert issues[0].suggestion is not None

    def test_unknown_row_count_is_assumed_large(self, analyzer: FindAllAnalyzer) -> None:
        queries = QueryRecordCollection([QueryRecord(sql="SELECT * FROM products")])

        issues = analyzer.analyze(queries).to_list()

        assert issues[0].data["row_count"] == 999

    def test_small_result_not_flagged(self, analyzer: FindAllAnalyzer) -> None:
        queries = QueryRecordCollection([QueryRecord(sql="SELECT * FROM countries", row_count=99)])

        assert analyzer.analyze(queries).to_list() == []

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM products WHERE active = 1",
            "SELECT * FROM products LIMIT 50",
            "SELECT * FROM products FETCH FIRST 10 ROWS ONLY",
            "SELECT TOP 10 * FROM products",
            "SELECT COUNT(*) FROM products",
            "UPDATE products SET active = 0",
        ],
    )
    def test_bounded_queries_not_flagged(self, analyzer: FindAllAnalyzer, sql: str) -> None:
        queries = QueryRecordCollection([QueryRecord(sql=sql, row_count=5000)])

        assert analyzer.analyze(queries).to_list() == []

    def test_same_query_reported_once(self, analyzer: FindAllAnalyzer) -> None:
        queries = QueryRecordCollection(
            [QueryRecord(sql="SELECT * FROM products", row_count=500) for _ in range(3)]
        )

        assert len(analyzer.analyze(queries)) == 1

    def test_negative_threshold_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            FindAllAnalyzer(SuggestionFactory(), threshold=-1)


class TestDivisionByZeroAnalyzer:
    @pytest.fixture
    def analyzer(self) -> DivisionByZeroAnalyzer:
        return DivisionByZeroAnalyzer(SuggestionFactory())

    def test_unprotected_division_flagged(self, analyzer: DivisionByZeroAnalyzer) -> None:
        queries = QueryRecordCollection(
            [QueryRecord(sql="SELECT s.revenue / s.visits AS rate FROM stats s")]
        )

        issues = analyzer.analyze(queries).to_list()

        assert len(issues) == 1
        issue = issues[0]
        assert issue.severity is Severity.CRITICAL
        assert issue.category is IssueCategory.SECURITY
        assert issue.title == "Potential Division By Zero Error"
        assert issue.data["dividend"] == "s.revenue"
        assert issue.data["divisor"] == "s.visits"
        assert issue.suggestion is not None
        assert "NULLIF" in issue.suggestion.code

    def test_literal_zero_divisor_flagged(self, analyzer: DivisionByZeroAnalyzer) -> None:
        queries = QueryRecordCollection([QueryRecord(sql="SELECT total / 0 FROM orders")])

        assert len(analyzer.analyze(queries)) == 1

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT revenue / NULLIF(visits, 0) FROM stats",
            "SELECT revenue / COALESCE(visits, 1) FROM stats",
            "SELECT CASE WHEN visits = 0 THEN 0 ELSE revenue / visits END FROM stats",
            "SELECT price / 2 FROM products",
            "SELECT 'a/b' AS path FROM files",
        ],
    )
    def test_safe_division_not_flagged(self, analyzer: DivisionByZeroAnalyzer, sql: str) -> None:
        queries = QueryRecordCollection([QueryRecord(sql=sql)])

        assert analyzer.analyze(queries).to_list() == []

    def test_same_expression_reported_once(self, analyzer: DivisionByZeroAnalyzer) -> None:
        queries = QueryRecordCollection(
            [
                QueryRecord(sql="SELECT revenue / visits FROM stats WHERE day = 1"),
                QueryRecord(sql="SELECT REVENUE / VISITS FROM stats WHERE day = 2"),
            ]
        )

        assert len(analyzer.analyze(queries)) == 1
