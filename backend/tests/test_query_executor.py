"""
Tests for the query executor: pagination, flat vs grouped reads, operators
"""
import pytest
from sqlalchemy.exc import OperationalError

from scopegrid.core.exceptions import ExecutionError, ValidationError
from scopegrid.services.query_executor import Pagination, QueryExecutor
from scopegrid.services.query_sanitizer import sanitize_query
from scopegrid.services.resource_registry import registry

SITE_COLUMNS = ["id", "website", "niche", "price", "traffic", "language", "da"]


def _query(columns=None, filters=None, sort=None, group_by=None):
    return sanitize_query(columns or ["id", "website", "price"], filters, sort, group_by, SITE_COLUMNS)


@pytest.fixture
def handler():
    return registry.get("sites")


class TestPagination:
    def test_skip_is_derived_from_page_and_size(self):
        pagination = Pagination.parse("3", "25")
        assert pagination.skip == 50
        assert pagination.take == 25

    @pytest.mark.parametrize("page,page_size", [(None, None), ("abc", "xyz"), ("0", "-5"), (True, False)])
    def test_invalid_values_fall_back_to_defaults(self, page, page_size):
        pagination = Pagination.parse(page, page_size)
        assert (pagination.page, pagination.page_size) == (1, 10)

    def test_custom_default_page_size(self):
        assert Pagination.parse(None, None, default_page_size=50).page_size == 50


class TestFlatReads:
    def test_page_three_of_sixty(self, db, sites, handler):
        result = QueryExecutor(db).execute(handler, _query(), Pagination.parse(3, 25))
        assert result.total_records == 60
        assert len(result.data) == 10
        assert [row["id"] for row in result.data] == list(range(51, 61))

    def test_total_ignores_pagination_but_honours_filters(self, db, sites, handler):
        query = _query(filters={"niche": {"equals": "tech"}})
        first = QueryExecutor(db).execute(handler, query, Pagination(1, 5))
        second = QueryExecutor(db).execute(handler, query, Pagination(4, 5))
        assert first.total_records == second.total_records == 20
        assert len(first.data) == 5
        assert len(second.data) == 5

    def test_only_selected_columns_are_returned(self, db, sites, handler):
        result = QueryExecutor(db).execute(handler, _query(columns=["website"]), Pagination(1, 3))
        assert all(set(row) == {"website"} for row in result.data)

    def test_sort_descending(self, db, sites, handler):
        result = QueryExecutor(db).execute(handler, _query(sort=[{"price": "desc"}]), Pagination(1, 3))
        assert [row["price"] for row in result.data] == [600, 590, 580]

    def test_page_past_the_end_is_empty(self, db, sites, handler):
        result = QueryExecutor(db).execute(handler, _query(), Pagination(99, 10))
        assert result.data == []
        assert result.total_records == 60


class TestOperators:
    def _ids(self, db, handler, filters):
        result = QueryExecutor(db).execute(handler, _query(filters=filters), Pagination(1, 100))
        return [row["id"] for row in result.data]

    def test_range(self, db, sites, handler):
        assert self._ids(db, handler, {"price": {"gte": 100, "lt": 130}}) == [10, 11, 12]

    def test_in_and_not_in(self, db, sites, handler):
        assert self._ids(db, handler, {"id": {"in": [3, 5, 99]}}) == [3, 5]
        assert len(self._ids(db, handler, {"id": {"notIn": [1, 2]}})) == 58

    def test_contains_insensitive(self, db, sites, handler):
        assert self._ids(db, handler, {"website": {"contains": "SITE05", "mode": "insensitive"}}) == [5]

    def test_starts_with_escapes_wildcards(self, db, sites, handler):
        assert self._ids(db, handler, {"website": {"startsWith": "site_"}}) == []

    def test_or_and_not(self, db, sites, handler):
        ids = self._ids(db, handler, {
            "OR": [{"id": {"lte": 2}}, {"id": {"gte": 59}}],
            "NOT": [{"id": 60}],
        })
        assert ids == [1, 2, 59]

    def test_empty_connector_is_no_constraint(self, db, sites, handler):
        assert len(self._ids(db, handler, {"OR": []})) == 60

    def test_not_with_nested_condition(self, db, sites, handler):
        assert len(self._ids(db, handler, {"language": {"not": {"equals": "en"}}})) == 30

    def test_unknown_operator_is_rejected(self, db, sites, handler):
        with pytest.raises(ValidationError):
            QueryExecutor(db).execute(handler, _query(filters={"price": {"near": 5}}))


class TestGroupedReads:
    def test_total_is_number_of_groups(self, db, sites, handler):
        result = QueryExecutor(db).execute(handler, _query(group_by=["niche"]))
        assert result.grouped is True
        assert result.total_records == 3
        assert set(result.data) == {"tech", "travel", "finance"}
        assert result.data["tech"] == [{"niche": "tech", "_count": 20}]

    def test_grouped_with_filter(self, db, sites, handler):
        result = QueryExecutor(db).execute(
            handler, _query(filters={"price": {"lte": 40}}, group_by=["niche", "language"]),
        )
        # ids 1..4: tech/en, travel/de, finance/en, tech/de
        assert result.total_records == 4
        assert sorted(r["language"] for r in result.data["tech"]) == ["de", "en"]


def test_persistence_failure_is_wrapped(db, handler):
    class BrokenSession:
        def query(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection reset"))

    with pytest.raises(ExecutionError) as exc_info:
        QueryExecutor(BrokenSession()).execute(handler, _query(), Pagination())
    assert exc_info.value.message == "Error fetching data"
    assert exc_info.value.detail.startswith("ref:")
    assert "connection reset" not in exc_info.value.detail
