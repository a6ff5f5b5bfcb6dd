"""
Tests for column-level sanitization of filters, sorting, grouping and columns
"""
import pytest

from scopegrid.services.filter_tree import SortSpec, filter_to_wire, referenced_columns
from scopegrid.services.query_sanitizer import (
    sanitize_columns, sanitize_filters, sanitize_group_by, sanitize_query,
    sanitize_sort, unauthorized_columns,
)

SALES_COLUMNS = ["id", "website", "price"]


class TestSalesScenario:
    """A sales user asks for a column outside their bundle everywhere it can appear."""

    def test_filters_keep_only_permitted_branch(self):
        raw = {"AND": [{"price": {"gte": 100}}, {"bank_details": {"contains": "x"}}]}
        cleaned = sanitize_filters(raw, SALES_COLUMNS)
        assert filter_to_wire(cleaned) == {"AND": [{"price": {"gte": 100}}]}

    def test_sort_on_hidden_column_is_dropped(self):
        assert sanitize_sort([{"bank_details": "desc"}], SALES_COLUMNS) == []

    def test_group_by_hidden_column_is_dropped(self):
        assert sanitize_group_by(["niche"], SALES_COLUMNS) == []

    def test_full_query(self):
        query = sanitize_query(
            columns=["website", "bank_details", "price"],
            filters={"AND": [{"price": {"gte": 100}}, {"bank_details": {"contains": "x"}}]},
            sort=[{"bank_details": "desc"}, {"price": "asc"}],
            group_by=["niche"],
            permitted=SALES_COLUMNS,
        )
        assert query.columns == ["website", "price"]
        assert query.applied_filters == {"AND": [{"price": {"gte": 100}}]}
        assert query.applied_sorting == [{"price": "asc"}]
        assert query.applied_grouping == []


class TestFilterContainment:
    @pytest.mark.parametrize("raw", [
        {"bank_details": {"equals": "x"}},
        {"OR": [{"bank_details": "x"}, {"NOT": [{"niche": {"in": ["a"]}}]}]},
        {"price": {"gt": 1}, "NOT": {"AND": [{"secret": 1}, {"website": {"startsWith": "a"}}]}},
        {"AND": [{"OR": [{"AND": [{"phone_number": {"not": None}}]}]}]},
        {"website": {"contains": "a", "mode": "insensitive"}, "bank_details": {"contains": "b"}},
    ])
    def test_no_unpermitted_column_survives(self, raw):
        cleaned = sanitize_filters(raw, SALES_COLUMNS)
        assert set(referenced_columns(cleaned)) <= set(SALES_COLUMNS)

    def test_connector_left_empty_is_kept(self):
        cleaned = sanitize_filters({"OR": [{"bank_details": "x"}]}, SALES_COLUMNS)
        assert filter_to_wire(cleaned) == {"OR": []}

    def test_top_level_leaf_removed_yields_empty_filter(self):
        cleaned = sanitize_filters({"bank_details": {"contains": "x"}}, SALES_COLUMNS)
        assert filter_to_wire(cleaned) == {}

    def test_permitted_structure_is_untouched(self):
        raw = {"OR": [{"price": {"lt": 10}}, {"NOT": [{"website": {"endsWith": ".de"}}]}]}
        assert filter_to_wire(sanitize_filters(raw, SALES_COLUMNS)) == raw

    def test_sanitizing_twice_changes_nothing(self):
        raw = {"AND": [{"price": {"gte": 1}}, {"OR": [{"niche": "x"}, {"id": {"in": [1, 2]}}]}]}
        once = filter_to_wire(sanitize_filters(raw, SALES_COLUMNS))
        twice = filter_to_wire(sanitize_filters(once, SALES_COLUMNS))
        assert once == twice == {"AND": [{"price": {"gte": 1}}, {"OR": [{"id": {"in": [1, 2]}}]}]}


class TestSortGroupColumns:
    def test_sort_requires_permitted_column_and_known_direction(self):
        raw = [{"price": "desc"}, {"website": "sideways"}, {"id": "asc"}]
        assert sanitize_sort(raw, SALES_COLUMNS) == [SortSpec("price", "desc"), SortSpec("id", "asc")]

    def test_group_by_keeps_order_of_permitted_members(self):
        assert sanitize_group_by(["price", "niche", "website", 7], SALES_COLUMNS) == ["price", "website"]

    def test_group_by_rejects_non_list(self):
        assert sanitize_group_by("price", SALES_COLUMNS) == []

    def test_columns(self):
        assert sanitize_columns(["id", "secret", "price"], SALES_COLUMNS) == ["id", "price"]
        assert sanitize_columns(None, SALES_COLUMNS) == []

    def test_unauthorized_columns_reports_offenders(self):
        assert unauthorized_columns(["id", "bank_details", "niche"], SALES_COLUMNS) == ["bank_details", "niche"]
        assert unauthorized_columns(["id", "price"], SALES_COLUMNS) == []


def test_empty_permission_set_strips_everything():
    query = sanitize_query(
        columns=["id"],
        filters={"id": {"equals": 1}},
        sort=[{"id": "asc"}],
        group_by=["id"],
        permitted=[],
    )
    assert query.columns == []
    assert query.applied_filters == {}
    assert query.applied_sorting == []
    assert query.applied_grouping == []


def test_grouped_query_keeps_only_sort_on_group_columns():
    query = sanitize_query(
        columns=["id"],
        filters=None,
        sort=[{"price": "desc"}, {"website": "asc"}],
        group_by=["website"],
        permitted=SALES_COLUMNS,
    )
    assert query.applied_grouping == ["website"]
    assert query.applied_sorting == [{"website": "asc"}]
