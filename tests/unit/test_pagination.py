"""
Tests for trackr.pagination module.
"""
from datetime import datetime, timezone

from trackr.pagination import Page, paginate, sort_rows, to_snake_case


class TestPaginate:
    """Tests for paginate function."""

    def test_slices(self):
        page = paginate(list(range(25)), page=2, limit=10)
        assert page.items == list(range(10, 20))
        assert page.total_count == 25
        assert page.total_pages == 3

    def test_last_partial_page(self):
        assert paginate(list(range(25)), page=3, limit=10).items == [20, 21, 22, 23, 24]

    def test_past_the_end(self):
        page = paginate([1, 2], page=5, limit=10)
        assert page.items == []
        assert page.total_count == 2

    def test_total_pages_zero_limit(self):
        assert Page(items=[], total_count=3, page=1, limit=0).total_pages == 0


class TestSortRows:
    """Tests for sort_rows function."""

    def test_strings_case_insensitive(self):
        rows = ["banana", "Apple", "cherry"]
        assert sort_rows(rows, lambda r: r, "string") == ["Apple", "banana", "cherry"]

    def test_nulls_last_both_directions(self):
        rows = [{"v": None}, {"v": 2}, {"v": 1}]
        asc = sort_rows(rows, lambda r: r["v"], "number", "asc")
        desc = sort_rows(rows, lambda r: r["v"], "number", "desc")
        assert [r["v"] for r in asc] == [1, 2, None]
        assert [r["v"] for r in desc] == [2, 1, None]

    def test_empty_string_is_null(self):
        rows = [{"v": ""}, {"v": "b"}, {"v": "a"}]
        assert [r["v"] for r in sort_rows(rows, lambda r: r["v"], "string")] == ["a", "b", ""]

    def test_dates_compare_by_instant(self):
        noon = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
        ten = datetime(2024, 1, 1, 10, tzinfo=timezone.utc).astimezone()
        assert sort_rows([noon, ten], lambda r: r, "date") == [ten, noon]

    def test_tiebreak_is_stable_in_desc(self):
        rows = [{"id": "b", "v": 1}, {"id": "a", "v": 1}, {"id": "c", "v": 2}]
        result = sort_rows(rows, lambda r: r["v"], "number", "desc", tiebreak=lambda r: r["id"])
        assert [r["id"] for r in result] == ["c", "a", "b"]


class TestToSnakeCase:
    def test_camel(self):
        assert to_snake_case("totalSales") == "total_sales"
        assert to_snake_case("orderId") == "order_id"

    def test_already_snake(self):
        assert to_snake_case("last_usage") == "last_usage"
