"""Tests for list query state: sorting, paging, filters and URL/query mapping."""
import pytest

from app.chapterdesk.errors import ConfirmationRequired
from app.chapterdesk.listing import ListController, ListParams
from app.chapterdesk.modules.categories.service import CATEGORY_RESOURCE


class TestSorting:
    def test_new_column_sorts_ascending(self):
        p = ListParams(sort_by="name", sort_order="desc", page=3).toggle_sort("id")
        assert (p.sort_by, p.sort_order, p.page) == ("id", "asc", 1)

    def test_same_column_flips_order(self):
        p = ListParams(sort_by="name", sort_order="asc").toggle_sort("name")
        assert p.sort_order == "desc"
        assert p.toggle_sort("name").sort_order == "asc"


class TestPaging:
    def test_goto_page_in_range(self):
        assert ListParams(page=1).goto_page(2, total_pages=3).page == 2

    def test_goto_page_out_of_range_is_ignored(self):
        p = ListParams(page=2)
        assert p.goto_page(0, total_pages=3) is p
        assert p.goto_page(4, total_pages=3) is p

    def test_search_filter_and_limit_reset_to_first_page(self):
        p = ListParams(page=4)
        assert p.with_search("  abc ").page == 1
        assert p.with_search("  abc ").search == "abc"
        assert p.with_filter("status", "pending").page == 1
        assert p.with_limit(25).page == 1


class TestFromArgs:
    def test_defaults(self):
        p = ListParams.from_args({}, default_sort="name")
        assert (p.page, p.limit, p.sort_by, p.sort_order, p.search) == (1, 10, "name", "asc", "")

    def test_unknown_sort_column_falls_back(self):
        p = ListParams.from_args({"sort": "password"}, sortable=("name", "id"), default_sort="name")
        assert p.sort_by == "name"

    def test_bad_numbers_and_order_are_sanitised(self):
        p = ListParams.from_args({"page": "-3", "limit": "100000", "order": "sideways"})
        assert p.page == 1
        assert p.limit == 100
        assert p.sort_order == "asc"

    def test_only_declared_filters_are_read(self):
        p = ListParams.from_args({"status": "pending", "evil": "1"}, filter_names=("status",))
        assert p.filters == (("status", "pending"),)


def test_to_query_uses_backend_names():
    p = ListParams(page=2, limit=25, sort_by="name", sort_order="desc", search="x", filters=(("active", "true"),))
    assert p.to_query() == {"page": 2, "limit": 25, "sortBy": "name", "sortOrder": "desc", "search": "x", "active": "true"}


def test_to_args_round_trips_through_from_args():
    p = ListParams(page=2, limit=25, sort_by="name", sort_order="desc", search="x")
    assert ListParams.from_args(p.to_args()) == p


def test_delete_requires_confirmation():
    class Gw:
        deleted = []

        def delete(self, resource, entity_id):
            self.deleted.append(entity_id)

    gw = Gw()
    controller = ListController(gw, CATEGORY_RESOURCE)
    with pytest.raises(ConfirmationRequired):
        controller.delete(5, confirmed=False)
    assert gw.deleted == []
    controller.delete(5, confirmed=True)
    assert gw.deleted == [5]
