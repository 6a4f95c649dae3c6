"""
Tests for pagination helpers
"""

import pytest
from unittest.mock import MagicMock, Mock

from repositories.pagination import (
    PaginationParams,
    PaginatedResult,
    Paginator,
    PaginatorMixin,
    QueryAdapter,
    SequenceAdapter
)


def test_pagination_params():
    """Test PaginationParams"""
    params = PaginationParams(page=2, per_page=10)
    assert params.offset == 10
    assert params.limit == 10


def test_paginated_result():
    """Test PaginatedResult"""
    result = PaginatedResult(
        items=['a', 'b'],
        total=25,
        page=2,
        per_page=10
    )
    assert result.pages == 3
    assert result.has_prev is True
    assert result.has_next is True
    assert result.prev_page == 1
    assert result.next_page == 3


def test_paginated_result_first_and_last_page():
    first = PaginatedResult(items=[], total=20, page=1, per_page=10)
    last = PaginatedResult(items=[], total=20, page=2, per_page=10)

    assert first.prev_page is None
    assert last.next_page is None


class TestSequenceAdapter:

    def test_count(self):
        assert SequenceAdapter(range(7)).count() == 7

    def test_get_items(self):
        adapter = SequenceAdapter(['a', 'b', 'c', 'd'])

        assert adapter.get_items(1, 2) == ['b', 'c']
        assert adapter.get_items(2, None) == ['c', 'd']


class TestQueryAdapter:

    def test_count_drops_ordering(self):
        query = MagicMock()
        query.order_by.return_value.count.return_value = 12

        assert QueryAdapter(query).count() == 12
        query.order_by.assert_called_once_with(None)

    def test_get_items(self):
        query = MagicMock()
        query.offset.return_value.limit.return_value.all.return_value = ['x']

        assert QueryAdapter(query).get_items(20, 10) == ['x']
        query.offset.assert_called_once_with(20)
        query.offset.return_value.limit.assert_called_once_with(10)

    def test_get_items_without_limit(self):
        query = MagicMock()

        QueryAdapter(query).get_items(0, None)

        query.offset.return_value.limit.assert_not_called()
        query.offset.return_value.all.assert_called_once_with()


class TestPaginator:

    @pytest.fixture
    def paginator(self):
        return Paginator(SequenceAdapter(list(range(1, 26))), items_per_page=10)

    def test_counts(self, paginator):
        assert paginator.total_items == 25
        assert paginator.page_count == 3

    def test_first_page(self, paginator):
        assert paginator.current_page == 1
        assert paginator.current_items == list(range(1, 11))
        assert list(paginator) == list(range(1, 11))

    def test_get_page(self, paginator):
        page = paginator.get_page(3)

        assert page.items == [21, 22, 23, 24, 25]
        assert page.total == 25
        assert page.page == 3
        assert page.has_next is False

    @pytest.mark.parametrize('requested,expected', [(0, 1), (-4, 1), (99, 3)])
    def test_page_numbers_are_clamped(self, paginator, requested, expected):
        assert paginator.get_page(requested).page == expected

        paginator.current_page = requested
        assert paginator.current_page == expected

    def test_pages(self, paginator):
        pages = list(paginator.pages())

        assert [page.page for page in pages] == [1, 2, 3]
        assert sum(len(page.items) for page in pages) == 25

    def test_empty(self):
        paginator = Paginator(SequenceAdapter([]), items_per_page=10)

        assert paginator.page_count == 0
        assert paginator.current_page == 1
        assert paginator.current_items == []
        assert list(paginator.pages()) == []

    @pytest.mark.parametrize('items_per_page', [0, -1])
    def test_all_items_on_one_page(self, items_per_page):
        paginator = Paginator(SequenceAdapter(list(range(15))), items_per_page=items_per_page)

        assert paginator.page_count == 1
        assert paginator.current_items == list(range(15))
        assert paginator.get_page(1).has_next is False

    def test_total_is_counted_once(self):
        adapter = Mock()
        adapter.count.return_value = 30
        adapter.get_items.return_value = []
        paginator = Paginator(adapter, items_per_page=10)

        paginator.get_page(1)
        paginator.get_page(2)
        assert paginator.page_count == 3

        adapter.count.assert_called_once_with()
        adapter.get_items.assert_called_with(10, 10)

    def test_nothing_is_counted_on_creation(self):
        adapter = Mock()

        Paginator(adapter, items_per_page=10, current_page=2)

        adapter.count.assert_not_called()


def test_paginator_mixin():
    paginator = PaginatorMixin().get_paginator(SequenceAdapter(['a', 'b', 'c']), 2)

    assert isinstance(paginator, Paginator)
    assert paginator.items_per_page == 2
    assert paginator.page_count == 2
