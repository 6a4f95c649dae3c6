"""
Pagination - Page views over query results
Adapters expose count() and get_items(offset, limit); the Paginator turns
them into numbered pages.
"""

from dataclasses import dataclass
from typing import TypeVar, Generic, List, Optional, Sequence, Iterator, Any
from sqlalchemy.orm import Query

T = TypeVar('T')


@dataclass
class PaginationParams:
    """Parameters for pagination"""
    page: int = 1
    per_page: int = 20

    @property
    def offset(self) -> int:
        """Calculate offset for query"""
        return (self.page - 1) * self.per_page

    @property
    def limit(self) -> int:
        """Get limit for query"""
        return self.per_page


@dataclass
class PaginatedResult(Generic[T]):
    """A single page of results"""
    items: List[T]
    total: int
    page: int
    per_page: int

    @property
    def pages(self) -> int:
        """Calculate total number of pages"""
        return (self.total + self.per_page - 1) // self.per_page if self.per_page > 0 else 0

    @property
    def has_prev(self) -> bool:
        """Check if there's a previous page"""
        return self.page > 1

    @property
    def has_next(self) -> bool:
        """Check if there's a next page"""
        return self.page < self.pages

    @property
    def prev_page(self) -> Optional[int]:
        """Get previous page number"""
        return self.page - 1 if self.has_prev else None

    @property
    def next_page(self) -> Optional[int]:
        """Get next page number"""
        return self.page + 1 if self.has_next else None


class QueryAdapter:
    """Pagination adapter over a SQLAlchemy Query"""

    def __init__(self, query: Query):
        self.query = query

    def count(self) -> int:
        # Ordering is irrelevant for counting
        return self.query.order_by(None).count()

    def get_items(self, offset: int, limit: Optional[int]) -> List[Any]:
        query = self.query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()


class SequenceAdapter:
    """Pagination adapter over an in-memory sequence"""

    def __init__(self, items: Sequence[Any]):
        self.items = list(items)

    def count(self) -> int:
        return len(self.items)

    def get_items(self, offset: int, limit: Optional[int]) -> List[Any]:
        if limit is None:
            return self.items[offset:]
        return self.items[offset:offset + limit]


class Paginator(Generic[T]):
    """
    Numbered page view over a pagination adapter.

    The total item count is requested from the adapter once and cached.
    An items_per_page lower than 1 puts every item on a single page.
    """

    def __init__(self, adapter, items_per_page: int = 10, current_page: int = 1):
        self.adapter = adapter
        self.items_per_page = items_per_page
        self._total_items: Optional[int] = None
        self._current_page = current_page

    @property
    def total_items(self) -> int:
        """Total number of items across all pages"""
        if self._total_items is None:
            self._total_items = self.adapter.count()
        return self._total_items

    @property
    def page_count(self) -> int:
        """Number of pages, 0 when there are no items"""
        if self.items_per_page < 1:
            return 1 if self.total_items > 0 else 0
        return (self.total_items + self.items_per_page - 1) // self.items_per_page

    @property
    def current_page(self) -> int:
        return self.normalize_page(self._current_page)

    @current_page.setter
    def current_page(self, page: int) -> None:
        self._current_page = page

    @property
    def current_items(self) -> List[T]:
        """Items on the current page"""
        return self.get_page(self.current_page).items

    def normalize_page(self, page: int) -> int:
        """Clamp a page number to the available pages"""
        page = int(page)
        if page < 1 or self.page_count == 0:
            return 1
        return min(page, self.page_count)

    def get_page(self, page: int) -> PaginatedResult[T]:
        """
        Get a single page.

        Args:
            page: Page number (1-based); out of range numbers are clamped

        Returns:
            PaginatedResult with items and metadata
        """
        page = self.normalize_page(page)

        if self.items_per_page < 1:
            items = self.adapter.get_items(0, None) if self.total_items else []
            return PaginatedResult(
                items=items,
                total=self.total_items,
                page=page,
                per_page=max(self.total_items, 1)
            )

        params = PaginationParams(page=page, per_page=self.items_per_page)
        items = self.adapter.get_items(params.offset, params.limit) if self.total_items else []

        return PaginatedResult(
            items=items,
            total=self.total_items,
            page=page,
            per_page=self.items_per_page
        )

    def pages(self) -> Iterator[PaginatedResult[T]]:
        """Iterate every page in order"""
        for page in range(1, self.page_count + 1):
            yield self.get_page(page)

    def __iter__(self) -> Iterator[T]:
        return iter(self.current_items)

    def __repr__(self) -> str:
        return (f"<Paginator page={self.current_page}/{self.page_count} "
                f"items_per_page={self.items_per_page} total={self.total_items}>")


class PaginatorMixin:
    """Gives a repository a hook for building paginators"""

    def get_paginator(self, adapter, items_per_page: int) -> Paginator:
        """
        Build a paginator over an adapter.

        Args:
            adapter: Object with count() and get_items(offset, limit)
            items_per_page: Page size; lower than 1 means everything on one page

        Returns:
            Paginator positioned on the first page
        """
        return Paginator(adapter, items_per_page=items_per_page)
