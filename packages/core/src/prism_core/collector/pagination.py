"""Cursor pagination over the GitHub search API.

The paginator knows nothing about GraphQL: it drives any ``query_page``
callable with the signature ``(predicate, page_size, cursor) -> SearchPage``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
DEFAULT_MAX_PAGES = 20


@dataclass
class SearchPage:
    """One page of search results as returned by the transport."""

    nodes: list[dict] = field(default_factory=list)
    has_next_page: bool = False
    end_cursor: Optional[str] = None
    total_count: int = 0


QueryPage = Callable[[str, int, Optional[str]], SearchPage]
ProgressCallback = Callable[[int, int], Any]


class Paginator:
    """Walks one or more search predicates page by page.

    ``collected`` and ``estimated_total`` carry over between walks, so one
    instance used for several repositories reports cumulative progress. The
    estimate is a running maximum of "items seen before this predicate plus
    the page's reported total for the predicate", raised to at least the
    number of items actually seen: the search API's total can lag behind
    reality, so no single page's figure is trusted on its own, and the
    estimate never shrinks.
    """

    def __init__(
        self,
        query_page: QueryPage,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        on_progress: ProgressCallback | None = None,
    ):
        if max_pages < 1:
            raise ValueError(f"max_pages must be at least 1, got {max_pages}")
        if page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {page_size}")
        self.query_page = query_page
        self.page_size = page_size
        self.max_pages = max_pages
        self.on_progress = on_progress
        self.collected = 0
        self.estimated_total = 0

    def walk(self, predicate: str, cursor: str | None = None) -> Iterator[dict]:
        """Yield raw nodes for ``predicate`` in page order, then node order.

        Stops when the API reports no further page or after ``max_pages``
        pages. Exceptions from ``query_page`` propagate unchanged.
        """
        # total_count covers the whole predicate, not what is left of it.
        base = self.collected
        for page_number in range(1, self.max_pages + 1):
            page = self.query_page(predicate, self.page_size, cursor)
            self.estimated_total = max(self.estimated_total, base + page.total_count)

            for node in page.nodes:
                self.collected += 1
                yield node

            self.estimated_total = max(self.estimated_total, self.collected)
            if self.on_progress is not None:
                self.on_progress(self.collected, self.estimated_total)

            if not page.has_next_page:
                return
            cursor = page.end_cursor

        logger.warning("Stopped after %d page(s) for %r; more results may exist.", self.max_pages, predicate)
