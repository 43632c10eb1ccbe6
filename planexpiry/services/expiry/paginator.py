"""
Offset-based page scan over the user store.

The jobs mutate each account they process so it stops matching the
candidate filter. A fixed offset step would then jump past rows that slid
into the window, so the scan only advances by the rows of a page that are
still in the result set once the consumer is done with it.
"""

import logging
from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

from planexpiry.store.base import CandidateFilter, UserRecord, UserStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PageScan(Generic[T]):
    """
    Iterate pages from fetch_page(limit, offset).

    Stops after the first page holding fewer than page_size items, so a full
    last page is always followed by one more fetch. The consumer finishes each
    page before the next one is requested and calls mark_removed() for every
    item it moved out of the result set.
    """

    def __init__(self, fetch_page: Callable[[int, int], list[T]], page_size: int):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")

        self._fetch_page = fetch_page
        self.page_size = page_size
        self.offset = 0
        self._removed = 0

    def mark_removed(self, count: int = 1) -> None:
        self._removed += count

    def __iter__(self) -> Iterator[list[T]]:
        while True:
            page = self._fetch_page(self.page_size, self.offset)
            logger.debug(f"Fetched page at offset {self.offset}: {len(page)} items")
            self._removed = 0
            yield page
            if len(page) < self.page_size:
                return
            self.offset += len(page) - min(self._removed, len(page))


def scan_candidates(
    store: UserStore,
    candidate_filter: CandidateFilter,
    page_size: int,
) -> PageScan[UserRecord]:
    """Page scan over the users matching candidate_filter."""
    return PageScan(
        lambda limit, offset: store.list_users(candidate_filter, limit=limit, offset=offset),
        page_size,
    )
