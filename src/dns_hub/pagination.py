"""
Pagination aggregator.

Drains a page-based listing endpoint into one in-memory collection. Pages
are requested strictly one after another, starting at page 1, until the
backend signals exhaustion or a hard page ceiling is reached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from typing import Final


# Safety bound against a backend that never reports exhaustion
MAX_PAGES: Final[int] = 200

# Default page sizes for the two listings that are drained
RECORDS_PAGE_SIZE: Final[int] = 500
ZONES_PAGE_SIZE: Final[int] = 100


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """
    One page returned by a listing endpoint.

    Attributes
    ----------
    items : list[T]
        Items on this page.
    total : int | None
        Total item count reported by the backend, if any.
    envelope : Any
        The raw response the page came from.
    """

    items: list[T]
    total: int | None = None
    envelope: Any = None


@dataclass
class DrainResult(Generic[T]):
    """
    Result of draining a listing.

    Attributes
    ----------
    items : list[T]
        Every item gathered, in page order.
    envelope : Any
        The first page's response.
    total : int
        The last total reported by the backend (0 when never reported).
    pages : int
        Number of pages fetched.
    truncated : bool
        True when the page ceiling stopped the drain.
    """

    items: list[T] = field(default_factory=list)
    envelope: Any = None
    total: int = 0
    pages: int = 0
    truncated: bool = False


async def drain_pages(
    fetch_page: Callable[[int, int], Awaitable[Page[T]]],
    page_size: int,
    *,
    max_pages: int = MAX_PAGES,
) -> DrainResult[T]:
    """
    Fetch every page of a listing.

    Stops at the first of: a page with zero items, the accumulated count
    reaching a positive reported total, or ``max_pages`` pages fetched. The
    ceiling is not an error: what has been gathered is returned with
    ``truncated`` set.

    Parameters
    ----------
    fetch_page : Callable[[int, int], Awaitable[Page[T]]]
        Coroutine function taking ``(page_number, page_size)``.
    page_size : int
        Page size passed to every call.
    max_pages : int, optional
        Page ceiling.

    Returns
    -------
    DrainResult[T]
        Aggregated items plus the first page's envelope.
    """
    result: DrainResult[T] = DrainResult()
    page_number = 1

    while page_number <= max_pages:
        page = await fetch_page(page_number, page_size)
        result.pages += 1

        if page_number == 1:
            result.envelope = page.envelope
        if page.total is not None:
            result.total = page.total
        result.items.extend(page.items)

        if not page.items:
            break
        if result.total > 0 and len(result.items) >= result.total:
            break
        page_number += 1
    else:
        result.truncated = True
        logger.warning(
            "Listing truncated after %d pages (%d items gathered, total reported: %d).",
            max_pages,
            len(result.items),
            result.total,
        )

    logger.debug("Drained %d items in %d pages.", len(result.items), result.pages)
    return result
