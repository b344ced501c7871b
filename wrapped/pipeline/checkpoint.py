"""
Capture-side fetch checkpoint and pagination planning.

The capture collaborator pages through order history once per day. The
"last fetch date" is explicit state behind :class:`FetchCheckpoint` so it
can be injected; merge/dedup never sees it.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional, Protocol

from wrapped.config import settings

logger = logging.getLogger(__name__)


class FetchCheckpoint(Protocol):
    def get_last_fetch_date(self) -> Optional[date]: ...

    def set_last_fetch_date(self, day: date) -> None: ...


class InMemoryCheckpoint:
    def __init__(self, last_fetch_date: Optional[date] = None):
        self._last = last_fetch_date

    def get_last_fetch_date(self) -> Optional[date]:
        return self._last

    def set_last_fetch_date(self, day: date) -> None:
        self._last = day


def already_fetched(checkpoint: FetchCheckpoint, today: date) -> bool:
    return checkpoint.get_last_fetch_date() == today


def should_auto_fetch(
    checkpoint: FetchCheckpoint,
    offset: int,
    limit: int,
    page_size: int,
    today: date,
) -> bool:
    """Start paginating only from a full first page, at most once a day."""
    return offset == 0 and page_size == limit and not already_fetched(checkpoint, today)


def has_more(page_size: int, limit: int) -> bool:
    return page_size > 0 and page_size == limit


def page_variables(variables: dict[str, Any] | None) -> tuple[int, int]:
    """``(offset, limit)`` of a GraphQL request's variables."""
    variables = variables or {}
    offset = variables.get("offset") or 0
    limit = variables.get("limit") or settings.DEFAULT_PAGE_LIMIT
    return int(offset), int(limit)


def next_page_variables(variables: dict[str, Any] | None, offset: int) -> dict[str, Any]:
    """Copy of *variables* pointing at *offset*; the original is untouched."""
    return {**(variables or {}), "offset": offset}


def plan_next_page(
    checkpoint: FetchCheckpoint,
    variables: dict[str, Any] | None,
    page_size: int,
    today: date,
) -> dict[str, Any] | None:
    """Variables for the next history page to fetch, or None to stop.

    A full first page starts a walk through the history unless one already
    ran *today*. Later pages continue while they come back full; the page
    that ends the walk records *today* on the checkpoint.
    """
    offset, limit = page_variables(variables)
    if offset == 0:
        if should_auto_fetch(checkpoint, offset, limit, page_size, today):
            logger.info("Starting history fetch (%d orders per page)", limit)
            return next_page_variables(variables, limit)
        return None

    if has_more(page_size, limit):
        return next_page_variables(variables, offset + limit)

    checkpoint.set_last_fetch_date(today)
    logger.info("History fetch finished at offset %d", offset + page_size)
    return None
