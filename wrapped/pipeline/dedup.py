"""
Batch deduplication, cross-batch merging and chronological ordering.
"""
from __future__ import annotations

import logging
from typing import Iterable

from wrapped.pipeline.assembler import parse_order_email
from wrapped.schemas import MergeResult, Order

logger = logging.getLogger(__name__)


def sort_orders(orders: Iterable[Order]) -> list[Order]:
    """Newest first. Orders without a date go last, in their input order."""
    orders = list(orders)
    dated = [o for o in orders if o.created_at is not None]
    undated = [o for o in orders if o.created_at is None]
    dated.sort(key=lambda o: o.created_at, reverse=True)
    return dated + undated


def parse_multiple_emails(raw_emails: Iterable[str]) -> list[Order]:
    """Assemble every email, keep the first order seen for each id.

    Orders without a restaurant name are dropped. One email that blows up
    is logged and skipped; it never aborts the batch.
    """
    orders: list[Order] = []
    seen: set[str] = set()

    for idx, raw in enumerate(raw_emails):
        try:
            order = parse_order_email(raw)
        except Exception:
            logger.exception("Failed to parse email #%d, skipping", idx)
            continue
        if order is None or not order.restaurant_name or order.id in seen:
            continue
        seen.add(order.id)
        orders.append(order)

    logger.info("Parsed %d unique orders from email batch", len(orders))
    return sort_orders(orders)


def merge_orders(existing: Iterable[Order], new: Iterable[Order]) -> MergeResult:
    """Merge *new* into *existing* by id.

    On a collision the existing record stays, unless it has no delivery
    address and the incoming record does; then the incoming one replaces it.
    """
    by_id: dict[str, Order] = {}
    for order in existing:
        by_id[order.id] = order

    duplicates = 0
    for order in new:
        current = by_id.get(order.id)
        if current is None:
            by_id[order.id] = order
            continue
        duplicates += 1
        if current.delivery_address is None and order.delivery_address is not None:
            by_id[order.id] = order

    if duplicates:
        logger.info("Found and deduplicated %d duplicate orders", duplicates)
    return MergeResult(orders=sort_orders(by_id.values()), duplicates=duplicates)
