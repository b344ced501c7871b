"""
Order Wrapped core pipeline.

Orchestrates: parse emails / normalize captures -> merge -> aggregate.
"""
import logging
from typing import Any, Iterable

from wrapped.pipeline.capture import normalize_capture
from wrapped.pipeline.dedup import merge_orders, parse_multiple_emails
from wrapped.pipeline.stats import aggregate
from wrapped.schemas import MergeResult, Order, Statistics

logger = logging.getLogger(__name__)


def ingest_emails(
    existing: Iterable[Order], raw_emails: Iterable[str]
) -> tuple[list[Order], MergeResult]:
    """Parse an email batch and merge it into *existing*.

    Returns ``(parsed_orders, merge_result)``.
    """
    logger.info("Pipeline start: parse emails")
    parsed = parse_multiple_emails(raw_emails)
    logger.info("Pipeline: merge %d parsed orders", len(parsed))
    return parsed, merge_orders(existing, parsed)


def ingest_capture(
    existing: Iterable[Order], payload: Any
) -> tuple[list[Order], MergeResult]:
    """Normalize one captured response and merge it into *existing*."""
    logger.info("Pipeline start: normalize capture")
    normalized = normalize_capture(payload)
    logger.info("Pipeline: merge %d captured orders", len(normalized))
    return normalized, merge_orders(existing, normalized)


def compute_statistics(orders: Iterable[Order]) -> Statistics:
    orders = list(orders)
    logger.info("Pipeline: aggregate %d orders", len(orders))
    return aggregate(orders)
