"""
Order assembler: one raw email -> one canonical :class:`Order`.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from wrapped.config import settings
from wrapped.pipeline.extractors import (
    extract_address,
    extract_fees,
    extract_items,
    extract_restaurant_from_subject,
    extract_total,
    has_html_items,
)
from wrapped.pipeline.mime import extract_parts
from wrapped.schemas import (
    ContentKind,
    DeliveryAddress,
    EmailParts,
    EmailType,
    Order,
    OrderSource,
)

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def parse_email_date(value: str | None) -> datetime | None:
    """RFC-2822 ``Date`` header -> aware datetime, None if unparseable."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def make_order_id(key: str) -> str:
    """Strip every non-alphanumeric character from a source key."""
    return _NON_ALNUM.sub("", key)


def classify_email(subject: str) -> EmailType:
    lowered = subject.lower()
    if "final receipt" in lowered:
        return EmailType.FINAL_RECEIPT
    if "confirmation" in lowered:
        return EmailType.CONFIRMATION
    return EmailType.OTHER


def is_platform_sender(headers: dict[str, str]) -> bool:
    marker = settings.PLATFORM_DOMAIN_MARKER.lower()
    return marker in headers.get("from", "").lower()


def select_content_kind(parts: EmailParts) -> ContentKind:
    """Pick which body the item/total/fee extractors read, once per email."""
    if has_html_items(parts.html_text):
        return ContentKind.HTML
    return ContentKind.PLAIN_TEXT


def parse_order_email(raw: str) -> Order | None:
    """Assemble an order from a raw email.

    Returns None only when the sender is not the delivery platform; every
    other missing field falls back to its default.
    """
    parts = extract_parts(raw)
    headers = parts.headers

    if not is_platform_sender(headers):
        logger.debug("Rejected email from %r", headers.get("from"))
        return None

    subject = headers.get("subject", "")
    created_at = parse_email_date(headers.get("date"))
    restaurant_name = extract_restaurant_from_subject(subject)

    kind = select_content_kind(parts)
    body = parts.html_text if kind is ContentKind.HTML else parts.plain_text

    items = extract_items(body, kind)
    total_price = extract_total(body, kind)
    fees = extract_fees(body, kind)
    # address formatting is only reliable in the unescaped plain part
    address = extract_address(parts.plain_text)

    message_id = headers.get("message-id")
    if not message_id:
        millis = int(created_at.timestamp() * 1000) if created_at else None
        message_id = f"{millis}-{restaurant_name}"

    order = Order(
        id=make_order_id(message_id),
        restaurant_name=restaurant_name,
        created_at=created_at,
        items=items,
        total_price=total_price,
        delivery_address=DeliveryAddress(printable_address=address) if address else None,
        fees=fees,
        email_type=classify_email(subject),
        subject=subject,
        source=OrderSource.EMAIL,
    )
    logger.debug(
        "Assembled order %s (%s, %d items, kind=%s)",
        order.id, restaurant_name, len(items), kind.value,
    )
    return order
