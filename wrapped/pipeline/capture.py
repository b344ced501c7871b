"""
Network capture normalizer.

Turns an intercepted ``getConsumerOrdersWithDetails`` GraphQL response into
canonical orders. A malformed order is logged and skipped so the rest of the
page still lands.
"""
from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any

from wrapped.pipeline.assembler import make_order_id
from wrapped.schemas import (
    MAX_CENTS,
    DeliveryAddress,
    Order,
    OrderItem,
    OrderSource,
    Participant,
)

logger = logging.getLogger(__name__)

UNKNOWN_RESTAURANT = "Unknown Restaurant"
UNKNOWN_ITEM = "Unknown Item"


def extract_raw_orders(payload: Any) -> list[dict]:
    """Locate the order list inside a response envelope."""
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if not isinstance(data, dict):
        return []

    orders = data.get("getConsumerOrdersWithDetails")
    if isinstance(orders, list):
        return orders
    if isinstance(orders, dict) and isinstance(orders.get("orders"), list):
        return orders["orders"]
    if isinstance(data.get("orders"), list):
        return data["orders"]
    return []


def _unit_amount(value: Any) -> int | None:
    if isinstance(value, dict):
        value = value.get("unitAmount")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or abs(value) > MAX_CENTS:
        return None
    return int(value)


def _first(*values: Any) -> Any:
    for value in values:
        if value:
            return value
    return None


def parse_timestamp(value: Any) -> datetime | None:
    """ISO-8601 string -> aware datetime (naive means UTC)."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def person_name(person: Any) -> str | None:
    if not isinstance(person, dict):
        return None
    name = f"{person.get('firstName') or ''} {person.get('lastName') or ''}".strip()
    return name or None


def normalize_item(raw: dict) -> OrderItem:
    price = 0
    for candidate in (
        raw.get("originalItemPrice"),
        raw.get("substitutionPrice"),
        raw.get("price"),
    ):
        amount = _unit_amount(candidate)
        if amount:
            price = amount
            break
    return OrderItem(
        name=raw.get("name") or raw.get("itemName") or UNKNOWN_ITEM,
        quantity=max(int(raw.get("quantity") or 1), 1),
        price=price,
    )


def normalize_address(raw: Any) -> DeliveryAddress | None:
    if not isinstance(raw, dict):
        return None
    printable = raw.get("printableAddress") or ", ".join(
        raw[key] for key in ("street", "city", "state") if raw.get(key)
    )
    lat = _first(raw.get("lat"), raw.get("latitude"))
    lng = _first(raw.get("lng"), raw.get("longitude"))
    # nothing printable and nothing to place on a map
    if not printable and (lat is None or lng is None):
        return None
    return DeliveryAddress(
        printable_address=printable,
        lat=lat,
        lng=lng,
        street=raw.get("street"),
        city=raw.get("city"),
        state=raw.get("state"),
        zip_code=raw.get("zipCode"),
    )


def normalize_order(raw: dict) -> Order:
    """Normalize one raw order. Raises on structurally broken input."""
    sub_orders = raw.get("orders") if isinstance(raw.get("orders"), list) else []

    items: list[OrderItem] = []
    participants: list[Participant] = []
    for sub in sub_orders:
        sub_items = [normalize_item(i) for i in sub.get("items") or []]
        items.extend(sub_items)
        name = person_name(sub.get("creator"))
        if name:
            participants.append(Participant(name=name, items=sub_items))

    if not items and isinstance(raw.get("items"), list):
        items = [normalize_item(i) for i in raw["items"]]

    store = raw.get("store") if isinstance(raw.get("store"), dict) else {}
    grand_total = raw.get("grandTotal") if isinstance(raw.get("grandTotal"), dict) else {}

    key = _first(raw.get("id"), raw.get("orderUuid"), raw.get("orderId"))
    created = _first(raw.get("createdAt"), raw.get("submittedAt"))
    created_at = (
        parse_timestamp(created) if created else datetime.now(timezone.utc)
    )

    return Order(
        id=make_order_id(str(key)) if key else uuid.uuid4().hex,
        restaurant_name=(
            store.get("name") or raw.get("storeName") or raw.get("restaurantName")
            or UNKNOWN_RESTAURANT
        ),
        created_at=created_at,
        items=items,
        total_price=_unit_amount(grand_total) or _unit_amount(raw.get("totalPrice")) or 0,
        currency=grand_total.get("currency") or "USD",
        delivery_address=normalize_address(raw.get("deliveryAddress")),
        source=OrderSource.NETWORK,
        is_group=bool(raw.get("isGroup")),
        creator=person_name(raw.get("creator")),
        participants=participants,
    )


def normalize_capture(payload: Any) -> list[Order]:
    """Normalize every order in a captured response envelope."""
    orders: list[Order] = []
    for raw in extract_raw_orders(payload):
        try:
            orders.append(normalize_order(raw))
        except Exception as e:
            logger.warning("Skipping malformed captured order: %s", e)
    logger.info("Normalized %d captured orders", len(orders))
    return orders
