"""
Persistence helpers for the stored order collection.
"""
from __future__ import annotations

import logging
import threading
import uuid
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from wrapped.models import CaptureSnapshotModel, CheckpointModel, OrderModel
from wrapped.pipeline.dedup import sort_orders
from wrapped.schemas import Order

logger = logging.getLogger(__name__)

LAST_FETCH_DATE_KEY = "last_fetch_date"

# Held from load to commit by every request that rewrites the order collection.
write_lock = threading.Lock()


def load_orders(db: Session) -> list[Order]:
    rows = db.query(OrderModel).all()
    return sort_orders(Order.model_validate(r.order_json) for r in rows)


def get_order(db: Session, order_id: str) -> Optional[Order]:
    row = db.query(OrderModel).filter(OrderModel.id == order_id).first()
    return Order.model_validate(row.order_json) if row else None


def replace_orders(db: Session, orders: Iterable[Order]) -> int:
    """Make the stored collection equal to *orders*. Caller commits."""
    orders = list(orders)
    keep = {o.id for o in orders}

    stale = db.query(OrderModel).filter(OrderModel.id.notin_(keep)).delete(
        synchronize_session=False
    )
    for order in orders:
        db.merge(
            OrderModel(
                id=order.id,
                created_at=order.created_at.isoformat() if order.created_at else None,
                restaurant_name=order.restaurant_name,
                source=order.source.value,
                total_price=order.total_price,
                order_json=order.model_dump(mode="json"),
            )
        )
    logger.info("Stored %d orders (%d removed)", len(orders), stale)
    return len(orders)


def clear_orders(db: Session) -> int:
    return db.query(OrderModel).delete(synchronize_session=False)


def add_snapshot(db: Session, source_type: str, url: Optional[str], raw: Any) -> str:
    snapshot = CaptureSnapshotModel(
        id=str(uuid.uuid4()),
        captured_at=datetime.now(timezone.utc).isoformat(),
        source_type=source_type,
        url=url,
        raw_json=raw,
    )
    db.add(snapshot)
    return snapshot.id


class DbFetchCheckpoint:
    """:class:`~wrapped.pipeline.checkpoint.FetchCheckpoint` stored in SQL."""

    def __init__(self, db: Session):
        self.db = db

    def get_last_fetch_date(self) -> Optional[date]:
        row = self.db.get(CheckpointModel, LAST_FETCH_DATE_KEY)
        if row is None or not row.value:
            return None
        try:
            return date.fromisoformat(row.value)
        except ValueError:
            logger.warning("Ignoring malformed checkpoint value %r", row.value)
            return None

    def set_last_fetch_date(self, day: date) -> None:
        self.db.merge(CheckpointModel(key=LAST_FETCH_DATE_KEY, value=day.isoformat()))
        self.db.commit()
