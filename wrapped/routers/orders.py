"""
Order collection endpoints.

POST   /api/emails/ingest  - parse raw emails, merge into the collection
GET    /api/orders         - sorted collection, newest first
GET    /api/orders/{id}    - one order
DELETE /api/orders         - clear the collection
GET    /api/stats          - Wrapped statistics of the collection
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from wrapped import repository
from wrapped.database import get_db
from wrapped.pipeline import compute_statistics, ingest_emails
from wrapped.schemas import EmailIngestRequest, EmailIngestResponse, Order, Statistics

logger = logging.getLogger(__name__)
router = APIRouter()


# ── POST /api/emails/ingest ──────────────────────────────────────────────
@router.post("/emails/ingest", response_model=EmailIngestResponse)
def ingest(req: EmailIngestRequest, db: Session = Depends(get_db)):
    raw_emails = [r for r in req.raw_emails if r.strip()]
    if not raw_emails:
        raise HTTPException(status_code=400, detail="raw_emails must not be empty")

    logger.info("Ingest: %d raw emails", len(raw_emails))

    with repository.write_lock:
        existing = repository.load_orders(db)
        parsed, merged = ingest_emails(existing, raw_emails)
        repository.replace_orders(db, merged.orders)
        db.commit()

    return EmailIngestResponse(
        received=len(raw_emails),
        parsed=len(parsed),
        duplicates=merged.duplicates,
        total_orders=len(merged.orders),
        orders=parsed,
    )


# ── GET /api/orders ──────────────────────────────────────────────────────
@router.get("/orders", response_model=list[Order])
def list_orders(db: Session = Depends(get_db)):
    orders = repository.load_orders(db)
    logger.info("Found %d orders in database", len(orders))
    return orders


# ── GET /api/orders/{order_id} ───────────────────────────────────────────
@router.get("/orders/{order_id}", response_model=Order)
def get_order(order_id: str, db: Session = Depends(get_db)):
    order = repository.get_order(db, order_id)
    if order is None:
        logger.warning("Order not found: %s", order_id)
        raise HTTPException(status_code=404, detail="Order not found")
    return order


# ── DELETE /api/orders ───────────────────────────────────────────────────
@router.delete("/orders")
def clear_orders(db: Session = Depends(get_db)):
    with repository.write_lock:
        removed = repository.clear_orders(db)
        db.commit()
    logger.info("Cleared %d orders", removed)
    return {"message": "Orders cleared", "removed": removed}


# ── GET /api/stats ───────────────────────────────────────────────────────
@router.get("/stats", response_model=Statistics)
def stats(db: Session = Depends(get_db)):
    return compute_statistics(repository.load_orders(db))
