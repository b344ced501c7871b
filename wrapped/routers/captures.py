"""
Network capture endpoints.

POST /api/captures             - store a raw response, normalize and merge it,
                                 and plan the next history page
GET  /api/captures/checkpoint  - last day the full history was paged through
PUT  /api/captures/checkpoint  - record that day
"""
from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from wrapped import repository
from wrapped.database import get_db
from wrapped.pipeline import ingest_capture
from wrapped.pipeline.capture import extract_raw_orders
from wrapped.pipeline.checkpoint import plan_next_page
from wrapped.schemas import CaptureRequest, CaptureResponse, CheckpointBody

logger = logging.getLogger(__name__)
router = APIRouter()


# ── POST /api/captures ───────────────────────────────────────────────────
@router.post("/captures", response_model=CaptureResponse)
def capture(req: CaptureRequest, db: Session = Depends(get_db)):
    if not req.data:
        raise HTTPException(status_code=400, detail="data must not be empty")

    with repository.write_lock:
        snapshot_id = repository.add_snapshot(db, req.source_type, req.url, req.data)
        existing = repository.load_orders(db)
        normalized, merged = ingest_capture(existing, req.data)
        repository.replace_orders(db, merged.orders)
        db.commit()

    next_variables = None
    if req.variables is not None:
        next_variables = plan_next_page(
            repository.DbFetchCheckpoint(db),
            req.variables,
            page_size=len(extract_raw_orders(req.data)),
            today=date.today(),
        )

    logger.info(
        "Stored snapshot %s: %d new orders, %d total",
        snapshot_id, len(normalized), len(merged.orders),
    )
    return CaptureResponse(
        snapshot_id=snapshot_id,
        new_orders=len(normalized),
        duplicates=merged.duplicates,
        total_orders=len(merged.orders),
        next_variables=next_variables,
    )


# ── GET /api/captures/checkpoint ─────────────────────────────────────────
@router.get("/captures/checkpoint", response_model=CheckpointBody)
def get_checkpoint(db: Session = Depends(get_db)):
    checkpoint = repository.DbFetchCheckpoint(db)
    return CheckpointBody(last_fetch_date=checkpoint.get_last_fetch_date())


# ── PUT /api/captures/checkpoint ─────────────────────────────────────────
@router.put("/captures/checkpoint", response_model=CheckpointBody)
def set_checkpoint(body: CheckpointBody, db: Session = Depends(get_db)):
    checkpoint = repository.DbFetchCheckpoint(db)
    day = body.last_fetch_date or date.today()
    checkpoint.set_last_fetch_date(day)
    logger.info("Fetch checkpoint set to %s", day)
    return CheckpointBody(last_fetch_date=day)
