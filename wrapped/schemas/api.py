"""
Request / response envelopes for the HTTP API.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field

from wrapped.schemas.order import Order


class EmailIngestRequest(BaseModel):
    raw_emails: list[str] = Field(..., description="Raw RFC-2822 messages")


class EmailIngestResponse(BaseModel):
    received: int
    parsed: int
    duplicates: int
    total_orders: int
    orders: list[Order] = Field(default_factory=list)


class CaptureRequest(BaseModel):
    source_type: str = Field("fetch", description="fetch | xhr")
    url: Optional[str] = None
    data: dict[str, Any]
    variables: Optional[dict[str, Any]] = Field(
        None, description="GraphQL variables of the captured request (offset, limit)"
    )


class CaptureResponse(BaseModel):
    snapshot_id: str
    new_orders: int
    duplicates: int
    total_orders: int
    next_variables: Optional[dict[str, Any]] = Field(
        None, description="Variables of the next history page to fetch, if any"
    )


class CheckpointBody(BaseModel):
    last_fetch_date: Optional[date] = None
