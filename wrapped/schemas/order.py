"""
Canonical order record shared by the email and network-capture paths.

Every monetary value is an integer amount of minor units (cents).
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# largest amount a signed 64-bit SQL INTEGER column holds
MAX_CENTS = 2**63 - 1


class ContentKind(str, Enum):
    """Which body representation the field extractors read."""
    PLAIN_TEXT = "plain_text"
    HTML = "html"


class EmailType(str, Enum):
    FINAL_RECEIPT = "final_receipt"
    CONFIRMATION = "confirmation"
    OTHER = "other"


class OrderSource(str, Enum):
    EMAIL = "email"
    NETWORK = "network"


# ---------------------------------------------------------------------------
# Order parts
# ---------------------------------------------------------------------------

class OrderItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    quantity: int = Field(1, ge=1)
    price: int = Field(0, le=MAX_CENTS, description="Unit price in cents")


class DeliveryAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    printable_address: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class Fees(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: int = 0
    tax: int = 0
    delivery_fee: int = 0
    service_fee: int = 0
    tip: int = 0


class Participant(BaseModel):
    """One member of a group order with the items they added."""
    model_config = ConfigDict(frozen=True)

    name: str
    items: list[OrderItem] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------

class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    restaurant_name: Optional[str] = None
    created_at: Optional[datetime] = None
    items: list[OrderItem] = Field(default_factory=list)
    total_price: int = Field(0, le=MAX_CENTS)
    currency: str = "USD"
    delivery_address: Optional[DeliveryAddress] = None
    fees: Optional[Fees] = None
    email_type: Optional[EmailType] = None
    subject: Optional[str] = None
    source: OrderSource = OrderSource.EMAIL

    # group orders (network path only)
    is_group: bool = False
    creator: Optional[str] = None
    participants: list[Participant] = Field(default_factory=list)


class EmailParts(BaseModel):
    """Header map plus the decoded plain-text and HTML bodies of one email."""
    headers: dict[str, str] = Field(default_factory=dict)
    plain_text: str = ""
    html_text: str = ""


class MergeResult(BaseModel):
    orders: list[Order] = Field(default_factory=list)
    duplicates: int = 0
