"""
Canonical pydantic schemas for the order pipeline.
"""
from wrapped.schemas.api import (  # noqa: F401
    CaptureRequest,
    CaptureResponse,
    CheckpointBody,
    EmailIngestRequest,
    EmailIngestResponse,
)
from wrapped.schemas.order import (  # noqa: F401
    MAX_CENTS,
    ContentKind,
    DeliveryAddress,
    EmailParts,
    EmailType,
    Fees,
    MergeResult,
    Order,
    OrderItem,
    OrderSource,
    Participant,
)
from wrapped.schemas.stats import (  # noqa: F401
    AddressEntry,
    DeliveryLocations,
    DishEntry,
    FriendStat,
    HourEntry,
    LocationCluster,
    OrderExtreme,
    RankEntry,
    Statistics,
)
