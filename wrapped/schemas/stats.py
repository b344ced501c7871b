"""
Derived statistics rendered by the Wrapped slideshow.

Money here is in major units (dollars); conversion happens at aggregation.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class RankEntry(BaseModel):
    name: str
    count: int


class DishEntry(BaseModel):
    name: str
    count: int
    spent: float


class AddressEntry(BaseModel):
    address: str
    count: int


class HourEntry(BaseModel):
    hour: int
    count: int


class OrderExtreme(BaseModel):
    order_id: str
    restaurant_name: Optional[str] = None
    price: float


class LocationCluster(BaseModel):
    lat: float
    lng: float
    address: str = "Unknown"
    count: int = 0


class DeliveryLocations(BaseModel):
    unique_count: int = 0
    orders_with_location: int = 0
    top_locations: list[LocationCluster] = Field(default_factory=list)
    max_distance: float = 0.0
    furthest_pair: Optional[tuple[LocationCluster, LocationCluster]] = None


class FriendStat(BaseModel):
    name: str
    count: int
    spent: float
    favorite_dish: str = "N/A"


class Statistics(BaseModel):
    total_orders: int = 0
    total_spent: float = 0.0
    avg_order: float = 0.0
    total_items: int = 0
    total_tips: float = 0.0
    unique_restaurants: int = 0

    top_restaurants: list[RankEntry] = Field(default_factory=list)
    top_items: list[RankEntry] = Field(default_factory=list)
    top_dishes: list[DishEntry] = Field(default_factory=list)

    day_counts: dict[str, int] = Field(default_factory=dict)
    hour_counts: dict[int, int] = Field(default_factory=dict)
    month_counts: dict[str, int] = Field(default_factory=dict)
    activity_map: dict[str, int] = Field(
        default_factory=dict,
        description="'{day}-{hour}' -> count, Sunday = 0",
    )
    top_day: Optional[RankEntry] = None
    top_hour: Optional[HourEntry] = None
    top_month: Optional[RankEntry] = None

    most_expensive: Optional[OrderExtreme] = None
    least_expensive: Optional[OrderExtreme] = None

    unique_addresses: int = 0
    top_addresses: list[AddressEntry] = Field(default_factory=list)
    delivery_locations: DeliveryLocations = Field(default_factory=DeliveryLocations)

    group_orders_count: int = 0
    top_friends: list[FriendStat] = Field(default_factory=list)
