"""
Statistics aggregator.

``aggregate`` is a pure function of the order sequence: one fold fills a
``Counter`` per metric, then rankings, extremes and geography are derived
from those tallies. Stored cents become dollars only here.
"""
from __future__ import annotations

import math
from collections import Counter
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from wrapped.config import settings
from wrapped.schemas import (
    AddressEntry,
    DeliveryLocations,
    DishEntry,
    FriendStat,
    HourEntry,
    LocationCluster,
    Order,
    OrderExtreme,
    RankEntry,
    Statistics,
)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

TOP_RESTAURANTS = 5
TOP_ITEMS = 5
TOP_DISHES = 5
TOP_LOCATIONS = 5
TOP_FRIENDS = 3

EARTH_RADIUS_MILES = 3959


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _dollars(cents: int) -> float:
    return cents / 100


def _ranked(counter: Counter, n: int) -> list[tuple]:
    """Descending by count; ties keep first-encountered order."""
    return sorted(counter.items(), key=lambda kv: kv[1], reverse=True)[:n]


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in miles."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    a = min(a, 1.0)
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _furthest_pair(
    clusters: Sequence[LocationCluster],
) -> tuple[float, tuple[LocationCluster, LocationCluster] | None]:
    # O(n^2) over distinct clusters, not raw orders
    best = 0.0
    pair = None
    for i in range(len(clusters)):
        for j in range(i + 1, len(clusters)):
            a, b = clusters[i], clusters[j]
            dist = haversine_distance(a.lat, a.lng, b.lat, b.lng)
            if dist > best:
                best = dist
                pair = (a, b)
    return best, pair


def _price_extremes(orders: Sequence[Order]) -> tuple[OrderExtreme | None, OrderExtreme | None]:
    most = least = None
    for order in orders:
        if order.total_price <= 0:
            continue
        if most is None or order.total_price > most.total_price:
            most = order
        if least is None or order.total_price < least.total_price:
            least = order

    def _as_extreme(order: Order | None) -> OrderExtreme | None:
        if order is None:
            return None
        return OrderExtreme(
            order_id=order.id,
            restaurant_name=order.restaurant_name,
            price=_dollars(order.total_price),
        )

    return _as_extreme(most), _as_extreme(least)


def _friend_stats(orders: Sequence[Order]) -> tuple[int, list[FriendStat]]:
    """Per-participant group-order stats, excluding the account holder.

    The account holder is the creator of the first order that has one.
    """
    me = next((o.creator for o in orders if o.creator), None)

    group_orders = 0
    order_counts: Counter = Counter()
    spent: Counter = Counter()
    dishes: dict[str, Counter] = {}

    for order in orders:
        if not order.is_group or not order.participants:
            continue
        group_orders += 1
        for participant in order.participants:
            if participant.name == me:
                continue
            order_counts[participant.name] += 1
            favourites = dishes.setdefault(participant.name, Counter())
            for item in participant.items:
                spent[participant.name] += item.price * item.quantity
                favourites[item.name] += item.quantity

    friends = []
    for name, count in _ranked(order_counts, TOP_FRIENDS):
        top_dish = _ranked(dishes[name], 1)
        friends.append(
            FriendStat(
                name=name,
                count=count,
                spent=_dollars(spent[name]),
                favorite_dish=top_dish[0][0] if top_dish else "N/A",
            )
        )
    return group_orders, friends


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def aggregate(orders: Iterable[Order]) -> Statistics:
    """Compute every Wrapped statistic for *orders*."""
    orders = list(orders)
    tz = ZoneInfo(settings.STATS_TIMEZONE)

    total_cents = 0
    tip_cents = 0
    total_items = 0
    restaurants: Counter = Counter()
    item_counts: Counter = Counter()
    dish_cents: Counter = Counter()
    addresses: Counter = Counter()
    days: Counter = Counter()
    hours: Counter = Counter()
    months: Counter = Counter()
    activity: Counter = Counter()
    clusters: dict[str, LocationCluster] = {}
    orders_with_location = 0

    for order in orders:
        total_cents += order.total_price
        tip_cents += order.fees.tip if order.fees else 0
        restaurants[order.restaurant_name or "Unknown Restaurant"] += 1

        for item in order.items:
            total_items += item.quantity
            item_counts[item.name] += item.quantity
            dish_cents[item.name] += item.price * item.quantity

        address = order.delivery_address
        if address and address.printable_address:
            addresses[address.printable_address] += 1
        if address and address.lat is not None and address.lng is not None:
            orders_with_location += 1
            key = f"{address.lat:.4f},{address.lng:.4f}"
            cluster = clusters.get(key)
            if cluster is None:
                cluster = clusters[key] = LocationCluster(
                    lat=address.lat,
                    lng=address.lng,
                    address=address.printable_address or "Unknown",
                )
            cluster.count += 1

        if order.created_at is not None:
            local = order.created_at.astimezone(tz)
            day = (local.weekday() + 1) % 7  # Sunday = 0
            days[DAY_NAMES[day]] += 1
            hours[local.hour] += 1
            months[MONTH_NAMES[local.month - 1]] += 1
            activity[f"{day}-{local.hour}"] += 1

    top_day = _ranked(days, 1)
    top_hour = _ranked(hours, 1)
    top_month = _ranked(months, 1)

    cluster_list = list(clusters.values())
    max_distance, furthest_pair = _furthest_pair(cluster_list)
    most_expensive, least_expensive = _price_extremes(orders)
    group_orders_count, top_friends = _friend_stats(orders)

    total_spent = _dollars(total_cents)
    return Statistics(
        total_orders=len(orders),
        total_spent=total_spent,
        avg_order=total_spent / len(orders) if orders else 0.0,
        total_items=total_items,
        total_tips=_dollars(tip_cents),
        unique_restaurants=len(restaurants),
        top_restaurants=[
            RankEntry(name=str(name), count=count)
            for name, count in _ranked(restaurants, TOP_RESTAURANTS)
        ],
        top_items=[
            RankEntry(name=name, count=count)
            for name, count in _ranked(item_counts, TOP_ITEMS)
        ],
        top_dishes=[
            DishEntry(name=name, count=count, spent=_dollars(dish_cents[name]))
            for name, count in _ranked(item_counts, TOP_DISHES)
        ],
        day_counts=dict(days),
        hour_counts=dict(hours),
        month_counts=dict(months),
        activity_map=dict(activity),
        top_day=RankEntry(name=top_day[0][0], count=top_day[0][1]) if top_day else None,
        top_hour=HourEntry(hour=top_hour[0][0], count=top_hour[0][1]) if top_hour else None,
        top_month=RankEntry(name=top_month[0][0], count=top_month[0][1]) if top_month else None,
        most_expensive=most_expensive,
        least_expensive=least_expensive,
        unique_addresses=len(addresses),
        top_addresses=[
            AddressEntry(address=addr, count=count)
            for addr, count in _ranked(addresses, TOP_LOCATIONS)
        ],
        delivery_locations=DeliveryLocations(
            unique_count=len(cluster_list),
            orders_with_location=orders_with_location,
            top_locations=sorted(cluster_list, key=lambda c: c.count, reverse=True)[:TOP_LOCATIONS],
            max_distance=max_distance,
            furthest_pair=furthest_pair,
        ),
        group_orders_count=group_orders_count,
        top_friends=top_friends,
    )
