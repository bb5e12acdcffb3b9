"""
Occupancy and revenue figures.

The module-level functions are pure and work on any iterable of rooms and
bookings; `Analytics` feeds them from a store snapshot for the API.
"""

import math
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, select

from .dates import DAY, day_bounds, to_utc_naive, utcnow
from .models import (
    ACTIVE_STATUSES,
    CANCELLED,
    CHECKED_IN,
    RESERVED,
    ROOM_AVAILABLE,
    ROOM_MAINTENANCE,
    ROOM_OCCUPIED,
    Booking,
    Room,
)
from .store import HotelStore

DASHBOARD_WINDOW_DAYS = 30


def occupancy_rate(bookings: Iterable, room_count: int, start: datetime, end: datetime) -> float:
    """
    Percentage of room-nights sold in `[start, end)`.

    Each non-cancelled booking contributes the started nights of its overlap
    with the window. 0.0 when there are no rooms or the window is empty.
    """
    if room_count <= 0 or end <= start:
        return 0.0
    days = math.ceil((end - start) / DAY)
    sold = 0
    for b in bookings:
        if b.status == CANCELLED:
            continue
        lo = max(b.check_in, start)
        hi = min(b.check_out, end)
        if lo < hi:
            sold += math.ceil((hi - lo) / DAY)
    return sold / (room_count * days) * 100


def revenue(bookings: Iterable) -> dict[str, int]:
    total = 0
    paid = 0
    for b in bookings:
        if b.status == CANCELLED:
            continue
        total += int(b.total_cost_cents)
        paid += int(b.paid_amount_cents or 0)
    return {"total_cents": total, "paid_cents": paid, "pending_cents": total - paid}


def room_status_counts(rooms: Iterable) -> dict[str, int]:
    counts = {"total": 0, "available": 0, "occupied": 0, "maintenance": 0}
    for r in rooms:
        counts["total"] += 1
        if r.status == ROOM_AVAILABLE:
            counts["available"] += 1
        elif r.status == ROOM_OCCUPIED:
            counts["occupied"] += 1
        elif r.status == ROOM_MAINTENANCE:
            counts["maintenance"] += 1
    return counts


class Analytics:
    def __init__(self, store: HotelStore):
        self.store = store

    def occupancy(self, start: datetime, end: datetime) -> dict:
        start, end = to_utc_naive(start), to_utc_naive(end)
        with self.store.snapshot() as s:
            room_count = int(s.execute(select(func.count(Room.id))).scalar_one())
            rows = s.execute(
                select(Booking).where(
                    Booking.status != CANCELLED,
                    Booking.check_in < end,
                    Booking.check_out > start,
                )
            ).scalars().all()
        return {
            "start": start,
            "end": end,
            "room_count": room_count,
            "occupancy_rate": occupancy_rate(rows, room_count, start, end),
        }

    def revenue(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict[str, int]:
        """Revenue over all bookings, or over those whose stay intersects `[start, end)`."""
        stmt = select(Booking).where(Booking.status != CANCELLED)
        if start is not None:
            stmt = stmt.where(Booking.check_out > to_utc_naive(start))
        if end is not None:
            stmt = stmt.where(Booking.check_in < to_utc_naive(end))
        with self.store.snapshot() as s:
            return revenue(s.execute(stmt).scalars().all())

    def dashboard(self, now: Optional[datetime] = None, window_days: int = DASHBOARD_WINDOW_DAYS) -> dict:
        today, tomorrow = day_bounds(now or utcnow())
        occupancy = self.occupancy(today, today + timedelta(days=window_days))
        with self.store.snapshot() as s:
            rooms = s.execute(select(Room)).scalars().all()
            bookings = s.execute(select(Booking)).scalars().all()
        return {
            "rooms": room_status_counts(rooms),
            "occupancy": occupancy,
            "revenue": revenue(bookings),
            "active_bookings": sum(1 for b in bookings if b.status in ACTIVE_STATUSES),
            "todays_check_ins": sum(
                1 for b in bookings if b.status == RESERVED and today <= b.check_in < tomorrow
            ),
            "todays_check_outs": sum(
                1 for b in bookings if b.status == CHECKED_IN and today <= b.check_out < tomorrow
            ),
        }
