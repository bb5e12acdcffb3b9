"""
Double-booking detection.

Stays are half-open intervals `[check_in, check_out)`: a guest leaving on the
morning another one arrives does not collide with them. `overlaps` is the only
place that comparison is written down; the queries below narrow candidates in
SQL and then filter them through it.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import ACTIVE_STATUSES, ROOM_AVAILABLE, Booking, Room


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and b_start < a_end


def find_overlapping(
    s: Session,
    room_id: str,
    check_in: datetime,
    check_out: datetime,
    exclude_id: Optional[str] = None,
    for_update: bool = False,
) -> list[Booking]:
    stmt = select(Booking).where(
        Booking.room_id == room_id,
        Booking.status.in_(ACTIVE_STATUSES),
        Booking.check_in < check_out,
    )
    if exclude_id:
        stmt = stmt.where(Booking.id != exclude_id)
    if for_update:
        stmt = stmt.with_for_update()
    rows = s.execute(stmt).scalars().all()
    return [b for b in rows if overlaps(b.check_in, b.check_out, check_in, check_out)]


def booked_room_ids(s: Session, check_in: datetime, check_out: datetime) -> set[str]:
    rows = s.execute(
        select(Booking.room_id, Booking.check_in, Booking.check_out).where(
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.check_in < check_out,
        )
    ).all()
    return {rid for rid, bi, bo in rows if overlaps(bi, bo, check_in, check_out)}


def available_rooms(s: Session, check_in: datetime, check_out: datetime) -> list[Room]:
    # rooms flagged Occupied or Maintenance right now are never offered
    taken = booked_room_ids(s, check_in, check_out)
    rooms = s.execute(
        select(Room).where(Room.status == ROOM_AVAILABLE).order_by(Room.room_number)
    ).scalars().all()
    return [r for r in rooms if r.id not in taken]
