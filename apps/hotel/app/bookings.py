"""
Booking lifecycle.

    Reserved --check_in--> Checked-in --check_out--> Checked-out
        \\                      /
         +-----cancel---------+--> Cancelled

Walk-ins may be created directly as Checked-in. Checked-out and Cancelled are
terminal. A room is Occupied exactly while it holds a Checked-in booking; every
operation that moves a booking into or out of Checked-in updates the room in
the same transaction.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from . import audit
from .conflicts import find_overlapping
from .dates import day_bounds, nights_between, to_utc_naive, utcnow
from .errors import BookingNotFound, InvalidTransition, RoomUnavailable, ValidationError
from .models import (
    ACTIVE_STATUSES,
    CANCELLED,
    CHECKED_IN,
    CHECKED_OUT,
    RESERVED,
    ROOM_AVAILABLE,
    ROOM_OCCUPIED,
    Booking,
    Room,
)
from .rooms import count_bookings, load_room
from .schemas import BookingCreate, BookingUpdate
from .store import HotelStore

_log = logging.getLogger("hotel.bookings")

_NULLABLE = {"notes"}


def total_cost_cents(room: Room, check_in: datetime, check_out: datetime) -> int:
    return nights_between(check_in, check_out) * int(room.price_per_night_cents)


def load_booking(s: Session, booking_id: str, for_update: bool = False) -> Booking:
    stmt = select(Booking).where(Booking.id == booking_id)
    if for_update:
        stmt = stmt.with_for_update()
    b = s.execute(stmt).scalars().first()
    if b is None:
        raise BookingNotFound(booking_id)
    return b


def _occupy(s: Session, room_id: str) -> None:
    room = s.get(Room, room_id)
    if room is not None and room.status != ROOM_OCCUPIED:
        room.status = ROOM_OCCUPIED
        room.updated_at = utcnow()


def _release(s: Session, room_id: str) -> None:
    # flush first so the booking that just left Checked-in is not counted
    s.flush()
    if count_bookings(s, room_id, (CHECKED_IN,)) > 0:
        return
    room = s.get(Room, room_id)
    if room is not None and room.status == ROOM_OCCUPIED:
        room.status = ROOM_AVAILABLE
        room.updated_at = utcnow()


def _check_range(check_in: datetime, check_out: datetime) -> None:
    if check_out <= check_in:
        raise ValidationError("check-out date must be after check-in date")


def _ensure_free(
    s: Session,
    room_id: str,
    check_in: datetime,
    check_out: datetime,
    exclude_id: Optional[str] = None,
) -> None:
    clash = find_overlapping(s, room_id, check_in, check_out, exclude_id=exclude_id, for_update=True)
    if clash:
        raise RoomUnavailable(room_id, [b.id for b in clash])


class BookingLifecycle:
    def __init__(self, store: HotelStore):
        self.store = store

    # --- writes ---
    def create(self, req: BookingCreate, actor_id: Optional[str] = None) -> Booking:
        _check_range(req.check_in, req.check_out)
        with self.store.transaction() as s:
            room = load_room(s, req.room_id, for_update=True)
            _ensure_free(s, room.id, req.check_in, req.check_out)
            now = utcnow()
            b = Booking(
                id=str(uuid.uuid4()),
                guest_name=req.guest_name,
                guest_contact=req.guest_contact,
                room_id=room.id,
                check_in=req.check_in,
                check_out=req.check_out,
                status=req.status,
                payment_status=req.payment_status,
                total_cost_cents=total_cost_cents(room, req.check_in, req.check_out),
                paid_amount_cents=req.paid_amount_cents,
                notes=req.notes,
                created_at=now,
                updated_at=now,
            )
            s.add(b)
            if b.status == CHECKED_IN:
                _occupy(s, room.id)
            s.flush()
            audit.record(
                s, actor_id, "booking_created", "booking", b.id,
                f"Created booking for {b.guest_name} in room {room.room_number}",
            )
        _log.info("booking created id=%s room=%s status=%s", b.id, b.room_id, b.status)
        return b

    def update(self, booking_id: str, req: BookingUpdate, actor_id: Optional[str] = None) -> Booking:
        changes = {
            k: v
            for k, v in req.model_dump(exclude_unset=True).items()
            if v is not None or k in _NULLABLE
        }
        with self.store.transaction() as s:
            b = load_booking(s, booking_id, for_update=True)
            room_id = changes.get("room_id", b.room_id)
            check_in = changes.get("check_in", b.check_in)
            check_out = changes.get("check_out", b.check_out)
            _check_range(check_in, check_out)
            moved = room_id != b.room_id
            reschedule = moved or check_in != b.check_in or check_out != b.check_out
            if reschedule:
                room = load_room(s, room_id, for_update=True)
                if b.status in (RESERVED, CHECKED_IN):
                    _ensure_free(s, room.id, check_in, check_out, exclude_id=b.id)
                b.total_cost_cents = total_cost_cents(room, check_in, check_out)
            old_room_id = b.room_id
            for k, v in changes.items():
                setattr(b, k, v)
            b.updated_at = utcnow()
            if moved and b.status == CHECKED_IN:
                _release(s, old_room_id)
                _occupy(s, room_id)
            audit.record(s, actor_id, "booking_updated", "booking", b.id, f"Updated booking for {b.guest_name}")
        return b

    def _transition(
        self,
        booking_id: str,
        requested: str,
        allowed_from: tuple[str, ...],
        action: str,
        actor_id: Optional[str],
    ) -> Booking:
        with self.store.transaction() as s:
            b = load_booking(s, booking_id, for_update=True)
            if b.status not in allowed_from:
                raise InvalidTransition(b.id, b.status, requested)
            previous = b.status
            b.status = requested
            b.updated_at = utcnow()
            if requested == CHECKED_IN:
                _occupy(s, b.room_id)
            elif previous == CHECKED_IN:
                _release(s, b.room_id)
            audit.record(s, actor_id, action, "booking", b.id, f"{previous} -> {requested} for {b.guest_name}")
        _log.info("booking %s %s -> %s", b.id, previous, requested)
        return b

    def check_in(self, booking_id: str, actor_id: Optional[str] = None) -> Booking:
        return self._transition(booking_id, CHECKED_IN, (RESERVED,), "booking_checked_in", actor_id)

    def check_out(self, booking_id: str, actor_id: Optional[str] = None) -> Booking:
        return self._transition(booking_id, CHECKED_OUT, (CHECKED_IN,), "booking_checked_out", actor_id)

    def cancel(self, booking_id: str, actor_id: Optional[str] = None) -> Booking:
        return self._transition(booking_id, CANCELLED, (RESERVED, CHECKED_IN), "booking_cancelled", actor_id)

    def delete(self, booking_id: str, actor_id: Optional[str] = None) -> None:
        with self.store.transaction() as s:
            b = load_booking(s, booking_id, for_update=True)
            was_checked_in = b.status == CHECKED_IN
            room_id, guest = b.room_id, b.guest_name
            s.delete(b)
            if was_checked_in:
                _release(s, room_id)
            audit.record(s, actor_id, "booking_deleted", "booking", booking_id, f"Deleted booking for {guest}")
        _log.info("booking deleted id=%s", booking_id)

    # --- reads ---
    def get(self, booking_id: str) -> Booking:
        with self.store.snapshot() as s:
            return load_booking(s, booking_id)

    def list_all(self) -> list[Booking]:
        with self.store.snapshot() as s:
            return list(s.execute(select(Booking).order_by(Booking.check_in.desc())).scalars().all())

    def filter(
        self,
        status: Optional[str] = None,
        room_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        search: Optional[str] = None,
    ) -> list[Booking]:
        """
        Bookings matching every given criterion.

        `start`/`end` keep bookings whose stay intersects the window; either
        bound may be omitted. `search` matches guest name or contact,
        case-insensitively.
        """
        stmt = select(Booking)
        if status:
            stmt = stmt.where(Booking.status == status)
        if room_id:
            stmt = stmt.where(Booking.room_id == room_id)
        if start is not None:
            stmt = stmt.where(Booking.check_out > to_utc_naive(start))
        if end is not None:
            stmt = stmt.where(Booking.check_in < to_utc_naive(end))
        if search and search.strip():
            q = search.strip().lower()
            stmt = stmt.where(
                or_(
                    func.lower(Booking.guest_name).contains(q, autoescape=True),
                    func.lower(Booking.guest_contact).contains(q, autoescape=True),
                )
            )
        with self.store.snapshot() as s:
            return list(s.execute(stmt.order_by(Booking.check_in.desc())).scalars().all())

    def upcoming(self, days: int = 7, now: Optional[datetime] = None) -> list[Booking]:
        """Active bookings arriving in `[now, now + days)`, soonest first."""
        now = to_utc_naive(now) if now is not None else utcnow()
        until = now + timedelta(days=days)
        stmt = (
            select(Booking)
            .where(Booking.status.in_(ACTIVE_STATUSES), Booking.check_in >= now, Booking.check_in < until)
            .order_by(Booking.check_in)
        )
        with self.store.snapshot() as s:
            return list(s.execute(stmt).scalars().all())

    def todays_check_ins(self, now: Optional[datetime] = None) -> list[Booking]:
        start, end = day_bounds(now or utcnow())
        stmt = (
            select(Booking)
            .where(Booking.status == RESERVED, Booking.check_in >= start, Booking.check_in < end)
            .order_by(Booking.check_in)
        )
        with self.store.snapshot() as s:
            return list(s.execute(stmt).scalars().all())

    def todays_check_outs(self, now: Optional[datetime] = None) -> list[Booking]:
        start, end = day_bounds(now or utcnow())
        stmt = (
            select(Booking)
            .where(Booking.status == CHECKED_IN, Booking.check_out >= start, Booking.check_out < end)
            .order_by(Booking.check_out)
        )
        with self.store.snapshot() as s:
            return list(s.execute(stmt).scalars().all())
