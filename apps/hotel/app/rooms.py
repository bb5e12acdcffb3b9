import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from . import audit, conflicts
from .dates import to_utc_naive, utcnow
from .errors import (
    DuplicateRoomNumber,
    PreconditionFailed,
    RoomHasActiveBookings,
    RoomNotFound,
    ValidationError,
)
from .models import ACTIVE_STATUSES, CHECKED_IN, ROOM_OCCUPIED, Booking, Room
from .schemas import RoomCreate, RoomUpdate
from .store import HotelStore

_log = logging.getLogger("hotel.rooms")

# columns that may be cleared with an explicit null
_NULLABLE = {"notes"}


def load_room(s: Session, room_id: str, for_update: bool = False) -> Room:
    stmt = select(Room).where(Room.id == room_id)
    if for_update:
        stmt = stmt.with_for_update()
    room = s.execute(stmt).scalars().first()
    if room is None:
        raise RoomNotFound(room_id)
    return room


def count_bookings(s: Session, room_id: str, statuses) -> int:
    return int(
        s.execute(
            select(func.count(Booking.id)).where(
                Booking.room_id == room_id,
                Booking.status.in_(statuses),
            )
        ).scalar_one()
    )


def _number_taken(s: Session, room_number: str, exclude_id: Optional[str] = None) -> bool:
    stmt = select(Room.id).where(Room.room_number == room_number)
    if exclude_id:
        stmt = stmt.where(Room.id != exclude_id)
    return s.execute(stmt).first() is not None


class RoomStore:
    def __init__(self, store: HotelStore):
        self.store = store

    def create(self, req: RoomCreate, actor_id: Optional[str] = None) -> Room:
        if req.status == ROOM_OCCUPIED:
            raise ValidationError("a new room cannot start as Occupied")
        with self.store.transaction() as s:
            if _number_taken(s, req.room_number):
                raise DuplicateRoomNumber(req.room_number)
            now = utcnow()
            room = Room(
                id=str(uuid.uuid4()),
                room_number=req.room_number,
                type=req.type,
                capacity=req.capacity,
                price_per_night_cents=req.price_per_night_cents,
                status=req.status,
                amenities=list(req.amenities),
                notes=req.notes,
                created_at=now,
                updated_at=now,
            )
            s.add(room)
            s.flush()
            audit.record(s, actor_id, "room_created", "room", room.id, f"Created room {room.room_number}")
        _log.info("room created id=%s number=%s", room.id, room.room_number)
        return room

    def get(self, room_id: str) -> Room:
        with self.store.snapshot() as s:
            return load_room(s, room_id)

    def list_all(self) -> list[Room]:
        with self.store.snapshot() as s:
            return list(s.execute(select(Room).order_by(Room.room_number)).scalars().all())

    def update(self, room_id: str, req: RoomUpdate, actor_id: Optional[str] = None) -> Room:
        changes = {
            k: v
            for k, v in req.model_dump(exclude_unset=True).items()
            if v is not None or k in _NULLABLE
        }
        with self.store.transaction() as s:
            room = load_room(s, room_id, for_update=True)
            number = changes.get("room_number")
            if number is not None and number != room.room_number and _number_taken(s, number, room.id):
                raise DuplicateRoomNumber(number)
            status = changes.get("status")
            if status is not None and status != room.status:
                # Occupied mirrors "has a checked-in guest"; only the booking lifecycle moves it
                guests = count_bookings(s, room.id, (CHECKED_IN,))
                if (status == ROOM_OCCUPIED) != (guests > 0):
                    raise PreconditionFailed(
                        f"room {room.room_number} cannot be set to {status} "
                        f"with {guests} checked-in booking(s)"
                    )
            for k, v in changes.items():
                setattr(room, k, list(v) if k == "amenities" else v)
            room.updated_at = utcnow()
            audit.record(s, actor_id, "room_updated", "room", room.id, f"Updated room {room.room_number}")
        return room

    def delete(self, room_id: str, actor_id: Optional[str] = None) -> None:
        with self.store.transaction() as s:
            room = load_room(s, room_id, for_update=True)
            active = count_bookings(s, room.id, ACTIVE_STATUSES)
            if active > 0:
                raise RoomHasActiveBookings(room.id, active)
            number = room.room_number
            s.delete(room)
            audit.record(s, actor_id, "room_deleted", "room", room_id, f"Deleted room {number}")
        _log.info("room deleted id=%s number=%s", room_id, number)

    def filter(
        self,
        status: Optional[str] = None,
        type: Optional[str] = None,
        min_capacity: Optional[int] = None,
        max_price_cents: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list[Room]:
        stmt = select(Room)
        if status:
            stmt = stmt.where(Room.status == status)
        if type:
            stmt = stmt.where(Room.type == type)
        if min_capacity is not None:
            stmt = stmt.where(Room.capacity >= min_capacity)
        if max_price_cents is not None:
            stmt = stmt.where(Room.price_per_night_cents <= max_price_cents)
        if search and search.strip():
            q = search.strip().lower()
            stmt = stmt.where(
                or_(
                    func.lower(Room.room_number).contains(q, autoescape=True),
                    func.lower(Room.type).contains(q, autoescape=True),
                    func.lower(func.coalesce(Room.notes, "")).contains(q, autoescape=True),
                )
            )
        with self.store.snapshot() as s:
            return list(s.execute(stmt.order_by(Room.room_number)).scalars().all())

    def available(self, check_in: datetime, check_out: datetime) -> list[Room]:
        check_in, check_out = to_utc_naive(check_in), to_utc_naive(check_out)
        if check_out <= check_in:
            raise ValidationError("check-out must be after check-in")
        with self.store.snapshot() as s:
            return conflicts.available_rooms(s, check_in, check_out)
