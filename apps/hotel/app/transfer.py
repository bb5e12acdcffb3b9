"""
Whole-database export and import.

The export document is the portable backup format of the desk:

    {"users": [...], "rooms": [...], "bookings": [...], "settings": [...],
     "auditLogs": [...], "exportedAt": <epoch ms>}

Record keys are camelCase, timestamps ISO-8601 UTC. Import is destructive:
the document is validated completely first and then replaces every table in
a single transaction, so a rejected document leaves the data untouched.
"""

import json
import logging
import time
from collections import defaultdict
from typing import Any, Optional, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from . import audit
from .conflicts import overlaps
from .errors import ImportFormatError
from .models import ACTIVE_STATUSES, CHECKED_IN, ROOM_OCCUPIED, AuditLog, Booking, Room, Setting, User
from .schemas import ExportAuditLog, ExportBooking, ExportRoom, ExportSettings, ExportUser
from .store import HotelStore

_log = logging.getLogger("hotel.transfer")

# document key -> (record schema, table model)
_SECTIONS: dict[str, tuple[type[BaseModel], type]] = {
    "users": (ExportUser, User),
    "rooms": (ExportRoom, Room),
    "bookings": (ExportBooking, Booking),
    "settings": (ExportSettings, Setting),
    "auditLogs": (ExportAuditLog, AuditLog),
}


def _parse(payload: Union[str, bytes, dict]) -> dict:
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            payload = json.loads(payload)
        except (ValueError, UnicodeDecodeError):
            raise ImportFormatError()
    if not isinstance(payload, dict):
        raise ImportFormatError()
    for key in _SECTIONS:
        if not isinstance(payload.get(key), list):
            raise ImportFormatError(f"invalid data format, '{key}' must be an array")
    return payload


def _check_bookings(rooms: list[ExportRoom], bookings: list[ExportBooking]) -> None:
    by_room: dict[str, list[ExportBooking]] = defaultdict(list)
    for b in bookings:
        if b.check_out <= b.check_in:
            raise ImportFormatError(f"booking {b.id} ends before it starts")
        if b.status in ACTIVE_STATUSES:
            by_room[b.room_id].append(b)
    for room_id, rows in by_room.items():
        rows.sort(key=lambda b: b.check_in)
        for prev, cur in zip(rows, rows[1:]):
            if overlaps(prev.check_in, prev.check_out, cur.check_in, cur.check_out):
                raise ImportFormatError(f"bookings {prev.id} and {cur.id} overlap in room {room_id}")

    # a room is Occupied exactly when a guest is checked into it
    occupied = {b.room_id for b in bookings if b.status == CHECKED_IN}
    for r in rooms:
        if (r.status == ROOM_OCCUPIED) != (r.id in occupied):
            raise ImportFormatError(f"room {r.room_number} status {r.status} does not match its checked-in bookings")


class DataTransfer:
    def __init__(self, store: HotelStore):
        self.store = store

    def export_data(self, actor_id: Optional[str] = None) -> dict[str, Any]:
        doc: dict[str, Any] = {}
        with self.store.snapshot() as s:
            for key, (schema, model) in _SECTIONS.items():
                rows = s.execute(select(model)).scalars().all()
                doc[key] = [schema.model_validate(r).model_dump(mode="json", by_alias=True) for r in rows]
        doc["exportedAt"] = int(time.time() * 1000)
        if actor_id:
            with self.store.transaction() as s:
                audit.record(s, actor_id, "data_exported", details=f"{len(doc['bookings'])} bookings")
        return doc

    def export_json(self, actor_id: Optional[str] = None) -> str:
        return json.dumps(self.export_data(actor_id), indent=2)

    def import_data(self, payload: Union[str, bytes, dict], actor_id: Optional[str] = None) -> dict[str, int]:
        doc = _parse(payload)
        records: dict[str, list[BaseModel]] = {}
        for key, (schema, _) in _SECTIONS.items():
            try:
                records[key] = [schema.model_validate(r) for r in doc[key]]
            except PydanticValidationError as e:
                raise ImportFormatError(f"invalid {key} record: {e.errors()[0].get('msg')}")
        _check_bookings(records["rooms"], records["bookings"])  # type: ignore[arg-type]

        try:
            with self.store.transaction() as s:
                for _, model in reversed(list(_SECTIONS.values())):
                    s.execute(delete(model))
                for key, (_, model) in _SECTIONS.items():
                    s.add_all(model(**r.model_dump()) for r in records[key])
                s.flush()
        except IntegrityError:
            raise ImportFormatError("invalid data format, duplicate identifiers in export")

        counts = {
            "users": len(records["users"]),
            "rooms": len(records["rooms"]),
            "bookings": len(records["bookings"]),
            "settings": len(records["settings"]),
            "audit_logs": len(records["auditLogs"]),
        }
        audit.emit("data_imported", user_id=actor_id, **counts)
        _log.info("data imported %s", counts)
        return counts
