import logging
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from . import audit
from .dates import utcnow
from .models import SETTINGS_ID, AuditLog, Booking, Room, Setting, User
from .store import HotelStore

_log = logging.getLogger("hotel.settings")


def _ensure(s: Session) -> Setting:
    row = s.get(Setting, SETTINGS_ID)
    if row is None:
        row = Setting(id=SETTINGS_ID, theme="system", updated_at=utcnow())
        s.add(row)
        s.flush()
    return row


class SettingsStore:
    def __init__(self, store: HotelStore):
        self.store = store

    def get(self) -> Setting:
        with self.store.transaction() as s:
            return _ensure(s)

    def update(self, theme: str) -> Setting:
        with self.store.transaction() as s:
            row = _ensure(s)
            row.theme = theme
            row.updated_at = utcnow()
        return row

    def reset_all_data(self, actor_id: Optional[str] = None) -> None:
        """Wipe users, rooms, bookings and audit logs in one go. Settings survive."""
        with self.store.transaction() as s:
            for model in (AuditLog, Booking, Room, User):
                s.execute(delete(model))
        # the actor's own row is gone with everything else, so only the log line remains
        audit.emit("data_reset", user_id=actor_id)
        _log.warning("all hotel data reset")
