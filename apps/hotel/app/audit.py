import logging
import time
import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from . import config
from .dates import utcnow
from .errors import UserNotFound, ValidationError
from .models import AuditLog, User
from .store import HotelStore

_audit_logger = logging.getLogger("hotel.audit")

AUDIT_ACTIONS = (
    "user_created",
    "user_updated",
    "user_deleted",
    "room_created",
    "room_updated",
    "room_deleted",
    "booking_created",
    "booking_updated",
    "booking_cancelled",
    "booking_checked_in",
    "booking_checked_out",
    "booking_deleted",
    "user_signed_in",
    "user_signed_out",
    "data_exported",
    "data_imported",
    "data_reset",
)


def record(
    s: Session,
    actor_id: Optional[str],
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    details: Optional[str] = None,
) -> Optional[AuditLog]:
    """
    Append an audit entry inside the caller's transaction.

    Anonymous calls (no actor) are not recorded. An unknown actor aborts the
    whole operation so the mutation and its trail commit together or not at all.
    """
    if not actor_id:
        return None
    if action not in AUDIT_ACTIONS:
        raise ValidationError(f"unknown audit action {action}")
    user = s.get(User, actor_id)
    if user is None:
        raise UserNotFound(actor_id)
    entry = AuditLog(
        id=str(uuid.uuid4()),
        user_id=user.id,
        user_name=user.name,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
        timestamp=utcnow(),
    )
    s.add(entry)
    emit(action, user_id=user.id, entity_type=entity_type, entity_id=entity_id)
    return entry


def emit(action: str, **extra: object) -> None:
    """Write a structured audit line to the JSON log stream without storing a row."""
    payload: dict[str, object] = {
        "event": "audit",
        "domain": "hotel",
        "action": action,
        "ts_ms": int(time.time() * 1000),
    }
    for k, v in extra.items():
        if v is not None:
            payload[k] = v
    _audit_logger.info(payload)


class AuditLogStore:
    def __init__(self, store: HotelStore):
        self.store = store

    def _query(self, *where, limit: Optional[int] = None) -> list[AuditLog]:
        stmt = select(AuditLog).where(*where).order_by(AuditLog.timestamp.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.store.snapshot() as s:
            return list(s.execute(stmt).scalars().all())

    def list_all(self) -> list[AuditLog]:
        return self._query()

    def list_recent(self, limit: int = 50) -> list[AuditLog]:
        return self._query(limit=limit)

    def by_user(self, user_id: str, limit: Optional[int] = None) -> list[AuditLog]:
        return self._query(AuditLog.user_id == user_id, limit=limit)

    def by_action(self, action: str, limit: Optional[int] = None) -> list[AuditLog]:
        return self._query(AuditLog.action == action, limit=limit)

    def search(
        self,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[AuditLog]:
        where = []
        if user_id:
            where.append(AuditLog.user_id == user_id)
        if action:
            where.append(AuditLog.action == action)
        return self._query(*where, limit=limit)

    def prune(self, days_to_keep: Optional[int] = None, now: Optional[datetime] = None) -> int:
        """Delete entries older than `days_to_keep` days; returns the number removed."""
        days = config.AUDIT_RETENTION_DAYS if days_to_keep is None else days_to_keep
        if days < 0:
            raise ValidationError("days_to_keep must be >= 0")
        cutoff = (now or utcnow()) - timedelta(days=days)
        with self.store.transaction() as s:
            res = s.execute(delete(AuditLog).where(AuditLog.timestamp < cutoff))
            removed = int(res.rowcount or 0)
        if removed:
            emit("audit_pruned", removed=removed, days_to_keep=days)
        return removed
