from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, BigInteger, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .dates import utcnow

ROOM_AVAILABLE = "Available"
ROOM_OCCUPIED = "Occupied"
ROOM_MAINTENANCE = "Maintenance"

RESERVED = "Reserved"
CHECKED_IN = "Checked-in"
CHECKED_OUT = "Checked-out"
CANCELLED = "Cancelled"
ACTIVE_STATUSES = (RESERVED, CHECKED_IN)

SETTINGS_ID = "app-settings"


class Base(DeclarativeBase):
    pass


class Room(Base):
    __tablename__ = "rooms"
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    room_number: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    type: Mapped[str] = mapped_column(String(16), index=True)
    capacity: Mapped[int] = mapped_column(Integer)
    price_per_night_cents: Mapped[int] = mapped_column(BigInteger)
    status: Mapped[str] = mapped_column(String(16), default=ROOM_AVAILABLE, index=True)
    amenities: Mapped[list] = mapped_column(JSON, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class Booking(Base):
    __tablename__ = "bookings"
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    guest_name: Mapped[str] = mapped_column(String(160), index=True)
    guest_contact: Mapped[str] = mapped_column(String(160))
    # reference only; bookings outlive the rooms they were made for
    room_id: Mapped[str] = mapped_column(String(36), index=True)
    check_in: Mapped[datetime] = mapped_column(DateTime, index=True)
    check_out: Mapped[datetime] = mapped_column(DateTime, index=True)
    status: Mapped[str] = mapped_column(String(16), default=RESERVED, index=True)
    payment_status: Mapped[str] = mapped_column(String(16), default="Unpaid")
    total_cost_cents: Mapped[int] = mapped_column(BigInteger, default=0)
    paid_amount_cents: Mapped[int] = mapped_column(BigInteger, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class User(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(254), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(160))
    role: Mapped[str] = mapped_column(String(16), default="staff", index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    user_name: Mapped[str] = mapped_column(String(160))
    action: Mapped[str] = mapped_column(String(40), index=True)
    entity_type: Mapped[Optional[str]] = mapped_column(String(40), default=None)
    entity_id: Mapped[Optional[str]] = mapped_column(String(36), default=None)
    details: Mapped[Optional[str]] = mapped_column(Text, default=None)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)


class Setting(Base):
    __tablename__ = "settings"
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=SETTINGS_ID)
    theme: Mapped[str] = mapped_column(String(16), default="system")
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
