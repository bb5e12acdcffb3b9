import re
from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .dates import to_utc_naive

RoomType = Literal["Single", "Double", "Suite", "Deluxe"]
RoomStatus = Literal["Available", "Occupied", "Maintenance"]
BookingStatus = Literal["Reserved", "Checked-in", "Checked-out", "Cancelled"]
PaymentStatus = Literal["Unpaid", "Partial", "Paid"]
UserRole = Literal["admin", "staff"]
Theme = Literal["light", "dark", "system"]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_amenities(v: list[str]) -> list[str]:
    return sorted({a.strip() for a in v if a and a.strip()})


def normalize_email(v: str) -> str:
    v = v.strip().lower()
    if not _EMAIL_RE.match(v):
        raise ValueError("invalid email address")
    return v


def _required_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


def check_password_policy(pw: str) -> str:
    if len(pw) < 8:
        raise ValueError("password must be at least 8 characters")
    if not re.search(r"[A-Z]", pw):
        raise ValueError("password must contain an uppercase letter")
    if not re.search(r"[a-z]", pw):
        raise ValueError("password must contain a lowercase letter")
    if not re.search(r"[0-9]", pw):
        raise ValueError("password must contain a number")
    if not re.search(r"[^A-Za-z0-9]", pw):
        raise ValueError("password must contain a special character")
    return pw


Amenities = Annotated[list[str], AfterValidator(normalize_amenities)]
Email = Annotated[str, AfterValidator(normalize_email)]
Password = Annotated[str, AfterValidator(check_password_policy)]
Name = Annotated[str, Field(max_length=160), AfterValidator(_required_text)]
RoomNumber = Annotated[str, Field(max_length=32), AfterValidator(_required_text)]
UtcDatetime = Annotated[datetime, AfterValidator(to_utc_naive)]


# --- rooms ---
class RoomCreate(BaseModel):
    room_number: RoomNumber
    type: RoomType
    capacity: int = Field(gt=0)
    price_per_night_cents: int = Field(gt=0)
    status: RoomStatus = "Available"
    amenities: Amenities = Field(default_factory=list)
    notes: Optional[str] = None


class RoomUpdate(BaseModel):
    room_number: Optional[RoomNumber] = None
    type: Optional[RoomType] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    price_per_night_cents: Optional[int] = Field(default=None, gt=0)
    status: Optional[RoomStatus] = None
    amenities: Optional[Amenities] = None
    notes: Optional[str] = None


class RoomOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    room_number: str
    type: str
    capacity: int
    price_per_night_cents: int
    status: str
    amenities: list[str]
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# --- bookings ---
class BookingCreate(BaseModel):
    guest_name: Name
    guest_contact: Name
    room_id: str
    check_in: UtcDatetime
    check_out: UtcDatetime
    # walk-ins are created already checked in
    status: Literal["Reserved", "Checked-in"] = "Reserved"
    payment_status: PaymentStatus = "Unpaid"
    paid_amount_cents: int = Field(default=0, ge=0)
    notes: Optional[str] = None


class BookingUpdate(BaseModel):
    guest_name: Optional[Name] = None
    guest_contact: Optional[Name] = None
    room_id: Optional[str] = None
    check_in: Optional[UtcDatetime] = None
    check_out: Optional[UtcDatetime] = None
    payment_status: Optional[PaymentStatus] = None
    paid_amount_cents: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    guest_name: str
    guest_contact: str
    room_id: str
    check_in: datetime
    check_out: datetime
    status: str
    payment_status: str
    total_cost_cents: int
    paid_amount_cents: int
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TodayOut(BaseModel):
    check_ins: list[BookingOut]
    check_outs: list[BookingOut]


# --- users ---
class UserCreate(BaseModel):
    email: Email
    name: Name
    role: UserRole = "staff"
    password: Password


class UserUpdate(BaseModel):
    email: Optional[Email] = None
    name: Optional[Name] = None
    role: Optional[UserRole] = None
    password: Optional[Password] = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    email: str
    name: str
    role: str
    created_at: datetime
    updated_at: datetime


# --- audit / settings ---
class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    user_id: str
    user_name: str
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    details: Optional[str] = None
    timestamp: datetime


class PruneReq(BaseModel):
    days_to_keep: Optional[int] = Field(default=None, ge=0)


class PruneOut(BaseModel):
    removed: int


class SettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    theme: str
    updated_at: datetime


class SettingsUpdate(BaseModel):
    theme: Theme


# --- stats ---
class OccupancyOut(BaseModel):
    start: datetime
    end: datetime
    room_count: int
    occupancy_rate: float


class RevenueOut(BaseModel):
    total_cents: int
    paid_cents: int
    pending_cents: int


class RoomCountsOut(BaseModel):
    total: int
    available: int
    occupied: int
    maintenance: int


class DashboardOut(BaseModel):
    rooms: RoomCountsOut
    occupancy: OccupancyOut
    revenue: RevenueOut
    active_bookings: int
    todays_check_ins: int
    todays_check_outs: int


# --- export document (camelCase keys) ---
class _ExportModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ExportUser(_ExportModel):
    id: str
    email: Email
    name: str
    role: UserRole
    password_hash: str
    created_at: UtcDatetime
    updated_at: UtcDatetime


class ExportRoom(_ExportModel):
    id: str
    room_number: RoomNumber
    type: RoomType
    capacity: int = Field(gt=0)
    price_per_night_cents: int = Field(gt=0)
    status: RoomStatus
    amenities: Amenities = Field(default_factory=list)
    notes: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class ExportBooking(_ExportModel):
    id: str
    guest_name: str = Field(min_length=1)
    guest_contact: str = Field(min_length=1)
    room_id: str
    check_in: UtcDatetime
    check_out: UtcDatetime
    status: BookingStatus
    payment_status: PaymentStatus
    total_cost_cents: int = Field(ge=0)
    paid_amount_cents: int = Field(default=0, ge=0)
    notes: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class ExportSettings(_ExportModel):
    id: str
    theme: Theme
    updated_at: UtcDatetime


class ExportAuditLog(_ExportModel):
    id: str
    user_id: str
    user_name: str
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    details: Optional[str] = None
    timestamp: UtcDatetime


class ImportOut(BaseModel):
    users: int
    rooms: int
    bookings: int
    settings: int
    audit_logs: int
