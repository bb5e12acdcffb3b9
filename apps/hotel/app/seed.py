import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, select

from .bookings import BookingLifecycle
from .dates import day_bounds, utcnow
from .models import User
from .rooms import RoomStore
from .schemas import BookingCreate, RoomCreate, UserCreate
from .store import HotelStore
from .users import UserStore

_log = logging.getLogger("hotel.seed")

DEMO_USERS = [
    ("admin@example.com", "Admin123!", "Admin User", "admin"),
    ("staff@example.com", "Staff123!", "Staff User", "staff"),
]

# number, type, capacity, nightly price (whole currency units), status, amenities, notes
DEMO_ROOMS = [
    ("101", "Single", 1, 100, "Available",
     ["WiFi", "TV", "Air Conditioning", "Bathroom", "Work Desk"],
     "Cozy single room perfect for solo travelers"),
    ("102", "Single", 1, 100, "Available",
     ["WiFi", "TV", "Air Conditioning", "Bathroom"], None),
    ("201", "Double", 2, 150, "Available",
     ["WiFi", "TV", "Air Conditioning", "Queen Bed", "Bathroom", "Mini Bar"],
     "Spacious double room with queen bed"),
    ("202", "Double", 2, 150, "Available",
     ["WiFi", "TV", "Air Conditioning", "Queen Bed", "Bathroom", "Balcony"], None),
    ("203", "Double", 2, 160, "Maintenance",
     ["WiFi", "TV", "Air Conditioning", "Queen Bed", "Bathroom", "Ocean View"],
     "Under maintenance - AC repair"),
    ("301", "Suite", 4, 300, "Available",
     ["WiFi", "TV", "Air Conditioning", "King Bed", "Bathroom", "Bathtub", "Mini Bar",
      "Room Service", "Ocean View", "Balcony"],
     "Luxury suite with ocean view"),
    ("302", "Suite", 4, 300, "Available",
     ["WiFi", "TV", "Air Conditioning", "King Bed", "Bathroom", "Bathtub", "Mini Bar", "City View"],
     None),
    ("401", "Deluxe", 6, 500, "Available",
     ["WiFi", "TV", "Air Conditioning", "King Bed", "Queen Bed", "Bathroom", "Bathtub", "Mini Bar",
      "Room Service", "Ocean View", "Balcony", "Safe", "Coffee Maker"],
     "Premium deluxe suite with panoramic ocean view"),
]

# guest, contact, room number, first night offset, last night offset (exclusive), status, payment, paid
DEMO_BOOKINGS = [
    ("John Smith", "+1-555-0101", "101", 0, 3, "Checked-in", "Paid", 300, "Early check-in requested"),
    ("Emily Johnson", "+1-555-0102", "201", 1, 4, "Reserved", "Partial", 150, "Honeymoon package"),
    ("Michael Brown", "+1-555-0103", "301", 2, 7, "Reserved", "Unpaid", 0,
     "Business trip - invoice to company"),
    ("Sarah Davis", "+1-555-0104", "401", 5, 10, "Reserved", "Paid", 2500,
     "Anniversary celebration - arrange flowers and champagne"),
]


def is_seeded(store: HotelStore) -> bool:
    with store.snapshot() as s:
        return (s.execute(select(func.count(User.id))).scalar() or 0) > 0


def seed_database(store: HotelStore, now: Optional[datetime] = None) -> bool:
    """Load the demo users, rooms and bookings into an empty database. Returns False if users exist."""
    if is_seeded(store):
        return False
    users = UserStore(store)
    rooms = RoomStore(store)
    bookings = BookingLifecycle(store)

    for email, password, name, role in DEMO_USERS:
        users.create(UserCreate(email=email, password=password, name=name, role=role))

    by_number = {}
    for number, rtype, capacity, price, status, amenities, notes in DEMO_ROOMS:
        room = rooms.create(
            RoomCreate(
                room_number=number,
                type=rtype,
                capacity=capacity,
                price_per_night_cents=price * 100,
                status=status,
                amenities=amenities,
                notes=notes,
            )
        )
        by_number[number] = room.id

    today, _ = day_bounds(now or utcnow())
    for guest, contact, number, first, last, status, payment, paid, notes in DEMO_BOOKINGS:
        bookings.create(
            BookingCreate(
                guest_name=guest,
                guest_contact=contact,
                room_id=by_number[number],
                check_in=today + timedelta(days=first),
                check_out=today + timedelta(days=last),
                status=status,
                payment_status=payment,
                paid_amount_cents=paid * 100,
                notes=notes,
            )
        )
    _log.info(
        "demo data seeded users=%d rooms=%d bookings=%d",
        len(DEMO_USERS), len(DEMO_ROOMS), len(DEMO_BOOKINGS),
    )
    return True
