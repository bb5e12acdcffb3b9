from __future__ import annotations

import os
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("ENV", "test")
os.environ.setdefault("HOTEL_PASSWORD_ITERATIONS", "1000")

from apps.hotel.app.main import create_app  # type: ignore[import]
from apps.hotel.app.schemas import RoomCreate  # type: ignore[import]
from apps.hotel.app.services import HotelServices  # type: ignore[import]
from apps.hotel.app.store import HotelStore  # type: ignore[import]

# fixed "today" so date arithmetic in tests never straddles midnight
DAY0 = datetime(2030, 6, 1)


def _day(n: float) -> datetime:
    return DAY0 + timedelta(days=n)


@pytest.fixture()
def day():
    """`day(n)` is midnight UTC n days after a fixed reference date."""
    return _day


@pytest.fixture()
def hotel_store():
    """
    Isolated in-memory SQLite store.
    StaticPool keeps one connection so every session sees the same database.
    """
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    store = HotelStore(engine)
    store.create_all()
    yield store
    engine.dispose()


@pytest.fixture()
def svc(hotel_store):
    return HotelServices(hotel_store)


@pytest.fixture()
def make_room(svc):
    counter = {"n": 100}

    def _make(price_cents: int = 10_000, number: str | None = None, **kw):
        counter["n"] += 1
        req = RoomCreate(
            room_number=number or str(counter["n"]),
            type=kw.pop("type", "Double"),
            capacity=kw.pop("capacity", 2),
            price_per_night_cents=price_cents,
            **kw,
        )
        return svc.rooms.create(req)

    return _make


@pytest.fixture()
def client(hotel_store):
    app = create_app(hotel_store, demo_seed=False)
    with TestClient(app) as c:
        yield c
