from __future__ import annotations

import random
from datetime import timedelta, timezone

import pytest

from apps.hotel.app.conflicts import overlaps  # type: ignore[import]
from apps.hotel.app.errors import (  # type: ignore[import]
    BookingNotFound,
    Conflict,
    InvalidTransition,
    RoomNotFound,
    RoomUnavailable,
    ValidationError,
)
from apps.hotel.app.schemas import BookingCreate, BookingUpdate  # type: ignore[import]


def _req(room_id, check_in, check_out, **kw) -> BookingCreate:
    return BookingCreate(
        guest_name=kw.pop("guest_name", "Guest"),
        guest_contact=kw.pop("guest_contact", "guest@example.com"),
        room_id=room_id,
        check_in=check_in,
        check_out=check_out,
        **kw,
    )


def test_create_booking_computes_total_cost(svc, make_room, day):
    room = make_room(price_cents=15_000)
    b = svc.bookings.create(_req(room.id, day(0), day(2)))
    assert b.status == "Reserved"
    assert b.payment_status == "Unpaid"
    assert b.total_cost_cents == 30_000
    assert b.paid_amount_cents == 0
    # a reservation does not occupy the room
    assert svc.rooms.get(room.id).status == "Available"


def test_partial_night_counts_as_full_night(svc, make_room, day):
    room = make_room(price_cents=10_000)
    b = svc.bookings.create(_req(room.id, day(0), day(2) + timedelta(hours=3)))
    assert b.total_cost_cents == 30_000


def test_aware_datetimes_are_stored_as_utc(svc, make_room, day):
    room = make_room()
    plus2 = timezone(timedelta(hours=2))
    b = svc.bookings.create(
        _req(room.id, day(0).replace(hour=2, tzinfo=plus2), day(1).replace(hour=2, tzinfo=plus2))
    )
    assert b.check_in == day(0)
    assert b.check_in.tzinfo is None


def test_overlapping_booking_is_rejected_and_touching_is_allowed(svc, make_room, day):
    room = make_room()
    first = svc.bookings.create(_req(room.id, day(0), day(3)))

    with pytest.raises(RoomUnavailable) as exc:
        svc.bookings.create(_req(room.id, day(1), day(2)))
    assert isinstance(exc.value, Conflict)
    assert exc.value.conflicting == [first.id]

    nxt = svc.bookings.create(_req(room.id, day(3), day(5)))
    assert nxt.check_in == first.check_out


def test_same_dates_on_another_room_are_fine(svc, make_room, day):
    r1, r2 = make_room(), make_room()
    svc.bookings.create(_req(r1.id, day(0), day(3)))
    assert svc.bookings.create(_req(r2.id, day(0), day(3))).room_id == r2.id


def test_cancelled_and_checked_out_bookings_free_the_dates(svc, make_room, day):
    room = make_room()
    a = svc.bookings.create(_req(room.id, day(0), day(3)))
    svc.bookings.cancel(a.id)
    b = svc.bookings.create(_req(room.id, day(0), day(3), status="Checked-in"))
    svc.bookings.check_out(b.id)
    c = svc.bookings.create(_req(room.id, day(1), day(2)))
    assert c.status == "Reserved"


def test_create_rejects_bad_range_and_unknown_room(svc, make_room, day):
    room = make_room()
    with pytest.raises(ValidationError):
        svc.bookings.create(_req(room.id, day(2), day(2)))
    with pytest.raises(ValidationError):
        svc.bookings.create(_req(room.id, day(3), day(1)))
    with pytest.raises(RoomNotFound):
        svc.bookings.create(_req("nope", day(0), day(1)))
    assert svc.bookings.list_all() == []


def test_lifecycle_updates_room_status(svc, make_room, day):
    room = make_room()
    b = svc.bookings.create(_req(room.id, day(0), day(2)))

    b = svc.bookings.check_in(b.id)
    assert b.status == "Checked-in"
    assert svc.rooms.get(room.id).status == "Occupied"

    b = svc.bookings.check_out(b.id)
    assert b.status == "Checked-out"
    assert svc.rooms.get(room.id).status == "Available"


def test_walk_in_occupies_room_immediately(svc, make_room, day):
    room = make_room()
    svc.bookings.create(_req(room.id, day(0), day(1), status="Checked-in"))
    assert svc.rooms.get(room.id).status == "Occupied"


def test_cancel_checked_in_releases_room_but_reserved_does_not_touch_it(svc, make_room, day):
    room = make_room()
    stay = svc.bookings.create(_req(room.id, day(0), day(2), status="Checked-in"))
    later = svc.bookings.create(_req(room.id, day(5), day(7)))

    svc.bookings.cancel(later.id)
    assert svc.rooms.get(room.id).status == "Occupied"

    svc.bookings.cancel(stay.id)
    assert svc.rooms.get(room.id).status == "Available"


def test_invalid_transitions(svc, make_room, day):
    room = make_room()
    b = svc.bookings.create(_req(room.id, day(0), day(2)))

    with pytest.raises(InvalidTransition) as exc:
        svc.bookings.check_out(b.id)
    assert exc.value.current == "Reserved"
    assert exc.value.requested == "Checked-out"

    svc.bookings.cancel(b.id)
    with pytest.raises(InvalidTransition) as exc:
        svc.bookings.check_in(b.id)
    assert exc.value.current == "Cancelled"
    with pytest.raises(InvalidTransition):
        svc.bookings.cancel(b.id)

    c = svc.bookings.create(_req(room.id, day(0), day(2), status="Checked-in"))
    svc.bookings.check_out(c.id)
    with pytest.raises(InvalidTransition):
        svc.bookings.cancel(c.id)
    with pytest.raises(InvalidTransition):
        svc.bookings.check_in(c.id)
    # failed transitions leave everything as it was
    assert svc.bookings.get(c.id).status == "Checked-out"
    assert svc.rooms.get(room.id).status == "Available"


def test_update_recomputes_cost_and_checks_conflicts(svc, make_room, day):
    cheap = make_room(price_cents=10_000)
    dear = make_room(price_cents=25_000)
    a = svc.bookings.create(_req(cheap.id, day(0), day(2)))
    svc.bookings.create(_req(dear.id, day(1), day(4)))

    a = svc.bookings.update(a.id, BookingUpdate(check_out=day(3)))
    assert a.total_cost_cents == 30_000

    with pytest.raises(RoomUnavailable):
        svc.bookings.update(a.id, BookingUpdate(room_id=dear.id))
    assert svc.bookings.get(a.id).room_id == cheap.id

    a = svc.bookings.update(a.id, BookingUpdate(room_id=dear.id, check_in=day(4), check_out=day(6)))
    assert a.room_id == dear.id
    assert a.total_cost_cents == 50_000

    # shrinking within its own dates never conflicts with itself
    a = svc.bookings.update(a.id, BookingUpdate(check_out=day(5)))
    assert a.total_cost_cents == 25_000


def test_update_payment_and_guest_fields_keep_cost(svc, make_room, day):
    room = make_room(price_cents=10_000)
    b = svc.bookings.create(_req(room.id, day(0), day(2)))
    b = svc.bookings.update(
        b.id,
        BookingUpdate(guest_name="Emily Johnson", payment_status="Partial", paid_amount_cents=5_000),
    )
    assert b.guest_name == "Emily Johnson"
    assert b.payment_status == "Partial"
    assert b.paid_amount_cents == 5_000
    assert b.total_cost_cents == 20_000
    assert b.status == "Reserved"


def test_update_rejects_bad_range_and_unknown_room(svc, make_room, day):
    room = make_room()
    b = svc.bookings.create(_req(room.id, day(0), day(2)))
    with pytest.raises(ValidationError):
        svc.bookings.update(b.id, BookingUpdate(check_out=day(0)))
    with pytest.raises(RoomNotFound):
        svc.bookings.update(b.id, BookingUpdate(room_id="nope"))
    with pytest.raises(BookingNotFound):
        svc.bookings.update("nope", BookingUpdate(notes="x"))


def test_moving_checked_in_booking_moves_occupancy(svc, make_room, day):
    r1, r2 = make_room(), make_room()
    b = svc.bookings.create(_req(r1.id, day(0), day(2), status="Checked-in"))
    svc.bookings.update(b.id, BookingUpdate(room_id=r2.id))
    assert svc.rooms.get(r1.id).status == "Available"
    assert svc.rooms.get(r2.id).status == "Occupied"


def test_delete_checked_in_booking_releases_room(svc, make_room, day):
    room = make_room()
    b = svc.bookings.create(_req(room.id, day(0), day(2), status="Checked-in"))
    svc.bookings.delete(b.id)
    assert svc.rooms.get(room.id).status == "Available"
    with pytest.raises(BookingNotFound):
        svc.bookings.get(b.id)
    with pytest.raises(BookingNotFound):
        svc.bookings.delete(b.id)


def test_filter_and_reads(svc, make_room, day):
    r1, r2 = make_room(), make_room()
    a = svc.bookings.create(_req(r1.id, day(0), day(2), guest_name="John Smith", status="Checked-in"))
    b = svc.bookings.create(_req(r2.id, day(1), day(4), guest_name="Emily Johnson"))
    c = svc.bookings.create(_req(r1.id, day(5), day(7), guest_name="Michael Brown"))

    assert [x.id for x in svc.bookings.list_all()] == [c.id, b.id, a.id]
    assert [x.id for x in svc.bookings.filter(room_id=r1.id)] == [c.id, a.id]
    assert [x.id for x in svc.bookings.filter(status="Checked-in")] == [a.id]
    assert [x.id for x in svc.bookings.filter(search="johnson")] == [b.id]
    assert [x.id for x in svc.bookings.filter(start=day(3), end=day(6))] == [c.id, b.id]

    assert [x.id for x in svc.bookings.upcoming(days=7, now=day(0) + timedelta(hours=1))] == [b.id, c.id]
    assert [x.id for x in svc.bookings.todays_check_ins(now=day(1) + timedelta(hours=9))] == [b.id]
    assert [x.id for x in svc.bookings.todays_check_outs(now=day(2) + timedelta(hours=9))] == [a.id]


def test_random_sequences_never_double_book(svc, make_room, day):
    rng = random.Random(1234)
    rooms = [make_room() for _ in range(3)]
    created = []
    for _ in range(150):
        op = rng.random()
        start = rng.randint(0, 30)
        length = rng.randint(1, 6)
        room = rng.choice(rooms)
        try:
            if op < 0.6 or not created:
                created.append(svc.bookings.create(_req(room.id, day(start), day(start + length))).id)
            elif op < 0.85:
                svc.bookings.update(
                    rng.choice(created),
                    BookingUpdate(room_id=room.id, check_in=day(start), check_out=day(start + length)),
                )
            else:
                svc.bookings.cancel(rng.choice(created))
        except (RoomUnavailable, InvalidTransition):
            pass

    active = [b for b in svc.bookings.list_all() if b.status in ("Reserved", "Checked-in")]
    assert active
    for i, x in enumerate(active):
        for y in active[i + 1:]:
            if x.room_id == y.room_id:
                assert not overlaps(x.check_in, x.check_out, y.check_in, y.check_out)
