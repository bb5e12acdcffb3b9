from __future__ import annotations

import json


def _room(client, number="101", price=15_000, **kw):
    body = {"room_number": number, "type": "Double", "capacity": 2, "price_per_night_cents": price}
    body.update(kw)
    r = client.post("/rooms", json=body)
    assert r.status_code == 201, r.text
    return r.json()


def _booking(client, room_id, check_in, check_out, headers=None, **kw):
    body = {
        "guest_name": "John Smith",
        "guest_contact": "+1-555-0101",
        "room_id": room_id,
        "check_in": check_in,
        "check_out": check_out,
    }
    body.update(kw)
    return client.post("/bookings", json=body, headers=headers or {})


def test_health_reports_db_and_request_id(client):
    r = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["checks"] == {"db": "ok"}
    assert r.headers["X-Request-ID"] == "abc123"
    assert client.get("/health").headers["X-Request-ID"]


def test_room_crud_and_errors(client):
    room = _room(client, amenities=["WiFi", "TV"])
    assert room["status"] == "Available"
    assert room["amenities"] == ["TV", "WiFi"]

    dup = client.post(
        "/rooms",
        json={"room_number": "101", "type": "Single", "capacity": 1, "price_per_night_cents": 100},
    )
    assert dup.status_code == 409
    assert dup.json()["error"] == "conflict"

    bad = client.post(
        "/rooms",
        json={"room_number": "102", "type": "Single", "capacity": 1, "price_per_night_cents": 100, "status": "Occupied"},
    )
    assert bad.status_code == 400
    assert bad.json()["error"] == "validation_error"

    assert client.post("/rooms", json={"room_number": "103", "type": "Penthouse"}).status_code == 422

    r = client.patch(f"/rooms/{room['id']}", json={"capacity": 3, "notes": "Sea view"})
    assert r.status_code == 200
    assert r.json()["capacity"] == 3

    assert client.get(f"/rooms/{room['id']}").json()["notes"] == "Sea view"
    missing = client.get("/rooms/nope")
    assert missing.status_code == 404
    assert missing.json() == {"detail": "room nope not found", "error": "not_found"}

    assert [x["room_number"] for x in client.get("/rooms", params={"q": "sea"}).json()] == ["101"]
    assert client.delete(f"/rooms/{room['id']}").status_code == 204
    assert client.get("/rooms").json() == []


def test_booking_flow_over_http(client):
    room = _room(client)
    r = _booking(client, room["id"], "2030-06-01T00:00:00Z", "2030-06-03T00:00:00Z")
    assert r.status_code == 201, r.text
    b = r.json()
    assert b["total_cost_cents"] == 30_000
    assert b["status"] == "Reserved"

    clash = _booking(client, room["id"], "2030-06-02T00:00:00Z", "2030-06-04T00:00:00Z")
    assert clash.status_code == 409
    assert clash.json()["detail"] == "room is not available for the selected dates"

    bad = _booking(client, room["id"], "2030-06-05T00:00:00Z", "2030-06-05T00:00:00Z")
    assert bad.status_code == 400

    avail = client.get(
        "/rooms/available",
        params={"check_in": "2030-06-03T00:00:00Z", "check_out": "2030-06-05T00:00:00Z"},
    )
    assert [x["id"] for x in avail.json()] == [room["id"]]

    blocked = client.delete(f"/rooms/{room['id']}")
    assert blocked.status_code == 409
    assert blocked.json()["error"] == "precondition_failed"

    wrong = client.post(f"/bookings/{b['id']}/check_out")
    assert wrong.status_code == 409
    assert wrong.json()["error"] == "invalid_transition"

    assert client.post(f"/bookings/{b['id']}/check_in").json()["status"] == "Checked-in"
    assert client.get(f"/rooms/{room['id']}").json()["status"] == "Occupied"
    assert client.post(f"/bookings/{b['id']}/check_out").json()["status"] == "Checked-out"
    assert client.get(f"/rooms/{room['id']}").json()["status"] == "Available"

    upd = client.patch(f"/bookings/{b['id']}", json={"payment_status": "Paid", "paid_amount_cents": 30_000})
    assert upd.status_code == 200
    assert upd.json()["payment_status"] == "Paid"

    assert [x["id"] for x in client.get("/bookings", params={"status": "Checked-out"}).json()] == [b["id"]]
    assert client.get("/bookings/today").json() == {"check_ins": [], "check_outs": []}
    assert client.get("/bookings/upcoming").status_code == 200

    assert client.delete(f"/bookings/{b['id']}").status_code == 204
    assert client.get(f"/bookings/{b['id']}").status_code == 404


def test_actor_header_writes_audit_log(client):
    admin = client.post(
        "/users",
        json={"email": "admin@example.com", "name": "Admin User", "role": "admin", "password": "Admin123!"},
    )
    assert admin.status_code == 201
    uid = admin.json()["id"]
    assert "password_hash" not in admin.json()

    hdr = {"X-User-Id": uid}
    room = client.post(
        "/rooms",
        json={"room_number": "101", "type": "Single", "capacity": 1, "price_per_night_cents": 10_000},
        headers=hdr,
    ).json()
    _booking(client, room["id"], "2030-06-01T00:00:00", "2030-06-02T00:00:00", headers=hdr)

    logs = client.get("/audit_logs", params={"user_id": uid}).json()
    assert sorted(x["action"] for x in logs) == ["booking_created", "room_created"]
    assert all(x["user_name"] == "Admin User" for x in logs)
    assert [x["action"] for x in client.get("/audit_logs", params={"action": "room_created"}).json()] == [
        "room_created"
    ]

    ghost = client.post(
        "/rooms",
        json={"room_number": "102", "type": "Single", "capacity": 1, "price_per_night_cents": 10_000},
        headers={"X-User-Id": "ghost"},
    )
    assert ghost.status_code == 404
    assert [x["room_number"] for x in client.get("/rooms").json()] == ["101"]

    assert client.post("/audit_logs/prune", json={"days_to_keep": 30}).json() == {"removed": 0}
    assert client.post("/audit_logs/prune").json() == {"removed": 0}


def test_users_endpoints(client):
    weak = client.post("/users", json={"email": "a@example.com", "name": "A", "password": "weak"})
    assert weak.status_code == 422

    admin = client.post(
        "/users",
        json={"email": "admin@example.com", "name": "Admin User", "role": "admin", "password": "Admin123!"},
    ).json()
    dup = client.post(
        "/users",
        json={"email": "ADMIN@example.com", "name": "Other", "password": "Admin123!"},
    )
    assert dup.status_code == 409

    last = client.delete(f"/users/{admin['id']}")
    assert last.status_code == 409
    assert last.json()["detail"] == "cannot delete the last admin user"

    renamed = client.patch(f"/users/{admin['id']}", json={"name": "Boss"})
    assert renamed.json()["name"] == "Boss"
    assert [u["name"] for u in client.get("/users", params={"q": "bos"}).json()] == ["Boss"]
    assert client.get("/users/nobody").status_code == 404


def test_settings_export_import_and_reset(client):
    assert client.get("/settings").json()["theme"] == "system"
    assert client.patch("/settings", json={"theme": "dark"}).json()["theme"] == "dark"
    assert client.patch("/settings", json={"theme": "neon"}).status_code == 422

    room = _room(client)
    doc = client.get("/data/export").json()
    assert doc["rooms"][0]["roomNumber"] == "101"

    assert client.post("/settings/reset").status_code == 204
    assert client.get("/rooms").json() == []

    bad = client.post("/data/import", content=b"{not json", headers={"Content-Type": "application/json"})
    assert bad.status_code == 400
    assert bad.json()["error"] == "import_format_error"

    ok = client.post("/data/import", content=json.dumps(doc), headers={"Content-Type": "application/json"})
    assert ok.status_code == 200, ok.text
    assert ok.json()["rooms"] == 1
    assert [r["id"] for r in client.get("/rooms").json()] == [room["id"]]


def test_stats_endpoints(client):
    r1 = _room(client, "101", price=10_000)
    _room(client, "102", price=10_000)
    _booking(client, r1["id"], "2030-06-01T00:00:00", "2030-06-08T00:00:00", paid_amount_cents=20_000)

    occ = client.get(
        "/stats/occupancy",
        params={"start": "2030-06-01T00:00:00", "end": "2030-06-08T00:00:00"},
    ).json()
    assert occ["occupancy_rate"] == 50.0
    assert occ["room_count"] == 2

    rev = client.get("/stats/revenue").json()
    assert rev == {"total_cents": 70_000, "paid_cents": 20_000, "pending_cents": 50_000}

    dash = client.get("/stats/dashboard").json()
    assert dash["rooms"]["total"] == 2
    assert dash["active_bookings"] == 1
