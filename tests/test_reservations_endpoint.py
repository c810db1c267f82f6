from fastapi.testclient import TestClient

from app.main import create_app
from reservation_factories import at, booking_payload

BASE = "/api/v1/reservations"


def _create(client, start=None, end=None, headers=None, **overrides):
    payload = booking_payload(start or at(10), end or at(11))
    payload.update(overrides)
    return client.post(BASE, json=payload, headers=headers or {})


def test_create_reservation_success(client):
    res = _create(client, headers={"Idempotency-Key": "k1"})

    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "pending"
    assert body["resource_id"] == "OR-1"
    assert body["owner_id"] == "surgeon-1"
    assert body["kind"] == "surgery"
    assert body["patient_name"] == "Juan Pérez"
    assert body["version"] == 0
    assert body["start"].startswith("2030-01-01T10:00:00")


def test_create_reservation_idempotent_replay(client):
    first = _create(client, headers={"Idempotency-Key": "k1"})
    second = _create(client, headers={"Idempotency-Key": "k1"})

    assert second.status_code == 201
    assert second.json()["id"] == first.json()["id"]
    assert len(client.get(BASE).json()) == 1


def test_create_reservation_conflict(client):
    assert _create(client).status_code == 201

    res = _create(client, at(10, 30), at(11, 30), owner_id="surgeon-2")

    assert res.status_code == 409
    assert res.json()["code"] == "RESERVATION_CONFLICT"


def test_create_reservation_boundary_touching_is_allowed(client):
    assert _create(client, at(10), at(11)).status_code == 201
    assert _create(client, at(11), at(12)).status_code == 201


def test_create_reservation_inverted_range(client):
    res = _create(client, at(11), at(10))

    assert res.status_code == 422
    assert res.json()["code"] == "INVALID_TIME_RANGE"


def test_create_reservation_in_the_past(client):
    res = _create(client, at(6), at(7))
    assert res.status_code == 422


def test_create_reservation_rejects_unknown_fields(client):
    res = _create(client, supplier_id=11)
    assert res.status_code == 422


def test_create_reservation_staff_unavailable(client, staff_gateway):
    staff_gateway.mark_busy("surgeon-1", "Guardia en urgencias")

    res = _create(client)

    assert res.status_code == 503
    assert res.json()["code"] == "UNAVAILABLE"
    assert "Guardia en urgencias" in res.json()["detail"]


def test_create_reservation_resource_in_maintenance(client, resource_gateway):
    resource_gateway.unusable.add("OR-1")
    assert _create(client).status_code == 503


def test_check_availability(client):
    booked = _create(client).json()
    payload = {"resource_id": "OR-1", "start": at(10, 30).isoformat(), "end": at(12).isoformat()}

    res = client.post(f"{BASE}/check-availability", json=payload)

    assert res.status_code == 200
    body = res.json()
    assert body["available"] is False
    assert [c["reservation_id"] for c in body["conflicts"]] == [booked["id"]]


def test_check_availability_free_slot(client):
    payload = {
        "resource_id": "OR-1",
        "owner_id": "surgeon-1",
        "start": at(10).isoformat(),
        "end": at(11).isoformat(),
    }

    res = client.post(f"{BASE}/check-availability", json=payload)

    assert res.json() == {"available": True, "conflicts": [], "reason": None}


def test_check_availability_inverted_range(client):
    payload = {"resource_id": "OR-1", "start": at(11).isoformat(), "end": at(10).isoformat()}
    assert client.post(f"{BASE}/check-availability", json=payload).status_code == 422


def test_get_and_list_reservations(client):
    first = _create(client, at(12), at(13)).json()
    second = _create(client, at(9), at(10)).json()
    _create(client, at(9), at(10), resource_id="OR-2", owner_id="surgeon-2")

    assert client.get(f"{BASE}/{first['id']}").json()["id"] == first["id"]
    listed = client.get(BASE, params={"resource_id": "OR-1"}).json()
    assert [r["id"] for r in listed] == [second["id"], first["id"]]
    assert len(client.get(BASE, params={"owner_id": "surgeon-2"}).json()) == 1


def test_get_unknown_reservation(client):
    res = client.get(f"{BASE}/missing")

    assert res.status_code == 404
    assert res.json()["code"] == "RESERVATION_NOT_FOUND"


def test_patch_reservation(client):
    created = _create(client).json()

    res = client.patch(
        f"{BASE}/{created['id']}",
        json={"start": at(14).isoformat(), "end": at(15).isoformat(), "notes": "Cambio de turno"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["start"].startswith("2030-01-01T14:00:00")
    assert body["notes"] == "Cambio de turno"
    assert body["version"] == 1


def test_patch_reservation_stale_version(client):
    created = _create(client).json()
    client.patch(f"{BASE}/{created['id']}", json={"notes": "v1"})

    res = client.patch(f"{BASE}/{created['id']}", json={"notes": "v2", "expected_version": 0})

    assert res.status_code == 409
    assert res.json()["code"] == "STALE_RESERVATION"


def test_patch_reservation_invalid_status(client):
    created = _create(client).json()

    res = client.patch(f"{BASE}/{created['id']}", json={"status": "expired"})

    assert res.status_code == 409
    assert res.json()["code"] == "INVALID_STATUS_TRANSITION"


def test_confirm_reservation(client):
    created = _create(client).json()

    res = client.post(f"{BASE}/{created['id']}/confirm")

    assert res.status_code == 200
    assert res.json()["status"] == "confirmed"


def test_cancel_reservation_and_double_cancel(client, container):
    created = _create(client).json()

    res = client.delete(
        f"{BASE}/{created['id']}",
        params={"reason": "Paciente con fiebre"},
        headers={"X-User-Id": "nurse-7"},
    )
    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"
    assert res.json()["notes"] == "Cancelled: Paciente con fiebre"

    again = client.delete(f"{BASE}/{created['id']}")
    assert again.status_code == 409
    assert again.json()["code"] == "ALREADY_CANCELLED"

    client.post("/api/v1/outbox/process")
    cancelled = [m for m in container.publisher.messages if m.topic == "reservation.cancelled"]
    assert len(cancelled) == 1
    assert cancelled[0].message["payload"]["cancelled_by"] == "nurse-7"


def test_cancel_unknown_reservation(client):
    assert client.delete(f"{BASE}/missing").status_code == 404


def test_unhandled_errors_are_hidden(settings, container, monkeypatch):
    async def explode(reservation_id):
        raise RuntimeError("secret stack detail")

    monkeypatch.setattr(container.ledger, "get", explode)
    with TestClient(create_app(settings, container), raise_server_exceptions=False) as client:
        res = client.get(f"{BASE}/res-1")

    assert res.status_code == 500
    body = res.json()
    assert body["detail"] == "Internal server error"
    assert "error_id" in body
    assert "secret" not in res.text
