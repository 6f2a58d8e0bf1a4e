from __future__ import annotations

import pytest

from dtr_system.container import wire_services
from dtr_system.main import create_app


@pytest.fixture
def client(monkeypatch, dtr_repo, schedule_repo):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(wire_services(dtrs_repo=dtr_repo, schedules_repo=schedule_repo))
    return app.test_client()


def _login(client, *, user_id, role="person", name="", office_id=None):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role
        sess["name"] = name
        sess["office_id"] = office_id


def _login_office(client):
    _login(client, user_id=900, role="office", name="Library Staff", office_id=7)


def test_requires_session(client):
    resp = client.get("/api/dtr/2025/3")

    assert resp.status_code == 401
    assert resp.get_json()["message"]


def test_person_flow_edit_then_office_confirm(client):
    _login(client, user_id=1)
    dtr = client.get("/api/dtr/2025/3").get_json()
    assert len(dtr["entries"]) == 31

    resp = client.put(
        f"/api/dtr/{dtr['dtr_id']}/entries/3",
        json={"shifts": [{"in": "7:10 AM", "out": "8:30 AM"}]},
    )
    assert resp.status_code == 200
    assert resp.get_json()["total_minutes"] == 80
    assert resp.get_json()["late"] == 10

    assert client.post(f"/api/dtr/{dtr['dtr_id']}/entries/3/confirm").status_code == 403

    _login_office(client)
    resp = client.post(f"/api/dtr/{dtr['dtr_id']}/entries/3/confirm")
    assert resp.status_code == 200
    assert resp.get_json()["confirmation_status"] == "confirmed"

    _login(client, user_id=1)
    assert client.get(f"/api/dtr/{dtr['dtr_id']}").get_json()["total_monthly_minutes"] == 80


def test_validation_errors_map_to_400(client):
    _login(client, user_id=1)

    assert client.get("/api/dtr/2025/13").status_code == 400


def test_other_people_cannot_edit_or_view(client):
    _login(client, user_id=1)
    dtr_id = client.get("/api/dtr/2025/3").get_json()["dtr_id"]

    _login(client, user_id=2)
    assert client.put(f"/api/dtr/{dtr_id}/entries/3", json={"in1": "08:00"}).status_code == 403
    assert client.get(f"/api/dtr/{dtr_id}").status_code == 403


def test_approved_record_is_locked(client):
    _login(client, user_id=1)
    dtr_id = client.get("/api/dtr/2025/3").get_json()["dtr_id"]
    assert client.post(f"/api/dtr/{dtr_id}/submit").status_code == 200

    _login_office(client)
    assert client.post(f"/api/dtr/{dtr_id}/approve", json={"remarks": "OK"}).status_code == 200

    _login(client, user_id=1)
    resp = client.put(f"/api/dtr/{dtr_id}/entries/3", json={"in1": "08:00"})
    assert resp.status_code == 423


def test_unknown_record_is_404(client):
    _login_office(client)

    assert client.post("/api/dtr/999/entries/3/confirm").status_code == 404


def test_duty_hours_endpoints(client):
    _login_office(client)

    resp = client.post(
        "/api/schedules/10/duty-hours",
        json={"day": "Monday", "start_time": "09:00", "end_time": "11:00", "location": "Library"},
    )
    assert resp.status_code == 201

    clash = client.post(
        "/api/schedules/10/duty-hours",
        json={"day": "Monday", "start_time": "10:00", "end_time": "12:00", "location": "Library"},
    )
    assert clash.status_code == 409

    assert len(client.get("/api/schedules/10/duty-hours").get_json()) == 1

    missing = client.delete(
        "/api/schedules/10/duty-hours",
        json={"day": "Monday", "start_time": "09:00", "end_time": "10:00"},
    )
    assert missing.status_code == 404

    removed = client.delete(
        "/api/schedules/10/duty-hours",
        json={"day": "Monday", "start_time": "09:00", "end_time": "11:00"},
    )
    assert removed.status_code == 200


def test_schedule_for_date(client):
    _login(client, user_id=1)

    resp = client.get("/api/schedules/for-date?date=2025-03-03")

    assert resp.status_code == 200
    assert [s["start_time"] for s in resp.get_json()["slots"]] == ["07:00"]
    assert client.get("/api/schedules/for-date?date=03/03/2025").status_code == 400
    assert client.get("/api/schedules/for-date?date=2025-03-03&user_id=2").status_code == 403


def test_unknown_route_returns_json(client):
    resp = client.get("/api/nope")

    assert resp.status_code == 404
    assert "message" in resp.get_json()


def test_exception_flags_must_be_json_booleans(client):
    _login(client, user_id=1)
    dtr_id = client.get("/api/dtr/2025/3").get_json()["dtr_id"]
    _login_office(client)

    assert client.post(f"/api/dtr/{dtr_id}/entries/3/excused", json={"excused": "false"}).status_code == 400
    assert client.post(f"/api/dtr/{dtr_id}/entries/3/absent", json={"absent": 0}).status_code == 400
    assert client.post(f"/api/dtr/{dtr_id}/reject", json={"remarks": "x", "final": "yes"}).status_code == 400

    resp = client.post(f"/api/dtr/{dtr_id}/entries/3/excused", json={"excused": False})
    assert resp.status_code == 200
    assert resp.get_json()["excused_status"] == "none"
