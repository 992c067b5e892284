from __future__ import annotations

from datetime import date

import pytest
from fastapi.testclient import TestClient

from airline_ops import web
from airline_ops.accounts import create_user
from airline_ops.models import Role

CUSTOMER = {"X-User-ID": "5", "X-Role": "customer", "X-Role-ID": "7"}
MANAGER = {"X-User-ID": "1", "X-Role": "Management"}


@pytest.fixture
def client(session_factory, make_instance):
    make_instance("FI100", seats_total=1, flight_date=date(2026, 3, 2))
    with session_factory() as session:
        create_user(session, "pilot", "pw", Role.PILOT)
        create_user(session, "tech", "pw", Role.TECHNICIAN)
        session.commit()
    return TestClient(web.create_app(session_factory))


def test_booking_reports_confirmed_then_waitlisted(client):
    first = client.post("/reservations", json={"flight_instance_id": "FI100"}, headers=CUSTOMER)
    second = client.post("/reservations", json={"flight_instance_id": "FI100"}, headers=CUSTOMER)

    assert first.status_code == 201
    assert first.json()["outcome"] == "confirmed"
    assert first.json()["reservation_id"] == "R0001"
    assert second.json()["outcome"] == "waitlisted"
    assert second.json()["status"] == "waitlist"

    capacity = client.get("/flight-instances/FI100/capacity", headers=MANAGER)
    assert capacity.json() == {"seats_total": 1, "seats_sold": 1, "remaining": 0}


def test_errors_map_to_status_codes(client):
    missing = client.post("/reservations", json={"flight_instance_id": "FI404"}, headers=CUSTOMER)
    assert missing.status_code == 404
    assert "not found" in missing.json()["detail"]

    forbidden = client.post("/reservations", json={"flight_instance_id": "FI100"}, headers=MANAGER)
    assert forbidden.status_code == 403

    bad_role = client.get("/reports/ticket_cost", headers={"X-User-ID": "1", "X-Role": "Janitor"})
    assert bad_role.status_code == 401

    not_a_report = client.get("/reports/book", headers=CUSTOMER)
    assert not_a_report.status_code == 405

    bad_date = client.get(
        "/reports/seat_summary",
        params={"flight_number": "AO100", "flight_date": "March 2"},
        headers=MANAGER,
    )
    assert bad_date.status_code == 400


def test_maintenance_endpoints_use_caller_role_id(client):
    pilot = {"X-User-ID": "1", "X-Role": "Pilot", "X-Role-ID": "P001"}
    technician = {"X-User-ID": "2", "X-Role": "Technician", "X-Role-ID": "T001"}

    request = client.post("/maintenance-requests", json={"plane_id": "PL1", "repair_code": "RC3"}, headers=pilot)
    repair = client.post("/repairs", json={"plane_id": "PL1", "repair_code": "RC3"}, headers=technician)

    assert request.status_code == 201
    assert request.json()["pilot_id"] == "P001"
    assert repair.status_code == 201
    assert repair.json()["technician_id"] == "T001"
    assert repair.json()["repair_id"] == 1

    unknown_plane = client.post("/repairs", json={"plane_id": "PL9", "repair_code": "RC3"}, headers=technician)
    assert unknown_plane.status_code == 404

    history = client.get("/reports/pilot_requests", params={"pilot_id": "P001"}, headers=technician)
    assert history.status_code == 200
    assert history.json()[0]["repair_code"] == "RC3"


def test_report_downloads(client):
    client.post("/reservations", json={"flight_instance_id": "FI100"}, headers=CUSTOMER)

    csv = client.get("/reports/ticket_cost/download/csv", params={"flight_number": "AO100"}, headers=CUSTOMER)
    assert csv.status_code == 200
    assert csv.headers["content-type"].startswith("text/csv")
    assert "flight_instance_id" in csv.text
    assert "FI100" in csv.text

    xlsx = client.get(
        "/reports/seat_summary/download/xlsx",
        params={"flight_number": "AO100", "flight_date": "2026-03-02"},
        headers=MANAGER,
    )
    assert xlsx.status_code == 200
    assert xlsx.content[:2] == b"PK"
