from __future__ import annotations

from datetime import date

import pytest

from airline_ops.accounts import create_user
from airline_ops.errors import NotFound, ValidationFailed
from airline_ops.maintenance import log_repair, submit_request
from airline_ops.models import MaintenanceRequest, Plane, Repair, Role


@pytest.fixture
def crew(session_factory):
    with session_factory() as session:
        session.add(Plane(plane_id="PL9", make="Boeing", model="737", year=2012))
        pilot = create_user(session, "pilot", "secret", Role.PILOT)
        technician = create_user(session, "tech", "secret", Role.TECHNICIAN)
        session.commit()
    return pilot.role_id, technician.role_id


def test_request_and_repair_are_independent_records(session_factory, crew):
    pilot_id, technician_id = crew
    assert (pilot_id, technician_id) == ("P001", "T001")
    today = date(2026, 10, 17)

    with session_factory() as session:
        request = submit_request(session, "PL9", "RC3", pilot_id, today=today)
        repair = log_repair(session, "PL9", "RC3", technician_id, today=today)
        session.commit()

    assert request.request_id == 1
    assert repair.repair_id == 1
    assert request.request_date == repair.repair_date == today

    with session_factory() as session:
        stored_request = session.get(MaintenanceRequest, 1)
        stored_repair = session.get(Repair, 1)
        plane = session.get(Plane, "PL9")
    assert stored_request.pilot_id == "P001"
    assert stored_repair.technician_id == "T001"
    assert plane.repair_count == 1


def test_dates_default_to_today(session_factory, crew):
    pilot_id, _ = crew
    with session_factory() as session:
        request = submit_request(session, "PL9", "HYD", pilot_id)
        session.commit()
    assert request.request_date == date.today()


def test_unknown_references_are_not_found(session_factory, crew):
    pilot_id, technician_id = crew
    with session_factory() as session:
        with pytest.raises(NotFound, match="plane"):
            submit_request(session, "PL404", "RC3", pilot_id)
        with pytest.raises(NotFound, match="pilot"):
            submit_request(session, "PL9", "RC3", "P999")
        with pytest.raises(NotFound, match="technician"):
            log_repair(session, "PL9", "RC3", pilot_id)
        with pytest.raises(NotFound, match="plane"):
            log_repair(session, "PL404", "RC3", technician_id)
        session.commit()

    with session_factory() as session:
        assert session.query(MaintenanceRequest).count() == 0
        assert session.query(Repair).count() == 0


def test_blank_repair_code_is_rejected(session_factory, crew):
    pilot_id, technician_id = crew
    with session_factory() as session:
        with pytest.raises(ValidationFailed):
            submit_request(session, "PL9", "", pilot_id)
        with pytest.raises(ValidationFailed):
            log_repair(session, "PL9", " ", technician_id)
