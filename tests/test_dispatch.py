from __future__ import annotations

import pytest

from airline_ops.accounts import create_user
from airline_ops.dispatch import (
    PERMISSIONS,
    Dispatcher,
    Operation,
    authorize,
    is_permitted,
)
from airline_ops.errors import NotFound, PermissionDenied, ValidationFailed
from airline_ops.models import Plane, ReservationStatus, Role, UserSession


def test_permission_table_matches_roles():
    assert PERMISSIONS[Role.CUSTOMER] == {
        Operation.FIND_FLIGHTS,
        Operation.TICKET_COST,
        Operation.PLANE_TYPE,
        Operation.BOOK,
    }
    assert PERMISSIONS[Role.PILOT] == {Operation.SUBMIT_REQUEST}
    assert Operation.LOG_REPAIR in PERMISSIONS[Role.TECHNICIAN]
    assert Operation.BOOK not in PERMISSIONS[Role.MANAGEMENT]
    # every operation is reachable by exactly one role
    owners = [op for ops in PERMISSIONS.values() for op in ops]
    assert sorted(owners) == sorted(Operation)


def test_is_permitted_rejects_unknown_operations():
    assert is_permitted(Role.CUSTOMER, "book")
    assert not is_permitted(Role.PILOT, "book")
    assert not is_permitted(Role.MANAGEMENT, "drop_tables")


def test_authorize_raises_for_foreign_operation():
    pilot = UserSession(user_id="3", role=Role.PILOT, role_id="P001")
    assert authorize(pilot, "submit_request") is Operation.SUBMIT_REQUEST
    with pytest.raises(PermissionDenied):
        authorize(pilot, Operation.LOG_REPAIR)
    with pytest.raises(PermissionDenied, match="unknown operation"):
        authorize(pilot, "launch")


def test_dispatch_books_as_the_calling_customer(session_factory, make_instance):
    instance_id = make_instance(seats_total=1)
    dispatcher = Dispatcher(session_factory)
    customer = UserSession(user_id="10", role=Role.CUSTOMER, role_id="42")

    first = dispatcher.dispatch(customer, Operation.BOOK, flight_instance_id=instance_id)
    second = dispatcher.dispatch(customer, "book", flight_instance_id=instance_id)

    assert first.customer_id == second.customer_id == "42"
    assert first.status is ReservationStatus.RESERVED
    assert second.status is ReservationStatus.WAITLIST

    manager = UserSession(user_id="1", role=Role.MANAGEMENT)
    seats = dispatcher.dispatch(manager, "check_capacity", flight_instance_id=instance_id)
    assert (seats.seats_total, seats.seats_sold) == (1, 1)

    history = dispatcher.dispatch(manager, Operation.RESERVATION_HISTORY, customer_id="42")
    assert [row["status"] for row in history] == ["reserved", "waitlist"]
    with pytest.raises(PermissionDenied):
        dispatcher.dispatch(customer, "reservation_history")


def test_dispatch_rolls_back_failed_operations(session_factory):
    with session_factory() as session:
        session.add(Plane(plane_id="PL1", make="Airbus", model="A320"))
        pilot = create_user(session, "pilot", "pw", Role.PILOT)
        session.commit()

    dispatcher = Dispatcher(session_factory)
    user = UserSession(user_id=str(pilot.user_id), role=Role.PILOT, role_id=pilot.role_id)
    with pytest.raises(NotFound):
        dispatcher.dispatch(user, Operation.SUBMIT_REQUEST, plane_id="PL2", repair_code="ENG")
    request = dispatcher.dispatch(user, Operation.SUBMIT_REQUEST, plane_id="PL1", repair_code="ENG")
    assert request.request_id == 1
    assert request.pilot_id == "P001"


def test_dispatch_rejects_unexpected_arguments(session_factory):
    dispatcher = Dispatcher(session_factory)
    manager = UserSession(user_id="1", role=Role.MANAGEMENT)
    with pytest.raises(ValidationFailed):
        dispatcher.dispatch(manager, "flight_schedule", flight="AO100")
