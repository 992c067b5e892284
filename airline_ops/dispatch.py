"""Role gated routing of authenticated sessions to operations."""
from __future__ import annotations

import enum
import inspect
import logging
from typing import Any, Callable, Dict, FrozenSet

from sqlalchemy.orm import Session, sessionmaker

from . import booking, maintenance, reports
from .capacity import capacity as capacity_of
from .database import session_scope
from .errors import PermissionDenied, ValidationFailed
from .models import Role, UserSession

logger = logging.getLogger(__name__)


class Operation(str, enum.Enum):
    # management
    FLIGHT_SCHEDULE = "flight_schedule"
    SEAT_SUMMARY = "seat_summary"
    FLIGHT_STATUS = "flight_status"
    CHECK_CAPACITY = "check_capacity"
    REPAIRS_BY_PLANE = "repairs_by_plane"
    SEAT_CONSISTENCY = "seat_consistency"
    FLIGHTS_OF_DAY = "flights_of_day"
    RESERVATION_HISTORY = "reservation_history"
    # customer
    FIND_FLIGHTS = "find_flights"
    TICKET_COST = "ticket_cost"
    PLANE_TYPE = "plane_type"
    BOOK = "book"
    # pilot
    SUBMIT_REQUEST = "submit_request"
    # technician
    REPAIRS_FOR_PLANE = "repairs_for_plane"
    PILOT_REQUESTS = "pilot_requests"
    LOG_REPAIR = "log_repair"


PERMISSIONS: Dict[Role, FrozenSet[Operation]] = {
    Role.MANAGEMENT: frozenset(
        {
            Operation.FLIGHT_SCHEDULE,
            Operation.SEAT_SUMMARY,
            Operation.FLIGHT_STATUS,
            Operation.CHECK_CAPACITY,
            Operation.REPAIRS_BY_PLANE,
            Operation.SEAT_CONSISTENCY,
            Operation.FLIGHTS_OF_DAY,
            Operation.RESERVATION_HISTORY,
        }
    ),
    Role.CUSTOMER: frozenset(
        {Operation.FIND_FLIGHTS, Operation.TICKET_COST, Operation.PLANE_TYPE, Operation.BOOK}
    ),
    Role.PILOT: frozenset({Operation.SUBMIT_REQUEST}),
    Role.TECHNICIAN: frozenset(
        {Operation.REPAIRS_FOR_PLANE, Operation.PILOT_REQUESTS, Operation.LOG_REPAIR}
    ),
}

# operations that act on behalf of the caller receive the caller's role ID
_ACTOR_ARGUMENT: Dict[Operation, str] = {
    Operation.BOOK: "customer_id",
    Operation.SUBMIT_REQUEST: "pilot_id",
    Operation.LOG_REPAIR: "technician_id",
}

_HANDLERS: Dict[Operation, Callable[..., Any]] = {
    Operation.FLIGHT_SCHEDULE: reports.flight_schedule,
    Operation.SEAT_SUMMARY: reports.seat_summary,
    Operation.FLIGHT_STATUS: reports.flight_status,
    Operation.CHECK_CAPACITY: capacity_of,
    Operation.REPAIRS_BY_PLANE: reports.repairs_by_plane,
    Operation.SEAT_CONSISTENCY: reports.seat_consistency,
    Operation.FLIGHTS_OF_DAY: reports.flights_of_day,
    Operation.RESERVATION_HISTORY: reports.reservation_history,
    Operation.FIND_FLIGHTS: reports.find_flights,
    Operation.TICKET_COST: reports.ticket_cost,
    Operation.PLANE_TYPE: reports.plane_type,
    Operation.BOOK: booking.book,
    Operation.SUBMIT_REQUEST: maintenance.submit_request,
    Operation.REPAIRS_FOR_PLANE: reports.repairs_for_plane,
    Operation.PILOT_REQUESTS: reports.pilot_requests,
    Operation.LOG_REPAIR: maintenance.log_repair,
}


def parse_operation(operation: Operation | str) -> Operation:
    try:
        return Operation(operation)
    except ValueError as exc:
        raise PermissionDenied(f"unknown operation '{operation}'") from exc


def is_permitted(role: Role, operation: Operation | str) -> bool:
    try:
        operation = Operation(operation)
    except ValueError:
        return False
    return operation in PERMISSIONS[role]


def authorize(user: UserSession, operation: Operation | str) -> Operation:
    """Return the parsed operation or raise ``PermissionDenied``."""

    parsed = parse_operation(operation)
    if parsed not in PERMISSIONS[user.role]:
        logger.warning("%s (%s) denied %s", user.user_id, user.role.value, parsed.value)
        raise PermissionDenied(f"{user.role.value} may not {parsed.value}")
    return parsed


class Dispatcher:
    """Run permitted operations, one transaction per call."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def dispatch(self, user: UserSession, operation: Operation | str, **kwargs: Any) -> Any:
        parsed = authorize(user, operation)
        actor = _ACTOR_ARGUMENT.get(parsed)
        if actor is not None:
            kwargs[actor] = user.role_id
        handler = _HANDLERS[parsed]
        try:
            inspect.signature(handler).bind(None, **kwargs)
        except TypeError as exc:
            raise ValidationFailed(f"{parsed.value}: {exc}") from exc
        with session_scope(self.session_factory) as session:
            return handler(session, **kwargs)


__all__ = [
    "Operation",
    "PERMISSIONS",
    "UserSession",
    "Dispatcher",
    "authorize",
    "is_permitted",
    "parse_operation",
]
