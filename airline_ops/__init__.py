"""Airline reservation, inventory and maintenance operations."""
from typing import Any

from .accounts import authenticate, create_user
from .booking import book
from .capacity import Capacity, capacity, reconcile_seats_sold
from .database import create_session_factory, init_db, session_scope
from .dataset import generate_sample_data
from .dispatch import Dispatcher, Operation, authorize, is_permitted
from .errors import (
    AirlineOpsError,
    AuthenticationFailed,
    NotFound,
    PermissionDenied,
    TransientUnavailable,
    ValidationFailed,
    WriteFailed,
    retry_transient,
)
from .maintenance import log_repair, submit_request
from .models import ReservationStatus, Role, UserSession
from .sequences import EntityClass, format_identifier, next_id, next_value


def create_app(*args: Any, **kwargs: Any):  # pragma: no cover - thin wrapper
    from .web import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "AirlineOpsError",
    "AuthenticationFailed",
    "Capacity",
    "Dispatcher",
    "EntityClass",
    "NotFound",
    "Operation",
    "PermissionDenied",
    "ReservationStatus",
    "Role",
    "TransientUnavailable",
    "UserSession",
    "ValidationFailed",
    "WriteFailed",
    "authenticate",
    "authorize",
    "book",
    "capacity",
    "create_app",
    "create_session_factory",
    "create_user",
    "format_identifier",
    "generate_sample_data",
    "init_db",
    "is_permitted",
    "log_repair",
    "next_id",
    "next_value",
    "reconcile_seats_sold",
    "retry_transient",
    "session_scope",
    "submit_request",
]
