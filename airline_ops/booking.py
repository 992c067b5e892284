"""Booking decisions against finite seat inventory."""
from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from .database import translate_db_errors
from .errors import NotFound, ValidationFailed
from .models import FlightInstance, Reservation, ReservationStatus
from .sequences import EntityClass, next_id

logger = logging.getLogger(__name__)


def _claim_seat(session: Session, flight_instance_id: str) -> bool:
    """Take one seat if any is left; the check and the increment are one statement."""

    stmt = (
        update(FlightInstance)
        .where(
            FlightInstance.flight_instance_id == flight_instance_id,
            FlightInstance.seats_sold < FlightInstance.seats_total,
        )
        .values(seats_sold=FlightInstance.seats_sold + 1)
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount == 1


def _instance_exists(session: Session, flight_instance_id: str) -> bool:
    found = session.scalar(
        select(FlightInstance.flight_instance_id).where(
            FlightInstance.flight_instance_id == flight_instance_id
        )
    )
    return found is not None


def book(session: Session, flight_instance_id: str, customer_id: str) -> Reservation:
    """Record a booking request as ``reserved`` or ``waitlist``.

    A seat is claimed when one is left, otherwise the customer is waitlisted
    without limit. The seat claim, the reservation ID and the reservation row
    are written in one savepoint: either all of them persist or none do. The
    caller commits.

    Raises ``NotFound`` for an unknown flight instance, ``ValidationFailed``
    for blank arguments, ``WriteFailed``/``TransientUnavailable`` when the
    store rejects or times out.
    """

    flight_instance_id = (flight_instance_id or "").strip()
    customer_id = (customer_id or "").strip()
    if not flight_instance_id:
        raise ValidationFailed("flight instance ID is required")
    if not customer_id:
        raise ValidationFailed("customer ID is required")

    with translate_db_errors("book"):
        with session.begin_nested():
            if _claim_seat(session, flight_instance_id):
                status = ReservationStatus.RESERVED
            elif _instance_exists(session, flight_instance_id):
                status = ReservationStatus.WAITLIST
            else:
                raise NotFound(f"flight instance '{flight_instance_id}' not found")
            reservation = Reservation(
                reservation_id=next_id(session, EntityClass.RESERVATION),
                customer_id=customer_id,
                flight_instance_id=flight_instance_id,
                status=status,
            )
            session.add(reservation)

    logger.info(
        "Reservation %s for customer %s on %s: %s",
        reservation.reservation_id,
        customer_id,
        flight_instance_id,
        status.value,
    )
    return reservation


__all__ = ["book"]
