"""Seat availability lookups for flight instances."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .errors import NotFound
from .models import FlightInstance, Reservation, ReservationStatus


@dataclass(frozen=True)
class Capacity:
    seats_total: int
    seats_sold: int

    @property
    def remaining(self) -> int:
        return max(self.seats_total - self.seats_sold, 0)

    @property
    def is_full(self) -> bool:
        return self.seats_sold >= self.seats_total


@dataclass(frozen=True)
class SeatDrift:
    flight_instance_id: str
    stored: int
    reserved: int

    @property
    def consistent(self) -> bool:
        return self.stored == self.reserved


def capacity(session: Session, flight_instance_id: str) -> Capacity:
    """Return ``(seats_total, seats_sold)`` for a flight instance."""

    row = session.execute(
        select(FlightInstance.seats_total, FlightInstance.seats_sold).where(
            FlightInstance.flight_instance_id == flight_instance_id
        )
    ).one_or_none()
    if row is None:
        raise NotFound(f"flight instance '{flight_instance_id}' not found")
    return Capacity(seats_total=int(row.seats_total), seats_sold=int(row.seats_sold))


def reconcile_seats_sold(session: Session, flight_instance_id: str) -> SeatDrift:
    """Compare the stored seat counter with the number of reserved bookings."""

    stored = capacity(session, flight_instance_id).seats_sold
    reserved = session.scalar(
        select(func.count())
        .select_from(Reservation)
        .where(
            Reservation.flight_instance_id == flight_instance_id,
            Reservation.status == ReservationStatus.RESERVED,
        )
    )
    return SeatDrift(flight_instance_id=flight_instance_id, stored=stored, reserved=int(reserved or 0))
