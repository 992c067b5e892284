"""Read-only projections for customers, technicians and management."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
from sqlalchemy import Select, and_, case, func, select
from sqlalchemy.orm import Session

from .errors import NotFound, ValidationFailed
from .models import (
    Flight,
    FlightInstance,
    MaintenanceRequest,
    Plane,
    Repair,
    Reservation,
    ReservationStatus,
    Schedule,
)

Row = Dict[str, Any]


def parse_date(value: date | str | None, label: str = "date") -> date:
    """Accept ``YYYY-MM-DD`` strings or dates; anything else is a validation failure."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValidationFailed(f"{label} must be formatted YYYY-MM-DD, got '{value}'") from exc


def _rows(session: Session, stmt: Select) -> List[Row]:
    return [dict(row._mapping) for row in session.execute(stmt)]


def _on_time_percentage(session: Session, flight_number: str) -> Optional[float]:
    recorded, on_time = session.execute(
        select(
            func.count(),
            func.sum(
                case(
                    (and_(FlightInstance.departed_on_time, FlightInstance.arrived_on_time), 1),
                    else_=0,
                )
            ),
        ).where(
            FlightInstance.flight_number == flight_number,
            FlightInstance.departed_on_time.is_not(None),
            FlightInstance.arrived_on_time.is_not(None),
        )
    ).one()
    if not recorded:
        return None
    return round(100.0 * (on_time or 0) / recorded, 2)


# Customer views


def find_flights(
    session: Session, departure_city: str, arrival_city: str, flight_date: date | str
) -> List[Row]:
    """Flights between two cities on a date with times, stops and on-time record."""

    flight_date = parse_date(flight_date, "flight date")
    weekday = flight_date.strftime("%A")
    stmt = (
        select(
            FlightInstance.flight_number,
            FlightInstance.flight_instance_id,
            Schedule.departure_time,
            Schedule.arrival_time,
            FlightInstance.num_of_stops,
        )
        .join(Flight, Flight.flight_number == FlightInstance.flight_number)
        .outerjoin(
            Schedule,
            and_(Schedule.flight_number == Flight.flight_number, Schedule.day_of_week == weekday),
        )
        .where(
            func.lower(Flight.departure_city) == departure_city.strip().lower(),
            func.lower(Flight.arrival_city) == arrival_city.strip().lower(),
            FlightInstance.flight_date == flight_date,
        )
        .order_by(Schedule.departure_time, FlightInstance.flight_number)
    )
    rows = _rows(session, stmt)
    for row in rows:
        row["on_time_percentage"] = _on_time_percentage(session, row["flight_number"])
    return rows


def ticket_cost(session: Session, flight_number: str) -> List[Row]:
    stmt = (
        select(FlightInstance.flight_instance_id, FlightInstance.flight_date, FlightInstance.ticket_cost)
        .where(FlightInstance.flight_number == flight_number)
        .order_by(FlightInstance.flight_date)
    )
    return [{**row, "ticket_cost": float(row["ticket_cost"])} for row in _rows(session, stmt)]


def plane_type(session: Session, flight_number: str) -> Row:
    row = session.execute(
        select(Plane.plane_id, Plane.make, Plane.model)
        .join(Flight, Flight.plane_id == Plane.plane_id)
        .where(Flight.flight_number == flight_number)
    ).one_or_none()
    if row is None:
        raise NotFound(f"flight '{flight_number}' not found")
    return dict(row._mapping)


# Technician views


def repairs_for_plane(
    session: Session, plane_id: str, start: date | str, end: date | str
) -> List[Row]:
    start, end = parse_date(start, "start date"), parse_date(end, "end date")
    if end < start:
        raise ValidationFailed("end date precedes start date")
    stmt = (
        select(Repair.repair_id, Repair.repair_date, Repair.repair_code, Repair.technician_id)
        .where(Repair.plane_id == plane_id, Repair.repair_date.between(start, end))
        .order_by(Repair.repair_date, Repair.repair_id)
    )
    return _rows(session, stmt)


def pilot_requests(session: Session, pilot_id: str) -> List[Row]:
    stmt = (
        select(
            MaintenanceRequest.request_id,
            MaintenanceRequest.request_date,
            MaintenanceRequest.repair_code,
            MaintenanceRequest.plane_id,
        )
        .where(MaintenanceRequest.pilot_id == pilot_id)
        .order_by(MaintenanceRequest.request_date, MaintenanceRequest.request_id)
    )
    return _rows(session, stmt)


# Management views


def flight_schedule(session: Session, flight_number: str) -> List[Row]:
    stmt = (
        select(Schedule.day_of_week, Schedule.departure_time, Schedule.arrival_time)
        .where(Schedule.flight_number == flight_number)
        .order_by(Schedule.schedule_id)
    )
    return _rows(session, stmt)


def _instance_on(session: Session, flight_number: str, flight_date: date | str) -> FlightInstance:
    flight_date = parse_date(flight_date, "flight date")
    instance = session.scalar(
        select(FlightInstance).where(
            FlightInstance.flight_number == flight_number,
            FlightInstance.flight_date == flight_date,
        )
    )
    if instance is None:
        raise NotFound(f"flight '{flight_number}' has no instance on {flight_date.isoformat()}")
    return instance


def seat_summary(session: Session, flight_number: str, flight_date: date | str) -> Row:
    instance = _instance_on(session, flight_number, flight_date)
    waitlisted = session.scalar(
        select(func.count())
        .select_from(Reservation)
        .where(
            Reservation.flight_instance_id == instance.flight_instance_id,
            Reservation.status == ReservationStatus.WAITLIST,
        )
    )
    return {
        "flight_instance_id": instance.flight_instance_id,
        "seats_total": instance.seats_total,
        "seats_sold": instance.seats_sold,
        "seats_available": instance.seats_total - instance.seats_sold,
        "waitlisted": int(waitlisted or 0),
    }


def flight_status(session: Session, flight_number: str, flight_date: date | str) -> Row:
    instance = _instance_on(session, flight_number, flight_date)
    return {
        "flight_instance_id": instance.flight_instance_id,
        "departed_on_time": instance.departed_on_time,
        "arrived_on_time": instance.arrived_on_time,
    }


def flights_of_day(session: Session, flight_date: date | str) -> List[Row]:
    """Every flight instance operating on ``flight_date`` with route and load."""

    flight_date = parse_date(flight_date, "flight date")
    stmt = (
        select(
            FlightInstance.flight_instance_id,
            FlightInstance.flight_number,
            Flight.departure_city,
            Flight.arrival_city,
            Schedule.departure_time,
            FlightInstance.seats_total,
            FlightInstance.seats_sold,
            FlightInstance.departed_on_time,
            FlightInstance.arrived_on_time,
        )
        .join(Flight, Flight.flight_number == FlightInstance.flight_number)
        .outerjoin(
            Schedule,
            and_(
                Schedule.flight_number == Flight.flight_number,
                Schedule.day_of_week == flight_date.strftime("%A"),
            ),
        )
        .where(FlightInstance.flight_date == flight_date)
        .order_by(Schedule.departure_time, FlightInstance.flight_number)
    )
    return _rows(session, stmt)


def reservation_history(
    session: Session,
    flight_instance_id: Optional[str] = None,
    customer_id: Optional[str] = None,
) -> List[Row]:
    """All reservations in allocation order, optionally narrowed to a flight or a customer."""

    stmt = select(
        Reservation.reservation_id,
        Reservation.customer_id,
        Reservation.flight_instance_id,
        Reservation.status,
        Reservation.created_at,
    )
    if flight_instance_id:
        stmt = stmt.where(Reservation.flight_instance_id == flight_instance_id.strip())
    if customer_id:
        stmt = stmt.where(Reservation.customer_id == customer_id.strip())
    # R9999 sorts after R10000 as text
    stmt = stmt.order_by(func.length(Reservation.reservation_id), Reservation.reservation_id)
    return [{**row, "status": row["status"].value} for row in _rows(session, stmt)]


def repairs_by_plane(session: Session) -> List[Row]:
    stmt = (
        select(Plane.plane_id, Plane.make, Plane.model, func.count(Repair.repair_id).label("repairs"))
        .outerjoin(Repair, Repair.plane_id == Plane.plane_id)
        .group_by(Plane.plane_id, Plane.make, Plane.model)
        .order_by(func.count(Repair.repair_id).desc(), Plane.plane_id)
    )
    return _rows(session, stmt)


def seat_consistency(session: Session) -> List[Row]:
    """Flight instances whose stored seat count disagrees with reserved bookings."""

    reserved = (
        select(Reservation.flight_instance_id, func.count().label("reserved"))
        .where(Reservation.status == ReservationStatus.RESERVED)
        .group_by(Reservation.flight_instance_id)
        .subquery()
    )
    reserved_count = func.coalesce(reserved.c.reserved, 0)
    stmt = (
        select(
            FlightInstance.flight_instance_id,
            FlightInstance.seats_sold.label("stored"),
            reserved_count.label("reserved"),
        )
        .outerjoin(reserved, reserved.c.flight_instance_id == FlightInstance.flight_instance_id)
        .where(FlightInstance.seats_sold != reserved_count)
        .order_by(FlightInstance.flight_instance_id)
    )
    return _rows(session, stmt)


def as_dataframe(rows: Row | Iterable[Row]) -> pd.DataFrame:
    """Tabulate any report for export."""

    if isinstance(rows, dict):
        rows = [rows]
    return pd.DataFrame(list(rows))


__all__ = [
    "parse_date",
    "find_flights",
    "ticket_cost",
    "plane_type",
    "repairs_for_plane",
    "pilot_requests",
    "flight_schedule",
    "seat_summary",
    "flight_status",
    "flights_of_day",
    "reservation_history",
    "repairs_by_plane",
    "seat_consistency",
    "as_dataframe",
]
