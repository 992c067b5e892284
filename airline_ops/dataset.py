"""Utilities to populate the database with sample data for tests and demos."""
from __future__ import annotations

import random
from datetime import date, time, timedelta
from typing import Dict, Sequence

from sqlalchemy.orm import Session, sessionmaker

from .accounts import create_user
from .booking import book
from .errors import AirlineOpsError
from .maintenance import log_repair, submit_request
from .models import Flight, FlightInstance, Plane, Role, Schedule

CITIES: Sequence[str] = (
    "Atlanta",
    "Beijing",
    "Dubai",
    "Los Angeles",
    "Tokyo",
    "Chicago",
    "London",
    "Paris",
)
PLANES = (("Airbus", "A320"), ("Airbus", "A350"), ("Boeing", "737"), ("Boeing", "787"))
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
REPAIR_CODES = ("ENG", "AVI", "HYD", "LDG", "CAB")


def generate_sample_data(
    session_factory: sessionmaker[Session],
    *,
    planes: int = 4,
    flights: int = 10,
    days: int = 7,
    customers: int = 20,
    bookings: int = 150,
    start: date | None = None,
) -> Dict[str, int]:
    """Populate the database with deterministic pseudo-random data."""

    rng = random.Random(42)
    start = start or date.today() - timedelta(days=days // 2)
    instance_ids = []
    with session_factory() as session:
        for index in range(planes):
            make, model = PLANES[index % len(PLANES)]
            session.add(Plane(plane_id=f"PL{index + 1}", make=make, model=model, year=2005 + index))
        for index in range(flights):
            origin, destination = rng.sample(CITIES, 2)
            flight = Flight(
                flight_number=f"AO{100 + index}",
                plane_id=f"PL{index % planes + 1}",
                departure_city=origin,
                arrival_city=destination,
            )
            session.add(flight)
            departure = time(hour=rng.randint(5, 20), minute=rng.choice((0, 15, 30, 45)))
            arrival = time(hour=min(departure.hour + rng.randint(1, 3), 23), minute=departure.minute)
            for weekday in WEEKDAYS:
                session.add(
                    Schedule(
                        flight=flight,
                        day_of_week=weekday,
                        departure_time=departure,
                        arrival_time=arrival,
                    )
                )
            for offset in range(days):
                flight_date = start + timedelta(days=offset)
                instance_id = f"FI{flight.flight_number}{flight_date:%m%d}"
                past = flight_date < date.today()
                session.add(
                    FlightInstance(
                        flight_instance_id=instance_id,
                        flight=flight,
                        flight_date=flight_date,
                        seats_total=rng.choice((4, 8, 12)),
                        seats_sold=0,
                        num_of_stops=rng.choice((0, 0, 1)),
                        departed_on_time=rng.random() > 0.2 if past else None,
                        arrived_on_time=rng.random() > 0.25 if past else None,
                        ticket_cost=rng.choice((120, 180, 240)),
                    )
                )
                instance_ids.append(instance_id)
        session.commit()

    with session_factory() as session:
        create_user(session, "manager", "manager", Role.MANAGEMENT)
        pilot = create_user(session, "pilot", "pilot", Role.PILOT)
        technician = create_user(session, "technician", "technician", Role.TECHNICIAN)
        customer_ids = [
            create_user(session, f"customer{index}", "customer", Role.CUSTOMER).role_id
            for index in range(customers)
        ]
        session.commit()

    successful = 0
    with session_factory() as session:
        for _ in range(bookings):
            try:
                book(session, rng.choice(instance_ids), rng.choice(customer_ids))
                session.commit()
                successful += 1
            except AirlineOpsError:
                session.rollback()
        for index in range(planes):
            plane_id = f"PL{index + 1}"
            code = rng.choice(REPAIR_CODES)
            submit_request(session, plane_id, code, pilot.role_id)
            if index % 2 == 0:
                log_repair(session, plane_id, code, technician.role_id)
        session.commit()
    return {
        "flights": flights,
        "flight_instances": len(instance_ids),
        "customers": customers,
        "bookings": successful,
    }
