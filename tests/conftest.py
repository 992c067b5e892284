from __future__ import annotations

from datetime import date

import pytest

from airline_ops.database import create_session_factory
from airline_ops.models import Base, Flight, FlightInstance, Plane


@pytest.fixture
def session_factory(tmp_path):
    engine, factory = create_session_factory(
        f"sqlite+pysqlite:///{tmp_path / 'airline-test.db'}", echo=False, timeout=30
    )
    Base.metadata.create_all(engine)
    yield factory
    engine.dispose()


@pytest.fixture
def make_instance(session_factory):
    """Create plane PL1, flight AO100 and a flight instance with the given inventory."""

    def _make(
        flight_instance_id: str = "FI100",
        *,
        seats_total: int = 2,
        seats_sold: int = 0,
        flight_date: date = date(2026, 3, 2),
        ticket_cost: float = 199.0,
    ) -> str:
        with session_factory() as session:
            if session.get(Plane, "PL1") is None:
                session.add(Plane(plane_id="PL1", make="Airbus", model="A320", year=2015))
            if session.get(Flight, "AO100") is None:
                session.add(
                    Flight(
                        flight_number="AO100",
                        plane_id="PL1",
                        departure_city="Los Angeles",
                        arrival_city="Chicago",
                    )
                )
            session.add(
                FlightInstance(
                    flight_instance_id=flight_instance_id,
                    flight_number="AO100",
                    flight_date=flight_date,
                    seats_total=seats_total,
                    seats_sold=seats_sold,
                    ticket_cost=ticket_cost,
                )
            )
            session.commit()
        return flight_instance_id

    return _make
