"""SQLAlchemy models for the airline operations store."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Time,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Role(str, enum.Enum):
    MANAGEMENT = "Management"
    CUSTOMER = "Customer"
    PILOT = "Pilot"
    TECHNICIAN = "Technician"

    @classmethod
    def parse(cls, text: str) -> "Role":
        """Case-insensitive lookup used where roles arrive as free text."""

        candidate = (text or "").strip().lower()
        for role in cls:
            if role.value.lower() == candidate or role.name.lower() == candidate:
                return role
        choices = ", ".join(role.value for role in cls)
        raise ValueError(f"Invalid role '{text}'. Expected one of: {choices}")


@dataclass(frozen=True)
class UserSession:
    """An already authenticated ``(user_id, role, role_id)`` triple."""

    user_id: str
    role: Role
    role_id: str = ""


class ReservationStatus(str, enum.Enum):
    RESERVED = "reserved"
    WAITLIST = "waitlist"


def _enum_values(enum_cls: type[enum.Enum]) -> List[str]:
    return [member.value for member in enum_cls]


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="user_role", values_callable=_enum_values), nullable=False
    )
    role_id: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True)


class Plane(Base):
    __tablename__ = "planes"

    plane_id: Mapped[str] = mapped_column(String(20), primary_key=True)
    make: Mapped[str] = mapped_column(String(50), nullable=False)
    model: Mapped[str] = mapped_column(String(50), nullable=False)
    repair_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    year: Mapped[Optional[int]] = mapped_column(Integer)

    flights: Mapped[List["Flight"]] = relationship(back_populates="plane")


class Flight(Base):
    __tablename__ = "flights"

    flight_number: Mapped[str] = mapped_column(String(10), primary_key=True)
    plane_id: Mapped[str] = mapped_column(ForeignKey("planes.plane_id"), nullable=False)
    departure_city: Mapped[str] = mapped_column(String(50), nullable=False)
    arrival_city: Mapped[str] = mapped_column(String(50), nullable=False)

    plane: Mapped[Plane] = relationship(back_populates="flights")
    schedules: Mapped[List["Schedule"]] = relationship(
        back_populates="flight", cascade="all, delete-orphan"
    )
    instances: Mapped[List["FlightInstance"]] = relationship(
        back_populates="flight", cascade="all, delete-orphan"
    )


class Schedule(Base):
    __tablename__ = "schedules"

    schedule_id: Mapped[int] = mapped_column(primary_key=True)
    flight_number: Mapped[str] = mapped_column(
        ForeignKey("flights.flight_number", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[str] = mapped_column(String(10), nullable=False)
    departure_time: Mapped[time] = mapped_column(Time, nullable=False)
    arrival_time: Mapped[time] = mapped_column(Time, nullable=False)

    flight: Mapped[Flight] = relationship(back_populates="schedules")


class FlightInstance(Base):
    __tablename__ = "flight_instances"
    __table_args__ = (
        CheckConstraint("seats_total > 0", name="ck_seats_total_positive"),
        CheckConstraint(
            "seats_sold >= 0 AND seats_sold <= seats_total", name="ck_seats_sold_in_range"
        ),
    )

    flight_instance_id: Mapped[str] = mapped_column(String(20), primary_key=True)
    flight_number: Mapped[str] = mapped_column(
        ForeignKey("flights.flight_number", ondelete="CASCADE"), nullable=False
    )
    flight_date: Mapped[date] = mapped_column(Date, nullable=False)
    seats_total: Mapped[int] = mapped_column(Integer, nullable=False)
    seats_sold: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    num_of_stops: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    departed_on_time: Mapped[Optional[bool]] = mapped_column(Boolean)
    arrived_on_time: Mapped[Optional[bool]] = mapped_column(Boolean)
    ticket_cost: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)

    flight: Mapped[Flight] = relationship(back_populates="instances")
    reservations: Mapped[List["Reservation"]] = relationship(back_populates="flight_instance")


class Reservation(Base):
    __tablename__ = "reservations"

    reservation_id: Mapped[str] = mapped_column(String(20), primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(20), nullable=False)
    flight_instance_id: Mapped[str] = mapped_column(
        ForeignKey("flight_instances.flight_instance_id"), nullable=False
    )
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus, name="reservation_status", values_callable=_enum_values),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    flight_instance: Mapped[FlightInstance] = relationship(back_populates="reservations")

    @property
    def confirmed(self) -> bool:
        return self.status is ReservationStatus.RESERVED


class Repair(Base):
    __tablename__ = "repairs"

    repair_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    plane_id: Mapped[str] = mapped_column(ForeignKey("planes.plane_id"), nullable=False)
    repair_code: Mapped[str] = mapped_column(String(20), nullable=False)
    repair_date: Mapped[date] = mapped_column(Date, nullable=False)
    technician_id: Mapped[str] = mapped_column(String(20), nullable=False)


class MaintenanceRequest(Base):
    __tablename__ = "maintenance_requests"

    request_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    plane_id: Mapped[str] = mapped_column(ForeignKey("planes.plane_id"), nullable=False)
    repair_code: Mapped[str] = mapped_column(String(20), nullable=False)
    request_date: Mapped[date] = mapped_column(Date, nullable=False)
    pilot_id: Mapped[str] = mapped_column(String(20), nullable=False)


class IdSequence(Base):
    """Atomic counter row, one per identifier space."""

    __tablename__ = "id_sequences"

    entity: Mapped[str] = mapped_column(String(20), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False)
