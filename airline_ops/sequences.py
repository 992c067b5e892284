"""Sequential, human readable identifiers backed by atomic counter rows.

Each identifier space (reservations, repairs, maintenance requests and the
role scoped IDs of technicians, pilots and customers) owns one row in
``id_sequences``. Allocation increments that row inside the caller's
transaction, so two concurrent allocations can never observe the same value,
and a rolled back transaction hands its value back to the sequence.

The first allocation for a space seeds the counter past both the number of
rows already present and the highest numeric identifier in use, which keeps
identifiers continuous with data created before the counter existed.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import IdSequence, MaintenanceRequest, Repair, Reservation, Role, User

logger = logging.getLogger(__name__)


class EntityClass(str, enum.Enum):
    RESERVATION = "reservation"
    REPAIR = "repair"
    REQUEST = "request"
    TECHNICIAN = "technician"
    PILOT = "pilot"
    CUSTOMER = "customer"


@dataclass(frozen=True)
class IdentifierFormat:
    prefix: str = ""
    width: Optional[int] = None


DEFAULT_FORMATS: Dict[EntityClass, IdentifierFormat] = {
    EntityClass.RESERVATION: IdentifierFormat(prefix="R", width=4),
    EntityClass.REPAIR: IdentifierFormat(),
    EntityClass.REQUEST: IdentifierFormat(),
    EntityClass.TECHNICIAN: IdentifierFormat(prefix="T", width=3),
    EntityClass.PILOT: IdentifierFormat(prefix="P", width=3),
    EntityClass.CUSTOMER: IdentifierFormat(),
}

ROLE_ENTITIES: Dict[Role, EntityClass] = {
    Role.TECHNICIAN: EntityClass.TECHNICIAN,
    Role.PILOT: EntityClass.PILOT,
    Role.CUSTOMER: EntityClass.CUSTOMER,
}


def format_identifier(value: int, *, width: Optional[int] = None, prefix: str = "") -> str:
    """Render ``value`` zero padded to ``width`` (never truncated) behind ``prefix``."""

    if value < 0:
        raise ValueError("identifier values are non-negative")
    digits = str(value).zfill(width) if width else str(value)
    return f"{prefix}{digits}"


def _count_statement(entity: EntityClass) -> Select:
    if entity is EntityClass.RESERVATION:
        return select(func.count()).select_from(Reservation)
    if entity is EntityClass.REPAIR:
        return select(func.count()).select_from(Repair)
    if entity is EntityClass.REQUEST:
        return select(func.count()).select_from(MaintenanceRequest)
    return select(func.count()).select_from(User).where(User.role == _role_for(entity))


def _role_for(entity: EntityClass) -> Role:
    return next(role for role, mapped in ROLE_ENTITIES.items() if mapped is entity)


def _highest_existing(session: Session, entity: EntityClass) -> int:
    """Largest numeric value already used in ``entity``'s identifier space."""

    if entity is EntityClass.REPAIR:
        return session.scalar(select(func.max(Repair.repair_id))) or 0
    if entity is EntityClass.REQUEST:
        return session.scalar(select(func.max(MaintenanceRequest.request_id))) or 0

    prefix = DEFAULT_FORMATS[entity].prefix
    if entity is EntityClass.RESERVATION:
        column = Reservation.reservation_id
        stmt = select(column)
    else:
        column = User.role_id
        stmt = select(column).where(User.role == _role_for(entity), column.is_not(None))
    if prefix:
        stmt = stmt.where(column.startswith(prefix))

    highest = 0
    for identifier in session.scalars(stmt):
        digits = identifier[len(prefix):]
        # identifiers written in another format do not occupy this space
        if digits.isdecimal():
            highest = max(highest, int(digits))
    return highest


def _increment(session: Session, entity: EntityClass) -> bool:
    stmt = (
        update(IdSequence)
        .where(IdSequence.entity == entity.value)
        .values(value=IdSequence.value + 1)
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount == 1


def _seed(session: Session, entity: EntityClass) -> None:
    # gaps left by deleted rows can put the row count below an ID still in use
    floor = max(session.scalar(_count_statement(entity)) or 0, _highest_existing(session, entity))
    try:
        with session.begin_nested():
            session.add(IdSequence(entity=entity.value, value=floor + 1))
    except IntegrityError:
        # another session seeded the counter first; take the next value from it
        logger.debug("Counter for %s seeded concurrently", entity.value)
        if not _increment(session, entity):
            raise
    else:
        logger.info("Seeded %s counter at %d", entity.value, floor + 1)


def next_value(session: Session, entity: EntityClass) -> int:
    """Allocate the next integer for ``entity`` inside the current transaction."""

    entity = EntityClass(entity)
    if not _increment(session, entity):
        _seed(session, entity)
    value = session.scalar(select(IdSequence.value).where(IdSequence.entity == entity.value))
    if value is None:  # pragma: no cover - counter row vanished mid-transaction
        raise RuntimeError(f"no counter for {entity.value}")
    return int(value)


def next_id(
    session: Session,
    entity: EntityClass,
    *,
    width: Optional[int] = None,
    prefix: Optional[str] = None,
) -> str:
    """Allocate and format the next identifier for ``entity``.

    ``width``/``prefix`` override the defaults in :data:`DEFAULT_FORMATS`.
    """

    entity = EntityClass(entity)
    default = DEFAULT_FORMATS[entity]
    value = next_value(session, entity)
    return format_identifier(
        value,
        width=default.width if width is None else width,
        prefix=default.prefix if prefix is None else prefix,
    )


__all__ = [
    "EntityClass",
    "IdentifierFormat",
    "DEFAULT_FORMATS",
    "ROLE_ENTITIES",
    "format_identifier",
    "next_value",
    "next_id",
]
