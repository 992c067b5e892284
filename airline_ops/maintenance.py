"""Maintenance requests from pilots and repair logs from technicians."""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .database import translate_db_errors
from .errors import NotFound, ValidationFailed
from .models import MaintenanceRequest, Plane, Repair, Role, User
from .sequences import EntityClass, next_value

logger = logging.getLogger(__name__)


def _require_text(value: Optional[str], label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationFailed(f"{label} is required")
    return cleaned


def _require_plane(session: Session, plane_id: str) -> None:
    if session.get(Plane, plane_id) is None:
        raise NotFound(f"plane '{plane_id}' not found")


def _require_staff(session: Session, role: Role, role_id: str) -> None:
    found = session.scalar(select(User.user_id).where(User.role == role, User.role_id == role_id))
    if found is None:
        raise NotFound(f"{role.value.lower()} '{role_id}' not found")


def submit_request(
    session: Session,
    plane_id: str,
    repair_code: str,
    pilot_id: str,
    *,
    today: Optional[date] = None,
) -> MaintenanceRequest:
    """File a maintenance request for ``plane_id`` dated today."""

    plane_id = _require_text(plane_id, "plane ID")
    repair_code = _require_text(repair_code, "repair code")
    pilot_id = _require_text(pilot_id, "pilot ID")

    with translate_db_errors("submit_request"):
        with session.begin_nested():
            _require_plane(session, plane_id)
            _require_staff(session, Role.PILOT, pilot_id)
            request = MaintenanceRequest(
                request_id=next_value(session, EntityClass.REQUEST),
                plane_id=plane_id,
                repair_code=repair_code,
                request_date=today or date.today(),
                pilot_id=pilot_id,
            )
            session.add(request)

    logger.info("Maintenance request %d filed by %s for %s", request.request_id, pilot_id, plane_id)
    return request


def log_repair(
    session: Session,
    plane_id: str,
    repair_code: str,
    technician_id: str,
    *,
    today: Optional[date] = None,
) -> Repair:
    """Record completed work as a new repair; requests are not updated."""

    plane_id = _require_text(plane_id, "plane ID")
    repair_code = _require_text(repair_code, "repair code")
    technician_id = _require_text(technician_id, "technician ID")

    with translate_db_errors("log_repair"):
        with session.begin_nested():
            plane = session.get(Plane, plane_id)
            if plane is None:
                raise NotFound(f"plane '{plane_id}' not found")
            _require_staff(session, Role.TECHNICIAN, technician_id)
            repair = Repair(
                repair_id=next_value(session, EntityClass.REPAIR),
                plane_id=plane_id,
                repair_code=repair_code,
                repair_date=today or date.today(),
                technician_id=technician_id,
            )
            session.add(repair)
            plane.repair_count += 1

    logger.info("Repair %d logged by %s for %s", repair.repair_id, technician_id, plane_id)
    return repair


__all__ = ["submit_request", "log_repair"]
