"""FastAPI application exposing the role gated operations as JSON."""
from __future__ import annotations

import logging
from io import BytesIO, StringIO
from typing import Any, Dict, Literal, Optional

import pandas as pd
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session, sessionmaker

from .config import get_settings
from .database import init_db
from .dispatch import Dispatcher, Operation
from .errors import (
    AirlineOpsError,
    AuthenticationFailed,
    NotFound,
    PermissionDenied,
    TransientUnavailable,
    ValidationFailed,
    WriteFailed,
)
from .logging_config import configure_logging
from .models import Role, UserSession
from .reports import as_dataframe

logger = logging.getLogger(__name__)

_STATUS_CODES: Dict[type, int] = {
    NotFound: 404,
    ValidationFailed: 400,
    AuthenticationFailed: 401,
    PermissionDenied: 403,
    WriteFailed: 409,
    TransientUnavailable: 503,
}

_WRITE_OPERATIONS = {Operation.BOOK, Operation.SUBMIT_REQUEST, Operation.LOG_REPAIR}


class BookingRequest(BaseModel):
    flight_instance_id: str


class MaintenanceForm(BaseModel):
    plane_id: str
    repair_code: str


def current_user(
    x_user_id: str = Header(...),
    x_role: str = Header(...),
    x_role_id: str = Header(""),
) -> UserSession:
    """Identity headers are set by the authenticating proxy in front of the API."""

    try:
        role = Role.parse(x_role)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return UserSession(user_id=x_user_id, role=role, role_id=x_role_id)


def _report_params(request: Request) -> Dict[str, str]:
    return {key.replace("-", "_"): value for key, value in request.query_params.items()}


def create_app(session_factory: Optional[sessionmaker[Session]] = None) -> FastAPI:
    """Return an application bound to ``session_factory`` (or the configured database)."""

    settings = get_settings()
    if session_factory is None:
        configure_logging(settings.log_level)
        session_factory = init_db(settings.db_url)
    dispatcher = Dispatcher(session_factory)

    app = FastAPI(title="Airline Ops", description="Reservations, inventory and maintenance")

    @app.exception_handler(AirlineOpsError)
    async def _typed_error(request: Request, exc: AirlineOpsError) -> JSONResponse:
        status = next(
            (code for kind, code in _STATUS_CODES.items() if isinstance(exc, kind)), 500
        )
        logger.warning("%s %s -> %d: %s", request.method, request.url.path, status, exc)
        return JSONResponse(status_code=status, content={"detail": str(exc)})

    def _run_report(user: UserSession, name: str, params: Dict[str, str]) -> Any:
        if name in {operation.value for operation in _WRITE_OPERATIONS}:
            raise HTTPException(status_code=405, detail=f"{name} is not a report")
        return dispatcher.dispatch(user, name, **params)

    @app.post("/reservations", status_code=201)
    def create_reservation(
        body: BookingRequest, user: UserSession = Depends(current_user)
    ) -> Dict[str, Any]:
        reservation = dispatcher.dispatch(
            user, Operation.BOOK, flight_instance_id=body.flight_instance_id
        )
        return {
            "reservation_id": reservation.reservation_id,
            "customer_id": reservation.customer_id,
            "flight_instance_id": reservation.flight_instance_id,
            "status": reservation.status.value,
            "outcome": "confirmed" if reservation.confirmed else "waitlisted",
        }

    @app.post("/maintenance-requests", status_code=201)
    def create_maintenance_request(
        body: MaintenanceForm, user: UserSession = Depends(current_user)
    ) -> Dict[str, Any]:
        request = dispatcher.dispatch(
            user, Operation.SUBMIT_REQUEST, plane_id=body.plane_id, repair_code=body.repair_code
        )
        return {
            "request_id": request.request_id,
            "plane_id": request.plane_id,
            "repair_code": request.repair_code,
            "request_date": request.request_date.isoformat(),
            "pilot_id": request.pilot_id,
        }

    @app.post("/repairs", status_code=201)
    def create_repair(
        body: MaintenanceForm, user: UserSession = Depends(current_user)
    ) -> Dict[str, Any]:
        repair = dispatcher.dispatch(
            user, Operation.LOG_REPAIR, plane_id=body.plane_id, repair_code=body.repair_code
        )
        return {
            "repair_id": repair.repair_id,
            "plane_id": repair.plane_id,
            "repair_code": repair.repair_code,
            "repair_date": repair.repair_date.isoformat(),
            "technician_id": repair.technician_id,
        }

    @app.get("/flight-instances/{flight_instance_id}/capacity")
    def flight_capacity(
        flight_instance_id: str, user: UserSession = Depends(current_user)
    ) -> Dict[str, int]:
        result = dispatcher.dispatch(
            user, Operation.CHECK_CAPACITY, flight_instance_id=flight_instance_id
        )
        return {
            "seats_total": result.seats_total,
            "seats_sold": result.seats_sold,
            "remaining": result.remaining,
        }

    @app.get("/reports/{name}")
    def report(
        name: str, request: Request, user: UserSession = Depends(current_user)
    ) -> JSONResponse:
        result = _run_report(user, name, _report_params(request))
        return JSONResponse(content=jsonable_encoder(result))

    @app.get("/reports/{name}/download/{file_format}")
    def download(
        name: str,
        file_format: Literal["csv", "xlsx"],
        request: Request,
        user: UserSession = Depends(current_user),
    ) -> StreamingResponse:
        dataframe: pd.DataFrame = as_dataframe(_run_report(user, name, _report_params(request)))
        filename = f"{name}.{file_format}"
        headers = {"Content-Disposition": f"attachment; filename=\"{filename}\""}

        if file_format == "csv":
            buffer = StringIO()
            dataframe.to_csv(buffer, index=False)
            buffer.seek(0)
            return StreamingResponse(
                iter([buffer.getvalue()]), media_type="text/csv", headers=headers
            )

        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            dataframe.to_excel(writer, index=False, sheet_name=name[:31])
        buffer.seek(0)
        return StreamingResponse(
            buffer,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers=headers,
        )

    return app


__all__ = ["create_app", "current_user"]
