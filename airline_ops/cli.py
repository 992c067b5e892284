"""Command line front end for the airline operations store."""
from __future__ import annotations

import argparse
import sys
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterable, List

from tabulate import tabulate

from .accounts import authenticate, create_user
from .config import get_settings
from .database import init_db, session_scope
from .dataset import generate_sample_data
from .dispatch import Dispatcher, Operation
from .errors import AirlineOpsError, NotFound, WriteFailed, retry_transient
from .logging_config import configure_logging
from .models import Reservation

_WRITE_OPERATIONS = {Operation.BOOK, Operation.SUBMIT_REQUEST, Operation.LOG_REPAIR}


def _as_rows(result: Any) -> List[Dict[str, Any]]:
    if result is None:
        return []
    if is_dataclass(result):
        return [asdict(result)]
    if isinstance(result, dict):
        return [result]
    return list(result)


def _render_table(result: Any) -> str:
    rows = _as_rows(result)
    if not rows:
        return "No rows."
    return tabulate(rows, headers="keys", tablefmt="github")


def _parse_pairs(pairs: Iterable[str]) -> Dict[str, str]:
    parsed: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"expected key=value, got '{pair}'")
        parsed[key.replace("-", "_")] = value
    return parsed


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Airline scheduling, reservation and maintenance operations.")
    parser.add_argument("--db-url", default=settings.db_url, help="SQLAlchemy database URL.")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s).")
    parser.add_argument("--username", help="Account to act as (required for operations).")
    parser.add_argument("--password", help="Password for --username.")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("init-db", help="Create the schema.")

    seed = commands.add_parser("seed", help="Create the schema and load sample data.")
    seed.add_argument("--flights", type=int, default=10)
    seed.add_argument("--days", type=int, default=7)
    seed.add_argument("--customers", type=int, default=20)
    seed.add_argument("--bookings", type=int, default=150)

    user = commands.add_parser("create-user", help="Register an account and allocate its role ID.")
    user.add_argument("new_username")
    user.add_argument("new_password")
    user.add_argument("role", help="Management, Customer, Pilot or Technician.")

    book = commands.add_parser("book", help="Reserve a seat, or join the waitlist when full.")
    book.add_argument("flight_instance_id")

    request = commands.add_parser("submit-request", help="File a maintenance request (pilots).")
    request.add_argument("plane_id")
    request.add_argument("repair_code")

    repair = commands.add_parser("log-repair", help="Log a completed repair (technicians).")
    repair.add_argument("plane_id")
    repair.add_argument("repair_code")

    report = commands.add_parser("report", help="Run a read-only view permitted for your role.")
    report.add_argument(
        "name",
        choices=[op.value for op in Operation if op not in _WRITE_OPERATIONS],
    )
    report.add_argument("params", nargs="*", help="Report arguments as key=value pairs.")

    return parser.parse_args(list(argv))


_COMMAND_OPERATIONS = {
    "book": Operation.BOOK,
    "submit-request": Operation.SUBMIT_REQUEST,
    "log-repair": Operation.LOG_REPAIR,
}


def _run(args: argparse.Namespace) -> str:
    session_factory = init_db(args.db_url)

    if args.command == "init-db":
        return f"Schema ready at {args.db_url}"
    if args.command == "seed":
        summary = generate_sample_data(
            session_factory,
            flights=args.flights,
            days=args.days,
            customers=args.customers,
            bookings=args.bookings,
        )
        return _render_table(summary)
    if args.command == "create-user":
        with session_scope(session_factory) as session:
            created = create_user(session, args.new_username, args.new_password, args.role)
        role_id = created.role_id or "-"
        return f"User {created.username} created as {created.role.value} (role ID {role_id})."

    if not args.username:
        raise AirlineOpsError("--username and --password are required for this command")
    with session_scope(session_factory) as session:
        user = authenticate(session, args.username, args.password)
    dispatcher = Dispatcher(session_factory)

    if args.command == "report":
        params = _parse_pairs(args.params)
        return _render_table(retry_transient(lambda: dispatcher.dispatch(user, args.name, **params)))

    operation = _COMMAND_OPERATIONS[args.command]
    if operation is Operation.BOOK:
        try:
            reservation: Reservation = retry_transient(
                lambda: dispatcher.dispatch(user, operation, flight_instance_id=args.flight_instance_id)
            )
        except NotFound as exc:
            raise AirlineOpsError(f"Flight instance {args.flight_instance_id} not found.") from exc
        except WriteFailed as exc:
            raise AirlineOpsError("Reservation could not be recorded.") from exc
        outcome = "confirmed" if reservation.confirmed else "waitlisted"
        return f"Reservation {reservation.reservation_id} {outcome}."

    record = retry_transient(
        lambda: dispatcher.dispatch(user, operation, plane_id=args.plane_id, repair_code=args.repair_code)
    )
    if operation is Operation.SUBMIT_REQUEST:
        return f"Maintenance request {record.request_id} submitted for {record.plane_id}."
    return f"Repair {record.repair_id} logged for {record.plane_id}."


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level)
    try:
        output = _run(args)
    except (AirlineOpsError, argparse.ArgumentTypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(output)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
