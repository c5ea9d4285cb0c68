"""
Command-line entry point for exploring the booking engine against demo data.

Usage:
    python main.py dates --service haircut
    python main.py slots --service haircut --date 2026-10-20
    python main.py demo
"""

import argparse
import logging
import sys
from datetime import date
from typing import Optional

from booking_engine.booking import BookingService
from booking_engine.demo_data import DEMO_BUSINESS_ID, DEMO_BUSINESS_NAME, build_demo_service
from booking_engine.errors import BookingError, SlotConflictError
from booking_engine.schemas.appointment_schema import BookingRequest
from booking_engine.utils import format_date, format_time

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"Explore appointment availability for {DEMO_BUSINESS_NAME}."
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    dates = commands.add_parser("dates", help="List upcoming dates with free slots.")
    dates.add_argument("--service", required=True, help="Service id, e.g. 'haircut'.")
    dates.add_argument("--limit", type=int, default=5, help="Maximum dates to list.")

    slots = commands.add_parser("slots", help="List free start times on a date.")
    slots.add_argument("--service", required=True, help="Service id, e.g. 'haircut'.")
    slots.add_argument(
        "--date", required=True, type=date.fromisoformat, help="Date as YYYY-MM-DD."
    )

    commands.add_parser("demo", help="Walk one booking through its lifecycle.")
    return parser


def _print(text: str) -> None:
    sys.stdout.write(text + "\n")


def _run_dates(service: BookingService, service_id: str, limit: int) -> int:
    results = service.get_available_dates(DEMO_BUSINESS_ID, service_id, limit=limit)
    if not results:
        _print("No availability in the booking window.")
        return 0
    for entry in results:
        _print(f"{entry['date']}  {entry['day_name']:<9}  {entry['slot_count']} slot(s)")
    return 0


def _run_slots(service: BookingService, service_id: str, on_date: date) -> int:
    slots = service.get_available_slots(DEMO_BUSINESS_ID, service_id, on_date)
    if not slots:
        _print(f"No slots on {format_date(on_date)}.")
        return 0
    _print(f"{len(slots)} slot(s) on {format_date(on_date)}:")
    for value in slots:
        _print(f"  {value}  ({format_time(value)})")
    return 0


def _run_demo(service: BookingService) -> int:
    upcoming = service.get_available_dates(DEMO_BUSINESS_ID, "haircut", limit=1)
    if not upcoming:
        _print("No availability in the booking window.")
        return 1
    on_date = date.fromisoformat(upcoming[0]["date"])
    first = service.get_available_slots(DEMO_BUSINESS_ID, "haircut", on_date)[0]

    request = BookingRequest(
        business_id=DEMO_BUSINESS_ID,
        business_name=DEMO_BUSINESS_NAME,
        service_id="haircut",
        customer_id="cust-ada",
        customer_name="Ada",
        scheduled_date=on_date,
        scheduled_time=first,
    )
    appointment = service.create_appointment(request)
    _print(f"Booked {appointment.id} on {format_date(on_date)} at {format_time(first)} "
           f"[{appointment.status.value}]")

    try:
        service.create_appointment(request.model_copy(update={"customer_id": "cust-bob"}))
    except SlotConflictError as exc:
        _print(f"Second booking at {first} refused: {exc}")

    for step in (service.confirm, service.complete):
        appointment = step(appointment.id)
        _print(f"{appointment.id} -> {appointment.status.value}")

    try:
        service.cancel(appointment.id)
    except BookingError as exc:
        _print(f"Cancel refused: {exc}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    service = build_demo_service()
    try:
        if args.command == "dates":
            return _run_dates(service, args.service, args.limit)
        if args.command == "slots":
            return _run_slots(service, args.service, args.date)
        return _run_demo(service)
    except BookingError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
