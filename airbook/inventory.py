"""Seat inventory for flights.

Every booking holds passengers split across three travel classes. Creating a
booking takes those seats off the flight's available counters, cancelling or
deleting it puts them back. Counters never drop below zero and never climb
above the class total.

Booking ids are ``AB-YYMMDD-NNNN`` where ``NNNN`` comes from a per-day counter
row, so two bookings made on the same day can never share an id.
"""
import logging
from datetime import date
from typing import Dict, Iterable, Optional

from flask import current_app

from . import db
from .errors import BadRequest
from .models import BookingSequence, Flight, TRAVEL_CLASSES, utcnow

logger = logging.getLogger(__name__)

# travel class -> (total column, available column)
SEAT_COLUMNS = {
    "Economy": ("economy_seats", "available_economy_seats"),
    "Business": ("business_seats", "available_business_seats"),
    "First": ("first_class_seats", "available_first_class_seats"),
}
CLASS_LABELS = {"Economy": "economy", "Business": "business", "First": "first class"}

BOOKING_ID_PREFIX = "AB"


class InsufficientSeats(BadRequest):
    def __init__(self, travel_class: str, requested: int, available: int):
        self.travel_class = travel_class
        self.requested = requested
        self.available = available
        super().__init__(f"Not enough {CLASS_LABELS[travel_class]} seats available")


def count_by_class(passengers: Iterable[dict]) -> Dict[str, int]:
    counts = {cls: 0 for cls in TRAVEL_CLASSES}
    for p in passengers or []:
        cls = p.get("class") or "Economy"
        if cls in counts:
            counts[cls] += 1
    return counts


def available_seats(flight: Flight, travel_class: str) -> int:
    return getattr(flight, SEAT_COLUMNS[travel_class][1]) or 0


def total_seats(flight: Flight, travel_class: str) -> int:
    return getattr(flight, SEAT_COLUMNS[travel_class][0]) or 0


def check_availability(flight: Flight, counts: Dict[str, int]) -> None:
    for cls in TRAVEL_CLASSES:
        requested = counts.get(cls, 0)
        available = available_seats(flight, cls)
        if requested > available:
            raise InsufficientSeats(cls, requested, available)


def reserve_seats(flight: Flight, counts: Dict[str, int]) -> None:
    """Take seats off the flight; nothing changes when any class is short."""
    check_availability(flight, counts)
    for cls, (_, column) in SEAT_COLUMNS.items():
        n = counts.get(cls, 0)
        if n:
            setattr(flight, column, available_seats(flight, cls) - n)
    logger.info("Reserved %s on flight %s", _fmt(counts), flight.flight_number)


def release_seats(flight: Flight, counts: Dict[str, int]) -> None:
    for cls, (_, column) in SEAT_COLUMNS.items():
        n = counts.get(cls, 0)
        if n:
            restored = min(total_seats(flight, cls), available_seats(flight, cls) + n)
            setattr(flight, column, restored)
    logger.info("Released %s on flight %s", _fmt(counts), flight.flight_number)


def adjust_totals(flight: Flight, new_totals: Dict[str, int]) -> None:
    """Change class totals, shifting the available counters by the same delta.

    A total may not shrink below the number of seats already sold.
    """
    for cls, value in new_totals.items():
        if value is None:
            continue
        total_col, avail_col = SEAT_COLUMNS[cls]
        delta = value - total_seats(flight, cls)
        if not delta:
            continue
        remaining = available_seats(flight, cls) + delta
        if remaining < 0:
            sold = total_seats(flight, cls) - available_seats(flight, cls)
            raise BadRequest(
                f"Cannot reduce {CLASS_LABELS[cls]} seats below the {sold} already booked"
            )
        setattr(flight, total_col, value)
        setattr(flight, avail_col, remaining)
        logger.info("Flight %s %s seats now %d (%d available)", flight.flight_number, cls, value, remaining)


def compute_total_cents(flight: Flight, passengers: Iterable[dict]) -> int:
    upgrades = current_app.config.get("CLASS_UPGRADE_CENTS", {})
    price = flight.price_cents or 0
    tax = flight.tax_cents or round(price * current_app.config.get("DEFAULT_TAX_RATE", 0.1))
    total = 0
    for p in passengers:
        total += price + tax + upgrades.get(p.get("class") or "Economy", 0)
    return total


def format_booking_id(day: date, seq: int) -> str:
    return f"{BOOKING_ID_PREFIX}-{day.strftime('%y%m%d')}-{seq:04d}"


def next_booking_id(day: Optional[date] = None) -> str:
    """Issue the next booking id for ``day`` (today, UTC, by default).

    The counter row is updated inside the caller's transaction, so a rolled
    back booking also gives its number back.
    """
    day = day or utcnow().date()
    seq = db.session.get(BookingSequence, day)
    if seq is None:
        seq = BookingSequence(day=day, last_value=0)
        db.session.add(seq)
    seq.last_value += 1
    db.session.flush()
    return format_booking_id(day, seq.last_value)


def _fmt(counts: Dict[str, int]) -> str:
    return ", ".join(f"{n} {cls}" for cls, n in counts.items() if n) or "no seats"
