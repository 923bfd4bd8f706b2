import math
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List

from flask import request

from .errors import BadRequest
from .models import PASSENGER_TITLES, TRAVEL_CLASSES

EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

PASSENGER_FIELDS = (
    "title", "first_name", "last_name", "dob",
    "nationality", "passport_number", "passport_expiry",
)


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")
    return data


def require_fields(data: dict, fields: Iterable[str]) -> None:
    for field in fields:
        value = data.get(field)
        if value is None or value == "" or value == []:
            raise BadRequest(f"{field} is required")


def parse_date(value, field: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        raise BadRequest(f"{field} must be a date (YYYY-MM-DD)")


def parse_time(value, field: str) -> str:
    value = str(value).strip()
    if not TIME_RE.match(value):
        raise BadRequest(f"{field} must be a 24h time (HH:MM)")
    return value


def parse_string_list(value, field: str) -> List[str]:
    if not isinstance(value, list):
        raise BadRequest(f"{field} must be a list")
    return [str(v).strip() for v in value]


def parse_int(value, field: str, minimum: int = 0) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise BadRequest(f"{field} must be a whole number")
    if n < minimum:
        raise BadRequest(f"{field} must be at least {minimum}")
    return n


def parse_amount(value, field: str) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise BadRequest(f"{field} must be a number")
    if amount < 0 or math.isnan(amount):
        raise BadRequest(f"{field} must not be negative")
    return amount


def parse_choice(value, field: str, choices: Iterable[str]) -> str:
    if value not in choices:
        raise BadRequest(f"{field} must be one of: {', '.join(choices)}")
    return value


def parse_email(value, field: str = "email") -> str:
    email = str(value or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise BadRequest(f"Please provide a valid {field}")
    return email


# make sure every passenger has the documents and class the booking needs
def parse_passengers(raw: Any) -> List[Dict[str, Any]]:
    if not isinstance(raw, list) or not raw:
        raise BadRequest("At least one passenger is required")

    passengers = []
    for idx, p in enumerate(raw, start=1):
        if not isinstance(p, dict):
            raise BadRequest(f"Passenger {idx} is invalid")
        for field in PASSENGER_FIELDS:
            if not p.get(field):
                raise BadRequest(f"Passenger {idx}: {field} is required")
        passengers.append(
            {
                "title": parse_choice(p["title"], f"Passenger {idx}: title", PASSENGER_TITLES),
                "first_name": str(p["first_name"]).strip(),
                "last_name": str(p["last_name"]).strip(),
                "dob": parse_date(p["dob"], f"Passenger {idx}: dob").isoformat(),
                "nationality": str(p["nationality"]).strip(),
                "passport_number": str(p["passport_number"]).strip(),
                "passport_expiry": parse_date(
                    p["passport_expiry"], f"Passenger {idx}: passport_expiry"
                ).isoformat(),
                "seat_number": p.get("seat_number") or None,
                "class": parse_choice(
                    p.get("class") or "Economy", f"Passenger {idx}: class", TRAVEL_CLASSES
                ),
            }
        )
    return passengers


def pagination_args(default_limit: int = 10, max_limit: int = 100):
    page = request.args.get("page", default=1, type=int) or 1
    limit = request.args.get("limit", default=default_limit, type=int) or default_limit
    return max(1, page), max(1, min(limit, max_limit))


def paginate(query, page: int, limit: int):
    """Return (items, pagination dict) for a Model.query."""
    result = query.paginate(page=page, per_page=limit, error_out=False)
    return result.items, {
        "total": result.total,
        "page": page,
        "limit": limit,
        "pages": math.ceil((result.total or 0) / limit),
    }
