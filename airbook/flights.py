from datetime import datetime

from flask import Blueprint, jsonify, request, current_app
from sqlalchemy import func

from .auth import roles_required
from .errors import BadRequest, Conflict, NotFound
from .inventory import adjust_totals
from .models import Booking, Flight, FLIGHT_STATUSES, cents
from .validation import (
    json_body, require_fields, parse_date, parse_time, parse_int, parse_amount,
    parse_choice, parse_string_list, pagination_args, paginate,
)
from . import db

flights_bp = Blueprint("flights", __name__, url_prefix="/api/flights")

REQUIRED_FIELDS = (
    "flight_number", "airline", "from", "to",
    "departure_date", "departure_time", "arrival_date", "arrival_time",
    "price", "aircraft", "capacity",
    "economy_seats", "business_seats", "first_class_seats",
)
# payload key -> (column, parser)
SIMPLE_FIELDS = {
    "flight_number": ("flight_number", lambda v, f: str(v).strip().upper()),
    "airline": ("airline", lambda v, f: str(v).strip()),
    "from": ("origin", lambda v, f: str(v).strip()),
    "to": ("destination", lambda v, f: str(v).strip()),
    "departure_date": ("departure_date", parse_date),
    "departure_time": ("departure_time", parse_time),
    "arrival_date": ("arrival_date", parse_date),
    "arrival_time": ("arrival_time", parse_time),
    "duration": ("duration", lambda v, f: str(v).strip()),
    "stops": ("stops", parse_int),
    "stop_details": ("stop_details", lambda v, f: str(v).strip() or None),
    "status": ("status", lambda v, f: parse_choice(v, f, FLIGHT_STATUSES)),
    "aircraft": ("aircraft", lambda v, f: str(v).strip()),
    "capacity": ("capacity", lambda v, f: parse_int(v, f, minimum=1)),
    "amenities": ("amenities", parse_string_list),
    "refundable": ("refundable", lambda v, f: bool(v)),
}
SEAT_FIELDS = {
    "economy_seats": "Economy",
    "business_seats": "Business",
    "first_class_seats": "First",
}


def compute_duration(flight: Flight) -> str:
    depart = datetime.combine(flight.departure_date, datetime.strptime(flight.departure_time, "%H:%M").time())
    arrive = datetime.combine(flight.arrival_date, datetime.strptime(flight.arrival_time, "%H:%M").time())
    if arrive <= depart:
        raise BadRequest("Arrival must be after departure")
    minutes = int((arrive - depart).total_seconds() // 60)
    return f"{minutes // 60}h {minutes % 60}m"


# copies every recognised field from the payload onto the flight
def apply_flight_fields(flight: Flight, data: dict):
    for key, (column, parser) in SIMPLE_FIELDS.items():
        if key in data and data[key] is not None:
            setattr(flight, column, parser(data[key], key))

    if "price" in data:
        flight.price_cents = cents(parse_amount(data["price"], "price"))
    if "tax" in data and data["tax"] is not None:
        flight.tax_cents = cents(parse_amount(data["tax"], "tax"))

    baggage = data.get("baggage")
    if isinstance(baggage, dict):
        flight.baggage_cabin = str(baggage.get("cabin") or flight.baggage_cabin or "7kg")
        flight.baggage_checked = str(baggage.get("checked") or flight.baggage_checked or "20kg")


def check_capacity(flight: Flight, totals: dict):
    seats = sum(totals.values())
    if flight.capacity is not None and seats > flight.capacity:
        raise BadRequest("Seat totals exceed aircraft capacity")


def flight_or_404(flight_id: int) -> Flight:
    flight = db.session.get(Flight, flight_id)
    if not flight:
        raise NotFound("Flight not found")
    return flight


@flights_bp.route("", methods=["GET"])
def list_flights():
    origin = (request.args.get("from") or "").strip()
    destination = (request.args.get("to") or "").strip()
    departure_date = request.args.get("departure_date")
    status = request.args.get("status")

    q = Flight.query
    if origin:
        q = q.filter(func.lower(Flight.origin) == origin.lower())
    if destination:
        q = q.filter(func.lower(Flight.destination) == destination.lower())
    if status:
        q = q.filter(Flight.status == status)
    if departure_date:
        q = q.filter(Flight.departure_date == parse_date(departure_date, "departure_date"))

    q = q.order_by(Flight.departure_date.asc(), Flight.departure_time.asc())
    page, limit = pagination_args()
    flights, pagination = paginate(q, page, limit)
    return jsonify({"success": True, "flights": [f.to_dict() for f in flights], "pagination": pagination})


@flights_bp.route("", methods=["POST"])
@roles_required("admin")
def create_flight():
    data = json_body()
    require_fields(data, REQUIRED_FIELDS)

    number = str(data["flight_number"]).strip().upper()
    if Flight.query.filter_by(flight_number=number).first():
        raise Conflict("Flight number already exists")

    flight = Flight()
    apply_flight_fields(flight, data)
    totals = {cls: parse_int(data[key], key) for key, cls in SEAT_FIELDS.items()}
    check_capacity(flight, totals)
    flight.economy_seats = totals["Economy"]
    flight.business_seats = totals["Business"]
    flight.first_class_seats = totals["First"]

    if data.get("tax") is None:
        flight.tax_cents = round(flight.price_cents * current_app.config.get("DEFAULT_TAX_RATE", 0.1))
    if not flight.duration:
        flight.duration = compute_duration(flight)

    db.session.add(flight)
    db.session.commit()
    current_app.logger.info("Flight %s created (%s -> %s)", flight.flight_number, flight.origin, flight.destination)
    return jsonify({"success": True, "message": "Flight created successfully", "flight": flight.to_dict()}), 201


@flights_bp.route("/<int:flight_id>", methods=["GET"])
def get_flight(flight_id: int):
    flight = flight_or_404(flight_id)
    return jsonify({"success": True, "flight": flight.to_dict()})


@flights_bp.route("/<int:flight_id>", methods=["PUT"])
@roles_required("admin")
def update_flight(flight_id: int):
    flight = flight_or_404(flight_id)
    data = json_body()

    if "flight_number" in data:
        number = str(data["flight_number"]).strip().upper()
        clash = Flight.query.filter(Flight.flight_number == number, Flight.id != flight.id).first()
        if clash:
            raise Conflict("Flight number already exists")

    apply_flight_fields(flight, data)

    new_totals = {cls: parse_int(data[key], key) for key, cls in SEAT_FIELDS.items() if key in data}
    merged = {
        "Economy": new_totals.get("Economy", flight.economy_seats),
        "Business": new_totals.get("Business", flight.business_seats),
        "First": new_totals.get("First", flight.first_class_seats),
    }
    check_capacity(flight, merged)
    adjust_totals(flight, new_totals)

    if not data.get("duration") and any(k in data for k in ("departure_date", "departure_time", "arrival_date", "arrival_time")):
        flight.duration = compute_duration(flight)

    db.session.commit()
    return jsonify({"success": True, "message": "Flight updated successfully", "flight": flight.to_dict()})


@flights_bp.route("/<int:flight_id>", methods=["DELETE"])
@roles_required("admin")
def delete_flight(flight_id: int):
    flight = flight_or_404(flight_id)

    active = Booking.query.filter(Booking.flight_id == flight.id, Booking.status != "Cancelled").count()
    if active:
        raise Conflict(f"Flight has {active} active booking(s); cancel them first")

    db.session.delete(flight)
    db.session.commit()
    current_app.logger.info("Flight %s deleted", flight.flight_number)
    return jsonify({"success": True, "message": "Flight deleted successfully"})
