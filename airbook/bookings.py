from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from .auth import roles_required
from .errors import BadRequest, Forbidden, NotFound
from .inventory import count_by_class, reserve_seats, release_seats, compute_total_cents, next_booking_id
from .models import Booking, Flight, BOOKING_STATUSES, PAYMENT_STATUSES, utcnow
from .notifications import notify_booking_confirmed
from .validation import (
    json_body, require_fields, parse_passengers, parse_email, parse_choice,
    pagination_args, paginate,
)
from . import db

bookings_bp = Blueprint("bookings", __name__, url_prefix="/api/bookings")

REQUIRED_FIELDS = ("flight", "passengers", "contact_email", "contact_phone")
PAYMENT_METHODS = ("card", "paypal", "bank_transfer", "mobile_banking")
CLOSED_FLIGHT_STATUSES = ("Cancelled", "Completed")


def booking_or_404(booking_id: int) -> Booking:
    booking = db.session.get(Booking, booking_id)
    if not booking:
        raise NotFound("Booking not found")
    return booking


def ensure_owner(booking: Booking, action: str = "view"):
    if not current_user.is_admin and booking.user_id != current_user.id:
        raise Forbidden(f"Unauthorized to {action} this booking")


@bookings_bp.route("", methods=["GET"])
@login_required
def list_bookings():
    q = Booking.query
    # customers only ever see their own bookings
    if not current_user.is_admin:
        q = q.filter(Booking.user_id == current_user.id)

    status = request.args.get("status")
    if status:
        q = q.filter(Booking.status == status)

    q = q.order_by(Booking.booking_date.desc(), Booking.id.desc())
    page, limit = pagination_args()
    bookings, pagination = paginate(q, page, limit)
    return jsonify({"success": True, "bookings": [b.to_dict() for b in bookings], "pagination": pagination})


@bookings_bp.route("", methods=["POST"])
@login_required
def create_booking():
    data = json_body()
    require_fields(data, REQUIRED_FIELDS)

    try:
        flight_id = int(data["flight"])
    except (TypeError, ValueError):
        raise BadRequest("flight must be a flight id")
    flight = db.session.get(Flight, flight_id)
    if not flight:
        raise NotFound("Flight not found")
    if flight.status in CLOSED_FLIGHT_STATUSES:
        raise BadRequest(f"Flight is {flight.status.lower()} and cannot be booked")

    passengers = parse_passengers(data["passengers"])
    contact_email = parse_email(data["contact_email"], "contact_email")
    contact_phone = str(data["contact_phone"]).strip()

    # seats first: a short class aborts before anything is written
    reserve_seats(flight, count_by_class(passengers))

    booking = Booking(
        booking_id=next_booking_id(),
        user=current_user._get_current_object(),
        flight=flight,
        passengers=passengers,
        total_amount_cents=compute_total_cents(flight, passengers),
        status="Pending",
        payment_status="Unpaid",
        contact_email=contact_email,
        contact_phone=contact_phone,
    )
    db.session.add(booking)
    db.session.commit()

    current_app.logger.info(
        "Booking %s created by user %s on flight %s", booking.booking_id, current_user.id, flight.flight_number
    )
    return jsonify({"success": True, "message": "Booking created successfully", "booking": booking.to_dict()}), 201


@bookings_bp.route("/<int:booking_id>", methods=["GET"])
@login_required
def get_booking(booking_id: int):
    booking = booking_or_404(booking_id)
    ensure_owner(booking, "view")
    return jsonify({"success": True, "booking": booking.to_dict()})


@bookings_bp.route("/<int:booking_id>", methods=["PUT"])
@login_required
def update_booking(booking_id: int):
    booking = booking_or_404(booking_id)
    ensure_owner(booking, "update")
    data = json_body()

    new_status = data.get("status")
    if new_status and new_status != booking.status:
        parse_choice(new_status, "status", BOOKING_STATUSES)
        # customers may cancel or reactivate; confirming goes through /pay
        if not current_user.is_admin and not (
            new_status == "Cancelled" or (new_status == "Pending" and booking.status == "Cancelled")
        ):
            raise Forbidden(f"Unauthorized to set booking status to {new_status}")

        counts = count_by_class(booking.passengers)
        if new_status == "Cancelled":
            release_seats(booking.flight, counts)
            if booking.payment_status == "Paid":
                booking.payment_status = "Refunded"
        elif booking.status == "Cancelled":
            if booking.flight.status in CLOSED_FLIGHT_STATUSES:
                raise BadRequest(f"Flight is {booking.flight.status.lower()} and cannot be booked")
            # reactivating takes the seats again, if they are still there
            reserve_seats(booking.flight, counts)
            if booking.payment_status == "Refunded":
                booking.payment_status = "Unpaid"
        booking.status = new_status

    if data.get("contact_email"):
        booking.contact_email = parse_email(data["contact_email"], "contact_email")
    if data.get("contact_phone"):
        booking.contact_phone = str(data["contact_phone"]).strip()

    if current_user.is_admin:
        if data.get("payment_status"):
            booking.payment_status = parse_choice(data["payment_status"], "payment_status", PAYMENT_STATUSES)
        if data.get("payment_method"):
            booking.payment_method = str(data["payment_method"])

    db.session.commit()
    return jsonify({"success": True, "message": "Booking updated successfully", "booking": booking.to_dict()})


@bookings_bp.route("/<int:booking_id>", methods=["DELETE"])
@roles_required("admin")
def delete_booking(booking_id: int):
    booking = booking_or_404(booking_id)

    if booking.status != "Cancelled" and booking.flight:
        release_seats(booking.flight, count_by_class(booking.passengers))

    db.session.delete(booking)
    db.session.commit()
    current_app.logger.info("Booking %s deleted", booking.booking_id)
    return jsonify({"success": True, "message": "Booking deleted successfully"})


# simulated checkout: no gateway, the booking is simply marked paid
@bookings_bp.route("/<int:booking_id>/pay", methods=["POST"])
@login_required
def pay_booking(booking_id: int):
    booking = booking_or_404(booking_id)
    ensure_owner(booking, "pay for")
    data = request.get_json(silent=True) or {}

    if booking.status == "Cancelled":
        raise BadRequest("Cancelled bookings cannot be paid")
    if booking.payment_status == "Paid":
        raise BadRequest("Booking is already paid")

    booking.payment_method = parse_choice(data.get("payment_method") or "card", "payment_method", PAYMENT_METHODS)
    booking.payment_status = "Paid"
    booking.payment_date = utcnow()
    booking.status = "Confirmed"
    db.session.commit()

    current_app.logger.info("Booking %s paid (%s)", booking.booking_id, booking.payment_method)
    notify_booking_confirmed(booking)
    return jsonify({"success": True, "message": "Payment successful", "booking": booking.to_dict()})
