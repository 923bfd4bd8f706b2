import calendar
from datetime import datetime

from flask import Blueprint, jsonify
from sqlalchemy import func

from .auth import roles_required
from .models import Booking, Flight, User, utcnow
from . import db

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


def _months_back(now: datetime, months: int) -> datetime:
    """``now`` moved back ``months`` calendar months, day clamped to the month's length."""
    index = now.year * 12 + (now.month - 1) - months
    year, month = index // 12, index % 12 + 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def revenue_by_month(now: datetime, months: int = 6):
    since = _months_back(now, months)
    rows = (
        db.session.query(Booking.booking_date, Booking.total_amount_cents)
        .filter(Booking.payment_status == "Paid", Booking.booking_date >= since)
        .all()
    )
    buckets = {}
    for booked_at, amount in rows:
        key = (booked_at.year, booked_at.month)
        buckets[key] = buckets.get(key, 0) + (amount or 0)
    return [
        {"name": calendar.month_abbr[month], "revenue": buckets[(year, month)] / 100}
        for year, month in sorted(buckets)
    ]


def top_destinations(total_bookings: int, limit: int = 5):
    rows = (
        db.session.query(Flight.destination.label("code"), func.count(Booking.id).label("bookings"))
        .join(Booking, Booking.flight_id == Flight.id)
        .group_by(Flight.destination)
        .order_by(func.count(Booking.id).desc(), Flight.destination.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "code": row.code,
            "bookings": row.bookings,
            "percentage": round(row.bookings / total_bookings * 100, 2) if total_bookings else 0,
        }
        for row in rows
    ]


def recent_bookings(limit: int = 5):
    bookings = Booking.query.order_by(Booking.booking_date.desc(), Booking.id.desc()).limit(limit).all()
    out = []
    for b in bookings:
        user, flight = b.user, b.flight
        out.append({
            "id": b.id,
            "booking_id": b.booking_id,
            "customer_name": user.name if user else "Unknown",
            "customer_email": user.email if user else "Unknown",
            "flight_number": flight.flight_number if flight else "Unknown",
            "airline": flight.airline if flight else "Unknown",
            "from": flight.origin if flight else "Unknown",
            "to": flight.destination if flight else "Unknown",
            "departure_date": flight.departure_date.isoformat() if flight else None,
            "amount": b.total_amount,
            "status": b.status,
            "payment_status": b.payment_status,
        })
    return out


@dashboard_bp.route("/stats")
@roles_required("admin", "support")
def stats():
    total_bookings = Booking.query.count()
    revenue_cents = (
        db.session.query(func.coalesce(func.sum(Booking.total_amount_cents), 0))
        .filter(Booking.payment_status == "Paid")
        .scalar()
    )

    return jsonify({
        "success": True,
        "stats": {
            "total_bookings": total_bookings,
            "total_revenue": (revenue_cents or 0) / 100,
            "active_users": User.query.filter_by(status="active").count(),
            "active_flights": Flight.query.filter_by(status="Scheduled").count(),
            "revenue_data": revenue_by_month(utcnow()),
            "top_destinations": top_destinations(total_bookings),
            "recent_bookings": recent_bookings(),
        },
    })
