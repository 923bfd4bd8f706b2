from datetime import datetime, UTC
from flask_login import UserMixin
from sqlalchemy import event
from werkzeug.security import generate_password_hash, check_password_hash
from . import db, login_manager

USER_ROLES = ("user", "admin", "support")
USER_STATUSES = ("active", "inactive")
FLIGHT_STATUSES = ("Scheduled", "Delayed", "Cancelled", "Completed")
BOOKING_STATUSES = ("Pending", "Confirmed", "Cancelled", "Completed")
PAYMENT_STATUSES = ("Unpaid", "Paid", "Refunded")
TRAVEL_CLASSES = ("Economy", "Business", "First")
PASSENGER_TITLES = ("Mr", "Mrs", "Ms", "Dr")


def utcnow() -> datetime:
    """Naive UTC timestamp, the form SQLite hands back."""
    return datetime.now(UTC).replace(tzinfo=None)


# dollars to cents
def cents(amount) -> int:
    return int(round(float(amount) * 100))


def _iso(value):
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False, default="")
    role = db.Column(db.String(16), nullable=False, default="user")
    status = db.Column(db.String(16), nullable=False, default="active")
    registered_date = db.Column(db.DateTime, default=utcnow, index=True)
    nationality = db.Column(db.String(64))
    passport_number = db.Column(db.String(32))
    passport_expiry = db.Column(db.Date)
    address = db.Column(db.String(255))
    preferred_seat = db.Column(db.String(32))
    meal_preference = db.Column(db.String(32))

    bookings = db.relationship("Booking", back_populates="user", cascade="all, delete-orphan")

    def set_password(self, plaintext: str):
        self.password_hash = generate_password_hash(plaintext)

    def check_password(self, plaintext: str) -> bool:
        return check_password_hash(self.password_hash, plaintext)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_staff(self) -> bool:
        return self.role in ("admin", "support")

    def to_dict(self, full: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
        }
        if full:
            data.update(
                phone=self.phone,
                status=self.status,
                registered_date=_iso(self.registered_date),
                nationality=self.nationality,
                passport_number=self.passport_number,
                passport_expiry=_iso(self.passport_expiry),
                address=self.address,
                preferred_seat=self.preferred_seat,
                meal_preference=self.meal_preference,
            )
        return data

    def __repr__(self):
        return f"<User {self.email} role={self.role}>"


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


class Flight(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    flight_number = db.Column(db.String(16), unique=True, nullable=False, index=True)
    airline = db.Column(db.String(64), nullable=False)
    origin = db.Column(db.String(64), nullable=False, index=True)
    destination = db.Column(db.String(64), nullable=False, index=True)
    departure_date = db.Column(db.Date, nullable=False, index=True)
    departure_time = db.Column(db.String(5), nullable=False)
    arrival_date = db.Column(db.Date, nullable=False)
    arrival_time = db.Column(db.String(5), nullable=False)
    duration = db.Column(db.String(16), nullable=False)
    stops = db.Column(db.Integer, nullable=False, default=0)
    stop_details = db.Column(db.String(255))
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="Scheduled")
    aircraft = db.Column(db.String(64), nullable=False)
    capacity = db.Column(db.Integer, nullable=False)

    economy_seats = db.Column(db.Integer, nullable=False, default=0)
    business_seats = db.Column(db.Integer, nullable=False, default=0)
    first_class_seats = db.Column(db.Integer, nullable=False, default=0)
    available_economy_seats = db.Column(db.Integer)
    available_business_seats = db.Column(db.Integer)
    available_first_class_seats = db.Column(db.Integer)

    amenities = db.Column(db.JSON, nullable=False, default=list)
    baggage_cabin = db.Column(db.String(16), nullable=False, default="7kg")
    baggage_checked = db.Column(db.String(16), nullable=False, default="20kg")
    refundable = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    bookings = db.relationship("Booking", back_populates="flight", cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "flight_number": self.flight_number,
            "airline": self.airline,
            "from": self.origin,
            "to": self.destination,
            "departure_date": _iso(self.departure_date),
            "departure_time": self.departure_time,
            "arrival_date": _iso(self.arrival_date),
            "arrival_time": self.arrival_time,
            "duration": self.duration,
            "stops": self.stops,
            "stop_details": self.stop_details,
            "price": (self.price_cents or 0) / 100,
            "tax": (self.tax_cents or 0) / 100,
            "status": self.status,
            "aircraft": self.aircraft,
            "capacity": self.capacity,
            "economy_seats": self.economy_seats,
            "business_seats": self.business_seats,
            "first_class_seats": self.first_class_seats,
            "available_economy_seats": self.available_economy_seats,
            "available_business_seats": self.available_business_seats,
            "available_first_class_seats": self.available_first_class_seats,
            "amenities": self.amenities or [],
            "baggage": {"cabin": self.baggage_cabin, "checked": self.baggage_checked},
            "refundable": self.refundable,
        }

    def __repr__(self):
        return f"<Flight {self.flight_number} {self.origin}->{self.destination} {self.departure_date}>"


# new flights open with every seat available
@event.listens_for(Flight, "before_insert")
def _open_inventory(mapper, connection, flight):
    flight.available_economy_seats = flight.economy_seats or 0
    flight.available_business_seats = flight.business_seats or 0
    flight.available_first_class_seats = flight.first_class_seats or 0


class Booking(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.String(32), unique=True, nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    flight_id = db.Column(db.Integer, db.ForeignKey("flight.id"), nullable=False, index=True)
    passengers = db.Column(db.JSON, nullable=False)
    booking_date = db.Column(db.DateTime, default=utcnow, index=True)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="Pending")
    payment_status = db.Column(db.String(16), nullable=False, default="Unpaid")
    payment_method = db.Column(db.String(32))
    payment_date = db.Column(db.DateTime)
    contact_email = db.Column(db.String(120), nullable=False)
    contact_phone = db.Column(db.String(32), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="bookings")
    flight = db.relationship("Flight", back_populates="bookings")

    @property
    def total_amount(self) -> float:
        return (self.total_amount_cents or 0) / 100

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "user": self.user.to_dict(full=False) if self.user else None,
            "flight": self.flight.to_dict() if self.flight else None,
            "passengers": self.passengers or [],
            "booking_date": _iso(self.booking_date),
            "total_amount": self.total_amount,
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "payment_date": _iso(self.payment_date),
            "contact_email": self.contact_email,
            "contact_phone": self.contact_phone,
        }

    def __repr__(self):
        return f"<Booking {self.booking_id} {self.status}/{self.payment_status}>"


class BookingSequence(db.Model):
    __tablename__ = "booking_sequence"

    day = db.Column(db.Date, primary_key=True)
    last_value = db.Column(db.Integer, nullable=False, default=0)


class Destination(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(8), unique=True, nullable=False)
    name = db.Column(db.String(64), nullable=False)
    country = db.Column(db.String(64))
    description = db.Column(db.Text)
    image = db.Column(db.String(255))
    popular = db.Column(db.Boolean, nullable=False, default=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "country": self.country,
            "description": self.description,
            "image": self.image,
            "popular": self.popular,
        }
