"""Shared fixtures: a fresh in-memory app per test plus logged-in clients."""
from datetime import date

import pytest

from airbook import create_app, db
from airbook.models import Flight, User

PASSWORD = "secret123"


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Create a user directly in the database and return its id."""
    counter = {"n": 0}

    def _make(role="user", status="active", email=None, name=None, phone="01700000000"):
        counter["n"] += 1
        with app.app_context():
            user = User(
                name=name or f"{role.title()} {counter['n']}",
                email=email or f"{role}{counter['n']}@example.com",
                phone=phone,
                role=role,
                status=status,
            )
            user.set_password(PASSWORD)
            db.session.add(user)
            db.session.commit()
            return user.id

    return _make


@pytest.fixture
def login(app):
    """Return a new test client logged in as the given user id."""

    def _login(user_id):
        with app.app_context():
            email = db.session.get(User, user_id).email
        c = app.test_client()
        resp = c.post("/api/auth/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 200, resp.get_json()
        return c

    return _login


@pytest.fixture
def admin_client(make_user, login):
    return login(make_user(role="admin"))


@pytest.fixture
def customer_id(make_user):
    return make_user(role="user")


@pytest.fixture
def customer_client(customer_id, login):
    return login(customer_id)


@pytest.fixture
def make_flight(app):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = dict(
            flight_number=f"AB{100 + counter['n']}",
            airline="AirBook",
            origin="DAC",
            destination="CXB",
            departure_date=date(2030, 1, 15),
            departure_time="09:00",
            arrival_date=date(2030, 1, 15),
            arrival_time="10:05",
            duration="1h 5m",
            price_cents=500000,
            tax_cents=50000,
            aircraft="ATR 72",
            capacity=70,
            economy_seats=60,
            business_seats=8,
            first_class_seats=2,
        )
        fields.update(overrides)
        with app.app_context():
            flight = Flight(**fields)
            db.session.add(flight)
            db.session.commit()
            return flight.id

    return _make


@pytest.fixture
def flight_id(make_flight):
    return make_flight()


def passenger(cls="Economy", first_name="Rahim", **overrides):
    p = {
        "title": "Mr",
        "first_name": first_name,
        "last_name": "Uddin",
        "dob": "1990-04-12",
        "nationality": "Bangladeshi",
        "passport_number": "BP1234567",
        "passport_expiry": "2031-04-11",
        "class": cls,
    }
    p.update(overrides)
    return p


def booking_payload(flight_id, *classes):
    return {
        "flight": flight_id,
        "passengers": [passenger(cls, first_name=f"P{i}") for i, cls in enumerate(classes or ("Economy",))],
        "contact_email": "rahim@example.com",
        "contact_phone": "+8801700000000",
    }


def get_flight(app, flight_id):
    with app.app_context():
        return db.session.get(Flight, flight_id)
