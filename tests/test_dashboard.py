import calendar
from datetime import datetime

from airbook import db
from airbook.dashboard import _months_back, revenue_by_month
from airbook.models import Booking, Destination, utcnow

from conftest import booking_payload


def test_stats_require_staff(client, customer_client):
    assert client.get("/api/dashboard/stats").status_code == 401
    assert customer_client.get("/api/dashboard/stats").status_code == 403


def test_stats_summarise_bookings(customer_client, admin_client, make_flight):
    cxb = make_flight(destination="CXB")
    zyl = make_flight(destination="ZYL", status="Delayed")

    paid = customer_client.post("/api/bookings", json=booking_payload(cxb, "Economy", "Economy")).get_json()["booking"]
    customer_client.post(f"/api/bookings/{paid['id']}/pay")
    customer_client.post("/api/bookings", json=booking_payload(cxb))
    customer_client.post("/api/bookings", json=booking_payload(zyl))

    stats = admin_client.get("/api/dashboard/stats").get_json()["stats"]

    assert stats["total_bookings"] == 3
    assert stats["total_revenue"] == 11000
    assert stats["active_users"] == 2
    assert stats["active_flights"] == 1
    assert stats["revenue_data"] == [{"name": calendar.month_abbr[utcnow().month], "revenue": 11000}]
    assert stats["top_destinations"][0] == {"code": "CXB", "bookings": 2, "percentage": 66.67}
    assert stats["top_destinations"][1]["code"] == "ZYL"
    assert len(stats["recent_bookings"]) == 3
    assert stats["recent_bookings"][0]["customer_email"].endswith("@example.com")


def test_months_back_keeps_day_of_month():
    assert _months_back(datetime(2026, 2, 20, 8, 30), 6) == datetime(2025, 8, 20, 8, 30)
    assert _months_back(datetime(2026, 8, 31), 6) == datetime(2026, 2, 28)
    assert _months_back(datetime(2026, 12, 31), 0) == datetime(2026, 12, 31)


def test_revenue_window_is_six_months_to_the_day(app, customer_client, flight_id):
    ids = []
    for _ in range(2):
        booking = customer_client.post("/api/bookings", json=booking_payload(flight_id)).get_json()["booking"]
        customer_client.post(f"/api/bookings/{booking['id']}/pay")
        ids.append(booking["id"])

    with app.app_context():
        db.session.get(Booking, ids[0]).booking_date = datetime(2025, 9, 14)
        db.session.get(Booking, ids[1]).booking_date = datetime(2025, 9, 16)
        db.session.commit()
        assert revenue_by_month(datetime(2026, 3, 15)) == [{"name": "Sep", "revenue": 5500}]


def test_destinations_list_popular_first(app, client):
    with app.app_context():
        db.session.add_all([
            Destination(code="ZYL", name="Sylhet", country="Bangladesh"),
            Destination(code="CXB", name="Cox's Bazar", country="Bangladesh", popular=True),
        ])
        db.session.commit()

    data = client.get("/api/destinations").get_json()["data"]
    assert [d["code"] for d in data] == ["CXB", "ZYL"]
