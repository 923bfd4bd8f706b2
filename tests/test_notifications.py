import pytest

from airbook import db, notifications
from airbook.models import Booking

from conftest import booking_payload


class FakeSendGrid:
    sent = []

    def __init__(self, api_key):
        self.api_key = api_key

    def send(self, message):
        FakeSendGrid.sent.append(message)


class BrokenTwilio:
    def __init__(self, sid, token):
        raise RuntimeError("twilio down")


@pytest.fixture
def configured(app, monkeypatch):
    FakeSendGrid.sent = []
    app.config.update(SENDGRID_API_KEY="sg-key", TWILIO_SID="sid", TWILIO_TOKEN="tok", TWILIO_PHONE="+100")
    monkeypatch.setattr(notifications, "SendGridAPIClient", FakeSendGrid)
    monkeypatch.setattr(notifications, "Client", BrokenTwilio)
    return app


def test_nothing_sent_without_credentials(app):
    with app.app_context():
        assert notifications.send_email("a@example.com", "hi", "<p>hi</p>") is False
        assert notifications.send_sms("+8801", "hi") is False


def test_email_sent_and_sms_failure_swallowed(configured):
    with configured.app_context():
        assert notifications.send_email("a@example.com", "hi", "<p>hi</p>") is True
        assert notifications.send_sms("+8801", "hi") is False
    assert len(FakeSendGrid.sent) == 1


def test_payment_sends_confirmation(configured, customer_client, flight_id):
    booking = customer_client.post("/api/bookings", json=booking_payload(flight_id)).get_json()["booking"]
    resp = customer_client.post(f"/api/bookings/{booking['id']}/pay")
    assert resp.status_code == 200
    assert len(FakeSendGrid.sent) == 1

    with configured.app_context():
        assert db.session.get(Booking, booking["id"]).payment_status == "Paid"
