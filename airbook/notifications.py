import logging

from flask import current_app
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from twilio.rest import Client

from .models import Booking

logger = logging.getLogger(__name__)


def send_email(to_email, subject, html):
    api_key = current_app.config.get("SENDGRID_API_KEY")
    if not api_key or not to_email:
        logger.debug("Email to %s skipped: SendGrid not configured", to_email)
        return False
    try:
        sg = SendGridAPIClient(api_key)
        message = Mail(
            from_email=current_app.config.get("MAIL_SENDER"),
            to_emails=to_email,
            subject=subject,
            html_content=html,
        )
        sg.send(message)
        return True
    except Exception as e:
        logger.warning("Email error for %s: %s", to_email, e)
        return False


def send_sms(to_phone, body):
    cfg = current_app.config
    if not (cfg.get("TWILIO_SID") and cfg.get("TWILIO_TOKEN") and cfg.get("TWILIO_PHONE")) or not to_phone:
        logger.debug("SMS to %s skipped: Twilio not configured", to_phone)
        return False
    try:
        client = Client(cfg["TWILIO_SID"], cfg["TWILIO_TOKEN"])
        client.messages.create(from_=cfg["TWILIO_PHONE"], to=to_phone, body=body)
        return True
    except Exception as e:
        logger.warning("SMS error for %s: %s", to_phone, e)
        return False


# tells the customer their payment went through
def notify_booking_confirmed(booking: Booking):
    flight = booking.flight
    route = f"{flight.origin} to {flight.destination}" if flight else "your flight"
    when = f"{flight.departure_date.isoformat()} {flight.departure_time}" if flight else ""
    html = (
        f"<h3>Booking {booking.booking_id} confirmed</h3>"
        f"<p>{len(booking.passengers or [])} passenger(s), {route}, departing {when}.</p>"
        f"<p>Total paid: {booking.total_amount:.2f}</p>"
    )
    send_email(booking.contact_email, f"Booking {booking.booking_id} confirmed", html)
    send_sms(booking.contact_phone, f"AirBook: booking {booking.booking_id} confirmed, {route} on {when}.")
