# barber_booking/notifications.py
"""Best-effort calendar and email fan-out after a booking is accepted."""

import html
import logging
import re
import smtplib
from dataclasses import dataclass
from datetime import timedelta
from email.message import EmailMessage
from typing import Optional, Tuple

from barber_booking.config import Settings
from barber_booking.core import ConfirmedBooking
from barber_booking.data import DEFAULT_COLOR_ID, DEFAULT_DURATION_MINUTES, SERVICE_RULES, ServiceRule, match_service
from barber_booking.errors import NotificationFailure

logger = logging.getLogger(__name__)


@dataclass
class NotificationResult:
    emailed: bool = False
    shop_notified: bool = False
    calendar_inserted: bool = False


def service_duration(service: str, rules: Tuple[ServiceRule, ...] = SERVICE_RULES) -> int:
    rule = match_service(service, rules)
    return rule.duration_minutes if rule else DEFAULT_DURATION_MINUTES


def service_color(service: str, rules: Tuple[ServiceRule, ...] = SERVICE_RULES) -> str:
    rule = match_service(service, rules)
    return rule.color_id if rule else DEFAULT_COLOR_ID


def format_phone(phone: Optional[str]) -> str:
    if not phone:
        return "No phone provided"
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return phone


def build_calendar_event(booking: ConfirmedBooking, settings: Settings, rules=SERVICE_RULES) -> dict:
    duration = service_duration(booking.service, rules)
    start = booking.starts_at()
    end = start + timedelta(minutes=duration)
    description = "\n".join([
        f"Appointment: {booking.service}",
        f"Client: {booking.name}",
        f"Phone: {format_phone(booking.phone)}",
        f"Email: {booking.email or 'None provided'}",
        f"Duration: {duration} minutes",
        f"Barber: {booking.barber}",
    ])
    return {
        "summary": f"{booking.service} - {booking.name}",
        "description": description,
        "location": settings.shop_name,
        "start": {"dateTime": start.isoformat(), "timeZone": settings.timezone},
        "end": {"dateTime": end.isoformat(), "timeZone": settings.timezone},
        "colorId": service_color(booking.service, rules),
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": "popup", "minutes": 60},
                {"method": "popup", "minutes": 15},
            ],
        },
    }


def _details_html(rows) -> str:
    items = "".join(f"<li><strong>{label}:</strong> {html.escape(value)}</li>" for label, value in rows)
    return f"<ul>{items}</ul>"


def customer_message(booking: ConfirmedBooking, settings: Settings) -> Tuple[str, str, str]:
    """(subject, text, html) for the customer's confirmation."""
    rows = [
        ("Date", booking.date_text),
        ("Time", booking.time_text),
        ("Barber", booking.barber),
        ("Service", booking.service),
    ]
    contact = settings.shop_phone or settings.shop_mailbox or "the shop"
    text = (
        f"Hello {booking.name},\n\n"
        "Your appointment has been confirmed:\n"
        + "\n".join(f"  {label}: {value}" for label, value in rows)
        + f"\n\nIf you need to reschedule or cancel, please contact us at {contact}.\n"
        f"Thank you for choosing {settings.shop_name}!\n"
    )
    body = (
        "<h1>Booking Confirmation</h1>"
        f"<p>Hello {html.escape(booking.name)},</p>"
        "<p>Your appointment has been confirmed with the following details:</p>"
        f"{_details_html(rows)}"
        f"<p>If you need to reschedule or cancel, please contact us at {html.escape(contact)}.</p>"
        f"<p>Thank you for choosing {html.escape(settings.shop_name)}!</p>"
    )
    return "Barber Appointment Confirmation", text, body


def shop_message(booking: ConfirmedBooking) -> Tuple[str, str, str]:
    """(subject, text, html) for the shop's new-booking alert."""
    rows = [
        ("Customer", booking.name),
        ("Barber", booking.barber),
        ("Date", booking.date_text),
        ("Time", booking.time_text),
        ("Service", booking.service),
        ("Contact Email", booking.email or "Not provided"),
        ("Phone", booking.phone or "Not provided"),
    ]
    text = "A new appointment has been booked:\n" + "\n".join(f"  {label}: {value}" for label, value in rows)
    body = f"<h1>New Booking Alert</h1><p>A new appointment has been booked:</p>{_details_html(rows)}"
    return f"New Appointment: {booking.date_text} at {booking.time_text}", text, body


class SmtpMailer:
    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_username
        self.password = settings.smtp_password
        self.from_email = settings.smtp_from_email or settings.smtp_username
        self.use_tls = settings.smtp_use_tls
        self.timeout = settings.smtp_timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self.host and self.from_email and self.username and self.password)

    def send(self, to_email: str, subject: str, text: str, html_body: str) -> None:
        msg = EmailMessage()
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(text)
        msg.add_alternative(html_body, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationFailure(f"Could not send email to {to_email}: {exc}") from exc


class NotificationDispatcher:
    """Calendar insert + two emails; each step is isolated and never raises."""

    def __init__(self, settings: Settings, calendar, mailer, rules: Tuple[ServiceRule, ...] = SERVICE_RULES):
        self.settings = settings
        self.calendar = calendar
        self.mailer = mailer
        self.rules = rules

    def notify(self, booking: ConfirmedBooking) -> NotificationResult:
        result = NotificationResult()
        result.calendar_inserted = self._insert_calendar_event(booking)
        result.emailed = self._email_customer(booking)
        result.shop_notified = self._email_shop(booking)
        return result

    def _insert_calendar_event(self, booking: ConfirmedBooking) -> bool:
        if self.calendar is None or not self.calendar.configured:
            logger.info("Calendar not configured, skipping calendar event")
            return False
        try:
            self.calendar.insert_event(build_calendar_event(booking, self.settings, self.rules))
            return True
        except Exception as e:
            logger.error(f"Calendar insert failed for {booking.key}: {e}")
            return False

    def _email_customer(self, booking: ConfirmedBooking) -> bool:
        if not booking.email:
            logger.info("No email provided, skipping customer confirmation")
            return False
        return self._send(booking.email, *customer_message(booking, self.settings))

    def _email_shop(self, booking: ConfirmedBooking) -> bool:
        mailbox = self.settings.shop_mailbox
        if not mailbox:
            logger.info("No shop mailbox configured, skipping shop alert")
            return False
        return self._send(mailbox, *shop_message(booking))

    def _send(self, to_email: str, subject: str, text: str, html_body: str) -> bool:
        if self.mailer is None or not self.mailer.configured:
            logger.info("Email transport not configured, skipping notification")
            return False
        try:
            self.mailer.send(to_email, subject, text, html_body)
        except Exception as e:
            logger.error(f"Email '{subject}' failed: {e}")
            return False
        logger.info(f"Email '{subject}' sent")
        return True
