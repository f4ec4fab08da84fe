# backend/slotbook/services/email.py
"""
Email templates and Resend delivery.

Set RESEND_API_KEY to send for real. Without it the client runs in dev
mode and only logs what it would send.
"""

import html
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

import httpx

from .. import repositories
from .notifications import EmailMessage, NotificationSender, dispatch_notification
from .slots.config import BookingConfig, get_booking_config
from .slots.timezone import resolve_timezone

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass(frozen=True)
class BookingEmailData:
    customer_name: str
    service_name: str
    date: str  # human readable, business-local
    time: str  # "HH:MM", business-local
    duration: int
    business_name: str
    business_phone: str | None
    business_address: str | None
    status: str
    manage_url: str | None = None


def format_booking_date(start_at: datetime, tz_name: str) -> tuple[str, str]:
    """UTC start -> ("Monday, 3 March 2025", "14:00") in the business zone."""
    local = start_at.astimezone(resolve_timezone(tz_name))
    return f"{local:%A}, {local.day} {local:%B %Y}", f"{local:%H:%M}"


def booking_email_data(booking, service, business, tz_name: str, manage_url: str | None = None) -> BookingEmailData:
    day, time = format_booking_date(booking.start_at, tz_name)
    return BookingEmailData(
        customer_name=booking.customer_name,
        service_name=service.name if service else "Service",
        date=day,
        time=time,
        duration=service.duration_minutes if service else 0,
        business_name=business.name,
        business_phone=business.phone,
        business_address=business.address,
        status=booking.status,
        manage_url=manage_url,
    )


def notify_customer(
    db,
    booking,
    notifier: NotificationSender | None,
    build: Callable[[BookingEmailData], EmailMessage],
    config: BookingConfig | None = None,
    manage_url: str | None = None,
) -> None:
    """
    Render a booking email and hand it to the notifier, best-effort.

    Skipped when there is no notifier or the customer left no email.
    Rendering problems are logged; nothing propagates to the caller.
    """
    if notifier is None or not booking.customer_email:
        return
    config = config or get_booking_config()
    try:
        business = repositories.get_business(db, booking.business_id)
        service = repositories.get_service(db, booking.service_id)
        tz_name = business.timezone or config.default_timezone
        message = build(booking_email_data(booking, service, business, tz_name, manage_url))
    except Exception:
        logger.exception(f"Failed to render notification for booking {booking.id}")
        return
    dispatch_notification(notifier, booking.customer_email, message)


# ── Templates ────────────────────────────────────────────────────────────


def _base_template(content: str) -> str:
    return (
        '<!DOCTYPE html><html><head><meta charset="utf-8"></head>'
        '<body style="font-family: sans-serif; background-color: #f8f9fa;">'
        '<div style="max-width: 560px; margin: 0 auto; padding: 40px 20px;">'
        f'<div style="background: #ffffff; border-radius: 8px; padding: 32px;">{content}</div>'
        '<p style="text-align: center; color: #9ca3af; font-size: 12px;">Sent by Online Booking System</p>'
        "</div></body></html>"
    )


def _details(data: BookingEmailData) -> str:
    rows = [
        ("Service", data.service_name),
        ("Date", data.date),
        ("Time", f"{data.time} ({data.duration} min)"),
        ("Business", data.business_name),
    ]
    if data.business_address:
        rows.append(("Address", data.business_address))
    if data.business_phone:
        rows.append(("Phone", data.business_phone))
    cells = "".join(
        f"<tr><td style=\"color: #6b7280;\">{label}</td><td>{html.escape(str(value))}</td></tr>"
        for label, value in rows
    )
    return f"<table style=\"width: 100%; font-size: 14px;\">{cells}</table>"


def booking_created_email(data: BookingEmailData) -> EmailMessage:
    confirmed = data.status == "CONFIRMED"
    title = "Booking Confirmed" if confirmed else "Booking Received"
    status_text = "Confirmed" if confirmed else "Pending Approval"

    manage = ""
    if data.manage_url:
        manage = (
            '<p style="font-size: 14px;">Manage your booking: '
            f'<a href="{html.escape(data.manage_url)}">{html.escape(data.manage_url)}</a></p>'
            '<p style="font-size: 12px; color: #9ca3af;">Use this link to view or cancel your appointment.</p>'
        )

    return EmailMessage(
        subject=f"{title} - {data.business_name}",
        html=_base_template(
            f"<h2>{title}</h2>"
            f"<p>Hi {html.escape(data.customer_name)}, your booking details:</p>"
            f"{_details(data)}<p>Status: <strong>{status_text}</strong></p>{manage}"
        ),
        kind="booking_created",
    )


def booking_approved_email(data: BookingEmailData) -> EmailMessage:
    return EmailMessage(
        subject=f"Booking Approved - {data.business_name}",
        html=_base_template(
            "<h2>Your booking is confirmed</h2>"
            f"<p>Hi {html.escape(data.customer_name)}, {html.escape(data.business_name)} "
            f"has approved your appointment.</p>{_details(data)}"
        ),
        kind="booking_approved",
    )


def booking_cancelled_email(data: BookingEmailData, cancelled_by: str) -> EmailMessage:
    who = "You have" if cancelled_by == "client" else f"{html.escape(data.business_name)} has"
    return EmailMessage(
        subject=f"Booking Cancelled - {data.business_name}",
        html=_base_template(
            "<h2>Booking Cancelled</h2>"
            f"<p>Hi {html.escape(data.customer_name)}, {who} cancelled the appointment below.</p>"
            f"{_details(data)}"
        ),
        kind="booking_cancelled",
    )


# ── Delivery ─────────────────────────────────────────────────────────────


class ResendEmailClient:
    """Delivers queued emails through the Resend HTTP API."""

    def __init__(self, api_key: str | None, email_from: str, timeout: float = 10.0):
        self.api_key = api_key
        self.email_from = email_from
        self.timeout = timeout

    async def deliver(self, to: str, subject: str, body_html: str) -> bool:
        if not self.api_key:
            logger.info(
                f"[Email - dev mode] to={to} subject={subject!r} body={len(body_html)} chars"
            )
            return True

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                resp = await client.post(
                    RESEND_API_URL,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "from": self.email_from,
                        "to": to,
                        "subject": subject,
                        "html": body_html,
                    },
                )
            except httpx.HTTPError as e:
                logger.error(f"Email send failed: {e}")
                return False

        if resp.status_code >= 400:
            logger.error(f"Resend error {resp.status_code}: {resp.text[:200]}")
            return False
        return True
