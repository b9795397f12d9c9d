"""
Booking notifications

A booking sends two confirmations: one to the patient and one to the
practice. Both go out concurrently and delivery is best effort - failures are
logged and reported in the result dict but never undo the booking.
"""

import asyncio
import logging
from datetime import datetime
from typing import Protocol

from ..email_service import compile_mjml_to_html, send_email
from ..email_templates import (
    patient_booking_confirmation_template,
    patient_booking_confirmation_text,
    practice_booking_notification_template,
    practice_booking_notification_text,
)
from ..errors import NotificationError

logger = logging.getLogger(__name__)

BOOKING_SUBJECT = "Appointment Confirmation"


class Notifier(Protocol):
    async def send(self, to: str, subject: str, text_body: str, html_body: str) -> None: ...


class EmailNotifier:
    """Notifier backed by the Resend email service"""

    async def send(self, to: str, subject: str, text_body: str, html_body: str) -> None:
        try:
            await send_email(to=to, subject=subject, html_content=html_body, text_content=text_body)
        except Exception as e:
            raise NotificationError(to, f"Failed to deliver '{subject}' to {to}: {e}") from e


def get_notifier() -> Notifier:
    """Dependency injection for the booking notifier"""
    return EmailNotifier()


def format_appointment_time(start_time: datetime) -> str:
    return start_time.strftime("%A %d %B %Y, %H:%M")


async def _deliver(notifier: Notifier, to: str, text_body: str, mjml_body: str) -> None:
    try:
        html_body = compile_mjml_to_html(mjml_body)
    except Exception as e:
        raise NotificationError(to, f"Could not render confirmation email: {e}") from e
    await notifier.send(to, BOOKING_SUBJECT, text_body, html_body)


async def send_booking_confirmations(
    notifier: Notifier,
    practice_name: str,
    practice_email: str,
    service_label: str,
    start_time: datetime,
    patient_email: str,
) -> dict:
    """
    Send patient and practice confirmations concurrently.

    Returns:
        Dict with patient_sent / practice_sent flags and error messages
    """
    when = format_appointment_time(start_time)

    patient_result, practice_result = await asyncio.gather(
        _deliver(
            notifier,
            patient_email,
            patient_booking_confirmation_text(practice_name, service_label, when),
            patient_booking_confirmation_template(practice_name, service_label, when),
        ),
        _deliver(
            notifier,
            practice_email,
            practice_booking_notification_text(practice_name, service_label, when),
            practice_booking_notification_template(practice_name, service_label, when),
        ),
        return_exceptions=True,
    )

    result = {"patient_sent": True, "practice_sent": True, "patient_error": None, "practice_error": None}
    for side, outcome, recipient in (
        ("patient", patient_result, patient_email),
        ("practice", practice_result, practice_email),
    ):
        if isinstance(outcome, BaseException):
            result[f"{side}_sent"] = False
            result[f"{side}_error"] = str(outcome)
            logger.error(f"❌ Booking confirmation to {side} {recipient} failed: {outcome}")
        else:
            logger.info(f"✅ Booking confirmation sent to {side} {recipient}")

    return result
