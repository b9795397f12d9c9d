"""
Booking state machine - Available -> Booked, at most once

The only transition is a conditional UPDATE guarded on booked = false. When two
patients confirm the same slot at once the database lets exactly one of them
through; the other gets AlreadyBookedError. A lost race is never retried.
"""

import logging

from sqlalchemy.orm import Session

from ...errors import AlreadyBookedError, NotFoundError
from ...models import Appointment
from ...services.notification_service import Notifier, send_booking_confirmations
from .repository import AppointmentRepository

logger = logging.getLogger(__name__)


def service_label(appointment: Appointment) -> str:
    return appointment.title or ", ".join(appointment.services or {})


class BookingService:
    """Service layer for booking appointments"""

    def __init__(self, db: Session, notifier: Notifier):
        self.db = db
        self.notifier = notifier
        self.repo = AppointmentRepository()

    async def book(self, appointment_id: str, user_id: str, user_email: str) -> tuple[Appointment, dict]:
        """
        Book a slot for a patient and send both confirmations.

        Returns:
            (booked appointment, notification result dict)

        Raises:
            NotFoundError: no such appointment
            AlreadyBookedError: already booked, or a concurrent booking won
        """
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment", appointment_id)
        if appointment.booked:
            raise AlreadyBookedError(appointment_id)

        updated = self.repo.mark_booked(self.db, appointment_id, user_id)
        if updated == 0:
            logger.warning(f"⚠️ Lost booking race for appointment {appointment_id} (user {user_id})")
            raise AlreadyBookedError(appointment_id)

        self.db.refresh(appointment)
        practice = appointment.practice
        logger.info(f"✅ Appointment {appointment_id} booked by user {user_id}")

        notifications = await send_booking_confirmations(
            self.notifier,
            practice_name=practice.practice_name,
            practice_email=practice.email,
            service_label=service_label(appointment),
            start_time=appointment.start_time,
            patient_email=user_email,
        )
        return appointment, notifications
