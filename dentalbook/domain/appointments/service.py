"""Appointment service - Business logic for availability slots"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import NotFoundError, PermissionDeniedError
from ...models import Appointment, Practice
from ...utils.calendar import day_bounds, find_day, is_open, weekday_name, week_start
from ...utils.layout import PositionedAppointment, layout_day
from .availability import validate_new_slot
from .repository import AppointmentRepository
from .schemas import SlotCreate

logger = logging.getLogger(__name__)


def default_title(services: dict) -> str:
    """Comma-joined service names in the order they were given"""
    return ", ".join(services)


class AppointmentService:
    """Service layer for appointment slot business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()

    def _get_practice(self, practice_id: str) -> Practice:
        practice = self.db.query(Practice).filter(Practice.practice_id == practice_id).first()
        if not practice:
            raise NotFoundError("Practice", practice_id)
        return practice

    def create_slot(self, data: SlotCreate) -> Appointment:
        """
        Publish a new availability slot for a verified practice.

        Validation runs before the insert; nothing is written on failure.
        """
        practice = self._get_practice(data.practiceId)
        if not practice.verified:
            raise PermissionDeniedError("Practice must be verified before publishing appointments")

        validate_new_slot(practice, data.startTime, data.endTime, data.services)

        appointment = self.repo.create_appointment(
            self.db,
            practice_id=practice.practice_id,
            title=data.title or default_title(data.services),
            start_time=data.startTime,
            end_time=data.endTime,
            services=dict(data.services),
            booked=False,
        )
        logger.info(
            f"📅 Created appointment {appointment.appointment_id} for practice {practice.practice_id} "
            f"({appointment.start_time:%Y-%m-%d %H:%M} - {appointment.end_time:%H:%M})"
        )
        return appointment

    def get_appointment(self, appointment_id: str) -> Appointment:
        appointment = self.repo.get_appointment_with_practice(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment", appointment_id)
        return appointment

    def get_appointment_detail(self, appointment_id: str) -> tuple[Appointment, Optional[float], int]:
        """Appointment plus its practice's (average rating, review count)"""
        appointment = self.get_appointment(appointment_id)
        average, count = self.repo.get_practice_rating(self.db, appointment.practice_id)
        return appointment, average, count

    def list_appointments(
        self,
        practice_id: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        booked: Optional[bool] = None,
    ) -> list[Appointment]:
        return self.repo.list_appointments(self.db, practice_id, start_time, end_time, booked)

    def delete_appointment(self, appointment_id: str) -> dict:
        """Remove a slot, booked or not"""
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment", appointment_id)

        was_booked = appointment.booked
        self.repo.delete_appointment(self.db, appointment)
        logger.info(f"🗑️ Deleted appointment {appointment_id} (booked={was_booked})")
        return {"message": "Appointment deleted successfully", "appointment_id": appointment_id}

    def get_upcoming(self, limit: int = 5, now: Optional[datetime] = None) -> list[Appointment]:
        return self.repo.get_upcoming(self.db, now or datetime.now(), limit)

    def get_user_appointments(self, user_id: str) -> list[Appointment]:
        return self.repo.get_user_appointments(self.db, user_id)

    # ------------------------------------------------------------------
    # Practice calendar
    # ------------------------------------------------------------------

    def layout_practice_day(self, practice_id: str, day: date) -> dict:
        """Positioned appointments for one day of a practice's calendar"""
        practice = self._get_practice(practice_id)
        return self._layout_day(practice, day)

    def layout_practice_week(self, practice_id: str, day: date) -> list[dict]:
        """Seven day layouts for the Monday-based week containing day"""
        practice = self._get_practice(practice_id)
        monday = week_start(day)
        return [self._layout_day(practice, monday + timedelta(days=i)) for i in range(7)]

    def _layout_day(self, practice: Practice, day: date) -> dict:
        range_start, range_end = day_bounds(day)
        appointments = self.repo.get_appointments_between(
            self.db, practice.practice_id, range_start, range_end
        )
        entry = find_day(practice.opening_hours, weekday_name(day))
        open_today = entry is not None and is_open(entry)
        return {
            "day": day,
            "day_name": weekday_name(day),
            "open": entry["open"] if open_today else None,
            "close": entry["close"] if open_today else None,
            "appointments": [positioned_to_dict(p) for p in layout_day(appointments)],
        }


def positioned_to_dict(item: PositionedAppointment) -> dict:
    appt = item.appointment
    return {
        "appointment_id": appt.appointment_id,
        "title": appt.title,
        "start_time": appt.start_time,
        "end_time": appt.end_time,
        "booked": appt.booked,
        "top": item.top,
        "height": item.height,
        "left": item.left,
        "width": item.width,
        "column": item.column,
        "columns": item.columns,
    }
