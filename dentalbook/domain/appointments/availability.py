"""
Availability validation - gates slot creation and opening-hours edits.

Both checks run before anything is written. A new slot must fit the
practice's opening window and only offer services the practice allows. An
opening-hours change is checked against every appointment the practice
already has and is rejected as a whole if any of them would fall outside the
new hours; all offending appointments are reported together.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping

from ...errors import ConflictError, OutOfHoursError, ValidationError
from ...models import Appointment, Practice
from ...utils.calendar import contained_in_opening_hours

logger = logging.getLogger(__name__)


def validate_services(services: Mapping[str, Any], allowed_types: Iterable[str]) -> None:
    if not services:
        raise ValidationError("At least one service is required", field="services")

    allowed = set(allowed_types or [])
    not_allowed = sorted(name for name in services if name not in allowed)
    if not_allowed:
        raise ValidationError(
            f"Service(s) not offered by this practice: {', '.join(not_allowed)}", field="services"
        )

    for name, price in services.items():
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise ValidationError(f"Price for '{name}' must be a number", field="services")
        if price < 0:
            raise ValidationError(f"Price for '{name}' cannot be negative", field="services")


def validate_new_slot(
    practice: Practice, start: datetime, end: datetime, services: Mapping[str, Any]
) -> None:
    """
    Decide whether a practice may create a slot.

    Raises:
        ValidationError: end not after start, no services, unknown service
            or invalid price
        OutOfHoursError: slot not inside the opening window of its weekday
    """
    if end <= start:
        raise ValidationError("End time must be after start time", field="end_time")

    validate_services(services, practice.allowed_types)
    contained_in_opening_hours(start, end, practice.opening_hours)


def find_hours_conflicts(
    appointments: Iterable[Appointment], new_schedule: list[dict]
) -> list[dict]:
    """Every appointment that would fall outside new_schedule, in input order"""
    conflicts = []
    for appt in appointments:
        try:
            contained_in_opening_hours(appt.start_time, appt.end_time, new_schedule)
        except OutOfHoursError as e:
            conflicts.append(
                {
                    "appointment_id": appt.appointment_id,
                    "day": e.day,
                    "start_time": appt.start_time.isoformat(),
                    "end_time": appt.end_time.isoformat(),
                    "booked": bool(appt.booked),
                    "reason": e.message,
                }
            )
    return conflicts


def validate_hours_change(
    practice: Practice, new_schedule: list[dict], appointments: Iterable[Appointment]
) -> None:
    """
    Check a proposed weekly schedule against all of a practice's appointments
    (past ones included).

    Raises:
        ConflictError: listing every appointment the new hours would exclude
    """
    conflicts = find_hours_conflicts(appointments, new_schedule)
    if conflicts:
        logger.info(
            f"⚠️ Opening hours change for practice {practice.practice_id} rejected: "
            f"{len(conflicts)} conflicting appointment(s)"
        )
        raise ConflictError(conflicts)
