"""
Opening-hours calendar utilities

Pure time math over a practice's weekly schedule. A schedule is a list of
seven entries, one per weekday:

    {"dayName": "Monday", "open": "09:00", "close": "17:00"}
    {"dayName": "Sunday", "open": "closed", "close": "closed"}

All datetimes are naive local wall-clock times. Nothing here converts between
timezones - a slot is compared against the hours exactly as they were entered.
"""

from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

from ..errors import FormatError, OutOfHoursError, ValidationError
from ..shared.validators import validate_hhmm

CLOSED_MARKER = "closed"

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def time_to_minutes(hhmm: str) -> int:
    """Convert "HH:MM" to minutes since midnight ("08:15" -> 495)"""
    try:
        validate_hhmm(hhmm)
    except (ValueError, TypeError) as e:
        raise FormatError(hhmm) from e
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_closed_marker(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() == CLOSED_MARKER


def is_open(day_entry: dict) -> bool:
    """False if either open or close is the closed marker (case-insensitive)"""
    open_time = day_entry.get("open")
    close_time = day_entry.get("close")
    if open_time is None or close_time is None:
        return False
    return not (is_closed_marker(open_time) or is_closed_marker(close_time))


def weekday_name(moment: datetime | date) -> str:
    return WEEKDAYS[moment.weekday()]


def find_day(week_schedule: Iterable[dict], day_name: str) -> Optional[dict]:
    for entry in week_schedule or []:
        if str(entry.get("dayName", "")).lower() == day_name.lower():
            return entry
    return None


def opening_window(day_entry: dict, on_date: date) -> tuple[datetime, datetime]:
    """Open and close instants of an open day entry on a given calendar date"""
    midnight = datetime.combine(on_date, datetime.min.time())
    open_at = midnight + timedelta(minutes=time_to_minutes(day_entry["open"]))
    close_at = midnight + timedelta(minutes=time_to_minutes(day_entry["close"]))
    return open_at, close_at


def contained_in_opening_hours(start: datetime, end: datetime, week_schedule: list[dict]) -> None:
    """
    Check that [start, end) lies inside the opening window of start's weekday.

    Slots may not cross midnight: start and end must share a weekday and end
    must not pass that day's closing time.

    Raises:
        OutOfHoursError: closed day, different weekdays, or outside the window
        FormatError: the schedule entry holds a malformed time
    """
    day_name = weekday_name(start)
    if weekday_name(end) != day_name:
        raise OutOfHoursError(
            f"Appointments must start and end on the same day ({day_name})", day=day_name
        )

    entry = find_day(week_schedule, day_name)
    if entry is None or not is_open(entry):
        raise OutOfHoursError(f"The practice is closed on {day_name}", day=day_name)

    open_at, close_at = opening_window(entry, start.date())
    if start < open_at or end > close_at:
        raise OutOfHoursError(
            f"Appointment must be within opening hours: {entry['open']} - {entry['close']}",
            day=day_name,
            open_time=entry["open"],
            close_time=entry["close"],
        )


def validate_week_schedule(week_schedule: list[dict], require_open_day: bool = True) -> list[dict]:
    """
    Validate and normalize a full weekly schedule.

    Requires exactly one entry per weekday. Open days need HH:MM times with
    close after open; closed days are stored with the closed marker on both
    sides. Entries are returned in Monday..Sunday order.

    Raises:
        ValidationError: wrong number of days, unknown/duplicate day names,
            close not after open, or no open day when one is required
        FormatError: malformed time on an open day
    """
    if not isinstance(week_schedule, list) or len(week_schedule) != len(WEEKDAYS):
        raise ValidationError("Opening hours must contain exactly 7 days", field="opening_hours")

    by_day: dict[str, dict] = {}
    for entry in week_schedule:
        raw_name = str(entry.get("dayName", "")).strip().capitalize()
        if raw_name not in WEEKDAYS:
            raise ValidationError(f"Unknown day name: {entry.get('dayName')!r}", field="opening_hours")
        if raw_name in by_day:
            raise ValidationError(f"Duplicate day: {raw_name}", field="opening_hours")

        if entry.get("closed") or not is_open(entry):
            by_day[raw_name] = {"dayName": raw_name, "open": CLOSED_MARKER, "close": CLOSED_MARKER}
            continue

        open_minutes = time_to_minutes(entry["open"])
        close_minutes = time_to_minutes(entry["close"])
        if close_minutes <= open_minutes:
            raise ValidationError(
                f"{raw_name}: closing time must be after opening time", field="opening_hours"
            )
        by_day[raw_name] = {"dayName": raw_name, "open": entry["open"], "close": entry["close"]}

    if require_open_day and not any(is_open(entry) for entry in by_day.values()):
        raise ValidationError("At least one day must be open", field="opening_hours")

    return [by_day[day] for day in WEEKDAYS]


def week_start(day: date) -> date:
    """Monday of the week containing day"""
    return day - timedelta(days=day.weekday())


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[midnight, next midnight) for a calendar date"""
    start = datetime.combine(day, datetime.min.time())
    return start, start + timedelta(days=1)
