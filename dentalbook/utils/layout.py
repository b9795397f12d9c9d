"""
Day calendar layout for appointments.

Places a day's appointments into side-by-side columns so that appointments
sharing any time never share a column. Overlapping appointments form a
cluster (transitively: A-B and B-C puts A, B and C together); each cluster is
split into the fewest columns a greedy scan produces, and every member takes
an equal share of the width. An appointment that overlaps nothing keeps the
full width.

All positions are percentages of the displayed window
[CALENDAR_START_HOUR, CALENDAR_END_HOUR).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from ..config import CALENDAR_END_HOUR, CALENDAR_START_HOUR


@dataclass
class PositionedAppointment:
    appointment: Any
    start_minutes: int
    end_minutes: int
    top: float
    height: float
    left: float = 0.0
    width: float = 100.0
    column: int = 0
    columns: int = 1

    def overlaps(self, other: "PositionedAppointment") -> bool:
        return not (
            self.start_minutes >= other.end_minutes or self.end_minutes <= other.start_minutes
        )


def _minutes_from_window_start(moment: datetime, start_hour: int) -> int:
    return moment.hour * 60 + moment.minute - start_hour * 60


def _field(appointment: Any, name: str):
    if isinstance(appointment, dict):
        return appointment[name]
    return getattr(appointment, name)


def layout_day(
    appointments: Sequence[Any],
    start_hour: Optional[int] = None,
    end_hour: Optional[int] = None,
) -> list[PositionedAppointment]:
    """
    Compute top/height/left/width for one day's appointments.

    Appointments may be ORM objects or dicts with start_time, end_time and
    appointment_id. Times outside the window are clamped to its edges.
    Returns positioned entries ordered by (start, end, appointment_id).
    """
    start_hour = CALENDAR_START_HOUR if start_hour is None else start_hour
    end_hour = CALENDAR_END_HOUR if end_hour is None else end_hour
    total_minutes = (end_hour - start_hour) * 60
    if total_minutes <= 0:
        raise ValueError("Calendar end hour must be after start hour")

    positioned = []
    for appt in appointments:
        start_minutes = max(0, _minutes_from_window_start(_field(appt, "start_time"), start_hour))
        end_minutes = min(total_minutes, _minutes_from_window_start(_field(appt, "end_time"), start_hour))
        end_minutes = max(end_minutes, start_minutes)
        positioned.append(
            PositionedAppointment(
                appointment=appt,
                start_minutes=start_minutes,
                end_minutes=end_minutes,
                top=start_minutes / total_minutes * 100,
                height=(end_minutes - start_minutes) / total_minutes * 100,
            )
        )

    positioned.sort(
        key=lambda p: (p.start_minutes, p.end_minutes, str(_field(p.appointment, "appointment_id")))
    )

    # Group into clusters of (transitively) overlapping appointments
    clusters: list[list[PositionedAppointment]] = []
    for item in positioned:
        for cluster in clusters:
            if any(item.overlaps(member) for member in cluster):
                cluster.append(item)
                break
        else:
            clusters.append([item])

    # Greedy column assignment inside each cluster
    for cluster in clusters:
        columns: list[list[PositionedAppointment]] = []
        for item in cluster:
            for col in columns:
                if item.start_minutes >= col[-1].end_minutes:
                    col.append(item)
                    break
            else:
                columns.append([item])

        num_columns = len(columns)
        for index, col in enumerate(columns):
            for item in col:
                item.column = index
                item.columns = num_columns
                item.left = index / num_columns * 100
                item.width = 100 / num_columns

    return positioned
