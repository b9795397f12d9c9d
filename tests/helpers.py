"""Shared fixtures: in-memory database, sample practices and fake collaborators."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dentalbook import models  # noqa: F401
from dentalbook.database import Base
from dentalbook.errors import GeocodeError, NotificationError
from dentalbook.models import Appointment, Practice, PracticePreferences
from dentalbook.utils.geo import Coordinates

# 2030-01-07 is a Monday; everything is safely in the future
MONDAY = datetime(2030, 1, 7)
TUESDAY = datetime(2030, 1, 8)
SATURDAY = datetime(2030, 1, 12)
NOW = datetime(2029, 12, 1, 12, 0)

WEEKDAY_HOURS = [
    {"dayName": "Monday", "open": "09:00", "close": "17:00"},
    {"dayName": "Tuesday", "open": "09:00", "close": "17:00"},
    {"dayName": "Wednesday", "open": "09:00", "close": "17:00"},
    {"dayName": "Thursday", "open": "09:00", "close": "17:00"},
    {"dayName": "Friday", "open": "09:00", "close": "17:00"},
    {"dayName": "Saturday", "open": "closed", "close": "closed"},
    {"dayName": "Sunday", "open": "closed", "close": "closed"},
]

LONDON = Coordinates(latitude=51.5074, longitude=-0.1278)
CAMBRIDGE = Coordinates(latitude=52.2053, longitude=0.1218)


def at(day: datetime, hhmm: str) -> datetime:
    hours, minutes = hhmm.split(":")
    return day.replace(hour=int(hours), minute=int(minutes))


def weekday_hours(**overrides: tuple[str, str]) -> list[dict]:
    """WEEKDAY_HOURS with some days replaced, e.g. Monday=("10:00", "16:00")"""
    schedule = []
    for entry in WEEKDAY_HOURS:
        if entry["dayName"] in overrides:
            open_time, close_time = overrides[entry["dayName"]]
            schedule.append({"dayName": entry["dayName"], "open": open_time, "close": close_time})
        else:
            schedule.append(dict(entry))
    return schedule


def make_session_factory() -> sessionmaker:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_file_session_factory(path: str) -> sessionmaker:
    """File-backed SQLite so each session gets its own connection"""
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def add_practice(
    db: Session,
    name: str = "Smile Dental",
    email: str = "hello@smile.example.com",
    verified: bool = True,
    location: Optional[Coordinates] = LONDON,
    opening_hours: Optional[list[dict]] = None,
    allowed_types: Optional[list[str]] = None,
) -> Practice:
    practice = Practice(
        practice_name=name,
        email=email,
        phone_number="02071234567",
        address={
            "line1": "1 High Street",
            "city": "London",
            "postcode": "SW1A 1AA",
            "country": "United Kingdom",
        },
        latitude=location.latitude if location else None,
        longitude=location.longitude if location else None,
        opening_hours=opening_hours or weekday_hours(),
        allowed_types=allowed_types or ["checkup", "cleaning", "extraction"],
        pricing_matrix={"checkup": 50.0, "cleaning": 45.0, "extraction": 120.0},
        verified=verified,
        verified_at=NOW if verified else None,
    )
    practice.preferences = PracticePreferences()
    db.add(practice)
    db.commit()
    db.refresh(practice)
    return practice


def add_appointment(
    db: Session,
    practice: Practice,
    start: datetime,
    end: datetime,
    services: Optional[dict] = None,
    booked: bool = False,
    user_id: Optional[str] = None,
) -> Appointment:
    services = services or {"checkup": 50.0}
    appointment = Appointment(
        practice_id=practice.practice_id,
        title=", ".join(services),
        start_time=start,
        end_time=end,
        services=services,
        booked=booked,
        user_id=user_id,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


class FakeNotifier:
    """Records sends; recipients listed in fail_for raise NotificationError"""

    def __init__(self, fail_for: tuple[str, ...] = ()):
        self.sent: list[dict] = []
        self.fail_for = set(fail_for)

    async def send(self, to: str, subject: str, text_body: str, html_body: str) -> None:
        if to in self.fail_for:
            raise NotificationError(to, f"Mailbox unavailable: {to}")
        self.sent.append({"to": to, "subject": subject, "text": text_body, "html": html_body})


class FakeGeocoder:
    """Resolves known postcodes; anything else raises GeocodeError"""

    def __init__(self, known: Optional[dict[str, Coordinates]] = None):
        self.known = known if known is not None else {"SW1A 1AA": LONDON, "CB2 1TN": CAMBRIDGE}
        self.calls: list[str] = []

    async def geocode(self, postcode: str) -> Coordinates:
        self.calls.append(postcode)
        normalized = " ".join(postcode.split()).upper()
        if normalized not in self.known:
            raise GeocodeError(normalized)
        return self.known[normalized]
