"""Tests for practice onboarding, settings, calendar and analytics."""

from __future__ import annotations

import unittest
from datetime import date, datetime

from dentalbook.domain.appointments.service import AppointmentService
from dentalbook.domain.practices.schemas import (
    PracticeRegister,
    PracticeSettingsUpdate,
    PreferencesUpdate,
)
from dentalbook.domain.practices.service import PracticeService
from dentalbook.errors import ConflictError, GeocodeError, NotFoundError, ValidationError
from dentalbook.models import Appointment, Practice

from .helpers import (
    CAMBRIDGE,
    LONDON,
    MONDAY,
    TUESDAY,
    WEEKDAY_HOURS,
    FakeGeocoder,
    add_appointment,
    add_practice,
    at,
    make_session_factory,
    weekday_hours,
)


def registration(**overrides) -> PracticeRegister:
    data = {
        "practiceName": "Bright Teeth",
        "email": "Info@BrightTeeth.example.com",
        "phoneNumber": "+44 20 7946 0000",
        "address": {"line1": "2 Market Square", "city": "Cambridge", "postcode": "cb2 1tn"},
        "openingHours": WEEKDAY_HOURS,
        "allowedTypes": ["checkup", "cleaning"],
        "pricingMatrix": {"checkup": 45, "cleaning": 60},
    }
    data.update(overrides)
    return PracticeRegister(**data)


class RegistrationTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.addCleanup(self.db.close)
        self.service = PracticeService(self.db)
        self.geocoder = FakeGeocoder()

    async def test_register_geocodes_and_starts_unverified(self) -> None:
        practice = await self.service.register_practice(registration(), self.geocoder)

        self.assertFalse(practice.verified)
        self.assertIsNone(practice.verified_at)
        self.assertEqual((practice.latitude, practice.longitude), (CAMBRIDGE.latitude, CAMBRIDGE.longitude))
        self.assertEqual(practice.email, "info@brightteeth.example.com")
        self.assertEqual(practice.phone_number, "+442079460000")
        self.assertEqual(practice.address["postcode"], "CB2 1TN")
        self.assertIsNotNone(practice.preferences)
        self.assertTrue(practice.preferences.enable_notifications)

    async def test_allowed_types_default_to_priced_services(self) -> None:
        practice = await self.service.register_practice(registration(allowedTypes=[]), self.geocoder)

        self.assertEqual(practice.allowed_types, ["checkup", "cleaning"])

    async def test_pricing_must_use_allowed_types(self) -> None:
        with self.assertRaises(ValidationError):
            await self.service.register_practice(
                registration(allowedTypes=["checkup"], pricingMatrix={"whitening": 200}), self.geocoder
            )

    async def test_invalid_schedule_rejected_before_geocoding(self) -> None:
        with self.assertRaises(ValidationError):
            await self.service.register_practice(registration(openingHours=WEEKDAY_HOURS[:5]), self.geocoder)

        self.assertEqual(self.geocoder.calls, [])

    async def test_unknown_postcode(self) -> None:
        with self.assertRaises(GeocodeError):
            await self.service.register_practice(
                registration(address={"line1": "x", "city": "y", "postcode": "ZZ99 9ZZ"}), self.geocoder
            )

        self.assertEqual(self.db.query(Practice).count(), 0)

    async def test_duplicate_email(self) -> None:
        await self.service.register_practice(registration(), self.geocoder)

        with self.assertRaises(ValidationError):
            await self.service.register_practice(registration(), self.geocoder)


class ApprovalTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.addCleanup(self.db.close)
        self.service = PracticeService(self.db)

    def test_approve_moves_practice_to_approved(self) -> None:
        first = add_practice(self.db, name="First", email="first@example.com", verified=False)
        second = add_practice(self.db, name="Second", email="second@example.com", verified=False)

        self.service.approve(first.practice_id, now=datetime(2030, 1, 1))
        self.service.approve(second.practice_id, now=datetime(2030, 1, 2))

        self.assertEqual(self.service.list_pending(), [])
        approved = self.service.list_approved()
        self.assertEqual([p.practice_id for p in approved], [second.practice_id, first.practice_id])
        self.assertEqual(approved[0].verified_at, datetime(2030, 1, 2))

    def test_deny_deletes_practice_and_slots(self) -> None:
        pending = add_practice(self.db, name="Pending", email="pending@example.com", verified=False)
        add_appointment(self.db, pending, at(MONDAY, "10:00"), at(MONDAY, "10:30"))

        self.service.deny(pending.practice_id)

        self.assertEqual(self.db.query(Practice).count(), 0)
        self.assertEqual(self.db.query(Appointment).count(), 0)

    def test_cannot_deny_verified_practice(self) -> None:
        practice = add_practice(self.db)

        with self.assertRaises(ValidationError):
            self.service.deny(practice.practice_id)

    def test_unknown_practice(self) -> None:
        with self.assertRaises(NotFoundError):
            self.service.approve("missing")


class SettingsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.addCleanup(self.db.close)
        self.practice = add_practice(self.db)
        self.service = PracticeService(self.db)

    def test_partial_update(self) -> None:
        practice = self.service.update_settings(
            self.practice.practice_id,
            PracticeSettingsUpdate(practiceName="Smile Dental Clinic", photo="https://cdn.example.com/p.jpg"),
        )

        self.assertEqual(practice.practice_name, "Smile Dental Clinic")
        self.assertEqual(practice.photo, "https://cdn.example.com/p.jpg")
        self.assertEqual(practice.email, "hello@smile.example.com")

    def test_conflicting_hours_reject_the_whole_update(self) -> None:
        add_appointment(self.db, self.practice, at(MONDAY, "16:00"), at(MONDAY, "16:30"))

        with self.assertRaises(ConflictError):
            self.service.update_settings(
                self.practice.practice_id,
                PracticeSettingsUpdate(
                    practiceName="Renamed", openingHours=weekday_hours(Monday=("10:00", "16:00"))
                ),
            )

        self.db.expire_all()
        stored = self.db.query(Practice).filter_by(practice_id=self.practice.practice_id).one()
        self.assertEqual(stored.practice_name, "Smile Dental")

    def test_removing_a_priced_type_requires_new_pricing(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.update_settings(
                self.practice.practice_id, PracticeSettingsUpdate(allowedTypes=["checkup"])
            )

    def test_preferences(self) -> None:
        prefs = self.service.update_preferences(
            self.practice.practice_id, PreferencesUpdate(hide_delete_confirmation=True)
        )

        self.assertTrue(prefs.hide_delete_confirmation)
        self.assertTrue(prefs.enable_notifications)


class NearbyTests(unittest.TestCase):
    def test_nearby_sorted_by_distance(self) -> None:
        db = make_session_factory()()
        self.addCleanup(db.close)
        london = add_practice(db, name="London", email="l@example.com", location=LONDON)
        cambridge = add_practice(db, name="Cambridge", email="c@example.com", location=CAMBRIDGE)
        add_practice(db, name="Pending", email="p@example.com", verified=False, location=LONDON)

        service = PracticeService(db)

        near = service.find_nearby(LONDON.latitude, LONDON.longitude, 10)
        wide = service.find_nearby(LONDON.latitude, LONDON.longitude, 100)

        self.assertEqual([p.practice_id for p, _ in near], [london.practice_id])
        self.assertEqual([p.practice_id for p, _ in wide], [london.practice_id, cambridge.practice_id])


class CalendarAndAnalyticsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.addCleanup(self.db.close)
        self.practice = add_practice(self.db)
        add_appointment(self.db, self.practice, at(MONDAY, "09:00"), at(MONDAY, "10:00"))
        add_appointment(
            self.db, self.practice, at(MONDAY, "09:30"), at(MONDAY, "10:30"), booked=True, user_id="u"
        )
        add_appointment(self.db, self.practice, at(TUESDAY, "11:00"), at(TUESDAY, "11:30"))

    def test_day_layout(self) -> None:
        day = AppointmentService(self.db).layout_practice_day(self.practice.practice_id, MONDAY.date())

        self.assertEqual(day["day_name"], "Monday")
        self.assertEqual((day["open"], day["close"]), ("09:00", "17:00"))
        self.assertEqual([a["width"] for a in day["appointments"]], [50, 50])

    def test_week_layout_starts_on_monday(self) -> None:
        week = AppointmentService(self.db).layout_practice_week(self.practice.practice_id, date(2030, 1, 10))

        self.assertEqual(len(week), 7)
        self.assertEqual(week[0]["day"], date(2030, 1, 7))
        self.assertEqual([len(d["appointments"]) for d in week], [2, 1, 0, 0, 0, 0, 0])
        self.assertIsNone(week[5]["open"])

    def test_analytics_counts(self) -> None:
        stats = PracticeService(self.db).get_analytics(
            self.practice.practice_id, date(2030, 1, 6), date(2030, 1, 8), today=date(2030, 2, 1)
        )

        self.assertEqual(stats["total_appointments"], 3)
        self.assertEqual(stats["booked_appointments"], 1)
        self.assertEqual(stats["available_appointments"], 2)
        self.assertEqual([d["total"] for d in stats["daily"]], [0, 2, 1])

    def test_analytics_rejects_future_dates(self) -> None:
        with self.assertRaises(ValidationError):
            PracticeService(self.db).get_analytics(
                self.practice.practice_id, date(2030, 1, 6), date(2030, 1, 8), today=date(2030, 1, 7)
            )
