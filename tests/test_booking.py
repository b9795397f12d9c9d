"""Tests for the Available -> Booked transition."""

from __future__ import annotations

import asyncio
import os
import tempfile
import threading
import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

from dentalbook.domain.appointments.booking import BookingService
from dentalbook.domain.appointments.repository import AppointmentRepository
from dentalbook.errors import AlreadyBookedError, NotFoundError
from dentalbook.models import Appointment

from .helpers import (
    MONDAY,
    FakeNotifier,
    add_appointment,
    add_practice,
    at,
    make_file_session_factory,
    make_session_factory,
)


class BookingTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        # Render MJML as-is; compilation is covered in test_notifications
        mjml_patch = patch(
            "dentalbook.services.notification_service.compile_mjml_to_html",
            side_effect=lambda mjml: mjml,
        )
        mjml_patch.start()
        self.addCleanup(mjml_patch.stop)

        self.Session = make_session_factory()
        self.db = self.Session()
        self.addCleanup(self.db.close)
        self.practice = add_practice(self.db)
        self.slot = add_appointment(
            self.db, self.practice, at(MONDAY, "10:00"), at(MONDAY, "10:30"), {"checkup": 50.0}
        )
        self.notifier = FakeNotifier()

    def _service(self) -> BookingService:
        db = self.Session()
        self.addCleanup(db.close)
        return BookingService(db, self.notifier)

    def _stored(self) -> Appointment:
        self.db.expire_all()
        return self.db.query(Appointment).filter_by(appointment_id=self.slot.appointment_id).one()

    async def test_book_available_slot(self) -> None:
        appointment, notifications = await self._service().book(
            self.slot.appointment_id, "user-a", "patient@example.com"
        )

        self.assertTrue(appointment.booked)
        self.assertEqual(appointment.user_id, "user-a")
        self.assertTrue(notifications["patient_sent"])
        self.assertTrue(notifications["practice_sent"])
        self.assertEqual(
            sorted(m["to"] for m in self.notifier.sent),
            ["hello@smile.example.com", "patient@example.com"],
        )
        self.assertTrue(all(m["subject"] == "Appointment Confirmation" for m in self.notifier.sent))

    async def test_unknown_appointment(self) -> None:
        with self.assertRaises(NotFoundError):
            await self._service().book("missing", "user-a", "patient@example.com")

    async def test_concurrent_bookings_have_exactly_one_winner(self) -> None:
        results = await asyncio.gather(
            self._service().book(self.slot.appointment_id, "user-a", "a@example.com"),
            self._service().book(self.slot.appointment_id, "user-b", "b@example.com"),
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, BaseException)]
        losers = [r for r in results if isinstance(r, BaseException)]
        self.assertEqual(len(winners), 1)
        self.assertEqual(len(losers), 1)
        self.assertIsInstance(losers[0], AlreadyBookedError)

        winner_id = winners[0][0].user_id
        self.assertIn(winner_id, ("user-a", "user-b"))
        self.assertEqual(self._stored().user_id, winner_id)

    async def test_lost_race_at_write_time(self) -> None:
        """The guard holds even when the loser read the slot before the winner wrote."""
        stale = Appointment(
            appointment_id=self.slot.appointment_id,
            practice_id=self.practice.practice_id,
            booked=False,
        )
        await self._service().book(self.slot.appointment_id, "user-a", "a@example.com")

        with patch.object(AppointmentRepository, "get_appointment", return_value=stale):
            with self.assertRaises(AlreadyBookedError):
                await self._service().book(self.slot.appointment_id, "user-b", "b@example.com")

        stored = self._stored()
        self.assertTrue(stored.booked)
        self.assertEqual(stored.user_id, "user-a")

    async def test_booked_slot_stays_booked(self) -> None:
        await self._service().book(self.slot.appointment_id, "user-a", "a@example.com")

        for user in ("user-a", "user-b"):
            with self.assertRaises(AlreadyBookedError):
                await self._service().book(self.slot.appointment_id, user, "x@example.com")

        stored = self._stored()
        self.assertTrue(stored.booked)
        self.assertEqual(stored.user_id, "user-a")

    async def test_notification_failure_does_not_undo_booking(self) -> None:
        self.notifier.fail_for = {"patient@example.com"}

        appointment, notifications = await self._service().book(
            self.slot.appointment_id, "user-a", "patient@example.com"
        )

        self.assertTrue(appointment.booked)
        self.assertFalse(notifications["patient_sent"])
        self.assertIn("patient@example.com", notifications["patient_error"])
        self.assertTrue(notifications["practice_sent"])
        self.assertTrue(self._stored().booked)

    async def test_notifications_name_practice_and_service(self) -> None:
        await self._service().book(self.slot.appointment_id, "user-a", "patient@example.com")

        patient_mail = next(m for m in self.notifier.sent if m["to"] == "patient@example.com")
        self.assertIn("Smile Dental", patient_mail["text"])
        self.assertIn("checkup", patient_mail["text"])
        self.assertIn("Monday 07 January 2030, 10:00", patient_mail["text"])


class ThreadedBookingRaceTests(unittest.TestCase):
    """Patients on separate connections confirm the same slot at the same moment."""

    PATIENTS = 8

    def setUp(self) -> None:
        mjml_patch = patch(
            "dentalbook.services.notification_service.compile_mjml_to_html",
            side_effect=lambda mjml: mjml,
        )
        mjml_patch.start()
        self.addCleanup(mjml_patch.stop)

        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.Session = make_file_session_factory(os.path.join(tmpdir.name, "race.db"))
        self.addCleanup(self.Session.kw["bind"].dispose)

        db = self.Session()
        practice = add_practice(db)
        slot = add_appointment(db, practice, at(MONDAY, "10:00"), at(MONDAY, "10:30"))
        self.appointment_id = slot.appointment_id
        db.close()
        self.notifier = FakeNotifier()

    def test_every_patient_reaches_the_guard_and_one_wins(self) -> None:
        read_appointment = AppointmentRepository.get_appointment
        all_have_read = threading.Barrier(self.PATIENTS, timeout=10)

        def read_then_wait(db, appointment_id):
            appointment = read_appointment(db, appointment_id)
            all_have_read.wait()
            return appointment

        def attempt(user_id: str) -> str:
            db = self.Session()
            try:
                service = BookingService(db, self.notifier)
                asyncio.run(service.book(self.appointment_id, user_id, f"{user_id}@example.com"))
                return user_id
            except AlreadyBookedError:
                return "taken"
            finally:
                db.close()

        with patch.object(AppointmentRepository, "get_appointment", side_effect=read_then_wait), patch.object(
            AppointmentRepository, "mark_booked", wraps=AppointmentRepository.mark_booked
        ) as mark_booked:
            with ThreadPoolExecutor(max_workers=self.PATIENTS) as pool:
                results = list(pool.map(attempt, [f"user-{i}" for i in range(self.PATIENTS)]))

        self.assertEqual(mark_booked.call_count, self.PATIENTS)
        winners = [r for r in results if r != "taken"]
        self.assertEqual(len(winners), 1)
        self.assertEqual(results.count("taken"), self.PATIENTS - 1)

        db = self.Session()
        self.addCleanup(db.close)
        stored = db.query(Appointment).filter_by(appointment_id=self.appointment_id).one()
        self.assertTrue(stored.booked)
        self.assertEqual(stored.user_id, winners[0])
        self.assertEqual(
            sorted(m["to"] for m in self.notifier.sent),
            sorted(["hello@smile.example.com", f"{winners[0]}@example.com"]),
        )
