"""Tests for practice reviews."""

from __future__ import annotations

import unittest
from datetime import datetime

from dentalbook.domain.reviews.schemas import ReviewCreate, ReviewUpdate
from dentalbook.domain.reviews.service import ReviewService
from dentalbook.errors import NotFoundError, PermissionDeniedError, ValidationError

from .helpers import MONDAY, add_appointment, add_practice, at, make_session_factory

AFTER_VISIT = datetime(2030, 1, 8, 9, 0)


class ReviewServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.addCleanup(self.db.close)
        self.practice = add_practice(self.db)
        self.visit = add_appointment(
            self.db, self.practice, at(MONDAY, "10:00"), at(MONDAY, "10:30"), booked=True, user_id="user-a"
        )
        self.service = ReviewService(self.db)

    def _create(self, rating: float = 4.5, user_id: str = "user-a", now: datetime = AFTER_VISIT):
        return self.service.create_review(
            ReviewCreate(
                appointmentId=self.visit.appointment_id, userId=user_id, rating=rating, comment=" Great "
            ),
            now=now,
        )

    def test_patient_reviews_past_visit(self) -> None:
        review = self._create()

        self.assertEqual(review.rating, 4.5)
        self.assertEqual(review.comment, "Great")
        self.assertEqual(review.practice_id, self.practice.practice_id)

    def test_only_booking_patient_may_review(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            self._create(user_id="user-b")

    def test_unbooked_slot_cannot_be_reviewed(self) -> None:
        open_slot = add_appointment(self.db, self.practice, at(MONDAY, "11:00"), at(MONDAY, "11:30"))

        with self.assertRaises(PermissionDeniedError):
            self.service.create_review(
                ReviewCreate(appointmentId=open_slot.appointment_id, userId="user-a", rating=3),
                now=AFTER_VISIT,
            )

    def test_cannot_review_before_visit(self) -> None:
        with self.assertRaises(ValidationError):
            self._create(now=datetime(2030, 1, 1))

    def test_one_review_per_appointment(self) -> None:
        self._create()

        with self.assertRaises(ValidationError):
            self._create(rating=2)

    def test_rating_range_and_steps(self) -> None:
        for rating in (0, 0.25, 4.75, 5.5, -1):
            with self.subTest(rating=rating):
                with self.assertRaises(ValidationError):
                    self._create(rating=rating)

    def test_unknown_appointment(self) -> None:
        with self.assertRaises(NotFoundError):
            self.service.create_review(
                ReviewCreate(appointmentId="missing", userId="user-a", rating=3), now=AFTER_VISIT
            )

    def test_update_by_original_reviewer(self) -> None:
        review = self._create()

        updated = self.service.update_review(review.review_id, ReviewUpdate(userId="user-a", rating=3.5))

        self.assertEqual(updated.rating, 3.5)
        self.assertEqual(updated.comment, "Great")

    def test_update_by_someone_else(self) -> None:
        review = self._create()

        with self.assertRaises(PermissionDeniedError):
            self.service.update_review(review.review_id, ReviewUpdate(userId="user-b", rating=1))

    def test_summary(self) -> None:
        self._create(rating=4.5)
        second = add_appointment(
            self.db, self.practice, at(MONDAY, "12:00"), at(MONDAY, "12:30"), booked=True, user_id="user-c"
        )
        self.service.create_review(
            ReviewCreate(appointmentId=second.appointment_id, userId="user-c", rating=3.5), now=AFTER_VISIT
        )

        summary = self.service.get_summary(self.practice.practice_id)

        self.assertEqual(summary["review_count"], 2)
        self.assertEqual(summary["average_rating"], 4.0)
        self.assertEqual(len(self.service.list_reviews(practice_id=self.practice.practice_id)), 2)
