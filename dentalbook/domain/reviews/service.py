"""Review service - Business logic for practice reviews"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import NotFoundError, PermissionDeniedError, ValidationError
from ...models import Practice, Review
from ..appointments.repository import AppointmentRepository
from .repository import ReviewRepository
from .schemas import ReviewCreate, ReviewUpdate

logger = logging.getLogger(__name__)

MIN_RATING = 0.5
MAX_RATING = 5.0


def validate_rating(rating: float) -> float:
    """Ratings run from 0.5 to 5 in half-star steps"""
    if not MIN_RATING <= rating <= MAX_RATING or (rating * 2) != int(rating * 2):
        raise ValidationError("Rating must be between 0.5 and 5 in steps of 0.5", field="rating")
    return float(rating)


class ReviewService:
    """Service layer for review business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()
        self.appointments = AppointmentRepository()

    def create_review(self, data: ReviewCreate, now: Optional[datetime] = None) -> Review:
        """
        Review a booked appointment once it has started.

        Raises:
            NotFoundError: unknown appointment
            PermissionDeniedError: appointment not booked by this user
            ValidationError: appointment not yet started, already reviewed,
                or rating out of range
        """
        rating = validate_rating(data.rating)

        appointment = self.appointments.get_appointment(self.db, data.appointmentId)
        if not appointment:
            raise NotFoundError("Appointment", data.appointmentId)
        if not appointment.booked or appointment.user_id != data.userId:
            raise PermissionDeniedError("Only the patient who booked this appointment can review it")
        if (now or datetime.now()) < appointment.start_time:
            raise ValidationError("Appointments can only be reviewed after they have taken place")
        if self.repo.get_review_for_appointment(self.db, appointment.appointment_id):
            raise ValidationError("This appointment has already been reviewed", field="appointment_id")

        review = self.repo.create_review(
            self.db,
            practice_id=appointment.practice_id,
            appointment_id=appointment.appointment_id,
            user_id=data.userId,
            rating=rating,
            comment=data.comment,
        )
        logger.info(f"⭐ Review {review.review_id} ({rating}) for practice {review.practice_id}")
        return review

    def update_review(self, review_id: str, data: ReviewUpdate) -> Review:
        review = self.repo.get_review(self.db, review_id)
        if not review:
            raise NotFoundError("Review", review_id)
        if review.user_id != data.userId:
            raise PermissionDeniedError("Only the original reviewer can edit this review")

        updates = {}
        if data.rating is not None:
            updates["rating"] = validate_rating(data.rating)
        if data.comment is not None:
            updates["comment"] = data.comment.strip()

        return self.repo.update_review(self.db, review, **updates)

    def list_reviews(
        self,
        practice_id: Optional[str] = None,
        appointment_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> list[Review]:
        return self.repo.list_reviews(self.db, practice_id, appointment_id, user_id)

    def get_summary(self, practice_id: str) -> dict:
        if not self.db.query(Practice).filter(Practice.practice_id == practice_id).first():
            raise NotFoundError("Practice", practice_id)
        average, count = self.repo.get_summary(self.db, practice_id)
        return {"practice_id": practice_id, "average_rating": average, "review_count": count}
