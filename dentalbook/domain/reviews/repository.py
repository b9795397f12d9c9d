"""Review repository - Database operations for practice reviews"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Review


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def get_review(db: Session, review_id: str) -> Optional[Review]:
        return db.query(Review).filter(Review.review_id == review_id).first()

    @staticmethod
    def get_review_for_appointment(db: Session, appointment_id: str) -> Optional[Review]:
        return db.query(Review).filter(Review.appointment_id == appointment_id).first()

    @staticmethod
    def list_reviews(
        db: Session,
        practice_id: Optional[str] = None,
        appointment_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> list[Review]:
        """Reviews matching the given filters, newest first"""
        query = db.query(Review)
        if practice_id:
            query = query.filter(Review.practice_id == practice_id)
        if appointment_id:
            query = query.filter(Review.appointment_id == appointment_id)
        if user_id:
            query = query.filter(Review.user_id == user_id)
        return query.order_by(Review.created_at.desc(), Review.review_id).all()

    @staticmethod
    def create_review(db: Session, **review_data) -> Review:
        review = Review(**review_data)
        db.add(review)
        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def update_review(db: Session, review: Review, **updates) -> Review:
        for key, value in updates.items():
            if value is not None and hasattr(review, key):
                setattr(review, key, value)
        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def get_summary(db: Session, practice_id: str) -> tuple[Optional[float], int]:
        """(average rating, review count) for a practice"""
        avg_rating, count = (
            db.query(func.avg(Review.rating), func.count(Review.review_id))
            .filter(Review.practice_id == practice_id)
            .one()
        )
        return (round(float(avg_rating), 2) if avg_rating is not None else None), count
