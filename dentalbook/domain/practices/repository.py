"""Practice repository - Database operations for practices"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Practice, PracticePreferences


class PracticeRepository:
    """Repository for practice database operations"""

    @staticmethod
    def get_practice(db: Session, practice_id: str) -> Optional[Practice]:
        return db.query(Practice).filter(Practice.practice_id == practice_id).first()

    @staticmethod
    def get_practice_with_preferences(db: Session, practice_id: str) -> Optional[Practice]:
        return (
            db.query(Practice)
            .options(joinedload(Practice.preferences))
            .filter(Practice.practice_id == practice_id)
            .first()
        )

    @staticmethod
    def get_practice_by_email(db: Session, email: str) -> Optional[Practice]:
        return db.query(Practice).filter(Practice.email == email).first()

    @staticmethod
    def create_practice(db: Session, **practice_data) -> Practice:
        """Create a practice together with its default preferences"""
        practice = Practice(**practice_data)
        practice.preferences = PracticePreferences()
        db.add(practice)
        db.commit()
        db.refresh(practice)
        return practice

    @staticmethod
    def get_pending(db: Session) -> list[Practice]:
        """Unverified practices, oldest registration first"""
        return (
            db.query(Practice)
            .filter(Practice.verified.is_(False))
            .order_by(Practice.created_at, Practice.practice_id)
            .all()
        )

    @staticmethod
    def get_approved(db: Session) -> list[Practice]:
        """Verified practices, most recently approved first"""
        return (
            db.query(Practice)
            .filter(Practice.verified.is_(True))
            .order_by(Practice.verified_at.desc(), Practice.practice_id)
            .all()
        )

    @staticmethod
    def get_verified_in_bounds(
        db: Session, bounds: tuple[float, float, float, float]
    ) -> list[Practice]:
        min_lat, max_lat, min_lon, max_lon = bounds
        query = db.query(Practice).filter(
            Practice.verified.is_(True),
            Practice.latitude.isnot(None),
            Practice.longitude.isnot(None),
            Practice.latitude.between(min_lat, max_lat),
        )
        if min_lon >= -180 and max_lon <= 180:
            query = query.filter(Practice.longitude.between(min_lon, max_lon))
        return query.all()

    @staticmethod
    def mark_verified(db: Session, practice: Practice, verified_at: datetime) -> Practice:
        practice.verified = True
        practice.verified_at = verified_at
        db.commit()
        db.refresh(practice)
        return practice

    @staticmethod
    def update_practice(db: Session, practice: Practice, **updates) -> Practice:
        """Update a practice with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(practice, key):
                setattr(practice, key, value)

        db.commit()
        db.refresh(practice)
        return practice

    @staticmethod
    def delete_practice(db: Session, practice: Practice) -> None:
        """Delete a practice with its appointments, reviews and preferences"""
        db.delete(practice)
        db.commit()

    @staticmethod
    def get_preferences(db: Session, practice_id: str) -> Optional[PracticePreferences]:
        return (
            db.query(PracticePreferences)
            .filter(PracticePreferences.practice_id == practice_id)
            .first()
        )

    @staticmethod
    def save_preferences(db: Session, preferences: PracticePreferences, **updates) -> PracticePreferences:
        for key, value in updates.items():
            if value is not None and hasattr(preferences, key):
                setattr(preferences, key, value)

        if preferences not in db:
            db.add(preferences)
        db.commit()
        db.refresh(preferences)
        return preferences
