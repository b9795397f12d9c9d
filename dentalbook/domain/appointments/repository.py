"""Appointment repository - Database operations for appointment slots"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Practice, Review


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: str) -> Optional[Appointment]:
        """Point lookup by id"""
        return db.query(Appointment).filter(Appointment.appointment_id == appointment_id).first()

    @staticmethod
    def get_appointment_with_practice(db: Session, appointment_id: str) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.practice))
            .filter(Appointment.appointment_id == appointment_id)
            .first()
        )

    @staticmethod
    def list_appointments(
        db: Session,
        practice_id: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        booked: Optional[bool] = None,
    ) -> list[Appointment]:
        """List appointments matching simple filters, earliest first"""
        query = db.query(Appointment)

        if practice_id:
            query = query.filter(Appointment.practice_id == practice_id)
        if start_time:
            query = query.filter(Appointment.start_time >= start_time)
        if end_time:
            query = query.filter(Appointment.start_time < end_time)
        if booked is not None:
            query = query.filter(Appointment.booked.is_(booked))

        return query.order_by(Appointment.start_time, Appointment.appointment_id).all()

    @staticmethod
    def get_practice_appointments(db: Session, practice_id: str) -> list[Appointment]:
        """Every appointment a practice has, past ones included"""
        return (
            db.query(Appointment)
            .filter(Appointment.practice_id == practice_id)
            .order_by(Appointment.start_time, Appointment.appointment_id)
            .all()
        )

    @staticmethod
    def get_appointments_between(
        db: Session, practice_id: str, range_start: datetime, range_end: datetime
    ) -> list[Appointment]:
        """Appointments of a practice starting in [range_start, range_end)"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.practice_id == practice_id,
                Appointment.start_time >= range_start,
                Appointment.start_time < range_end,
            )
            .order_by(Appointment.start_time, Appointment.appointment_id)
            .all()
        )

    @staticmethod
    def create_appointment(db: Session, **appointment_data) -> Appointment:
        """Create a new appointment slot"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()

    @staticmethod
    def mark_booked(db: Session, appointment_id: str, user_id: str) -> int:
        """
        Conditionally book a slot.

        Single UPDATE guarded by booked = false; the store decides the winner
        when two requests race. Returns the number of rows changed (0 or 1).
        """
        rowcount = (
            db.query(Appointment)
            .filter(Appointment.appointment_id == appointment_id, Appointment.booked.is_(False))
            .update(
                {
                    Appointment.booked: True,
                    Appointment.user_id: user_id,
                    Appointment.updated_at: func.now(),
                },
                synchronize_session=False,
            )
        )
        db.commit()
        return rowcount

    @staticmethod
    def search_candidates(
        db: Session,
        now: datetime,
        date_start: Optional[datetime] = None,
        date_end: Optional[datetime] = None,
        bounds: Optional[tuple[float, float, float, float]] = None,
    ) -> list[tuple[Appointment, Practice]]:
        """
        Unbooked future slots of verified practices, joined with their practice.

        bounds is (min_lat, max_lat, min_lon, max_lon) and only narrows the
        candidate set; exact distance filtering happens in the caller.
        """
        query = (
            db.query(Appointment, Practice)
            .join(Practice, Appointment.practice_id == Practice.practice_id)
            .filter(
                Appointment.booked.is_(False),
                Appointment.start_time > now,
                Practice.verified.is_(True),
            )
        )

        if date_start:
            query = query.filter(Appointment.start_time >= date_start)
        if date_end:
            query = query.filter(Appointment.start_time <= date_end)

        if bounds:
            min_lat, max_lat, min_lon, max_lon = bounds
            query = query.filter(
                Practice.latitude.isnot(None),
                Practice.longitude.isnot(None),
                Practice.latitude.between(min_lat, max_lat),
            )
            # A box crossing the antimeridian is left to the haversine check
            if min_lon >= -180 and max_lon <= 180:
                query = query.filter(Practice.longitude.between(min_lon, max_lon))

        return query.order_by(Appointment.start_time, Appointment.appointment_id).all()

    @staticmethod
    def get_upcoming(db: Session, now: datetime, limit: int = 5) -> list[Appointment]:
        """Next unbooked slots of verified practices"""
        return (
            db.query(Appointment)
            .join(Practice, Appointment.practice_id == Practice.practice_id)
            .options(joinedload(Appointment.practice))
            .filter(
                Appointment.booked.is_(False),
                Appointment.start_time > now,
                Practice.verified.is_(True),
            )
            .order_by(Appointment.start_time, Appointment.appointment_id)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_user_appointments(db: Session, user_id: str) -> list[Appointment]:
        """A patient's booked appointments, most recent first"""
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.practice), joinedload(Appointment.review))
            .filter(Appointment.user_id == user_id, Appointment.booked.is_(True))
            .order_by(Appointment.start_time.desc(), Appointment.appointment_id)
            .all()
        )

    @staticmethod
    def get_practice_rating(db: Session, practice_id: str) -> tuple[Optional[float], int]:
        """(average rating, review count) for a practice"""
        avg_rating, count = (
            db.query(func.avg(Review.rating), func.count(Review.review_id))
            .filter(Review.practice_id == practice_id)
            .one()
        )
        return (float(avg_rating) if avg_rating is not None else None), count
