import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate an opaque unique identifier"""
    return str(uuid.uuid4())


class Practice(Base):
    __tablename__ = "practices"

    practice_id = Column(String(36), primary_key=True, default=generate_id)
    practice_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone_number = Column(String(50), nullable=True)
    photo = Column(String(500), nullable=True)  # Public URL, uploaded elsewhere
    # {line1, line2, line3, city, county, postcode, country}
    address = Column(JSON, nullable=False)
    # Geocoded from address.postcode
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    # 7 entries: [{dayName, open, close}] - open/close "HH:MM" or "closed"
    opening_hours = Column(JSON, nullable=False)
    allowed_types = Column(JSON, default=list, nullable=False)  # ["checkup", "cleaning", ...]
    pricing_matrix = Column(JSON, default=dict, nullable=False)  # {"checkup": 50.0}
    verified = Column(Boolean, default=False, nullable=False)
    verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointments = relationship(
        "Appointment", back_populates="practice", cascade="all, delete-orphan"
    )
    preferences = relationship(
        "PracticePreferences",
        back_populates="practice",
        uselist=False,
        cascade="all, delete-orphan",
    )
    reviews = relationship("Review", back_populates="practice", cascade="all, delete-orphan")


class PracticePreferences(Base):
    __tablename__ = "practice_preferences"

    practice_id = Column(
        String(36), ForeignKey("practices.practice_id", ondelete="CASCADE"), primary_key=True
    )
    enable_notifications = Column(Boolean, default=True, nullable=False)
    enable_mobile_notifications = Column(Boolean, default=True, nullable=False)
    enable_email_notifications = Column(Boolean, default=True, nullable=False)
    notify_on_new_booking = Column(Boolean, default=True, nullable=False)
    # UI only - skip the "are you sure" dialog when deleting slots
    hide_delete_confirmation = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    practice = relationship("Practice", back_populates="preferences")


class Appointment(Base):
    __tablename__ = "appointments"

    appointment_id = Column(String(36), primary_key=True, default=generate_id)
    practice_id = Column(
        String(36),
        ForeignKey("practices.practice_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(36), nullable=True, index=True)  # Set once, when booked
    title = Column(String(255), nullable=False)
    # Naive local wall-clock times - no timezone conversion anywhere
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    services = Column(JSON, nullable=False)  # {"checkup": 50.0, "cleaning": 40.0}
    booked = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    practice = relationship("Practice", back_populates="appointments")
    review = relationship(
        "Review", back_populates="appointment", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_appointments_booked_start", "booked", "start_time"),)


class Review(Base):
    __tablename__ = "practice_reviews"

    review_id = Column(String(36), primary_key=True, default=generate_id)
    practice_id = Column(
        String(36),
        ForeignKey("practices.practice_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    appointment_id = Column(
        String(36),
        ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,  # One review per appointment
    )
    user_id = Column(String(36), nullable=False, index=True)  # Original reviewer
    rating = Column(Float, nullable=False)  # 0.5 - 5 in 0.5 steps
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    practice = relationship("Practice", back_populates="reviews")
    appointment = relationship("Appointment", back_populates="review")
