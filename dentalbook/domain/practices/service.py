"""Practice service - Business logic for practice onboarding and settings"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...errors import NotFoundError, ValidationError
from ...models import Practice, PracticePreferences
from ...services.geocoding_service import GeocodingService
from ...utils.calendar import day_bounds, validate_week_schedule
from ...utils.geo import bounding_box, haversine_km
from ..appointments.availability import validate_hours_change
from ..appointments.repository import AppointmentRepository
from .repository import PracticeRepository
from .schemas import PracticeRegister, PracticeSettingsUpdate, PreferencesUpdate

logger = logging.getLogger(__name__)


def schedule_to_dicts(schedule: Iterable) -> list[dict]:
    """Accept pydantic entries or plain dicts"""
    return [entry.model_dump() if hasattr(entry, "model_dump") else dict(entry) for entry in schedule]


def clean_allowed_types(allowed_types: Iterable[str]) -> list[str]:
    cleaned = []
    for name in allowed_types or []:
        name = (name or "").strip()
        if name and name not in cleaned:
            cleaned.append(name)
    return cleaned


def validate_pricing(pricing_matrix: dict, allowed_types: list[str]) -> dict:
    unknown = sorted(name for name in pricing_matrix if name not in allowed_types)
    if unknown:
        raise ValidationError(
            f"Priced service(s) not in allowed types: {', '.join(unknown)}", field="pricing_matrix"
        )
    for name, price in pricing_matrix.items():
        if price < 0:
            raise ValidationError(f"Price for '{name}' cannot be negative", field="pricing_matrix")
    return dict(pricing_matrix)


class PracticeService:
    """Service layer for practice business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PracticeRepository()
        self.appointments = AppointmentRepository()

    def get_practice(self, practice_id: str) -> Practice:
        practice = self.repo.get_practice(self.db, practice_id)
        if not practice:
            raise NotFoundError("Practice", practice_id)
        return practice

    def get_practice_detail(self, practice_id: str) -> Practice:
        practice = self.repo.get_practice_with_preferences(self.db, practice_id)
        if not practice:
            raise NotFoundError("Practice", practice_id)
        return practice

    # ------------------------------------------------------------------
    # Onboarding
    # ------------------------------------------------------------------

    async def register_practice(self, data: PracticeRegister, geocoder: GeocodingService) -> Practice:
        """
        Register a new, unverified practice.

        Validates the schedule, service types and pricing first, then
        geocodes the postcode. Default preferences are created alongside.
        """
        logger.info(f"📥 Registering practice: {data.practiceName} ({data.email})")

        opening_hours = validate_week_schedule(schedule_to_dicts(data.openingHours))

        allowed_types = clean_allowed_types(data.allowedTypes or list(data.pricingMatrix))
        if not allowed_types:
            raise ValidationError("At least one service type is required", field="allowed_types")
        pricing_matrix = validate_pricing(data.pricingMatrix, allowed_types)

        if self.repo.get_practice_by_email(self.db, data.email):
            raise ValidationError("A practice with this email is already registered", field="email")

        coords = await geocoder.geocode(data.address.postcode)

        practice = self.repo.create_practice(
            self.db,
            practice_name=data.practiceName.strip(),
            email=data.email,
            phone_number=data.phoneNumber,
            photo=data.photo,
            address=data.address.model_dump(),
            latitude=coords.latitude,
            longitude=coords.longitude,
            opening_hours=opening_hours,
            allowed_types=allowed_types,
            pricing_matrix=pricing_matrix,
            verified=False,
        )
        logger.info(f"✅ Practice {practice.practice_id} registered - awaiting approval")
        return practice

    def list_pending(self) -> list[Practice]:
        return self.repo.get_pending(self.db)

    def list_approved(self) -> list[Practice]:
        return self.repo.get_approved(self.db)

    def approve(self, practice_id: str, now: Optional[datetime] = None) -> Practice:
        practice = self.get_practice(practice_id)
        if practice.verified:
            return practice
        practice = self.repo.mark_verified(self.db, practice, now or datetime.now())
        logger.info(f"✅ Practice {practice_id} approved")
        return practice

    def deny(self, practice_id: str) -> dict:
        """Reject a pending practice; the practice and everything it owns is deleted"""
        practice = self.get_practice(practice_id)
        if practice.verified:
            raise ValidationError("Only pending practices can be denied", field="practice_id")
        self.repo.delete_practice(self.db, practice)
        logger.info(f"🗑️ Practice {practice_id} denied and removed")
        return {"message": "Practice denied", "practice_id": practice_id}

    def find_nearby(self, lat: float, lon: float, max_distance: float) -> list[tuple[Practice, float]]:
        """Verified practices within max_distance km, closest first"""
        if max_distance <= 0:
            raise ValidationError("max_distance must be positive", field="max_distance")

        candidates = self.repo.get_verified_in_bounds(self.db, bounding_box(lat, lon, max_distance))
        nearby = []
        for practice in candidates:
            distance = haversine_km(lat, lon, practice.latitude, practice.longitude)
            if distance <= max_distance:
                nearby.append((practice, distance))
        nearby.sort(key=lambda item: (item[1], item[0].practice_id))
        return nearby

    # ------------------------------------------------------------------
    # Settings & opening hours
    # ------------------------------------------------------------------

    def validate_opening_hours(self, practice_id: str, schedule: Iterable) -> dict:
        """
        Dry run of an opening-hours change.

        Raises:
            ValidationError / FormatError: malformed schedule
            ConflictError: existing appointments would fall outside the new hours
        """
        practice = self.get_practice(practice_id)
        normalized = validate_week_schedule(schedule_to_dicts(schedule))
        appointments = self.appointments.get_practice_appointments(self.db, practice_id)
        validate_hours_change(practice, normalized, appointments)
        return {"valid": True, "opening_hours": normalized, "appointments_checked": len(appointments)}

    def update_opening_hours(self, practice_id: str, schedule: Iterable) -> Practice:
        """Replace the weekly schedule; rejected whole if any appointment conflicts"""
        practice = self.get_practice(practice_id)
        normalized = self.validate_opening_hours(practice_id, schedule)["opening_hours"]
        practice = self.repo.update_practice(self.db, practice, opening_hours=normalized)
        logger.info(f"🕘 Opening hours updated for practice {practice_id}")
        return practice

    def update_settings(self, practice_id: str, data: PracticeSettingsUpdate) -> Practice:
        """Apply a partial settings update. Nothing is written unless every part is valid."""
        practice = self.get_practice(practice_id)
        updates = {}

        if data.practiceName is not None:
            if not data.practiceName.strip():
                raise ValidationError("Practice name cannot be empty", field="practice_name")
            updates["practice_name"] = data.practiceName.strip()

        if data.email is not None and data.email != practice.email:
            if not data.email:
                raise ValidationError("Email cannot be empty", field="email")
            if self.repo.get_practice_by_email(self.db, data.email):
                raise ValidationError("A practice with this email is already registered", field="email")
            updates["email"] = data.email

        if data.phoneNumber is not None:
            updates["phone_number"] = data.phoneNumber
        if data.photo is not None:
            updates["photo"] = data.photo

        allowed_types = practice.allowed_types
        if data.allowedTypes is not None:
            allowed_types = clean_allowed_types(data.allowedTypes)
            if not allowed_types:
                raise ValidationError("At least one service type is required", field="allowed_types")
            updates["allowed_types"] = allowed_types

        if data.pricingMatrix is not None:
            updates["pricing_matrix"] = validate_pricing(data.pricingMatrix, allowed_types)
        elif data.allowedTypes is not None:
            validate_pricing(practice.pricing_matrix or {}, allowed_types)

        if data.openingHours is not None:
            updates["opening_hours"] = self.validate_opening_hours(practice_id, data.openingHours)[
                "opening_hours"
            ]

        practice = self.repo.update_practice(self.db, practice, **updates)
        logger.info(f"⚙️ Settings updated for practice {practice_id}: {sorted(updates)}")
        return practice

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def get_preferences(self, practice_id: str) -> PracticePreferences:
        self.get_practice(practice_id)
        preferences = self.repo.get_preferences(self.db, practice_id)
        if not preferences:
            # Practices created before preferences existed get defaults on first read
            preferences = self.repo.save_preferences(
                self.db, PracticePreferences(practice_id=practice_id)
            )
        return preferences

    def update_preferences(self, practice_id: str, data: PreferencesUpdate) -> PracticePreferences:
        preferences = self.get_preferences(practice_id)
        return self.repo.save_preferences(self.db, preferences, **data.model_dump(exclude_none=True))

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def get_analytics(
        self, practice_id: str, start: date, end: date, today: Optional[date] = None
    ) -> dict:
        """Appointment totals and a per-day series for [start, end] (inclusive)"""
        today = today or date.today()
        if start > today or end > today:
            raise ValidationError("Unpopulated or future dates are not allowed", field="end")
        if start > end:
            raise ValidationError("Start date cannot be after end date", field="start")

        self.get_practice(practice_id)
        range_start, _ = day_bounds(start)
        _, range_end = day_bounds(end)
        appointments = self.appointments.get_appointments_between(
            self.db, practice_id, range_start, range_end
        )

        daily = {}
        current = start
        while current <= end:
            daily[current] = {"day": current, "total": 0, "booked": 0, "available": 0}
            current += timedelta(days=1)

        for appt in appointments:
            bucket = daily[appt.start_time.date()]
            bucket["total"] += 1
            bucket["booked" if appt.booked else "available"] += 1

        total = len(appointments)
        booked = sum(1 for a in appointments if a.booked)
        return {
            "practice_id": practice_id,
            "start": start,
            "end": end,
            "total_appointments": total,
            "booked_appointments": booked,
            "available_appointments": total - booked,
            "booking_rate": round(booked / total * 100, 1) if total else 0.0,
            "daily": list(daily.values()),
        }
