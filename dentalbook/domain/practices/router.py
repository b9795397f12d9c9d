"""Practice router - FastAPI endpoints for onboarding, settings and calendar"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import Practice
from ...services.geocoding_service import GeocodingService, get_geocoding_service
from ..appointments.schemas import DayLayoutResponse
from ..appointments.service import AppointmentService
from ..reviews.service import ReviewService
from .schemas import (
    AnalyticsResponse,
    NearbyPractice,
    OpeningHoursUpdate,
    OpeningHoursValidation,
    PracticeDetail,
    PracticeRegister,
    PracticeResponse,
    PracticeSettingsUpdate,
    PreferencesResponse,
    PreferencesUpdate,
    ReviewAggregate,
)
from .service import PracticeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/practices", tags=["Practices"])


def get_practice_service(db: Session = Depends(get_db)) -> PracticeService:
    """Dependency injection for PracticeService"""
    return PracticeService(db)


def to_response(practice: Practice) -> PracticeResponse:
    return PracticeResponse.model_validate(practice)


# ============================================================================
# ONBOARDING
# ============================================================================


@router.post("/register", response_model=PracticeResponse, status_code=201)
async def register_practice(
    data: PracticeRegister,
    service: PracticeService = Depends(get_practice_service),
    geocoder: GeocodingService = Depends(get_geocoding_service),
):
    """Register a practice. It stays hidden from patients until approved."""
    return to_response(await service.register_practice(data, geocoder))


@router.get("/pending", response_model=list[PracticeResponse])
async def get_pending_practices(service: PracticeService = Depends(get_practice_service)):
    """Practices awaiting approval"""
    return [to_response(p) for p in service.list_pending()]


@router.get("/approved", response_model=list[PracticeResponse])
async def get_approved_practices(service: PracticeService = Depends(get_practice_service)):
    """Approved practices, most recently approved first"""
    return [to_response(p) for p in service.list_approved()]


@router.get("/nearby", response_model=list[NearbyPractice])
async def get_nearby_practices(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    maxDistance: float = Query(10.0, description="Radius in kilometres"),
    service: PracticeService = Depends(get_practice_service),
):
    """Verified practices within maxDistance km, closest first"""
    return [
        NearbyPractice(**to_response(p).model_dump(), distance_km=round(distance, 2))
        for p, distance in service.find_nearby(lat, lon, maxDistance)
    ]


@router.post("/{practice_id}/approve", response_model=PracticeResponse)
async def approve_practice(
    practice_id: str,
    service: PracticeService = Depends(get_practice_service),
):
    return to_response(service.approve(practice_id))


@router.post("/{practice_id}/deny")
async def deny_practice(
    practice_id: str,
    service: PracticeService = Depends(get_practice_service),
):
    """Deny a pending practice and delete it"""
    return service.deny(practice_id)


# ============================================================================
# PRACTICE DETAILS & SETTINGS
# ============================================================================


@router.get("/{practice_id}", response_model=PracticeDetail)
async def get_practice(
    practice_id: str,
    service: PracticeService = Depends(get_practice_service),
):
    practice = service.get_practice_detail(practice_id)
    return PracticeDetail(
        **to_response(practice).model_dump(),
        preferences=(
            PreferencesResponse.model_validate(practice.preferences) if practice.preferences else None
        ),
    )


@router.patch("/{practice_id}/settings", response_model=PracticeResponse)
async def update_practice_settings(
    practice_id: str,
    data: PracticeSettingsUpdate,
    service: PracticeService = Depends(get_practice_service),
):
    """Update practice settings. Opening hours are checked against existing appointments."""
    return to_response(service.update_settings(practice_id, data))


@router.post("/{practice_id}/opening-hours/validate", response_model=OpeningHoursValidation)
async def validate_opening_hours(
    practice_id: str,
    data: OpeningHoursUpdate,
    service: PracticeService = Depends(get_practice_service),
):
    """Check new opening hours without saving them"""
    return service.validate_opening_hours(practice_id, data.openingHours)


@router.put("/{practice_id}/opening-hours", response_model=PracticeResponse)
async def update_opening_hours(
    practice_id: str,
    data: OpeningHoursUpdate,
    service: PracticeService = Depends(get_practice_service),
):
    return to_response(service.update_opening_hours(practice_id, data.openingHours))


@router.get("/{practice_id}/preferences", response_model=PreferencesResponse)
async def get_preferences(
    practice_id: str,
    service: PracticeService = Depends(get_practice_service),
):
    return PreferencesResponse.model_validate(service.get_preferences(practice_id))


@router.put("/{practice_id}/preferences", response_model=PreferencesResponse)
async def update_preferences(
    practice_id: str,
    data: PreferencesUpdate,
    service: PracticeService = Depends(get_practice_service),
):
    return PreferencesResponse.model_validate(service.update_preferences(practice_id, data))


# ============================================================================
# CALENDAR, ANALYTICS & RATINGS
# ============================================================================


@router.get("/{practice_id}/calendar", response_model=DayLayoutResponse)
async def get_day_calendar(
    practice_id: str,
    day: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    """Positioned appointments for one day of the practice calendar"""
    return AppointmentService(db).layout_practice_day(practice_id, day)


@router.get("/{practice_id}/calendar/week", response_model=list[DayLayoutResponse])
async def get_week_calendar(
    practice_id: str,
    day: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    """Monday-to-Sunday calendar for the week containing the given date"""
    return AppointmentService(db).layout_practice_week(practice_id, day)


@router.get("/{practice_id}/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    practice_id: str,
    start: date = Query(...),
    end: date = Query(...),
    service: PracticeService = Depends(get_practice_service),
):
    """Appointment counts for a past date range"""
    return service.get_analytics(practice_id, start, end)


@router.get("/{practice_id}/reviews/summary", response_model=ReviewAggregate)
async def get_review_summary(
    practice_id: str,
    db: Session = Depends(get_db),
):
    return ReviewService(db).get_summary(practice_id)
