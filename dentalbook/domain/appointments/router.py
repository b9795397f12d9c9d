"""Appointment router - FastAPI endpoints for slots, search and booking"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...config import BOOKING_RATE_LIMIT_RPM, DEFAULT_SEARCH_LIMIT, SEARCH_RATE_LIMIT_RPM
from ...database import get_db
from ...models import Appointment
from ...rate_limiter import create_rate_limiter
from ...services.geocoding_service import GeocodingService, get_geocoding_service
from ...services.notification_service import Notifier, get_notifier
from .booking import BookingService
from .schemas import (
    AppointmentDetail,
    AppointmentResponse,
    BookingRequest,
    BookingResponse,
    PracticeSummary,
    ReviewSummary,
    SearchResponse,
    SearchResult,
    SlotCreate,
    UserAppointment,
)
from .search import SearchService, build_filters
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])
users_router = APIRouter(prefix="/users", tags=["Appointments"])

rate_limit_search = create_rate_limiter(
    limit=SEARCH_RATE_LIMIT_RPM, window_seconds=60, key_prefix="search"
)
rate_limit_booking = create_rate_limiter(
    limit=BOOKING_RATE_LIMIT_RPM, window_seconds=60, key_prefix="booking"
)


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


def get_search_service(
    db: Session = Depends(get_db),
    geocoder: GeocodingService = Depends(get_geocoding_service),
) -> SearchService:
    """Dependency injection for SearchService"""
    return SearchService(db, geocoder)


def get_booking_service(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, notifier)


def to_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse.model_validate(appointment)


# ============================================================================
# SLOTS
# ============================================================================


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: SlotCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Create an availability slot inside the practice's opening hours"""
    return to_response(service.create_slot(data))


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    practiceId: Optional[str] = Query(None),
    start_time: Optional[datetime] = Query(None),
    end_time: Optional[datetime] = Query(None),
    booked: Optional[bool] = Query(None),
    service: AppointmentService = Depends(get_appointment_service),
):
    """List appointments, optionally filtered by practice, time range and booked state"""
    appointments = service.list_appointments(practiceId, start_time, end_time, booked)
    return [to_response(a) for a in appointments]


# ============================================================================
# SEARCH
# ============================================================================


@router.get("/search", response_model=SearchResponse)
async def search_appointments(
    lat: Optional[float] = Query(None),
    lon: Optional[float] = Query(None),
    postcode: Optional[str] = Query(None),
    maxDistance: Optional[float] = Query(None, description="Radius in kilometres"),
    appointmentType: Optional[str] = Query(None),
    priceMin: Optional[float] = Query(None),
    priceMax: Optional[float] = Query(None),
    dateStart: Optional[datetime] = Query(None),
    dateEnd: Optional[datetime] = Query(None),
    sortBy: str = Query("soonest"),
    limit: int = Query(DEFAULT_SEARCH_LIMIT),
    offset: int = Query(0),
    service: SearchService = Depends(get_search_service),
    _: None = Depends(rate_limit_search),
):
    """Search bookable slots by location, type, price and date"""
    filters = build_filters(
        lat=lat,
        lon=lon,
        postcode=postcode,
        max_distance=maxDistance,
        appointment_type=appointmentType,
        price_min=priceMin,
        price_max=priceMax,
        date_start=dateStart,
        date_end=dateEnd,
        sort_by=sortBy,
        limit=limit,
        offset=offset,
    )
    page = await service.search(filters)
    return SearchResponse(
        results=[
            SearchResult(
                **to_response(m.appointment).model_dump(),
                practice=PracticeSummary.model_validate(m.practice),
                distance_km=round(m.distance_km, 2) if m.distance_km is not None else None,
                matched_price=m.matched_price,
            )
            for m in page.results
        ],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/upcoming", response_model=list[AppointmentDetail])
async def get_upcoming_appointments(
    limit: int = Query(5, ge=1, le=50),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Next available slots across all verified practices"""
    return [
        AppointmentDetail(
            **to_response(a).model_dump(),
            practice=PracticeSummary.model_validate(a.practice),
        )
        for a in service.get_upcoming(limit)
    ]


@router.get("/{appointment_id}", response_model=AppointmentDetail)
async def get_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get a slot with its practice and the practice's rating"""
    appointment, average, count = service.get_appointment_detail(appointment_id)
    return AppointmentDetail(
        **to_response(appointment).model_dump(),
        practice=PracticeSummary.model_validate(appointment.practice),
        average_rating=average,
        review_count=count,
    )


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Delete a slot"""
    return service.delete_appointment(appointment_id)


# ============================================================================
# BOOKING
# ============================================================================


@router.post("/{appointment_id}/book", response_model=BookingResponse)
async def book_appointment(
    appointment_id: str,
    data: BookingRequest,
    service: BookingService = Depends(get_booking_service),
    _: None = Depends(rate_limit_booking),
):
    """Book a slot. Exactly one of several concurrent requests succeeds."""
    appointment, notifications = await service.book(appointment_id, data.userId, data.email)
    return BookingResponse(appointment=to_response(appointment), notifications=notifications)


@users_router.get("/{user_id}/appointments", response_model=list[UserAppointment])
async def get_user_appointments(
    user_id: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    """A patient's booked appointments with practice and any review they left"""
    return [
        UserAppointment(
            **to_response(a).model_dump(),
            practice=PracticeSummary.model_validate(a.practice),
            review=(
                ReviewSummary(
                    review_id=a.review.review_id,
                    rating=a.review.rating,
                    comment=a.review.comment,
                    created_at=a.review.created_at,
                )
                if a.review
                else None
            ),
        )
        for a in service.get_user_appointments(user_id)
    ]
