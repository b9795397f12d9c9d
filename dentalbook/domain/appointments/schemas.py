"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...config import DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT
from ...shared.validators import normalize_postcode, validate_email, validate_uuid

SortBy = Literal["lowest_price", "highest_price", "closest", "soonest"]


def naive_local(v: datetime) -> datetime:
    """Keep the wall-clock reading and drop any offset - all times are local"""
    if isinstance(v, datetime) and v.tzinfo is not None:
        return v.replace(tzinfo=None)
    return v


class SlotCreate(BaseModel):
    """Schema for a practice publishing a new availability slot"""

    practiceId: str
    startTime: datetime
    endTime: datetime
    services: dict[str, float]
    title: Optional[str] = None

    @field_validator("practiceId")
    @classmethod
    def validate_practice_id(cls, v):
        if not validate_uuid(v):
            raise ValueError("Invalid practice ID")
        return v

    @field_validator("startTime", "endTime")
    @classmethod
    def strip_timezone(cls, v):
        return naive_local(v)

    @field_validator("title")
    @classmethod
    def blank_title_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


class BookingRequest(BaseModel):
    """Schema for a patient booking a slot"""

    userId: str
    email: str

    @field_validator("userId")
    @classmethod
    def validate_user_id(cls, v):
        if not v or not v.strip():
            raise ValueError("userId is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        if not v or not v.strip():
            raise ValueError("email is required")
        return validate_email(v)


class SearchFilters(BaseModel):
    """
    Validated search configuration.

    Every filter is optional; unknown keys are rejected. Distances are in
    kilometres. Coordinates take precedence over a postcode; a postcode is
    geocoded only when no coordinates are supplied.
    """

    model_config = ConfigDict(extra="forbid")

    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lon: Optional[float] = Field(default=None, ge=-180, le=180)
    postcode: Optional[str] = None
    max_distance: Optional[float] = Field(default=None, gt=0)
    appointment_type: Optional[str] = None
    price_min: Optional[float] = Field(default=None, ge=0)
    price_max: Optional[float] = Field(default=None, ge=0)
    date_start: Optional[datetime] = None
    date_end: Optional[datetime] = None
    sort_by: SortBy = "soonest"
    limit: int = Field(default=DEFAULT_SEARCH_LIMIT, ge=1, le=MAX_SEARCH_LIMIT)
    offset: int = Field(default=0, ge=0)

    @field_validator("postcode")
    @classmethod
    def clean_postcode(cls, v):
        return normalize_postcode(v)

    @field_validator("appointment_type")
    @classmethod
    def clean_type(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v

    @field_validator("date_start", "date_end")
    @classmethod
    def strip_timezone(cls, v):
        return naive_local(v)

    @model_validator(mode="after")
    def check_ranges(self):
        if (self.lat is None) != (self.lon is None):
            raise ValueError("lat and lon must be provided together")
        if self.price_min is not None and self.price_max is not None and self.price_min > self.price_max:
            raise ValueError("price_min cannot be greater than price_max")
        if self.date_start and self.date_end and self.date_start > self.date_end:
            raise ValueError("date_start cannot be after date_end")
        return self

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None


class PracticeSummary(BaseModel):
    practice_id: str
    practice_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    photo: Optional[str] = None
    address: Optional[dict] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    appointment_id: str
    practice_id: str
    user_id: Optional[str] = None
    title: str
    start_time: datetime
    end_time: datetime
    services: dict[str, float]
    booked: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SearchResult(AppointmentResponse):
    practice: PracticeSummary
    distance_km: Optional[float] = None
    matched_price: Optional[float] = None


class SearchResponse(BaseModel):
    results: list[SearchResult]
    total: int
    limit: int
    offset: int


class ReviewSummary(BaseModel):
    review_id: str
    rating: float
    comment: Optional[str] = None
    created_at: Optional[datetime] = None


class AppointmentDetail(AppointmentResponse):
    practice: PracticeSummary
    average_rating: Optional[float] = None
    review_count: int = 0


class UserAppointment(AppointmentResponse):
    practice: PracticeSummary
    review: Optional[ReviewSummary] = None


class BookingResponse(BaseModel):
    appointment: AppointmentResponse
    notifications: dict


class PositionedAppointmentResponse(BaseModel):
    appointment_id: str
    title: str
    start_time: datetime
    end_time: datetime
    booked: bool
    top: float
    height: float
    left: float
    width: float
    column: int
    columns: int


class DayLayoutResponse(BaseModel):
    day: date
    day_name: str
    open: Optional[str] = None
    close: Optional[str] = None
    appointments: list[PositionedAppointmentResponse]
