"""Practice domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import normalize_postcode, validate_email, validate_phone


class AddressSchema(BaseModel):
    line1: str
    line2: Optional[str] = None
    line3: Optional[str] = None
    city: str
    county: Optional[str] = None
    postcode: str
    country: str = "United Kingdom"

    @field_validator("postcode")
    @classmethod
    def clean_postcode(cls, v):
        normalized = normalize_postcode(v)
        if not normalized:
            raise ValueError("Postcode is required")
        return normalized


class OpeningHoursEntry(BaseModel):
    """One weekday - open/close are "HH:MM" or "closed" """

    dayName: str
    open: str = "closed"
    close: str = "closed"
    closed: bool = False


class PracticeRegister(BaseModel):
    """Schema for practice self-registration (starts unverified)"""

    practiceName: str = Field(min_length=1)
    email: str
    phoneNumber: Optional[str] = None
    photo: Optional[str] = None
    address: AddressSchema
    openingHours: list[OpeningHoursEntry]
    allowedTypes: list[str] = Field(default_factory=list)
    pricingMatrix: dict[str, float] = Field(default_factory=dict)

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        if not v or not v.strip():
            raise ValueError("email is required")
        return validate_email(v)

    @field_validator("phoneNumber")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)


class PracticeSettingsUpdate(BaseModel):
    """Partial settings update - only supplied fields change"""

    practiceName: Optional[str] = None
    email: Optional[str] = None
    phoneNumber: Optional[str] = None
    photo: Optional[str] = None
    openingHours: Optional[list[OpeningHoursEntry]] = None
    allowedTypes: Optional[list[str]] = None
    pricingMatrix: Optional[dict[str, float]] = None

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v)

    @field_validator("phoneNumber")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)


class OpeningHoursUpdate(BaseModel):
    openingHours: list[OpeningHoursEntry]


class PreferencesUpdate(BaseModel):
    enable_notifications: Optional[bool] = None
    enable_mobile_notifications: Optional[bool] = None
    enable_email_notifications: Optional[bool] = None
    notify_on_new_booking: Optional[bool] = None
    hide_delete_confirmation: Optional[bool] = None


class PreferencesResponse(BaseModel):
    practice_id: str
    enable_notifications: bool
    enable_mobile_notifications: bool
    enable_email_notifications: bool
    notify_on_new_booking: bool
    hide_delete_confirmation: bool
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PracticeResponse(BaseModel):
    """Schema for practice response"""

    practice_id: str
    practice_name: str
    email: str
    phone_number: Optional[str] = None
    photo: Optional[str] = None
    address: dict
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    opening_hours: list[dict]
    allowed_types: list[str]
    pricing_matrix: dict[str, float]
    verified: bool
    verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PracticeDetail(PracticeResponse):
    preferences: Optional[PreferencesResponse] = None


class NearbyPractice(PracticeResponse):
    distance_km: float


class OpeningHoursValidation(BaseModel):
    valid: bool
    opening_hours: list[dict]
    appointments_checked: int


class AnalyticsDay(BaseModel):
    day: date
    total: int
    booked: int
    available: int


class AnalyticsResponse(BaseModel):
    practice_id: str
    start: date
    end: date
    total_appointments: int
    booked_appointments: int
    available_appointments: int
    booking_rate: float
    daily: list[AnalyticsDay]


class ReviewAggregate(BaseModel):
    practice_id: str
    average_rating: Optional[float] = None
    review_count: int
