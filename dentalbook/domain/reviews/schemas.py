"""Review domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class ReviewCreate(BaseModel):
    """Schema for a patient reviewing a past appointment"""

    appointmentId: str
    userId: str
    rating: float
    comment: Optional[str] = None

    @field_validator("comment")
    @classmethod
    def blank_comment_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


class ReviewUpdate(BaseModel):
    """Schema for the original reviewer editing their review"""

    userId: str
    rating: Optional[float] = None
    comment: Optional[str] = None


class ReviewResponse(BaseModel):
    """Schema for review response"""

    review_id: str
    practice_id: str
    appointment_id: str
    user_id: str
    rating: float
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
