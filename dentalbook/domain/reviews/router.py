"""Review router - FastAPI endpoints for practice reviews"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import ReviewCreate, ReviewResponse, ReviewUpdate
from .service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


@router.post("", response_model=ReviewResponse, status_code=201)
async def create_review(
    data: ReviewCreate,
    service: ReviewService = Depends(get_review_service),
):
    """Review a past appointment"""
    return ReviewResponse.model_validate(service.create_review(data))


@router.patch("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    data: ReviewUpdate,
    service: ReviewService = Depends(get_review_service),
):
    """Edit a review (original reviewer only)"""
    return ReviewResponse.model_validate(service.update_review(review_id, data))


@router.get("", response_model=list[ReviewResponse])
async def list_reviews(
    practiceId: Optional[str] = Query(None),
    appointmentId: Optional[str] = Query(None),
    userId: Optional[str] = Query(None),
    service: ReviewService = Depends(get_review_service),
):
    """List reviews by practice, appointment or reviewer"""
    reviews = service.list_reviews(practiceId, appointmentId, userId)
    return [ReviewResponse.model_validate(r) for r in reviews]
