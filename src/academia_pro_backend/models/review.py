'''
Pydantic models for reviews.
'''
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .user import UserSummary


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ReviewRead(BaseModel):
    id: UUID
    order_id: UUID
    service_id: UUID
    student_id: UUID
    tutor_id: UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    student: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewSubmissionResult(BaseModel):
    review: ReviewRead
    service_rating: Optional[float] = None
    total_reviews: int
    redirect_url: str
