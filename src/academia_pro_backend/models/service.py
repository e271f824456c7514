'''
Pydantic models for tutor service listings.
'''
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..database.db_enums import ServiceCategoryEnum
from .user import UserSummary
from .review import ReviewRead


class ServiceBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0, decimal_places=2)
    delivery_days: int = Field(..., ge=1)
    category: ServiceCategoryEnum
    image_url: Optional[str] = None


class ServiceCreate(ServiceBase):
    """
    Payload for creating a listing. 'tutor_id' is taken from the token.
    """
    pass


class ServiceUpdate(BaseModel):
    """All fields optional for PATCH."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    delivery_days: Optional[int] = Field(None, ge=1)
    category: Optional[ServiceCategoryEnum] = None
    image_url: Optional[str] = None

    @model_validator(mode='after')
    def validate_required_fields_not_null(self) -> 'ServiceUpdate':
        """
        Fields may be left out, but only 'image_url' can be cleared with null.
        """
        for name in ('title', 'description', 'price', 'delivery_days', 'category'):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f'{name} cannot be null')
        return self


class ServiceRead(ServiceBase):
    id: UUID
    tutor_id: UUID
    rating: Decimal
    total_reviews: int
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ServiceWithTutorRead(ServiceRead):
    """A listing as it appears in browse results and admin tables."""
    tutor: UserSummary


class ServiceDetailRead(BaseModel):
    """Everything the service page needs in a single response."""
    service: ServiceRead
    tutor: UserSummary
    reviews: list[ReviewRead]
    related_services: list[ServiceRead]


class ServiceToggleResult(BaseModel):
    id: UUID
    is_active: bool
