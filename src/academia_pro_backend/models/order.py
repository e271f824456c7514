'''
Pydantic models for orders, payments and checkout.
'''
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..database.db_enums import OrderStatusEnum, PaymentMethodEnum, PaymentStatusEnum, ServiceCategoryEnum
from .user import UserSummary


class OrderCreate(BaseModel):
    """
    Checkout form. Price, tutor and delivery date are derived from the service.
    """
    service_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    payment_method: PaymentMethodEnum = PaymentMethodEnum.CARD


class PaymentRetry(BaseModel):
    payment_method: PaymentMethodEnum = PaymentMethodEnum.CARD


class OrderStatusUpdate(BaseModel):
    status: OrderStatusEnum


class OrderServiceSummary(BaseModel):
    id: UUID
    title: str
    category: ServiceCategoryEnum

    model_config = ConfigDict(from_attributes=True)


class PaymentRead(BaseModel):
    id: UUID
    order_id: UUID
    student_id: UUID
    amount: Decimal
    payment_method: PaymentMethodEnum
    status: PaymentStatusEnum
    transaction_reference: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: UUID
    student_id: UUID
    service_id: UUID
    tutor_id: UUID
    title: str
    description: Optional[str] = None
    price: Decimal
    status: OrderStatusEnum
    delivery_date: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderDetailRead(OrderRead):
    """Order with the service and both parties eager-loaded."""
    service: OrderServiceSummary
    tutor: UserSummary
    student: UserSummary


class OrderPlacementResult(BaseModel):
    order: OrderRead
    payment: PaymentRead
    redirect_url: str
