'''
Pydantic models for the student, tutor and admin dashboards.
'''
from decimal import Decimal

from pydantic import BaseModel

from .user import UserRead
from .order import OrderDetailRead
from .service import ServiceRead, ServiceWithTutorRead


class StudentStats(BaseModel):
    total: int
    pending: int
    completed: int


class StudentDashboard(BaseModel):
    profile: UserRead
    orders: list[OrderDetailRead]
    stats: StudentStats


class TutorStats(BaseModel):
    active_services: int
    total_orders: int
    completed_orders: int
    total_earnings: Decimal


class TutorDashboard(BaseModel):
    profile: UserRead
    services: list[ServiceRead]
    orders: list[OrderDetailRead]
    stats: TutorStats


class AdminDashboard(BaseModel):
    users: list[UserRead]
    services: list[ServiceWithTutorRead]
    orders: list[OrderDetailRead]
