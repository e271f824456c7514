'''
Aggregated read models for the student, tutor and admin dashboards.
'''
from decimal import Decimal
from typing import Annotated
from fastapi import Depends, HTTPException, status

from ..database import models as db_models
from ..database.db_enums import UserRole, OrderStatusEnum
from ..models import dashboard as dashboard_models
from ..models import user as user_models
from ..common.i18n import Translator, get_translator
from ..common.logger import log
from .order_service import OrderService
from .listing_service import ListingService
from .user_service import UserService


class DashboardService:
    """
    Builds dashboards on top of the order, listing and user services.
    """
    def __init__(
        self,
        order_service: Annotated[OrderService, Depends(OrderService)],
        listing_service: Annotated[ListingService, Depends(ListingService)],
        user_service: Annotated[UserService, Depends(UserService)],
        translator: Annotated[Translator, Depends(get_translator)]
    ):
        self.order_service = order_service
        self.listing_service = listing_service
        self.user_service = user_service
        self.translator = translator

    def _require_role(self, current_user: db_models.Users, role: UserRole, detail_key: str):
        if current_user.role != role.value:
            log.warning(f"User {current_user.id} (Role: {current_user.role}) denied access to the {role.value} dashboard.")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=self.translator.t(detail_key)
            )

    async def get_student_dashboard(self, current_user: db_models.Users) -> dashboard_models.StudentDashboard:
        log.info(f"Building student dashboard for {current_user.id}")
        orders = await self.order_service.list_orders_for_api(current_user)
        open_statuses = (OrderStatusEnum.PENDING, OrderStatusEnum.IN_PROGRESS)
        stats = dashboard_models.StudentStats(
            total=len(orders),
            pending=sum(1 for o in orders if o.status in open_statuses),
            completed=sum(1 for o in orders if o.status == OrderStatusEnum.COMPLETED)
        )
        return dashboard_models.StudentDashboard(
            profile=user_models.UserRead.model_validate(current_user),
            orders=orders,
            stats=stats
        )

    async def get_tutor_dashboard(self, current_user: db_models.Users) -> dashboard_models.TutorDashboard:
        self._require_role(current_user, UserRole.TUTOR, "dashboard.tutor_only")
        log.info(f"Building tutor dashboard for {current_user.id}")

        services = await self.listing_service.list_for_tutor(current_user)
        orders = await self.order_service.list_orders_for_api(current_user)
        completed = [o for o in orders if o.status == OrderStatusEnum.COMPLETED]

        stats = dashboard_models.TutorStats(
            active_services=sum(1 for s in services if s.is_active),
            total_orders=len(orders),
            completed_orders=len(completed),
            total_earnings=sum((Decimal(o.price) for o in completed), Decimal('0'))
        )
        return dashboard_models.TutorDashboard(
            profile=user_models.UserRead.model_validate(current_user),
            services=services,
            orders=orders,
            stats=stats
        )

    async def get_admin_dashboard(self, current_user: db_models.Users) -> dashboard_models.AdminDashboard:
        self._require_role(current_user, UserRole.ADMIN, "dashboard.admin_only")
        log.info(f"Building admin dashboard for {current_user.id}")

        users = await self.user_service.list_users()
        return dashboard_models.AdminDashboard(
            users=[user_models.UserRead.model_validate(u) for u in users],
            services=await self.listing_service.list_all_with_tutors(),
            orders=await self.order_service.list_orders_for_api(current_user)
        )
