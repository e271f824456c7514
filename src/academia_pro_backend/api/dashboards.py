'''
API endpoints for the dashboards.
'''
from typing import Annotated, Any
from fastapi import APIRouter, Depends

from ..database import models as db_models
from ..models import dashboard as dashboard_models
from ..services.security import verify_token_and_get_user
from ..services.dashboard_service import DashboardService


class DashboardsAPI:
    def __init__(self):
        self.router = APIRouter(
            prefix="/dashboard",
            tags=["Dashboards"]
        )
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/student",
                self.student_dashboard,
                methods=["GET"],
                response_model=dashboard_models.StudentDashboard)

        self.router.add_api_route(
                "/tutor",
                self.tutor_dashboard,
                methods=["GET"],
                response_model=dashboard_models.TutorDashboard)

        self.router.add_api_route(
                "/admin",
                self.admin_dashboard,
                methods=["GET"],
                response_model=dashboard_models.AdminDashboard)

    async def student_dashboard(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        dashboard_service: Annotated[DashboardService, Depends(DashboardService)]
    ) -> Any:
        return await dashboard_service.get_student_dashboard(current_user)

    async def tutor_dashboard(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        dashboard_service: Annotated[DashboardService, Depends(DashboardService)]
    ) -> Any:
        return await dashboard_service.get_tutor_dashboard(current_user)

    async def admin_dashboard(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        dashboard_service: Annotated[DashboardService, Depends(DashboardService)]
    ) -> Any:
        return await dashboard_service.get_admin_dashboard(current_user)

dashboards_api = DashboardsAPI()
router = dashboards_api.router
