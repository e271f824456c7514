'''
Tests for the DashboardService.
'''
import pytest
from decimal import Decimal
from fastapi import HTTPException
from pprint import pprint

from src.academia_pro_backend.services.dashboard_service import DashboardService
from src.academia_pro_backend.database import models as db_models
from tests.constants import (
    TEST_STUDENT_ID,
    TEST_TUTOR_ID,
    TEST_SERVICE_ID,
    TEST_INACTIVE_SERVICE_ID,
    TEST_PENDING_ORDER_ID,
)


@pytest.mark.anyio
class TestDashboardService:

    async def test_student_dashboard(self, dashboard_service: DashboardService, test_student_orm: db_models.Users):
        dashboard = await dashboard_service.get_student_dashboard(test_student_orm)

        print("\n--- Student dashboard stats ---")
        pprint(dashboard.stats.model_dump())

        assert dashboard.profile.id == TEST_STUDENT_ID
        assert dashboard.stats.total == 3
        assert dashboard.stats.pending == 2
        assert dashboard.stats.completed == 1
        # Newest first
        assert dashboard.orders[0].id == TEST_PENDING_ORDER_ID
        assert dashboard.orders[0].service.title == "Professional Essay Writing - Literature"

    async def test_tutor_dashboard(self, dashboard_service: DashboardService, test_tutor_orm: db_models.Users):
        dashboard = await dashboard_service.get_tutor_dashboard(test_tutor_orm)

        print("\n--- Tutor dashboard stats ---")
        pprint(dashboard.stats.model_dump())

        assert dashboard.profile.id == TEST_TUTOR_ID
        assert {s.id for s in dashboard.services} == {TEST_SERVICE_ID, TEST_INACTIVE_SERVICE_ID}
        assert dashboard.stats.active_services == 1
        assert dashboard.stats.total_orders == 4
        assert dashboard.stats.completed_orders == 2
        assert dashboard.stats.total_earnings == Decimal("150.00")

    async def test_tutor_dashboard_as_student_is_forbidden(
        self,
        dashboard_service: DashboardService,
        test_student_orm: db_models.Users
    ):
        with pytest.raises(HTTPException) as e:
            await dashboard_service.get_tutor_dashboard(test_student_orm)
        assert e.value.status_code == 403
        assert e.value.detail == "Only tutors can access the tutor dashboard."

    async def test_admin_dashboard(self, dashboard_service: DashboardService, test_admin_orm: db_models.Users):
        dashboard = await dashboard_service.get_admin_dashboard(test_admin_orm)

        assert len(dashboard.users) == 5
        assert len(dashboard.services) == 4
        assert len(dashboard.orders) == 5
        assert all(s.tutor.full_name for s in dashboard.services)
        assert all(o.student.full_name for o in dashboard.orders)

    async def test_admin_dashboard_as_tutor_is_forbidden(
        self,
        dashboard_service: DashboardService,
        test_tutor_orm: db_models.Users
    ):
        with pytest.raises(HTTPException) as e:
            await dashboard_service.get_admin_dashboard(test_tutor_orm)
        assert e.value.status_code == 403
