'''
Tests for the OrderService: checkout, payment retries, order views and the
status lifecycle.
'''
import pytest
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4
from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from pprint import pprint

from src.academia_pro_backend.services.order_service import OrderService, order_redirect_url
from src.academia_pro_backend.database import models as db_models
from src.academia_pro_backend.database.db_enums import OrderStatusEnum, PaymentStatusEnum, PaymentMethodEnum
from src.academia_pro_backend.models import order as order_models
from src.academia_pro_backend.common.exceptions import PaymentDeclinedError
from tests.constants import (
    TEST_STUDENT_ID,
    TEST_TUTOR_ID,
    TEST_SERVICE_ID,
    TEST_INACTIVE_SERVICE_ID,
    TEST_IN_PROGRESS_ORDER_ID,
    TEST_COMPLETED_ORDER_ID,
    TEST_PENDING_ORDER_ID,
    TEST_UNRELATED_ORDER_ID,
    TEST_PRIOR_REVIEW_ORDER_ID,
)


def _checkout(service_id=TEST_SERVICE_ID, title="Essay on Moby Dick") -> order_models.OrderCreate:
    return order_models.OrderCreate(
        service_id=service_id,
        title=title,
        description="Focus on the whale as a symbol.",
        payment_method=PaymentMethodEnum.CARD
    )


@pytest.mark.anyio
class TestOrderServicePlaceOrder:

    async def test_place_order_creates_paid_in_progress_order(
        self,
        order_service: OrderService,
        mock_payment_gateway,
        test_student_orm: db_models.Users,
        db_session: AsyncSession
    ):
        result = await order_service.place_order(_checkout(), test_student_orm)

        print("\n--- Placed order ---")
        pprint(result.model_dump())

        order = result.order
        assert order.student_id == TEST_STUDENT_ID
        assert order.tutor_id == TEST_TUTOR_ID
        assert order.service_id == TEST_SERVICE_ID
        assert order.price == Decimal("75.00")
        assert order.status == OrderStatusEnum.IN_PROGRESS
        assert order.delivery_date - order.created_at == timedelta(days=3)

        payment = result.payment
        assert payment.order_id == order.id
        assert payment.amount == Decimal("75.00")
        assert payment.status == PaymentStatusEnum.COMPLETED
        assert payment.transaction_reference == "test_ref_0001"
        assert result.redirect_url == f"/orders/{order.id}?success=true"

        mock_payment_gateway.charge.assert_awaited_once()

        # Exactly one completed payment persisted for the new order
        payments = (await db_session.execute(
            select(db_models.Payments).filter(db_models.Payments.order_id == order.id)
        )).scalars().all()
        assert len(payments) == 1
        assert payments[0].status == PaymentStatusEnum.COMPLETED.value

    async def test_declined_payment_leaves_pending_order_without_payment(
        self,
        order_service: OrderService,
        mock_payment_gateway,
        test_student_orm: db_models.Users,
        db_session: AsyncSession
    ):
        mock_payment_gateway.charge.side_effect = PaymentDeclinedError("insufficient funds")

        with pytest.raises(HTTPException) as e:
            await order_service.place_order(_checkout(title="Declined essay"), test_student_orm)

        assert e.value.status_code == 402
        assert "insufficient funds" in e.value.detail

        order = (await db_session.execute(
            select(db_models.Orders).filter(db_models.Orders.title == "Declined essay")
        )).scalars().one()
        print(f"\n--- Order after decline: {order.id} ({order.status}) ---")
        assert order.status == OrderStatusEnum.PENDING.value

        payments = (await db_session.execute(
            select(db_models.Payments).filter(db_models.Payments.order_id == order.id)
        )).scalars().all()
        assert payments == []

    async def test_retry_after_decline_settles_the_order(
        self,
        order_service: OrderService,
        mock_payment_gateway,
        test_student_orm: db_models.Users,
        db_session: AsyncSession
    ):
        mock_payment_gateway.charge.side_effect = PaymentDeclinedError("card expired")
        with pytest.raises(HTTPException):
            await order_service.place_order(_checkout(title="Retry essay"), test_student_orm)

        order_id = (await db_session.execute(
            select(db_models.Orders.id).filter(db_models.Orders.title == "Retry essay")
        )).scalars().one()
        # The rollback expired every loaded object.
        await db_session.refresh(test_student_orm)

        mock_payment_gateway.charge.side_effect = None
        result = await order_service.retry_payment(order_id, order_models.PaymentRetry(), test_student_orm)

        assert result.order.status == OrderStatusEnum.IN_PROGRESS
        assert result.payment.status == PaymentStatusEnum.COMPLETED
        assert result.payment.transaction_reference == "test_ref_0001"

    async def test_retry_payment_of_in_progress_order_conflicts(
        self,
        order_service: OrderService,
        test_student_orm: db_models.Users
    ):
        with pytest.raises(HTTPException) as e:
            await order_service.retry_payment(TEST_IN_PROGRESS_ORDER_ID, order_models.PaymentRetry(), test_student_orm)
        assert e.value.status_code == 409

    async def test_retry_payment_of_seeded_pending_order(
        self,
        order_service: OrderService,
        test_student_orm: db_models.Users
    ):
        result = await order_service.retry_payment(
            TEST_PENDING_ORDER_ID,
            order_models.PaymentRetry(payment_method=PaymentMethodEnum.BANK_TRANSFER),
            test_student_orm
        )
        assert result.order.id == TEST_PENDING_ORDER_ID
        assert result.order.status == OrderStatusEnum.IN_PROGRESS
        assert result.payment.payment_method == PaymentMethodEnum.BANK_TRANSFER

    async def test_retry_payment_by_other_student_is_forbidden(
        self,
        order_service: OrderService,
        test_other_student_orm: db_models.Users
    ):
        with pytest.raises(HTTPException) as e:
            await order_service.retry_payment(TEST_PENDING_ORDER_ID, order_models.PaymentRetry(), test_other_student_orm)
        assert e.value.status_code == 403

    async def test_place_order_as_tutor_is_forbidden(
        self,
        order_service: OrderService,
        mock_payment_gateway,
        test_tutor_orm: db_models.Users
    ):
        with pytest.raises(HTTPException) as e:
            await order_service.place_order(_checkout(), test_tutor_orm)
        assert e.value.status_code == 403
        assert e.value.detail == "Only students can place orders."
        mock_payment_gateway.charge.assert_not_awaited()

    async def test_place_order_for_inactive_service(
        self,
        order_service: OrderService,
        test_student_orm: db_models.Users
    ):
        with pytest.raises(HTTPException) as e:
            await order_service.place_order(_checkout(service_id=TEST_INACTIVE_SERVICE_ID), test_student_orm)
        assert e.value.status_code == 400

    async def test_place_order_for_unknown_service(
        self,
        order_service: OrderService,
        test_student_orm: db_models.Users
    ):
        with pytest.raises(HTTPException) as e:
            await order_service.place_order(_checkout(service_id=uuid4()), test_student_orm)
        assert e.value.status_code == 404


@pytest.mark.anyio
class TestOrderServiceViews:

    async def test_list_orders_as_student(self, order_service: OrderService, test_student_orm: db_models.Users):
        orders = await order_service.list_orders_for_api(test_student_orm)

        print(f"\n--- Student has {len(orders)} orders ---")
        pprint([(o.title, o.status) for o in orders])

        assert [o.id for o in orders] == [TEST_PENDING_ORDER_ID, TEST_IN_PROGRESS_ORDER_ID, TEST_COMPLETED_ORDER_ID]
        assert all(o.student.id == TEST_STUDENT_ID for o in orders)
        assert orders[0].service.title == "Professional Essay Writing - Literature"

    async def test_list_orders_as_tutor(self, order_service: OrderService, test_tutor_orm: db_models.Users):
        orders = await order_service.list_orders_for_api(test_tutor_orm)
        assert {o.id for o in orders} == {
            TEST_PENDING_ORDER_ID, TEST_IN_PROGRESS_ORDER_ID, TEST_COMPLETED_ORDER_ID, TEST_PRIOR_REVIEW_ORDER_ID
        }
        assert TEST_UNRELATED_ORDER_ID not in [o.id for o in orders]

    async def test_list_orders_as_admin_sees_everything(self, order_service: OrderService, test_admin_orm: db_models.Users):
        orders = await order_service.list_orders_for_api(test_admin_orm)
        assert len(orders) == 5

    async def test_get_order_as_party(self, order_service: OrderService, test_tutor_orm: db_models.Users):
        order = await order_service.get_order_for_api(TEST_IN_PROGRESS_ORDER_ID, test_tutor_orm)
        assert order.id == TEST_IN_PROGRESS_ORDER_ID
        assert order.tutor.id == TEST_TUTOR_ID
        assert order.student.id == TEST_STUDENT_ID

    async def test_get_order_as_unrelated_user_is_forbidden(
        self,
        order_service: OrderService,
        test_other_student_orm: db_models.Users
    ):
        with pytest.raises(HTTPException) as e:
            await order_service.get_order_for_api(TEST_IN_PROGRESS_ORDER_ID, test_other_student_orm)
        assert e.value.status_code == 403

    async def test_get_unknown_order(self, order_service: OrderService, test_admin_orm: db_models.Users):
        with pytest.raises(HTTPException) as e:
            await order_service.get_order_for_api(uuid4(), test_admin_orm)
        assert e.value.status_code == 404

    async def test_list_payments_for_order(self, order_service: OrderService, test_student_orm: db_models.Users):
        payments = await order_service.list_payments_for_order(TEST_COMPLETED_ORDER_ID, test_student_orm)
        assert len(payments) == 1
        assert payments[0].status == PaymentStatusEnum.COMPLETED

        pending = await order_service.list_payments_for_order(TEST_PENDING_ORDER_ID, test_student_orm)
        assert pending == []


@pytest.mark.anyio
class TestOrderServiceStatus:

    async def test_tutor_completes_in_progress_order(self, order_service: OrderService, test_tutor_orm: db_models.Users):
        order = await order_service.update_status(TEST_IN_PROGRESS_ORDER_ID, OrderStatusEnum.COMPLETED, test_tutor_orm)
        assert order.status == OrderStatusEnum.COMPLETED

    async def test_student_cannot_complete_order(self, order_service: OrderService, test_student_orm: db_models.Users):
        with pytest.raises(HTTPException) as e:
            await order_service.update_status(TEST_IN_PROGRESS_ORDER_ID, OrderStatusEnum.COMPLETED, test_student_orm)
        assert e.value.status_code == 403

    async def test_student_cancels_pending_order(self, order_service: OrderService, test_student_orm: db_models.Users):
        order = await order_service.update_status(TEST_PENDING_ORDER_ID, OrderStatusEnum.CANCELLED, test_student_orm)
        assert order.status == OrderStatusEnum.CANCELLED

    async def test_admin_cancels_in_progress_order(self, order_service: OrderService, test_admin_orm: db_models.Users):
        order = await order_service.update_status(TEST_IN_PROGRESS_ORDER_ID, OrderStatusEnum.CANCELLED, test_admin_orm)
        assert order.status == OrderStatusEnum.CANCELLED

    async def test_completed_order_cannot_move_back(self, order_service: OrderService, test_tutor_orm: db_models.Users):
        with pytest.raises(HTTPException) as e:
            await order_service.update_status(TEST_COMPLETED_ORDER_ID, OrderStatusEnum.IN_PROGRESS, test_tutor_orm)
        assert e.value.status_code == 409
        assert e.value.detail == "This order cannot move from 'completed' to 'in_progress'."

    async def test_pending_order_cannot_skip_payment(self, order_service: OrderService, test_tutor_orm: db_models.Users):
        with pytest.raises(HTTPException) as e:
            await order_service.update_status(TEST_PENDING_ORDER_ID, OrderStatusEnum.IN_PROGRESS, test_tutor_orm)
        assert e.value.status_code == 409

    async def test_unrelated_tutor_cannot_change_status(self, order_service: OrderService, test_other_tutor_orm: db_models.Users):
        with pytest.raises(HTTPException) as e:
            await order_service.update_status(TEST_IN_PROGRESS_ORDER_ID, OrderStatusEnum.COMPLETED, test_other_tutor_orm)
        assert e.value.status_code == 403


class TestOrderRedirectUrl:

    def test_redirect_url_with_flags(self):
        order_id = uuid4()
        assert order_redirect_url(order_id, success="true") == f"/orders/{order_id}?success=true"

    def test_redirect_url_without_flags(self):
        order_id = uuid4()
        assert order_redirect_url(order_id) == f"/orders/{order_id}"
