'''
Checkout and the order lifecycle.

Placing an order is split in two transactions: the order row is committed
as `pending` first, then the payment is inserted, charged, settled and the
order advanced to `in_progress` in a single second transaction. A failure
in the second step rolls all of it back, so a `pending` order never has a
payment row and a completed payment always belongs to an `in_progress`
order. The second step can be re-run with `retry_payment`.
'''
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Annotated
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole, OrderStatusEnum, PaymentStatusEnum, PaymentMethodEnum
from ..models import order as order_models
from ..common.exceptions import PaymentDeclinedError
from ..common.i18n import Translator, get_translator
from ..common.logger import log
from .payment_gateway import PaymentGateway, SimulatedPaymentGateway

# (current status, target status) -> roles allowed to make the move
STATUS_TRANSITIONS: dict[tuple[str, str], set[str]] = {
    (OrderStatusEnum.PENDING.value, OrderStatusEnum.CANCELLED.value): {UserRole.STUDENT.value, UserRole.TUTOR.value},
    (OrderStatusEnum.IN_PROGRESS.value, OrderStatusEnum.COMPLETED.value): {UserRole.TUTOR.value},
    (OrderStatusEnum.IN_PROGRESS.value, OrderStatusEnum.CANCELLED.value): {UserRole.TUTOR.value, UserRole.ADMIN.value},
}


def order_redirect_url(order_id: UUID, **flags: str) -> str:
    query = "&".join(f"{key}={value}" for key, value in flags.items())
    return f"/orders/{order_id}?{query}" if query else f"/orders/{order_id}"


class OrderService:
    """
    Service for checkout, order views and status transitions.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        payment_gateway: Annotated[PaymentGateway, Depends(SimulatedPaymentGateway)],
        translator: Annotated[Translator, Depends(get_translator)]
    ):
        self.db = db
        self.payment_gateway = payment_gateway
        self.translator = translator

    # --- Authorization Helpers ---

    def _authorize(self, current_user: db_models.Users, allowed_roles: list[UserRole], detail_key: str = "errors.forbidden"):
        allowed_role_values = [role.value for role in allowed_roles]
        if current_user.role not in allowed_role_values:
            log.warning(f"Unauthorized action by user {current_user.id} (Role: {current_user.role}). Required one of: {allowed_role_values}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=self.translator.t(detail_key)
            )

    def _authorize_read_access(self, order: db_models.Orders, current_user: db_models.Users):
        """The order's student, its tutor and admins may see an order."""
        if current_user.role == UserRole.ADMIN.value:
            return
        if current_user.id in (order.student_id, order.tutor_id):
            return
        log.warning(f"SECURITY: User {current_user.id} tried to read order {order.id} without permission.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=self.translator.t("errors.forbidden")
        )

    def _is_party(self, order: db_models.Orders, current_user: db_models.Users) -> bool:
        if current_user.role == UserRole.STUDENT.value:
            return order.student_id == current_user.id
        if current_user.role == UserRole.TUTOR.value:
            return order.tutor_id == current_user.id
        return current_user.role == UserRole.ADMIN.value

    # --- Internal Fetchers ---

    def _detail_query(self):
        return select(db_models.Orders).options(
            selectinload(db_models.Orders.service),
            selectinload(db_models.Orders.tutor),
            selectinload(db_models.Orders.student)
        )

    async def _get_order_by_id_internal(self, order_id: UUID) -> db_models.Orders:
        """
        Fetches a single order with service and both parties. Raises 404.
        """
        stmt = self._detail_query().filter(db_models.Orders.id == order_id)
        result = await self.db.execute(stmt)
        order = result.scalars().first()
        if not order:
            log.warning(f"Tried to fetch non-existing order: {order_id}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=self.translator.t("orders.not_found")
            )
        return order

    async def _get_payments_for_order(self, order_id: UUID) -> list[db_models.Payments]:
        stmt = select(db_models.Payments).filter(
            db_models.Payments.order_id == order_id
        ).order_by(db_models.Payments.created_at)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    # --- Checkout ---

    async def place_order(
        self,
        data: order_models.OrderCreate,
        current_user: db_models.Users
    ) -> order_models.OrderPlacementResult:
        """
        Turns a checkout submission into an `in_progress` order with a
        `completed` payment, or leaves a `pending` order and surfaces the error.
        """
        log.info(f"User {current_user.id} placing order for service {data.service_id}")
        self._authorize(current_user, [UserRole.STUDENT], "orders.students_only")

        service = await self.db.get(db_models.Services, data.service_id)
        if service is None:
            log.warning(f"Checkout for non-existing service {data.service_id}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=self.translator.t("services.not_found")
            )
        if not service.is_active:
            log.warning(f"Checkout for inactive service {data.service_id}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=self.translator.t("services.inactive")
            )

        # Step A: the order row, committed on its own.
        now = datetime.now(timezone.utc)
        order = db_models.Orders(
            student_id=current_user.id,
            service_id=service.id,
            tutor_id=service.tutor_id,
            title=data.title,
            description=data.description,
            price=service.price,
            status=OrderStatusEnum.PENDING.value,
            created_at=now,
            updated_at=now,
            delivery_date=now + timedelta(days=service.delivery_days)
        )
        self.db.add(order)
        await self.db.commit()
        log.info(f"Order {order.id} created as pending (price={order.price}).")

        # Step B: payment + status advance, all or nothing.
        payment = await self._settle_payment(order, current_user, data.payment_method)

        return order_models.OrderPlacementResult(
            order=order_models.OrderRead.model_validate(order),
            payment=order_models.PaymentRead.model_validate(payment),
            redirect_url=order_redirect_url(order.id, success="true")
        )

    async def retry_payment(
        self,
        order_id: UUID,
        data: order_models.PaymentRetry,
        current_user: db_models.Users
    ) -> order_models.OrderPlacementResult:
        """Re-runs the payment step for the student's own pending order."""
        log.info(f"User {current_user.id} retrying payment for order {order_id}")
        order = await self._get_order_by_id_internal(order_id)
        if not (current_user.role == UserRole.STUDENT.value and order.student_id == current_user.id):
            log.warning(f"SECURITY: User {current_user.id} tried to pay for order {order_id} of student {order.student_id}.")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=self.translator.t("errors.forbidden")
            )
        if order.status != OrderStatusEnum.PENDING.value:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=self.translator.t("orders.not_pending")
            )

        payment = await self._settle_payment(order, current_user, data.payment_method)
        return order_models.OrderPlacementResult(
            order=order_models.OrderRead.model_validate(order),
            payment=order_models.PaymentRead.model_validate(payment),
            redirect_url=order_redirect_url(order.id, success="true")
        )

    async def _settle_payment(
        self,
        order: db_models.Orders,
        current_user: db_models.Users,
        payment_method: PaymentMethodEnum
    ) -> db_models.Payments:
        order_id = order.id
        try:
            payment = db_models.Payments(
                order_id=order_id,
                student_id=current_user.id,
                amount=order.price,
                payment_method=PaymentMethodEnum(payment_method).value,
                status=PaymentStatusEnum.PENDING.value
            )
            self.db.add(payment)
            await self.db.flush()

            reference = await self.payment_gateway.charge(order_id, Decimal(order.price), payment.payment_method)

            payment.status = PaymentStatusEnum.COMPLETED.value
            payment.transaction_reference = reference
            order.status = OrderStatusEnum.IN_PROGRESS.value
            await self.db.commit()
        except PaymentDeclinedError as e:
            await self.db.rollback()
            log.warning(f"Payment for order {order_id} declined: {e.reason}. Order stays pending.")
            raise HTTPException(
                status_code=status.HTTP_402_PAYMENT_REQUIRED,
                detail=self.translator.t("orders.payment_declined", reason=e.reason)
            )
        except Exception as e:
            await self.db.rollback()
            log.error(f"Payment step failed for order {order_id}, order stays pending: {e}", exc_info=True)
            raise

        log.info(f"Order {order_id} paid ({payment.id}) and moved to in_progress.")
        return payment

    # --- Views ---

    async def get_order_for_api(self, order_id: UUID, current_user: db_models.Users) -> order_models.OrderDetailRead:
        log.info(f"User {current_user.id} requesting order {order_id}")
        order = await self._get_order_by_id_internal(order_id)
        self._authorize_read_access(order, current_user)
        return order_models.OrderDetailRead.model_validate(order)

    async def list_orders_for_api(self, current_user: db_models.Users) -> list[order_models.OrderDetailRead]:
        """
        Students see the orders they placed, tutors the orders placed with
        them, admins every order. Newest first.
        """
        log.info(f"User {current_user.id} (Role: {current_user.role}) requesting their orders.")
        stmt = self._detail_query().order_by(db_models.Orders.created_at.desc())

        if current_user.role == UserRole.STUDENT.value:
            stmt = stmt.filter(db_models.Orders.student_id == current_user.id)
        elif current_user.role == UserRole.TUTOR.value:
            stmt = stmt.filter(db_models.Orders.tutor_id == current_user.id)
        else:
            self._authorize(current_user, [UserRole.ADMIN])

        result = await self.db.execute(stmt)
        return [order_models.OrderDetailRead.model_validate(o) for o in result.scalars().all()]

    async def list_payments_for_order(self, order_id: UUID, current_user: db_models.Users) -> list[order_models.PaymentRead]:
        order = await self._get_order_by_id_internal(order_id)
        self._authorize_read_access(order, current_user)
        payments = await self._get_payments_for_order(order_id)
        return [order_models.PaymentRead.model_validate(p) for p in payments]

    # --- Lifecycle ---

    async def update_status(
        self,
        order_id: UUID,
        new_status: OrderStatusEnum,
        current_user: db_models.Users
    ) -> order_models.OrderDetailRead:
        order = await self._get_order_by_id_internal(order_id)
        target = OrderStatusEnum(new_status).value
        log.info(f"User {current_user.id} moving order {order_id} from {order.status} to {target}")

        if not self._is_party(order, current_user):
            log.warning(f"SECURITY: User {current_user.id} tried to change status of order {order_id}.")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=self.translator.t("errors.forbidden")
            )

        allowed_roles = STATUS_TRANSITIONS.get((order.status, target))
        if allowed_roles is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=self.translator.t("orders.illegal_transition", current=order.status, target=target)
            )
        if current_user.role not in allowed_roles:
            log.warning(f"SECURITY: Role {current_user.role} may not move order {order_id} to {target}.")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=self.translator.t("errors.forbidden")
            )

        order.status = target
        self.db.add(order)
        await self.db.flush()
        return order_models.OrderDetailRead.model_validate(order)
