'''
API endpoints for checkout, orders and reviews.
'''
from typing import Annotated, Any, List
from uuid import UUID
from fastapi import APIRouter, Depends, status

from ..database import models as db_models
from ..models import order as order_models
from ..models import review as review_models
from ..services.security import verify_token_and_get_user
from ..services.order_service import OrderService
from ..services.review_service import ReviewService


class OrdersAPI:
    """
    A class to encapsulate the order pipeline endpoints.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/orders",
            tags=["Orders"]
        )
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.list_orders,
                methods=["GET"],
                response_model=List[order_models.OrderDetailRead])

        self.router.add_api_route(
                "/",
                self.place_order,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=order_models.OrderPlacementResult)

        self.router.add_api_route(
                "/{order_id}",
                self.get_order,
                methods=["GET"],
                response_model=order_models.OrderDetailRead)

        self.router.add_api_route(
                "/{order_id}/status",
                self.update_status,
                methods=["PATCH"],
                response_model=order_models.OrderDetailRead)

        self.router.add_api_route(
                "/{order_id}/payment",
                self.retry_payment,
                methods=["POST"],
                response_model=order_models.OrderPlacementResult)

        self.router.add_api_route(
                "/{order_id}/payments",
                self.list_payments,
                methods=["GET"],
                response_model=List[order_models.PaymentRead])

        self.router.add_api_route(
                "/{order_id}/review",
                self.submit_review,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=review_models.ReviewSubmissionResult)

    async def list_orders(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        order_service: Annotated[OrderService, Depends(OrderService)]
    ) -> List[Any]:
        return await order_service.list_orders_for_api(current_user)

    async def place_order(
        self,
        order_data: order_models.OrderCreate,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        order_service: Annotated[OrderService, Depends(OrderService)]
    ) -> Any:
        """
        Checkout: creates the order, pays for it and starts it.
        """
        return await order_service.place_order(order_data, current_user)

    async def get_order(
        self,
        order_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        order_service: Annotated[OrderService, Depends(OrderService)]
    ) -> Any:
        return await order_service.get_order_for_api(order_id, current_user)

    async def update_status(
        self,
        order_id: UUID,
        status_data: order_models.OrderStatusUpdate,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        order_service: Annotated[OrderService, Depends(OrderService)]
    ) -> Any:
        return await order_service.update_status(order_id, status_data.status, current_user)

    async def retry_payment(
        self,
        order_id: UUID,
        payment_data: order_models.PaymentRetry,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        order_service: Annotated[OrderService, Depends(OrderService)]
    ) -> Any:
        """Pays for a pending order whose first payment attempt failed."""
        return await order_service.retry_payment(order_id, payment_data, current_user)

    async def list_payments(
        self,
        order_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        order_service: Annotated[OrderService, Depends(OrderService)]
    ) -> List[Any]:
        return await order_service.list_payments_for_order(order_id, current_user)

    async def submit_review(
        self,
        order_id: UUID,
        review_data: review_models.ReviewCreate,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        review_service: Annotated[ReviewService, Depends(ReviewService)]
    ) -> Any:
        return await review_service.submit_review(order_id, review_data, current_user)

orders_api = OrdersAPI()
router = orders_api.router
