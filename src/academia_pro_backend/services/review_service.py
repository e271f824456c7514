'''

'''
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole, OrderStatusEnum
from ..models import review as review_models
from ..common.i18n import Translator, get_translator
from ..common.logger import log
from .order_service import order_redirect_url


def average_rating(ratings: list[int]) -> Optional[Decimal]:
    """Mean of the ratings rounded half-up to one decimal, or None if empty."""
    if not ratings:
        return None
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return mean.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)


class ReviewService:
    """
    Service for submitting reviews and keeping the tutor's aggregate
    rating on their listings in sync.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        translator: Annotated[Translator, Depends(get_translator)]
    ):
        self.db = db
        self.translator = translator

    async def submit_review(
        self,
        order_id: UUID,
        data: review_models.ReviewCreate,
        current_user: db_models.Users
    ) -> review_models.ReviewSubmissionResult:
        log.info(f"User {current_user.id} submitting a {data.rating}-star review for order {order_id}")

        order = await self.db.get(db_models.Orders, order_id)
        if order is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=self.translator.t("orders.not_found")
            )
        if not (current_user.role == UserRole.STUDENT.value and order.student_id == current_user.id):
            log.warning(f"SECURITY: User {current_user.id} tried to review order {order_id} of student {order.student_id}.")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=self.translator.t("errors.forbidden")
            )
        if order.status != OrderStatusEnum.COMPLETED.value:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=self.translator.t("reviews.not_completed")
            )

        existing = await self.db.execute(
            select(db_models.Reviews.id).filter(db_models.Reviews.order_id == order_id)
        )
        if existing.scalars().first() is not None:
            log.warning(f"Duplicate review rejected for order {order_id}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=self.translator.t("reviews.duplicate")
            )

        review = db_models.Reviews(
            order_id=order.id,
            service_id=order.service_id,
            student_id=current_user.id,
            tutor_id=order.tutor_id,
            rating=data.rating,
            comment=data.comment
        )
        self.db.add(review)
        await self.db.flush()

        rating, total = await self.recompute_tutor_rating(order.tutor_id)
        await self.db.refresh(review, ['student'])

        return review_models.ReviewSubmissionResult(
            review=review_models.ReviewRead.model_validate(review),
            service_rating=float(rating) if rating is not None else None,
            total_reviews=total,
            redirect_url=order_redirect_url(order.id, review="submitted")
        )

    async def recompute_tutor_rating(self, tutor_id: UUID) -> tuple[Optional[Decimal], int]:
        """
        Overwrites `rating` and `total_reviews` on every listing of the tutor
        with the mean over all of the tutor's reviews. Skipped when the
        tutor has no reviews.
        """
        result = await self.db.execute(
            select(db_models.Reviews.rating).filter(db_models.Reviews.tutor_id == tutor_id)
        )
        ratings = list(result.scalars().all())
        rating = average_rating(ratings)
        if rating is None:
            log.info(f"Tutor {tutor_id} has no reviews; rating left untouched.")
            return None, 0

        await self.db.execute(
            update(db_models.Services)
            .where(db_models.Services.tutor_id == tutor_id)
            .values(rating=rating, total_reviews=len(ratings))
            .execution_options(synchronize_session="fetch")
        )
        log.info(f"Tutor {tutor_id} rating set to {rating} over {len(ratings)} reviews.")
        return rating, len(ratings)
