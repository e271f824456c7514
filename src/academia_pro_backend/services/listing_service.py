'''
Business logic for tutor service listings: browsing, detail pages and
listing management.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole, ServiceCategoryEnum
from ..models import service as service_models
from ..models import review as review_models
from ..models import user as user_models
from ..common.i18n import Translator, get_translator
from ..common.logger import log

RELATED_SERVICES_LIMIT = 3
DETAIL_REVIEWS_LIMIT = 10


class ListingService:
    """
    Service for everything related to the `services` table.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        translator: Annotated[Translator, Depends(get_translator)]
    ):
        self.db = db
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

    def _authorize_write_access(self, service: db_models.Services, current_user: db_models.Users, allow_admin: bool = False):
        """Owner tutor (and optionally admins) may modify a listing."""
        if allow_admin and current_user.role == UserRole.ADMIN.value:
            return
        if not (current_user.role == UserRole.TUTOR.value and service.tutor_id == current_user.id):
            log.warning(f"SECURITY: User {current_user.id} tried to modify service {service.id} owned by {service.tutor_id}.")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=self.translator.t("errors.forbidden")
            )

    # --- Internal Fetcher ---

    async def _get_service_by_id_internal(self, service_id: UUID) -> db_models.Services:
        """
        Fetches a single service with its tutor. Raises 404 if not found.
        """
        stmt = select(db_models.Services).options(
            selectinload(db_models.Services.tutor)
        ).filter(db_models.Services.id == service_id)
        result = await self.db.execute(stmt)
        service = result.scalars().first()
        if not service:
            log.warning(f"Tried to fetch non-existing service: {service_id}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=self.translator.t("services.not_found")
            )
        return service

    # --- Public Read Methods ---

    async def browse(
        self,
        category: Optional[ServiceCategoryEnum] = None,
        search: Optional[str] = None
    ) -> list[service_models.ServiceWithTutorRead]:
        """
        Active listings only, best rated first, optionally filtered by
        category and by a case-insensitive search over title/description.
        """
        log.info(f"Browsing services (category={category}, search={search!r})")
        stmt = select(db_models.Services).options(
            selectinload(db_models.Services.tutor)
        ).filter(db_models.Services.is_active.is_(True))

        if category is not None:
            stmt = stmt.filter(db_models.Services.category == ServiceCategoryEnum(category).value)

        if search and search.strip():
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.filter(or_(
                func.lower(db_models.Services.title).like(pattern),
                func.lower(db_models.Services.description).like(pattern)
            ))

        stmt = stmt.order_by(db_models.Services.rating.desc(), db_models.Services.created_at.desc())
        result = await self.db.execute(stmt)
        return [service_models.ServiceWithTutorRead.model_validate(s) for s in result.scalars().all()]

    async def get_service_detail(self, service_id: UUID) -> service_models.ServiceDetailRead:
        log.info(f"Fetching detail page for service {service_id}")
        service = await self._get_service_by_id_internal(service_id)

        reviews = await self.list_reviews_for_service(service_id, limit=DETAIL_REVIEWS_LIMIT)

        related_stmt = select(db_models.Services).filter(
            db_models.Services.category == service.category,
            db_models.Services.is_active.is_(True),
            db_models.Services.id != service.id
        ).order_by(db_models.Services.rating.desc()).limit(RELATED_SERVICES_LIMIT)
        related = (await self.db.execute(related_stmt)).scalars().all()

        return service_models.ServiceDetailRead(
            service=service_models.ServiceRead.model_validate(service),
            tutor=user_models.UserSummary.model_validate(service.tutor),
            reviews=reviews,
            related_services=[service_models.ServiceRead.model_validate(s) for s in related]
        )

    async def list_reviews_for_service(self, service_id: UUID, limit: int = DETAIL_REVIEWS_LIMIT) -> list[review_models.ReviewRead]:
        """Latest reviews of a service with the reviewer's name."""
        stmt = select(db_models.Reviews).options(
            selectinload(db_models.Reviews.student)
        ).filter(
            db_models.Reviews.service_id == service_id
        ).order_by(db_models.Reviews.created_at.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return [review_models.ReviewRead.model_validate(r) for r in result.scalars().all()]

    async def list_for_tutor(self, current_user: db_models.Users) -> list[service_models.ServiceRead]:
        """The tutor's own listings, active or not, newest first."""
        self._authorize(current_user, [UserRole.TUTOR], "services.tutors_only")
        stmt = select(db_models.Services).filter(
            db_models.Services.tutor_id == current_user.id
        ).order_by(db_models.Services.created_at.desc())
        result = await self.db.execute(stmt)
        return [service_models.ServiceRead.model_validate(s) for s in result.scalars().all()]

    async def list_all_with_tutors(self) -> list[service_models.ServiceWithTutorRead]:
        """Every listing with its tutor. Admin tables only."""
        stmt = select(db_models.Services).options(
            selectinload(db_models.Services.tutor)
        ).order_by(db_models.Services.created_at.desc())
        result = await self.db.execute(stmt)
        return [service_models.ServiceWithTutorRead.model_validate(s) for s in result.scalars().all()]

    # --- Public Write Methods ---

    async def create_service(self, data: service_models.ServiceCreate, current_user: db_models.Users) -> service_models.ServiceRead:
        log.info(f"User {current_user.id} attempting to create a service.")
        self._authorize(current_user, [UserRole.TUTOR], "services.tutors_only")

        new_service = db_models.Services(
            tutor_id=current_user.id,
            title=data.title,
            description=data.description,
            price=data.price,
            delivery_days=data.delivery_days,
            category=data.category.value,
            image_url=data.image_url,
            is_active=True
        )
        self.db.add(new_service)
        await self.db.flush()
        log.info(f"Created service {new_service.id} for tutor {current_user.id}.")
        return service_models.ServiceRead.model_validate(new_service)

    async def update_service(
        self,
        service_id: UUID,
        data: service_models.ServiceUpdate,
        current_user: db_models.Users
    ) -> service_models.ServiceRead:
        log.info(f"User {current_user.id} attempting to update service {service_id}.")
        service = await self._get_service_by_id_internal(service_id)
        self._authorize_write_access(service, current_user)

        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=self.translator.t("errors.no_fields")
            )

        for key, value in update_data.items():
            if key == 'category' and value is not None:
                setattr(service, key, value.value)
            else:
                setattr(service, key, value)

        self.db.add(service)
        await self.db.flush()
        return service_models.ServiceRead.model_validate(service)

    async def toggle_active(self, service_id: UUID, current_user: db_models.Users) -> service_models.ServiceToggleResult:
        """
        Flips `is_active` on one listing and returns the new value, so the
        caller can mirror it locally without re-fetching.
        """
        service = await self._get_service_by_id_internal(service_id)
        self._authorize_write_access(service, current_user, allow_admin=True)

        service.is_active = not service.is_active
        self.db.add(service)
        await self.db.flush()
        log.info(f"User {current_user.id} set service {service_id} is_active={service.is_active}.")
        return service_models.ServiceToggleResult(id=service.id, is_active=service.is_active)
