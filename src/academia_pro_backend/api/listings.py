'''
API endpoints for tutor service listings.
'''
from typing import Annotated, Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status

from ..database import models as db_models
from ..database.db_enums import ServiceCategoryEnum
from ..models import service as service_models
from ..models import review as review_models
from ..services.security import verify_token_and_get_user
from ..services.listing_service import ListingService


class ListingsAPI:
    """
    Browse and detail endpoints are public; management requires a token.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/services",
            tags=["Services"]
        )
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.browse,
                methods=["GET"],
                response_model=List[service_models.ServiceWithTutorRead])

        # registered before "/{service_id}" so "mine" is not parsed as an id
        self.router.add_api_route(
                "/mine",
                self.list_mine,
                methods=["GET"],
                response_model=List[service_models.ServiceRead])

        self.router.add_api_route(
                "/{service_id}",
                self.get_detail,
                methods=["GET"],
                response_model=service_models.ServiceDetailRead)

        self.router.add_api_route(
                "/{service_id}/reviews",
                self.list_reviews,
                methods=["GET"],
                response_model=List[review_models.ReviewRead])

        self.router.add_api_route(
                "/",
                self.create_service,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=service_models.ServiceRead)

        self.router.add_api_route(
                "/{service_id}",
                self.update_service,
                methods=["PATCH"],
                response_model=service_models.ServiceRead)

        self.router.add_api_route(
                "/{service_id}/toggle",
                self.toggle_active,
                methods=["POST"],
                response_model=service_models.ServiceToggleResult)

    async def browse(
        self,
        listing_service: Annotated[ListingService, Depends(ListingService)],
        category: Optional[ServiceCategoryEnum] = None,
        search: Optional[str] = None
    ) -> List[Any]:
        """Active services, optionally filtered by category and search text."""
        return await listing_service.browse(category=category, search=search)

    async def list_mine(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        listing_service: Annotated[ListingService, Depends(ListingService)]
    ) -> List[Any]:
        return await listing_service.list_for_tutor(current_user)

    async def get_detail(
        self,
        service_id: UUID,
        listing_service: Annotated[ListingService, Depends(ListingService)]
    ) -> Any:
        return await listing_service.get_service_detail(service_id)

    async def list_reviews(
        self,
        service_id: UUID,
        listing_service: Annotated[ListingService, Depends(ListingService)],
        limit: Annotated[int, Query(ge=1, le=100)] = 10
    ) -> List[Any]:
        return await listing_service.list_reviews_for_service(service_id, limit=limit)

    async def create_service(
        self,
        service_data: service_models.ServiceCreate,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        listing_service: Annotated[ListingService, Depends(ListingService)]
    ) -> Any:
        """Creates a new listing. Restricted to tutors."""
        return await listing_service.create_service(service_data, current_user)

    async def update_service(
        self,
        service_id: UUID,
        service_data: service_models.ServiceUpdate,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        listing_service: Annotated[ListingService, Depends(ListingService)]
    ) -> Any:
        """Updates a listing. Restricted to the owning tutor."""
        return await listing_service.update_service(service_id, service_data, current_user)

    async def toggle_active(
        self,
        service_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        listing_service: Annotated[ListingService, Depends(ListingService)]
    ) -> Any:
        """Enables or disables a listing (owning tutor or admin)."""
        return await listing_service.toggle_active(service_id, current_user)

listings_api = ListingsAPI()
router = listings_api.router
