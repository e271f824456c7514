'''
API endpoints for the current user's profile.
'''
from typing import Annotated
from fastapi import APIRouter, Depends, status, Response

from ..database import models as db_models
from ..models import user as user_models
from ..models import message as message_models
from ..services.security import verify_token_and_get_user
from ..services.user_service import UserService
from ..services.message_service import MessageService


class UsersAPI:
    """
    Profile endpoints, always scoped to the authenticated user.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/users",
            tags=["Users"]
        )
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/me",
                self.get_me,
                methods=["GET"],
                response_model=user_models.UserRead)

        self.router.add_api_route(
                "/me",
                self.update_me,
                methods=["PATCH"],
                response_model=user_models.UserRead)

        self.router.add_api_route(
                "/me/password",
                self.change_password,
                methods=["POST"],
                status_code=status.HTTP_204_NO_CONTENT)

        self.router.add_api_route(
                "/me/unread-messages",
                self.unread_messages,
                methods=["GET"],
                response_model=message_models.UnreadCount)

    async def get_me(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)]
    ):
        return user_models.UserRead.model_validate(current_user)

    async def update_me(
        self,
        data: user_models.UserUpdate,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        user_service: Annotated[UserService, Depends(UserService)]
    ):
        return await user_service.update_profile(data, current_user)

    async def change_password(
        self,
        data: user_models.PasswordChange,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        user_service: Annotated[UserService, Depends(UserService)]
    ):
        await user_service.change_password(data, current_user)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    async def unread_messages(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        message_service: Annotated[MessageService, Depends(MessageService)]
    ):
        return await message_service.unread_count(current_user)

users_api = UsersAPI()
router = users_api.router
