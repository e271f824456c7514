'''
API endpoints for Authentication: login, logout, signup and password reset.
'''
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from ..database import models as db_models
from ..services.auth_service import LoginService, PasswordResetService
from ..services.security import verify_token_and_get_user
from ..services.user_service import UserService
from ..models import token as token_models
from ..models import user as user_models
from ..common.logger import log

class AuthRoutes:
    """
    A class to encapsulate all authentication and user creation endpoints.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/auth",
            tags=["Authentication"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/login",
            self.login_for_access_token,
            methods=["POST"],
            response_model=token_models.Token,
            summary="Login for Access Token"
        )
        self.router.add_api_route(
            "/logout",
            self.logout,
            methods=["POST"],
            response_model=user_models.MessageResponse,
            summary="Invalidate all tokens of the current user"
        )
        self.router.add_api_route(
            "/signup",
            self.signup,
            methods=["POST"],
            response_model=user_models.UserRead,
            status_code=status.HTTP_201_CREATED,
            summary="Student or Tutor Signup"
        )
        self.router.add_api_route(
            "/forgot-password",
            self.forgot_password,
            methods=["POST"],
            response_model=user_models.MessageResponse,
            summary="Request a password reset link"
        )
        self.router.add_api_route(
            "/reset-password",
            self.reset_password,
            methods=["POST"],
            response_model=user_models.MessageResponse,
            summary="Set a new password with a reset token"
        )

    async def login_for_access_token(
        self,
        form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
        login_service: Annotated[LoginService, Depends(LoginService)]
    ):
        """
        Authenticates a user and returns an access token.
        Uses OAuth2PasswordRequestForm (username & password fields).
        """
        try:
            token = await login_service.login_user(form_data)
            return token
        except HTTPException as e:
            raise e
        except Exception as e:
            log.error(f"Unexpected error during login: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="An internal server error occurred during login.",
            )

    async def logout(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        login_service: Annotated[LoginService, Depends(LoginService)]
    ):
        await login_service.logout_user(current_user)
        return user_models.MessageResponse(message="Logged out.")

    async def signup(
        self,
        user_data: user_models.UserCreate,
        user_service: Annotated[UserService, Depends(UserService)]
    ):
        """
        Creates a new student or tutor account.
        """
        return await user_service.create_user(user_data)

    async def forgot_password(
        self,
        data: user_models.ForgotPasswordRequest,
        reset_service: Annotated[PasswordResetService, Depends(PasswordResetService)]
    ):
        await reset_service.request_reset(data)
        return user_models.MessageResponse(message="Password reset link sent. Please check your inbox.")

    async def reset_password(
        self,
        data: user_models.ResetPasswordRequest,
        reset_service: Annotated[PasswordResetService, Depends(PasswordResetService)]
    ):
        await reset_service.reset_password(data)
        return user_models.MessageResponse(message="Password updated successfully.")

# Create an instance of the class and export its router
auth_routes = AuthRoutes()
router = auth_routes.router
