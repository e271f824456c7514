'''

'''
from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from ..common.security_utils import HashedPassword
from ..common.i18n import Translator, get_translator
from .security import JWTHandler, RESET_PURPOSE
from .user_service import UserService
from .mail_service import MailService
from ..database import models as db_models
from ..models import token as token_models
from ..models import user as user_models
from ..common.logger import log

class LoginService:
    """
    Service for handling user login, logout and authentication.
    Depends on the UserService to fetch user data.
    """
    def __init__(
        self,
        user_service: Annotated[UserService, Depends(UserService)],
        translator: Annotated[Translator, Depends(get_translator)]
    ):
        self.user_service = user_service
        self.translator = translator

    async def login_user(self, form_data: OAuth2PasswordRequestForm) -> token_models.Token:
        log.info(f"Attempting login for user: {form_data.username}")

        user = await self.user_service._get_user_by_email_with_password(form_data.username)

        if not user or not HashedPassword.verify(form_data.password, user.password):
            log.warning(f"Login failed for user: {form_data.username} - Incorrect email or password")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=self.translator.t("auth.incorrect_login"),
                headers={"WWW-Authenticate": "Bearer"},
            )

        if not user.is_active:
            log.warning(f"Login failed for user: {form_data.username} - User is inactive.")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=self.translator.t("auth.inactive_user")
            )

        access_token = JWTHandler.create_access_token(subject=user.email, version=user.token_version)
        log.info(f"Login successful for user: {form_data.username}")

        return token_models.Token(access_token=access_token, token_type="bearer")

    async def logout_user(self, current_user: db_models.Users) -> None:
        """Signs the user out everywhere by invalidating their issued tokens."""
        log.info(f"Logging out user {current_user.id}")
        await self.user_service.bump_token_version(current_user)


class PasswordResetService:
    """
    Forgot/reset password flow built on short-lived, purpose-scoped JWTs.
    """
    def __init__(
        self,
        user_service: Annotated[UserService, Depends(UserService)],
        mail_service: Annotated[MailService, Depends(MailService)],
        translator: Annotated[Translator, Depends(get_translator)]
    ):
        self.user_service = user_service
        self.mail_service = mail_service
        self.translator = translator

    async def request_reset(self, data: user_models.ForgotPasswordRequest) -> str:
        """
        Issues a reset token for a known email and hands it to the mail service.
        Returns the token so callers (tests, admin tooling) can inspect it.
        """
        log.info(f"Password reset requested for {data.email}")
        user = await self.user_service.get_user_by_email(data.email)
        if user is None:
            log.warning(f"Password reset requested for unknown email {data.email}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=self.translator.t("auth.no_account")
            )

        reset_token = JWTHandler.create_reset_token(user.email, version=user.token_version)
        await self.mail_service.send_password_reset(user.email, reset_token)
        return reset_token

    async def reset_password(self, data: user_models.ResetPasswordRequest) -> None:
        if data.password != data.confirm_password:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=self.translator.t("auth.passwords_mismatch")
            )
        if len(data.password) < 8:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=self.translator.t("auth.password_too_short")
            )

        invalid_token = HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=self.translator.t("auth.invalid_reset_token")
        )
        token_data = JWTHandler.decode_token(data.token)
        if token_data is None or token_data.purpose != RESET_PURPOSE:
            log.warning("Password reset attempted with an invalid token.")
            raise invalid_token

        user = await self.user_service.get_user_by_email(token_data.sub)
        # A used reset token is void once the version moves on.
        if user is None or not user.is_active or user.token_version != token_data.ver:
            log.warning(f"Password reset token for {token_data.sub} is no longer valid.")
            raise invalid_token

        user.password = HashedPassword.get_hash(data.password)
        await self.user_service.bump_token_version(user)
        log.info(f"Password reset completed for user {user.id}")
