'''

'''
from datetime import datetime, timedelta, timezone
from typing import Optional, Annotated
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from ..common.config import settings
from ..common.i18n import Translator, get_translator
from ..models.token import TokenPayload
from ..common.logger import log
from ..database import models as db_models
from .user_service import UserService

RESET_PURPOSE = "reset"

# --- JWT Handling ---
class JWTHandler:
    @staticmethod
    def create_access_token(
        subject: str,
        version: int = 0,
        expires_delta: Optional[timedelta] = None,
        purpose: Optional[str] = None
    ) -> str:
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        expire = datetime.now(timezone.utc) + expires_delta
        to_encode = {"sub": str(subject), "exp": expire, "ver": version}
        if purpose:
            to_encode["purpose"] = purpose
        encoded_jwt = jwt.encode(
            to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
        )
        return encoded_jwt

    @staticmethod
    def create_reset_token(subject: str, version: int = 0) -> str:
        return JWTHandler.create_access_token(
            subject,
            version=version,
            expires_delta=timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
            purpose=RESET_PURPOSE
        )

    @staticmethod
    def decode_token(token: str) -> TokenPayload | None:
        try:
            payload = jwt.decode(
                token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
            )
            token_data = TokenPayload(**payload)
            return token_data
        except (JWTError, ValueError) as e: # Catch Pydantic validation errors too
            log.warning(f"JWT decode/validation error: {e}")
            return None


async def get_user_from_token(token: str | None, user_service: UserService) -> db_models.Users | None:
    """
    Resolves an access token to an active user, or None.
    Shared by the HTTP dependency and the WebSocket endpoint.
    """
    if not token:
        return None

    token_data = JWTHandler.decode_token(token)
    if not token_data or not token_data.sub:
        log.warning("JWT decode failed or invalid token structure.")
        return None

    if token_data.purpose is not None:
        log.warning(f"Rejected a '{token_data.purpose}' token used as an access token.")
        return None

    user = await user_service.get_user_by_email(token_data.sub)

    if user is None:
        log.warning(f"User '{token_data.sub}' not found during token verification.")
        return None

    if not user.is_active:
        log.warning(f"User '{token_data.sub}' is not active.")
        return None

    if token_data.ver != user.token_version:
        log.warning(f"Stale token for user '{token_data.sub}' (ver {token_data.ver} != {user.token_version}).")
        return None

    return user

# --- JWT Verification Dependency Function ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

async def verify_token_and_get_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    user_service: Annotated[UserService, Depends(UserService)],
    translator: Annotated[Translator, Depends(get_translator)]
    ) -> db_models.Users:
    """
    Dependency to verify the bearer JWT and fetch the user it belongs to.
    """
    user = await get_user_from_token(token, user_service)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=translator.t("auth.invalid_credentials"),
            headers={"WWW-Authenticate": "Bearer"},
        )

    log.info(f"JWT verified successfully for user: {user.email} (Role: {user.role})")
    return user
