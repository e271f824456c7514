'''

'''
from typing import Annotated
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole
from ..common.logger import log
from ..common.i18n import Translator, get_translator
from ..common.security_utils import HashedPassword
from ..models import user as user_models


class UserService:
    """
    Service for profile lookups and the current user's own account.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        translator: Annotated[Translator, Depends(get_translator)]
    ):
        self.db = db
        self.translator = translator

    async def get_user_by_email(self, email: str) -> db_models.Users | None:
        log.info(f"Fetching user profile for email: {email}")
        try:
            stmt = select(db_models.Users).filter(db_models.Users.email == email.lower())
            result = await self.db.execute(stmt)
            return result.scalars().first()
        except Exception as e:
            log.error(f"Database error fetching user by email {email}: {e}", exc_info=True)
            raise

    async def get_user_by_id(self, user_id: UUID) -> db_models.Users | None:
        log.info(f"Fetching user profile for ID: {user_id}")
        try:
            return await self.db.get(db_models.Users, user_id)
        except Exception as e:
            log.error(f"Database error fetching user by ID {user_id}: {e}", exc_info=True)
            raise

    async def _get_user_by_email_with_password(self, email: str) -> db_models.Users | None:
        """ Fetches the user object including the password hash. """
        log.info(f"Fetching user with password for auth: {email}")
        return await self.get_user_by_email(email)

    async def list_users(self) -> list[db_models.Users]:
        """All users, newest first. Used by the admin tables."""
        stmt = select(db_models.Users).order_by(db_models.Users.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_user(self, data: user_models.UserCreate) -> user_models.UserRead:
        """
        Signs up a new student or tutor.
        Raises 409 if the email is already registered.
        """
        email = data.email.lower()
        log.info(f"Attempting to create {data.role} account for {email}")

        if await self.get_user_by_email(email):
            log.warning(f"Signup rejected: email {email} already exists.")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=self.translator.t("auth.email_taken")
            )

        new_user = db_models.Users(
            email=email,
            password=HashedPassword.get_hash(data.password),
            full_name=data.full_name,
            role=UserRole(data.role).value,
            is_active=True,
            token_version=0
        )
        self.db.add(new_user)
        await self.db.flush()
        log.info(f"Created user {new_user.id} ({new_user.role}).")
        return user_models.UserRead.model_validate(new_user)

    async def update_profile(self, data: user_models.UserUpdate, current_user: db_models.Users) -> user_models.UserRead:
        log.info(f"User {current_user.id} updating their profile.")
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=self.translator.t("errors.no_fields")
            )

        for key, value in update_data.items():
            setattr(current_user, key, value)

        self.db.add(current_user)
        await self.db.flush()
        return user_models.UserRead.model_validate(current_user)

    async def change_password(self, data: user_models.PasswordChange, current_user: db_models.Users) -> None:
        """
        Changes the password after checking the current one.
        Also bumps the token version so that other sessions are logged out.
        """
        log.info(f"User {current_user.id} changing their password.")
        if not HashedPassword.verify(data.current_password, current_user.password):
            log.warning(f"Password change rejected for user {current_user.id}: wrong current password.")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=self.translator.t("auth.wrong_password")
            )
        current_user.password = HashedPassword.get_hash(data.new_password)
        current_user.token_version = (current_user.token_version or 0) + 1
        self.db.add(current_user)
        await self.db.flush()

    async def bump_token_version(self, user: db_models.Users) -> int:
        """Invalidates every token issued to this user so far."""
        user.token_version = (user.token_version or 0) + 1
        self.db.add(user)
        await self.db.flush()
        log.info(f"Token version for user {user.id} is now {user.token_version}.")
        return user.token_version
