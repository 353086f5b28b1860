"""Account registration and login."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pathgen.auth import (
    dummy_password_hash,
    hash_password,
    needs_rehash,
    verify_password,
)
from pathgen.errors import AuthError, ConflictError, NotFoundError
from pathgen.models import User, UserMetrics

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


class AuthService:
    """Operations on user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def register(self, email: str, password: str) -> User:
        """Create a user with a hashed password and an empty metrics row."""
        if await self.get_by_email(email):
            raise ConflictError("User already exists", code="EMAIL_TAKEN")

        user = User(email=email, password_hash=hash_password(password))
        self.db.add(user)
        try:
            await self.db.flush()
            self.db.add(UserMetrics(user_id=user.id))
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await self.db.rollback()
            raise ConflictError("User already exists", code="EMAIL_TAKEN")

        await self.db.refresh(user)
        logger.info("Registered user %s", user.id)
        return user

    async def login(self, email: str, password: str) -> User:
        """Check credentials; unknown email and bad password look the same."""
        user = await self.get_by_email(email)
        if user is None:
            # Pay the same bcrypt cost as a real account
            verify_password(password, dummy_password_hash())
            raise AuthError(INVALID_CREDENTIALS, code="INVALID_CREDENTIALS")
        if not verify_password(password, user.password_hash):
            raise AuthError(INVALID_CREDENTIALS, code="INVALID_CREDENTIALS")
        if needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)
            await self.db.commit()
        return user

    async def get_user(self, user_id: UUID) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

