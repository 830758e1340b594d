"""
BookBrief Backend — Authentication Service
============================================

What:  Signup, login, profile and user listing.
How:   Emails are compared lower-cased; passwords go through passlib;
       tokens come from app.security.

Login failure is deliberately uniform: an unknown email and a wrong
password produce the same 401 message.
"""

import logging
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import AuthenticationError, ConflictError
from app.models import User
from app.schemas.auth import LoginRequest, SignupRequest
from app.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    async def _find_by_email(self, db: AsyncSession, email: str):
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def signup(self, db: AsyncSession, data: SignupRequest) -> Tuple[User, str]:
        """
        Register a new account and issue its first token.

        Raises:
            ConflictError: email already registered (409)
        """
        if await self._find_by_email(db, data.email) is not None:
            raise ConflictError("Email already registered", context={"field": "email"})

        user = User(
            email=data.email.lower(),
            name=data.name,
            password_hash=hash_password(data.password),
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # concurrent signup with the same email won the unique index
            await db.rollback()
            raise ConflictError("Email already registered", context={"field": "email"})

        logger.info("User %s signed up", user.id)
        return user, create_access_token(user.id, user.email)

    async def login(self, db: AsyncSession, data: LoginRequest) -> Tuple[User, str]:
        """
        Raises:
            AuthenticationError: unknown email or wrong password (401)
        """
        user = await self._find_by_email(db, data.email)
        if user is None or not verify_password(data.password, user.password_hash):
            logger.info("Failed login attempt for %s", data.email)
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info("User %s logged in", user.id)
        return user, create_access_token(user.id, user.email)

    async def list_users(self, db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
        return list(result.scalars().all())


auth_service = AuthService()
