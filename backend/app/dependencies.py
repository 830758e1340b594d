"""
BookBrief Backend — Shared Route Dependencies
===============================================

get_current_user resolves the `Authorization: Bearer <token>` header into a
User row. Every failure mode raises AuthenticationError (→ 401) so clients
cannot tell "bad token" from "deleted user".
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import AuthenticationError
from app.models import User
from app.security import decode_access_token

logger = logging.getLogger(__name__)

# auto_error=False: a missing header is reported through our own 401 format
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Missing or invalid token")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid or expired token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        logger.info("Token refers to unknown user id %s", user_id)
        raise AuthenticationError("Invalid or expired token")

    return user
