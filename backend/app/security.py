"""
BookBrief Backend — Password Hashing & Access Tokens
======================================================

What:  passlib password hashing and python-jose JWT issue/verify.
Who:   AuthService (signup/login) and the get_current_user dependency.

Token claims:
    sub    user id (string, as JWT requires)
    email  user email, informational
    exp    expiry, ACCESS_TOKEN_EXPIRE_MINUTES from issue time
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings

logger = logging.getLogger(__name__)

# pbkdf2_sha256 is pure-python in passlib, so no native bcrypt build is needed
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """False for a wrong password or an unrecognized hash format."""
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        logger.warning("Stored password hash could not be identified")
        return False


def create_access_token(user_id: int, email: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {"sub": str(user_id), "email": email, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Returns the claims of a valid token, or None when the token is
    malformed, signed with another key, or expired.
    """
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.info("Rejected access token: %s", str(e))
        return None
