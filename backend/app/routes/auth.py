"""
BookBrief Backend — Authentication Routes
===========================================

POST /auth/signup   → 201 {user, token}
POST /auth/login    → 200 {user, token}
GET  /auth/me       → 200 {user}         (bearer token)
GET  /auth/users    → 200 [user, ...]    (bearer token)
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models import User
from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    SignupRequest,
    UserResponse,
)
from app.schemas.common import ErrorResponse
from app.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/signup",
    status_code=201,
    response_model=AuthResponse,
    responses={
        400: {"description": "Invalid email or password too short", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    user, token = await auth_service.signup(db, body)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Exchange credentials for a bearer token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    user, token = await auth_service.login(db, body)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.get(
    "/me",
    response_model=ProfileResponse,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Current user's profile",
)
async def me(current_user: User = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse(user=UserResponse.model_validate(current_user))


@router.get(
    "/users",
    response_model=List[UserResponse],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="List registered users",
)
async def list_users(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserResponse]:
    users = await auth_service.list_users(db)
    return [UserResponse.model_validate(user) for user in users]
