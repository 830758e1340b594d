"""
BookBrief Backend — Authentication Schemas
============================================

Request bodies for signup/login and the public user representation.
The password hash never appears in any response model.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class SignupRequest(BaseModel):
    email: EmailStr = Field(description="Login email, must be unique")
    password: str = Field(min_length=6, max_length=128, description="Plain-text password")
    name: Optional[str] = Field(default=None, max_length=255)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserBrief(BaseModel):
    """Author info embedded in notes."""
    id: int
    name: Optional[str] = None
    email: str

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Returned by signup (201) and login (200)."""
    user: UserResponse
    token: str = Field(description="Bearer access token")
    token_type: str = Field(default="bearer")


class ProfileResponse(BaseModel):
    user: UserResponse
