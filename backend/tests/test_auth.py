"""
BookBrief Backend — Authentication Tests
==========================================

Password hashing, token round trip and the signup/login service rules.
"""

from datetime import timedelta

import pytest

from app.exceptions import AuthenticationError, ConflictError
from app.schemas.auth import LoginRequest, SignupRequest
from app.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from app.services.auth_service import AuthService


class TestSecurity:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed) is True
        assert verify_password("wrong horse", hashed) is False

    def test_unknown_hash_format_does_not_verify(self):
        assert verify_password("anything", "not-a-hash") is False

    def test_token_carries_user_id(self):
        token = create_access_token(42, "a@example.com")
        claims = decode_access_token(token)
        assert claims["sub"] == "42"
        assert claims["email"] == "a@example.com"

    def test_expired_token_is_rejected(self):
        token = create_access_token(42, "a@example.com", expires_delta=timedelta(seconds=-5))
        assert decode_access_token(token) is None

    def test_tampered_token_is_rejected(self):
        header, payload, _ = create_access_token(42, "a@example.com").split(".")
        assert decode_access_token(f"{header}.{payload}.forged-signature") is None


class TestAuthService:
    @pytest.fixture
    def service(self):
        return AuthService()

    @pytest.mark.asyncio
    async def test_signup_normalizes_email_and_issues_token(self, service, db_session):
        user, token = await service.signup(
            db_session, SignupRequest(email="New.Reader@Example.com", password="secret123", name="New")
        )

        assert user.email == "new.reader@example.com"
        assert user.password_hash != "secret123"
        assert decode_access_token(token)["sub"] == str(user.id)

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, service, db_session, user):
        with pytest.raises(ConflictError):
            await service.signup(
                db_session, SignupRequest(email="READER@example.com", password="another1")
            )

    @pytest.mark.asyncio
    async def test_login_with_correct_password(self, service, db_session, user):
        logged_in, token = await service.login(
            db_session, LoginRequest(email="reader@example.com", password="secret123")
        )
        assert logged_in.id == user.id
        assert token

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email,password",
        [("reader@example.com", "wrong-password"), ("nobody@example.com", "secret123")],
    )
    async def test_login_failures_are_uniform(self, service, db_session, user, email, password):
        with pytest.raises(AuthenticationError) as exc_info:
            await service.login(db_session, LoginRequest(email=email, password=password))
        assert exc_info.value.message == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_list_users(self, service, db_session, user, other_user):
        users = await service.list_users(db_session)
        assert {u.email for u in users} == {"reader@example.com", "someone.else@example.com"}
