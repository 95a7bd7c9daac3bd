"""Tests for bearer token helpers and the caller identity dependency."""
import pytest
from datetime import timedelta

from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials


class TestJWTTokens:
    """Tests for JWT token functions."""

    def test_create_access_token_basic(self):
        """Test creating a basic JWT access token."""
        from app.utils.auth import create_access_token

        token = create_access_token(user_id="user123")

        assert isinstance(token, str)
        assert len(token) > 0

    def test_verify_access_token_valid(self):
        """Test verifying a valid access token."""
        from app.utils.auth import create_access_token, verify_access_token

        token = create_access_token(user_id="user123", expires_delta=timedelta(hours=1))

        assert verify_access_token(token) == "user123"

    def test_verify_access_token_invalid(self):
        """Test verifying an invalid token."""
        from jose import JWTError
        from app.utils.auth import verify_access_token

        with pytest.raises(JWTError):
            verify_access_token("invalid.token.here")

    def test_verify_access_token_expired(self):
        """Test verifying an expired token."""
        from jose import JWTError
        from app.utils.auth import create_access_token, verify_access_token

        token = create_access_token(user_id="user123", expires_delta=timedelta(seconds=-1))

        with pytest.raises(JWTError):
            verify_access_token(token)

    def test_verify_access_token_missing_subject(self):
        """Test that a token without a subject is rejected."""
        from jose import JWTError, jwt
        from app.config import settings
        from app.utils.auth import verify_access_token

        token = jwt.encode({"foo": "bar"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)

        with pytest.raises(JWTError):
            verify_access_token(token)

    def test_token_contains_user_id(self):
        """Test that token payload contains the user id as subject."""
        from jose import jwt
        from app.config import settings
        from app.utils.auth import create_access_token

        token = create_access_token(user_id="user123")
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])

        assert payload["sub"] == "user123"
        assert "exp" in payload


@pytest.mark.asyncio
class TestCurrentUserDependency:
    """Tests for get_current_user_id."""

    async def test_missing_credentials(self):
        """Test that a missing bearer token is a 401."""
        from app.routers.auth import get_current_user_id

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Not authenticated"

    async def test_invalid_credentials(self):
        """Test that a malformed bearer token is a 401."""
        from app.routers.auth import get_current_user_id

        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="garbage")
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(credentials)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid authentication credentials"

    async def test_valid_credentials(self):
        """Test that a valid token resolves to its user id."""
        from app.routers.auth import get_current_user_id
        from app.utils.auth import create_access_token

        credentials = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=create_access_token(user_id="user42")
        )

        assert await get_current_user_id(credentials) == "user42"
