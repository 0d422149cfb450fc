"""
Unit Tests for Security Module
Tests for: password hashing, JWT tokens
"""
import pytest
from datetime import timedelta
from types import SimpleNamespace
from jose import jwt

from app.core.config import settings
from app.core.exceptions import InvalidTokenError, TokenExpiredError
from app.core.security import (
    create_access_token,
    create_user_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from app.domain.roles import UserRole


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_password_returns_different_value(self):
        password = "testpassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert hashed.startswith("$2")

    def test_hash_password_different_each_time(self):
        """Bcrypt generates different salts"""
        assert get_password_hash("secret") != get_password_hash("secret")

    def test_verify_password_correct(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("testpassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("wrongpassword", hashed) is False

    def test_verify_password_without_hash(self):
        assert verify_password("anything", "") is False

    def test_long_passwords_are_truncated_consistently(self):
        password = "x" * 100
        hashed = get_password_hash(password)

        assert verify_password(password, hashed) is True


class TestAccessToken:
    """Test JWT creation and decoding"""

    def test_create_and_decode(self):
        token = create_access_token({"sub": "user-1"})

        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_user_token_carries_role(self):
        user = SimpleNamespace(id="abc", email="a@b.com", role=UserRole.ADMIN)

        payload = decode_token(create_user_token(user))

        assert payload == {**payload, "sub": "abc", "email": "a@b.com", "role": "admin"}

    def test_expired_token(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-1))

        with pytest.raises(TokenExpiredError):
            decode_token(token)

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "user-1", "type": "access"}, "another-secret", algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_garbage_token(self):
        with pytest.raises(InvalidTokenError):
            decode_token("not.a.token")
