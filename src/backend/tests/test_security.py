"""
Password hashing and access token tests
"""
from jose import jwt

from learnplatform.core.config import get_settings
from learnplatform.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class TestPasswords:

    def test_hash_round_trip(self):
        hashed = hash_password("secret123")

        assert hashed != "secret123"
        assert verify_password("secret123", hashed) is True
        assert verify_password("wrong", hashed) is False


class TestAccessTokens:

    def test_token_carries_user_and_role(self):
        token = create_access_token("user-1", "instructor")

        payload = jwt.decode(token, get_settings().secret_key, algorithms=["HS256"])
        assert payload["sub"] == "user-1"
        assert payload["role"] == "instructor"
        assert "exp" in payload
        assert decode_access_token(token) == "user-1"

    def test_expired_token(self):
        token = create_access_token("user-1", "student", expires_minutes=-1)

        assert decode_access_token(token) is None

    def test_token_signed_with_other_key(self, monkeypatch):
        token = create_access_token("user-1", "student")
        monkeypatch.setenv("JWT_SECRET_KEY", "another-key")

        assert decode_access_token(token) is None

    def test_tampered_token(self):
        header, _, signature = create_access_token("user-1", "student").split(".")
        forged = create_access_token("user-2", "admin").split(".")[1]

        assert decode_access_token(f"{header}.{forged}.{signature}") is None
