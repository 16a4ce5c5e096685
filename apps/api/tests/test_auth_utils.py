from __future__ import annotations

from datetime import timedelta

from app.auth.utils import create_access_token, verify_token


class TestJWT:
    def test_create_access_token(self):
        token = create_access_token({"sub": "user123"})
        assert isinstance(token, str)
        assert len(token) > 0

    def test_verify_token_success(self):
        token = create_access_token({"sub": "user123", "user_id": "user123"})
        payload = verify_token(token)
        assert payload is not None
        assert payload["user_id"] == "user123"
        assert payload["type"] == "access"

    def test_tokens_are_unique(self):
        assert create_access_token({"sub": "a"}) != create_access_token({"sub": "a"})

    def test_verify_token_invalid(self):
        assert verify_token("invalid.token.here") is None

    def test_verify_token_expired(self):
        token = create_access_token({"sub": "user123"}, timedelta(seconds=-1))
        assert verify_token(token) is None
