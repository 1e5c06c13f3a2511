"""Tests for bearer token verification."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException

from app.core import config
from app.features.users.auth import verify_jwt_token


SECRET = "test-secret-that-is-at-least-32-bytes-long"


def make_token(secret=SECRET, expires_in=timedelta(minutes=5), **claims):
    payload = {"userId": "aw-123", "exp": datetime.now(timezone.utc) + expires_in, **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


def test_signed_token_is_verified():
    payload = verify_jwt_token(make_token(), secret=SECRET)

    assert payload["userId"] == "aw-123"


def test_bad_signature_rejected():
    token = make_token(secret="another-secret-that-is-also-32-bytes-long")

    with pytest.raises(HTTPException) as exc_info:
        verify_jwt_token(token, secret=SECRET)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail.startswith("Invalid token")


def test_expired_token_rejected():
    token = make_token(expires_in=timedelta(minutes=-5))

    with pytest.raises(HTTPException) as exc_info:
        verify_jwt_token(token, secret=SECRET)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Token has expired"


def test_unsigned_mode_still_checks_expiry(monkeypatch):
    monkeypatch.setattr(config, "JWT_SECRET", None)

    assert verify_jwt_token(make_token())["userId"] == "aw-123"

    with pytest.raises(HTTPException):
        verify_jwt_token(make_token(expires_in=timedelta(minutes=-5)))


def test_garbage_token_rejected(monkeypatch):
    monkeypatch.setattr(config, "JWT_SECRET", None)

    with pytest.raises(HTTPException) as exc_info:
        verify_jwt_token("not-a-token")

    assert exc_info.value.status_code == 401
