"""Tests for resolving the calling user from a bearer token."""

import pytest
from fastapi import HTTPException
from jose import jwt

from prepcoach.core.auth import DEMO_USER_ID, get_current_user
from prepcoach.core.config import settings


def _make_token(claims: dict) -> str:
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


class _Creds:
    def __init__(self, token: str):
        self.credentials = token


class TestUserAuth:
    def test_valid_token_extracts_user(self):
        ctx = get_current_user(_Creds(_make_token({"sub": "user-42", "email": "sam@example.com"})))
        assert ctx.user_id == "user-42"
        assert ctx.email == "sam@example.com"

    def test_missing_credentials_fall_back_to_demo_user(self):
        assert get_current_user(None).user_id == DEMO_USER_ID

    def test_invalid_token_raises_401(self):
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_Creds("invalid.jwt.token"))
        assert exc_info.value.status_code == 401

    def test_missing_subject_raises_401(self):
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_Creds(_make_token({"email": "sam@example.com"})))
        assert exc_info.value.status_code == 401

    def test_wrong_secret_raises_401(self):
        token = jwt.encode({"sub": "user-42"}, "another-secret", algorithm=settings.jwt_algorithm)
        with pytest.raises(HTTPException):
            get_current_user(_Creds(token))
