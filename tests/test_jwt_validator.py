"""
Tests for JWT validation
"""

import time

import jwt
import pytest

from kiwi_crm.domain.errors import AuthenticationError
from kiwi_crm.infrastructure.security.jwt_validator import extract_bearer_token, verify_token
from token_factory import JWT_SECRET, make_token


class TestExtractBearerToken:
    """Test extract_bearer_token."""

    def test_bearer_header(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self):
        assert extract_bearer_token("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Basic dXNlcjpwYXNz", "abc"])
    def test_missing_or_wrong_scheme(self, header):
        assert extract_bearer_token(header) is None


class TestVerifyToken:
    """Test verify_token."""

    def test_valid_token(self, settings):
        identity = verify_token(make_token(), settings)

        assert identity.subject == "user_ada"
        assert identity.email == "ada@example.com"
        assert identity.name == "Ada Lovelace"

    def test_given_name_fallback(self, settings):
        token = jwt.encode({"sub": "u1", "email": "a@b.test", "given_name": "Ada"}, JWT_SECRET, algorithm="HS256")

        assert verify_token(token, settings).name == "Ada"

    def test_missing_token(self, settings):
        with pytest.raises(AuthenticationError):
            verify_token(None, settings)

    def test_wrong_secret(self, settings):
        token = jwt.encode({"sub": "u1", "email": "a@b.test"}, "another-secret", algorithm="HS256")

        with pytest.raises(AuthenticationError):
            verify_token(token, settings)

    def test_expired_token(self, settings):
        token = jwt.encode(
            {"sub": "u1", "email": "a@b.test", "exp": int(time.time()) - 60}, JWT_SECRET, algorithm="HS256"
        )

        with pytest.raises(AuthenticationError):
            verify_token(token, settings)

    def test_missing_subject(self, settings):
        token = jwt.encode({"email": "a@b.test"}, JWT_SECRET, algorithm="HS256")

        with pytest.raises(AuthenticationError):
            verify_token(token, settings)

    def test_missing_email(self, settings):
        token = jwt.encode({"sub": "u1"}, JWT_SECRET, algorithm="HS256")

        with pytest.raises(AuthenticationError, match="no email"):
            verify_token(token, settings)

    def test_audience_is_checked_when_configured(self, settings):
        settings.jwt_audience = "kiwi"
        good = jwt.encode({"sub": "u1", "email": "a@b.test", "aud": "kiwi"}, JWT_SECRET, algorithm="HS256")
        bad = jwt.encode({"sub": "u1", "email": "a@b.test", "aud": "other"}, JWT_SECRET, algorithm="HS256")

        assert verify_token(good, settings).subject == "u1"
        with pytest.raises(AuthenticationError):
            verify_token(bad, settings)
