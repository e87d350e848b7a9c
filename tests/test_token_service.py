"""
Unit tests for session token issue / verify.
"""
from datetime import timedelta

import pytest
from jose import jwt

from storefront.domain.errors import InvalidTokenError
from storefront.services.token_service import TokenService
from tests.conftest import FakeClock


@pytest.fixture
def clock():
    return FakeClock(start=1_700_000_000)


@pytest.fixture
def tokens(clock):
    return TokenService(secret="s3cret", algorithm="HS256", ttl_seconds=3600, clock=clock)


class TestIssue:
    def test_issued_token_carries_identity_and_one_hour_expiry(self, tokens):
        issued = tokens.issue(42, "ada@example.com")

        assert issued.expires_at - issued.issued_at == timedelta(hours=1)

        claims = tokens.verify(issued.token)
        assert claims.user_id == 42
        assert claims.email == "ada@example.com"
        assert claims.issued_at == issued.issued_at
        assert claims.expires_at == issued.expires_at

    def test_subject_is_encoded_as_string(self, tokens):
        issued = tokens.issue(7, "x@example.com")

        payload = jwt.get_unverified_claims(issued.token)
        assert payload["sub"] == "7"


class TestVerify:
    def test_token_usable_until_just_before_expiry(self, tokens, clock):
        issued = tokens.issue(1, "a@example.com")

        clock.advance(3599)
        assert tokens.verify(issued.token).user_id == 1

    def test_expired_token_is_rejected(self, tokens, clock):
        issued = tokens.issue(1, "a@example.com")

        clock.advance(3600)
        with pytest.raises(InvalidTokenError, match="expired"):
            tokens.verify(issued.token)

    def test_token_signed_with_other_secret_is_rejected(self, tokens, clock):
        other = TokenService(secret="another", algorithm="HS256", ttl_seconds=3600, clock=clock)
        issued = other.issue(1, "a@example.com")

        with pytest.raises(InvalidTokenError):
            tokens.verify(issued.token)

    def test_tampered_payload_is_rejected(self, tokens):
        issued = tokens.issue(1, "a@example.com")
        header, payload, signature = issued.token.split(".")
        forged = jwt.encode({"sub": "2", "email": "a@example.com", "iat": 1, "exp": 9999999999}, "x")
        forged_payload = forged.split(".")[1]

        with pytest.raises(InvalidTokenError):
            tokens.verify(".".join([header, forged_payload, signature]))

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_garbage_is_rejected(self, tokens, token):
        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    @pytest.mark.parametrize(
        "payload",
        [
            {"sub": "not-a-number", "email": "a@example.com"},
            {"sub": "1"},
            {"email": "a@example.com"},
            {"sub": "1", "email": ""},
        ],
    )
    def test_malformed_payload_is_rejected(self, tokens, clock, payload):
        now = int(clock())
        token = jwt.encode({**payload, "iat": now, "exp": now + 60}, "s3cret", algorithm="HS256")

        with pytest.raises(InvalidTokenError, match="Malformed"):
            tokens.verify(token)
