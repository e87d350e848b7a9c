"""
Registration / login / logout and request authentication at service level.
"""
import pytest

from storefront.domain.errors import (
    ConflictError,
    InvalidTokenError,
    ServiceUnavailableError,
    UnauthorizedError,
)
from storefront.domain.schemas import UserCreate
from storefront.services.auth_service import AuthService
from storefront.services.revocation_registry import RevocationRegistry
from storefront.services.token_service import TokenService
from tests.conftest import FakeClock
from tests.test_revocation_registry import BrokenRedis


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tokens(clock):
    return TokenService(secret="s3cret", algorithm="HS256", ttl_seconds=3600, clock=clock)


@pytest.fixture
def auth(db, tokens, registry):
    return AuthService(db=db, token_service=tokens, registry=registry)


def _signup(auth, email="Ada@Example.com ", password="secret123"):
    return auth.register(
        UserCreate(first_name="Ada", last_name="Lovelace", email=email.strip(), password=password)
    )


class TestRegisterAndLogin:
    def test_registered_user_can_log_in(self, auth, tokens):
        user, issued = _signup(auth)

        assert user.email == "ada@example.com"
        assert user.password_hash != "secret123"
        assert tokens.verify(issued.token).user_id == user.id

        logged_in, session = auth.login("ada@example.com", "secret123")
        assert logged_in.id == user.id
        claims = tokens.verify(session.token)
        assert claims.user_id == user.id
        assert claims.email == "ada@example.com"

    def test_email_is_case_insensitive(self, auth):
        _signup(auth)

        with pytest.raises(ConflictError):
            _signup(auth, email="ADA@example.COM")

        user, _ = auth.login("  ADA@EXAMPLE.COM ", "secret123")
        assert user.email == "ada@example.com"

    def test_wrong_password_is_unauthorized(self, auth):
        _signup(auth)

        with pytest.raises(UnauthorizedError):
            auth.login("ada@example.com", "not-the-password")

    def test_unknown_email_is_unauthorized(self, auth):
        with pytest.raises(UnauthorizedError):
            auth.login("nobody@example.com", "secret123")


class TestAuthenticate:
    def test_valid_token_resolves_user(self, auth):
        user, issued = _signup(auth)

        authenticated, claims = auth.authenticate(issued.token)
        assert authenticated.id == user.id
        assert claims.email == user.email

    def test_missing_token_is_rejected(self, auth):
        with pytest.raises(InvalidTokenError):
            auth.authenticate(None)

    def test_revoked_token_is_rejected_on_every_later_request(self, auth):
        _, issued = _signup(auth)

        auth.logout(issued.token)

        for _ in range(3):
            with pytest.raises(InvalidTokenError, match="revoked"):
                auth.authenticate(issued.token)

    def test_logout_does_not_touch_other_sessions(self, auth, clock):
        _, first = _signup(auth)
        clock.advance(5)
        _, second = auth.login("ada@example.com", "secret123")
        assert first.token != second.token

        auth.logout(first.token)

        user, _ = auth.authenticate(second.token)
        assert user.email == "ada@example.com"

    def test_expired_token_is_rejected_without_revocation(self, auth, clock):
        _, issued = _signup(auth)

        clock.advance(3600)
        with pytest.raises(InvalidTokenError, match="expired"):
            auth.authenticate(issued.token)

    def test_token_of_deleted_user_is_rejected(self, auth, db):
        user, issued = _signup(auth)
        db.delete(user)
        db.commit()

        with pytest.raises(InvalidTokenError):
            auth.authenticate(issued.token)


class TestRegistryDown:
    def test_logout_surfaces_unavailable(self, db, tokens, auth):
        _, issued = _signup(auth)
        broken = AuthService(db=db, token_service=tokens, registry=RevocationRegistry(BrokenRedis()))

        with pytest.raises(ServiceUnavailableError):
            broken.logout(issued.token)

    def test_authentication_fails_closed(self, db, tokens, auth):
        _, issued = _signup(auth)
        broken = AuthService(db=db, token_service=tokens, registry=RevocationRegistry(BrokenRedis()))

        with pytest.raises(ServiceUnavailableError):
            broken.authenticate(issued.token)
