# storefront/services/auth_service.py
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.domain.errors import (
    ConflictError,
    InvalidTokenError,
    UnauthorizedError,
)
from storefront.domain.schemas import UserCreate
from storefront.repos.user_repo import UserRepo
from storefront.services.revocation_registry import RevocationRegistry
from storefront.services.token_service import IssuedToken, TokenClaims, TokenService
from storefront.utils.logging import get_logger
from storefront.utils.security import hash_password, verify_password

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """
    Registration, login, logout and per-request authentication.

    A request is authenticated when the token signature and expiry check out
    AND the revocation registry has no entry for it. If the registry cannot
    be reached the request is rejected (503), never let through.
    """

    def __init__(self, db: Session, token_service: TokenService, registry: RevocationRegistry):
        self.repo = UserRepo(db)
        self.tokens = token_service
        self.registry = registry

    def register(self, payload: UserCreate) -> tuple[UserModel, IssuedToken]:
        email = normalize_email(payload.email)

        if self.repo.get_by_email(email):
            raise ConflictError("Email already registered")

        user = UserModel(
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            email=email,
            password_hash=hash_password(payload.password),
            role="user",
        )
        try:
            created = self.repo.create_user(user)
        except IntegrityError as e:
            # lost the race against a parallel registration with the same email
            self.repo.rollback()
            raise ConflictError("Email already registered") from e

        logger.info(f"Registered user {created.id}")
        return created, self.tokens.issue(created.id, created.email)

    def login(self, email: str, password: str) -> tuple[UserModel, IssuedToken]:
        user = self.repo.get_by_email(normalize_email(email))

        # same answer for unknown email and wrong password
        if not user or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt")
            raise UnauthorizedError("Invalid credentials")

        logger.info(f"User {user.id} logged in")
        return user, self.tokens.issue(user.id, user.email)

    def authenticate(self, token: str | None) -> tuple[UserModel, TokenClaims]:
        if not token:
            raise InvalidTokenError("Not authenticated")

        claims = self.tokens.verify(token)

        if self.registry.is_revoked(token):
            raise InvalidTokenError("Session has been revoked")

        user = self.repo.get_user(claims.user_id)
        if not user:
            raise InvalidTokenError("User no longer exists")

        return user, claims

    def logout(self, token: str) -> TokenClaims:
        claims = self.tokens.verify(token)
        # raises ServiceUnavailableError if redis is down, logout must not fake success
        self.registry.revoke(token, claims.expires_at)
        logger.info(f"User {claims.user_id} logged out")
        return claims
