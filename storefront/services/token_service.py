# storefront/services/token_service.py
from dataclasses import dataclass
from datetime import datetime, timezone
import time
from typing import Callable

from jose import JWTError, jwt

from storefront.domain.errors import InvalidTokenError
from storefront.utils.settings import JWT_SECRET, JWT_ALGORITHM, SESSION_TTL_SECONDS


@dataclass(frozen=True)
class IssuedToken:
    token: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """
    Signs and checks session tokens (HS256 JWT).

    Stateless: nothing is stored on issue. Revocation is not checked here,
    see RevocationRegistry and AuthService.authenticate.
    """

    def __init__(
        self,
        secret: str | None = None,
        algorithm: str | None = None,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.secret = secret or JWT_SECRET
        self.algorithm = algorithm or JWT_ALGORITHM
        self.ttl_seconds = SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self.clock = clock

    def issue(self, user_id: int, email: str) -> IssuedToken:
        issued_at = int(self.clock())
        expires_at = issued_at + self.ttl_seconds

        token = jwt.encode(
            {"sub": str(user_id), "email": email, "iat": issued_at, "exp": expires_at},
            self.secret,
            algorithm=self.algorithm,
        )
        return IssuedToken(
            token=token,
            issued_at=datetime.fromtimestamp(issued_at, timezone.utc),
            expires_at=datetime.fromtimestamp(expires_at, timezone.utc),
        )

    def verify(self, token: str) -> TokenClaims:
        try:
            # exp is checked below against our own clock
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except JWTError as e:
            raise InvalidTokenError("Invalid session token") from e

        try:
            user_id = int(payload["sub"])
            email = payload["email"]
            issued_at = int(payload["iat"])
            expires_at = int(payload["exp"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTokenError("Malformed session token") from e

        if not isinstance(email, str) or not email:
            raise InvalidTokenError("Malformed session token")

        if expires_at <= self.clock():
            raise InvalidTokenError("Session token has expired")

        return TokenClaims(
            user_id=user_id,
            email=email,
            issued_at=datetime.fromtimestamp(issued_at, timezone.utc),
            expires_at=datetime.fromtimestamp(expires_at, timezone.utc),
        )
