# storefront/services/revocation_registry.py
import hashlib
import time
from datetime import datetime
from typing import Callable

import redis
from redis.exceptions import RedisError

from storefront.domain.errors import ServiceUnavailableError
from storefront.utils.logging import get_logger
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, REDIS_TIMEOUT_SECONDS

logger = get_logger(__name__)

BLOCKED = "Blocked"


def create_redis_client(url: str | None = None) -> redis.Redis:
    return redis.Redis.from_url(
        url or REDIS_URL,
        decode_responses=True,
        socket_timeout=REDIS_TIMEOUT_SECONDS,
        socket_connect_timeout=REDIS_TIMEOUT_SECONDS,
    )


class RevocationRegistry:
    """
    -denylist of session tokens invalidated before their natural expiry
    -each entry expires in redis exactly when the token does (EXAT),
     nothing has to clean it up and it never outlives the token
    -redis failures are raised as ServiceUnavailableError, callers fail closed
    """

    def __init__(self, client: redis.Redis, clock: Callable[[], float] = time.time):
        self.redis = client
        self.clock = clock

    @staticmethod
    def key_for(token: str) -> str:
        # the raw token is not used as key, only its digest
        digest = hashlib.sha256(token.encode("utf-8")).hexdigest()
        return f"token:{digest}"

    def revoke(self, token: str, expires_at: datetime) -> bool:
        """Block the token until ``expires_at``. Returns False when it has already expired."""
        expires_ts = int(expires_at.timestamp())
        if expires_ts <= self.clock():
            logger.info("Token already expired, nothing to revoke")
            return False

        try:
            self._set_blocked(self.key_for(token), expires_ts)
        except RedisError as e:
            logger.error(f"Could not revoke token: {e}")
            raise ServiceUnavailableError("Session store unavailable, logout not completed") from e

        logger.info(f"Token revoked until {expires_at.isoformat()}")
        return True

    def is_revoked(self, token: str) -> bool:
        try:
            return self._exists(self.key_for(token))
        except RedisError as e:
            logger.error(f"Could not check token revocation: {e}")
            raise ServiceUnavailableError("Session store unavailable") from e

    def ping(self) -> bool:
        try:
            return bool(self.redis.ping())
        except RedisError:
            return False

    @redis_retry()
    def _set_blocked(self, key: str, expires_ts: int):
        #SET token:<sha256> Blocked EXAT <exp>, idempotent
        self.redis.set(name=key, value=BLOCKED, exat=expires_ts)

    @redis_retry()
    def _exists(self, key: str) -> bool:
        return self.redis.exists(key) > 0
