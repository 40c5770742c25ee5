"""Keyed store of revoked token IDs.

Access and refresh JWTs are stateless; revocation (logout, refresh-token
rotation) needs a small stateful layer.  We keep the set of revoked
``jti`` claims, each entry living only until the token would have
expired anyway.

Redis when REDIS_URL is configured (shared by every API instance),
in-memory otherwise (tests, single-process dev).
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

from app.core.metrics import TOKEN_BLACKLIST_CHECKS
from app.db.redis import redis_pool


@runtime_checkable
class TokenBlacklist(Protocol):
    async def revoke(self, jti: str, expires_at: float) -> None:
        """Add a token's JTI to the blacklist until it would have expired."""
        ...

    async def is_revoked(self, jti: str) -> bool:
        """Check if a token has been revoked."""
        ...


class InMemoryTokenBlacklist:
    """Per-process blacklist for tests and local dev."""

    def __init__(self) -> None:
        # jti -> expiry timestamp (Unix seconds)
        self._revoked: dict[str, float] = {}

    async def revoke(self, jti: str, expires_at: float) -> None:
        self._revoked[jti] = expires_at

    async def is_revoked(self, jti: str) -> bool:
        exp = self._revoked.get(jti)
        if exp is None:
            TOKEN_BLACKLIST_CHECKS.labels(result="valid").inc()
            return False
        # Mimic Redis TTL behavior: auto-clean expired entries
        if exp < time.time():
            del self._revoked[jti]
            TOKEN_BLACKLIST_CHECKS.labels(result="valid").inc()
            return False
        TOKEN_BLACKLIST_CHECKS.labels(result="revoked").inc()
        return True

    def clear(self) -> None:
        self._revoked.clear()


class RedisTokenBlacklist:
    """Redis-backed blacklist, shared across all API instances."""

    _PREFIX = "blacklist:jti:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def revoke(self, jti: str, expires_at: float) -> None:
        ttl_seconds = int(expires_at - time.time())
        if ttl_seconds <= 0:
            return  # already expired

        # SETEX sets value and TTL atomically
        await self._redis.setex(f"{self._PREFIX}{jti}", ttl_seconds, "1")

    async def is_revoked(self, jti: str) -> bool:
        revoked = bool(await self._redis.exists(f"{self._PREFIX}{jti}"))
        TOKEN_BLACKLIST_CHECKS.labels(result="revoked" if revoked else "valid").inc()
        return revoked


# ---------------------------------------------------------------------------
# Module-level singleton: conditional on Redis availability
# ---------------------------------------------------------------------------

if redis_pool is not None:
    token_blacklist: TokenBlacklist = RedisTokenBlacklist(redis_pool)
else:
    token_blacklist = InMemoryTokenBlacklist()
