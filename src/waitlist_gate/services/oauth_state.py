"""CSRF state tokens, PKCE material and the authorization attempt store.

Every call to the initiate endpoint produces an :class:`AuthorizationAttempt`
keyed by its ``state`` token. The attempt is saved server-side and consumed
exactly once when the provider redirects back; an unknown, expired or reused
state fails verification.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from threading import Lock
from typing import Protocol

from redis import asyncio as aioredis

from waitlist_gate.core.settings import Settings

logger = logging.getLogger(__name__)

STATE_TOKEN_BYTES = 24
# RFC 7636: verifier length is 43..128 characters; 48 random bytes encode to 64
CODE_VERIFIER_BYTES = 48
REDIS_KEY_PREFIX = "oauth:attempt:"


def generate_state() -> str:
    """Return an unpredictable, URL-safe CSRF token for one authorization attempt."""
    return secrets.token_urlsafe(STATE_TOKEN_BYTES)


def generate_code_verifier() -> str:
    """Return a fresh PKCE code verifier."""
    return secrets.token_urlsafe(CODE_VERIFIER_BYTES)


def derive_code_challenge(code_verifier: str) -> str:
    """Derive the S256 PKCE challenge for ``code_verifier``."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


@dataclass(frozen=True)
class AuthorizationAttempt:
    """Server-side record of one initiated sign-in."""

    state: str
    code_verifier: str | None = None
    issued_at: float = 0.0

    @property
    def code_challenge(self) -> str | None:
        if self.code_verifier is None:
            return None
        return derive_code_challenge(self.code_verifier)


def new_attempt(*, pkce: bool) -> AuthorizationAttempt:
    """Create an attempt with a fresh state and, optionally, a PKCE verifier."""
    return AuthorizationAttempt(
        state=generate_state(),
        code_verifier=generate_code_verifier() if pkce else None,
        issued_at=time.time(),
    )


class AuthorizationAttemptStore(Protocol):
    """Single-use, expiring storage for authorization attempts."""

    async def save(self, attempt: AuthorizationAttempt) -> None: ...

    async def consume(self, state: str) -> AuthorizationAttempt | None: ...


class MemoryAttemptStore:
    """In-process attempt store for single-instance deployments and tests."""

    def __init__(self, ttl_seconds: int, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._attempts: dict[str, tuple[AuthorizationAttempt, float]] = {}
        self._lock = Lock()

    async def save(self, attempt: AuthorizationAttempt) -> None:
        now = self._clock()
        with self._lock:
            self._purge_expired(now)
            self._attempts[attempt.state] = (attempt, now + self._ttl)

    async def consume(self, state: str) -> AuthorizationAttempt | None:
        now = self._clock()
        with self._lock:
            entry = self._attempts.pop(state, None)
            self._purge_expired(now)
        if entry is None:
            return None
        attempt, expires_at = entry
        if expires_at < now:
            return None
        return attempt

    def __len__(self) -> int:
        with self._lock:
            return len(self._attempts)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._attempts.items() if expires_at < now]
        for key in expired:
            self._attempts.pop(key, None)


class RedisAttemptStore:
    """Redis-backed attempt store shared across worker processes."""

    def __init__(self, client: aioredis.Redis, ttl_seconds: int) -> None:
        self._redis = client
        self._ttl = ttl_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int) -> RedisAttemptStore:
        return cls(aioredis.Redis.from_url(url), ttl_seconds)

    async def save(self, attempt: AuthorizationAttempt) -> None:
        await self._redis.set(
            f"{REDIS_KEY_PREFIX}{attempt.state}",
            json.dumps(asdict(attempt)),
            ex=max(1, int(self._ttl)),
        )

    async def consume(self, state: str) -> AuthorizationAttempt | None:
        key = f"{REDIS_KEY_PREFIX}{state}"
        # GET and DEL run in one MULTI block so a state can be redeemed once.
        pipe = self._redis.pipeline(transaction=True)
        raw, _ = await pipe.get(key).delete(key).execute()
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            return AuthorizationAttempt(
                state=data["state"],
                code_verifier=data.get("code_verifier"),
                issued_at=float(data.get("issued_at", 0.0)),
            )
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding malformed authorization attempt for state %s", state[:8])
            return None

    async def close(self) -> None:
        await self._redis.aclose()


def build_attempt_store(settings: Settings) -> AuthorizationAttemptStore:
    """Return the attempt store selected by configuration."""
    if settings.redis_url:
        logger.info("Using Redis for OAuth authorization attempts")
        return RedisAttemptStore.from_url(settings.redis_url, settings.oauth_state_ttl_seconds)
    return MemoryAttemptStore(settings.oauth_state_ttl_seconds)
