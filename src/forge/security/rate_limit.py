from __future__ import annotations

"""In-memory fixed-window rate limiting for the login and signup endpoints."""

import os
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request, status


@dataclass
class _Window:
    count: int
    ends_at: float


class RateLimitExceeded(Exception):
    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__("Rate limit exceeded")
        self.retry_after_seconds = retry_after_seconds


class FixedWindowLimiter:
    """Counts actions per (key, identifier) inside a fixed time window."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._windows: Dict[Tuple[str, str], _Window] = {}
        self._clock = clock
        self._lock = Lock()

    def hit(self, key: str, identifier: str, limit: int, window_seconds: int) -> None:
        now = self._clock()
        store_key = (key, identifier)
        with self._lock:
            window = self._windows.get(store_key)
            if window is None or window.ends_at <= now:
                self._windows[store_key] = _Window(count=1, ends_at=now + window_seconds)
                return
            if window.count >= limit:
                raise RateLimitExceeded(max(int(window.ends_at - now), 1))
            window.count += 1

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()


_LIMITER = FixedWindowLimiter()


def rate_limit_action(
    key: str,
    identifier: str,
    *,
    limit_env: str,
    window_env: str,
    default_limit: int,
    default_window_seconds: int,
) -> None:
    """Track a rate-limited action.

    Raises:
        RateLimitExceeded if the action should be blocked. retry_after_seconds
        indicates when the caller may retry.
    """
    if _rate_limiting_disabled():
        return
    _LIMITER.hit(
        key,
        identifier,
        limit=_env_int(limit_env, default_limit),
        window_seconds=_env_int(window_env, default_window_seconds),
    )


def enforce_auth_limit(request: Request, email: str, action: str, default_limit: int, default_window_seconds: int) -> None:
    """Apply ``rate_limit_action`` for an auth endpoint, answering 429 when blocked."""
    prefix = action.upper()
    try:
        rate_limit_action(
            action,
            client_identifier(request, email),
            limit_env=f"{prefix}_LIMIT",
            window_env=f"{prefix}_WINDOW_SEC",
            default_limit=default_limit,
            default_window_seconds=default_window_seconds,
        )
    except RateLimitExceeded as exc:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many attempts. Please try again later.",
            headers={"Retry-After": str(exc.retry_after_seconds)},
        ) from exc


def client_identifier(request: Request, email: str) -> str:
    host = request.client.host if request.client else "unknown"
    return f"{host}:{email.lower()}"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name) if name else None
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _rate_limiting_disabled() -> bool:
    flag = os.getenv("FORGE_RATE_LIMIT_DISABLED")
    if flag and flag.lower() in {"1", "true", "yes", "on"}:
        return True
    return bool(os.getenv("PYTEST_CURRENT_TEST"))


def reset_rate_limits() -> None:
    """Clear in-memory counters (useful for tests)."""
    _LIMITER.clear()
