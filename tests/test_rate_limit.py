import pytest

from src.forge.security import rate_limit
from src.forge.security.rate_limit import FixedWindowLimiter, RateLimitExceeded, rate_limit_action


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_limiter_blocks_after_limit_until_window_ends():
    clock = FakeClock()
    limiter = FixedWindowLimiter(clock=clock)
    for _ in range(3):
        limiter.hit("login", "1.2.3.4:a@b.c", limit=3, window_seconds=60)
    with pytest.raises(RateLimitExceeded) as excinfo:
        limiter.hit("login", "1.2.3.4:a@b.c", limit=3, window_seconds=60)
    assert excinfo.value.retry_after_seconds == 60

    limiter.hit("login", "other", limit=3, window_seconds=60)
    clock.now = 61
    limiter.hit("login", "1.2.3.4:a@b.c", limit=3, window_seconds=60)


def test_action_uses_env_limits(monkeypatch):
    monkeypatch.delenv("PYTEST_CURRENT_TEST", raising=False)
    monkeypatch.delenv("FORGE_RATE_LIMIT_DISABLED", raising=False)
    monkeypatch.setenv("LOGIN_LIMIT", "1")
    monkeypatch.setattr(rate_limit, "_LIMITER", FixedWindowLimiter())
    kwargs = dict(limit_env="LOGIN_LIMIT", window_env="LOGIN_WINDOW_SEC", default_limit=10, default_window_seconds=60)
    rate_limit_action("login", "x", **kwargs)
    with pytest.raises(RateLimitExceeded):
        rate_limit_action("login", "x", **kwargs)


def test_disabled_flag_skips_counting(monkeypatch):
    monkeypatch.delenv("PYTEST_CURRENT_TEST", raising=False)
    monkeypatch.setenv("FORGE_RATE_LIMIT_DISABLED", "true")
    monkeypatch.setattr(rate_limit, "_LIMITER", FixedWindowLimiter())
    for _ in range(5):
        rate_limit_action("signup", "x", limit_env="", window_env="", default_limit=1, default_window_seconds=60)


def test_invalid_env_values_use_defaults(monkeypatch):
    monkeypatch.setenv("SIGNUP_LIMIT", "zero")
    monkeypatch.setenv("SIGNUP_WINDOW_SEC", "-5")
    assert rate_limit._env_int("SIGNUP_LIMIT", 5) == 5
    assert rate_limit._env_int("SIGNUP_WINDOW_SEC", 900) == 900
