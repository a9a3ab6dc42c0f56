from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient

from faction.api.gateway import create_app
from faction.auth.config import GatewayConfig
from faction.auth.rate_limit import RateLimiter


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now


def test_rate_limiter_blocks_after_max_attempts() -> None:
    limiter = RateLimiter(max_attempts=3, window_seconds=60, clock=_Clock())
    assert limiter.check_and_increment("1.2.3.4") == (True, 2)
    assert limiter.check_and_increment("1.2.3.4") == (True, 1)
    assert limiter.check_and_increment("1.2.3.4") == (True, 0)
    assert limiter.check_and_increment("1.2.3.4") == (False, 0)
    # Other identifiers are unaffected.
    assert limiter.check_and_increment("5.6.7.8") == (True, 2)


def test_rate_limiter_window_expiry_and_reset() -> None:
    clock = _Clock()
    limiter = RateLimiter(max_attempts=2, window_seconds=60, clock=clock)
    limiter.check_and_increment("a")
    limiter.check_and_increment("a")
    assert limiter.check_and_increment("a")[0] is False

    clock.now += timedelta(seconds=61)
    assert limiter.check_and_increment("a")[0] is True

    limiter.reset("a")
    assert limiter.check_and_increment("a") == (True, 1)
    limiter.reset("never-seen")


def test_rate_limiter_prune_drops_stale_identifiers() -> None:
    clock = _Clock()
    limiter = RateLimiter(max_attempts=5, window_seconds=60, clock=clock)
    limiter.check_and_increment("old")
    clock.now += timedelta(seconds=120)
    limiter.check_and_increment("new")
    assert len(limiter) == 2
    assert limiter.prune() == 1
    assert len(limiter) == 1


def test_login_throttled_after_failed_attempts(gateway_config: GatewayConfig, password: str) -> None:
    c = TestClient(create_app(replace(gateway_config, rate_limit_max_attempts=3)))
    for _ in range(3):
        assert c.post("/login", json={"password": "wrong"}).status_code == 401

    with patch("faction.api.gateway.verify_password") as mock_verify:
        r = c.post("/login", json={"password": password})
        assert r.status_code == 429
        assert "error" in r.json()
        mock_verify.assert_not_called()


def test_successful_login_resets_attempts(gateway_config: GatewayConfig, password: str) -> None:
    c = TestClient(create_app(replace(gateway_config, rate_limit_max_attempts=3)))
    assert c.post("/login", json={"password": "wrong"}).status_code == 401
    assert c.post("/login", json={"password": "wrong"}).status_code == 401
    assert c.post("/login", json={"password": password}).status_code == 200
    for _ in range(3):
        assert c.post("/login", json={"password": "wrong"}).status_code == 401


def test_bad_requests_do_not_count(gateway_config: GatewayConfig, password: str) -> None:
    c = TestClient(create_app(replace(gateway_config, rate_limit_max_attempts=1)))
    for _ in range(3):
        assert c.post("/login", json={}).status_code == 400
    assert c.post("/login", json={"password": password}).status_code == 200


def test_rate_limit_disabled(gateway_config: GatewayConfig) -> None:
    c = TestClient(create_app(replace(gateway_config, rate_limit_max_attempts=0)))
    for _ in range(8):
        assert c.post("/login", json={"password": "wrong"}).status_code == 401


def test_forwarded_for_only_trusted_when_enabled(gateway_config: GatewayConfig) -> None:
    cfg = replace(gateway_config, rate_limit_max_attempts=1)

    untrusted = TestClient(create_app(cfg))
    assert untrusted.post("/login", json={"password": "x"}, headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 401
    # Same peer, different claimed address: still the same bucket.
    assert untrusted.post("/login", json={"password": "x"}, headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 429

    trusted = TestClient(create_app(replace(cfg, trust_forwarded_for=True)))
    assert trusted.post("/login", json={"password": "x"}, headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 401
    assert (
        trusted.post("/login", json={"password": "x"}, headers={"X-Forwarded-For": "10.0.0.2, 10.0.0.99"}).status_code
        == 401
    )
    assert trusted.post("/login", json={"password": "x"}, headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
