"""
Pytest config.

The repo can be used without installing it, so local imports like `import faction`
rely on the repo root being on sys.path. When invoking a global `pytest`
entrypoint that doesn't happen reliably during collection; pin it here.
"""

from __future__ import annotations

import sys
from pathlib import Path

import bcrypt
import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

from faction.auth.config import GatewayConfig, load_gateway_config  # noqa: E402

TEST_PASSWORD = "correct horse battery staple"
TEST_SESSION_SECRET = "test-secret-key-for-testing-purposes-only"


@pytest.fixture(scope="session")
def password_digest() -> str:
    # Lowest bcrypt cost keeps the suite fast; verification logic is the same.
    return bcrypt.hashpw(TEST_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


@pytest.fixture(autouse=True)
def _fresh_gateway_config(monkeypatch: pytest.MonkeyPatch):
    """Start every test from a clean environment and an empty config cache."""
    for name in (
        "AUTH_PASSWORD_HASH",
        "AUTH_ALLOWED_ORIGINS",
        "AUTH_SESSION_SECRET",
        "AUTH_SESSION_TTL_SECONDS",
        "AUTH_COOKIE_SECURE",
        "AUTH_RATE_LIMIT_MAX_ATTEMPTS",
        "AUTH_RATE_LIMIT_WINDOW_SECONDS",
        "AUTH_TRUST_FORWARDED_FOR",
        "HOST",
        "PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    load_gateway_config.cache_clear()
    yield
    load_gateway_config.cache_clear()


@pytest.fixture
def gateway_config(password_digest: str) -> GatewayConfig:
    return GatewayConfig(password_hash=password_digest, session_secret=TEST_SESSION_SECRET)


@pytest.fixture
def password() -> str:
    return TEST_PASSWORD
