from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import FrozenSet, Optional

DEFAULT_PORT = 3000


@dataclass(frozen=True)
class GatewayConfig:
    # Secret digest (bcrypt). Never logged, never returned.
    password_hash: Optional[str] = field(default=None, repr=False)

    # Exact-match origins; empty means any origin (development mode)
    allowed_origins: FrozenSet[str] = frozenset()

    # Session token configuration
    session_secret: Optional[str] = field(default=None, repr=False)  # Random per process when unset
    session_ttl_seconds: int = 43200
    cookie_secure: bool = False

    # Login attempt limiting (max_attempts=0 disables)
    rate_limit_max_attempts: int = 5
    rate_limit_window_seconds: int = 300
    trust_forwarded_for: bool = False

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT

    @property
    def configured(self) -> bool:
        """The gateway can only answer logins once a digest is present."""
        return bool(self.password_hash)

    @property
    def origin_check_enabled(self) -> bool:
        return bool(self.allowed_origins)

    @property
    def rate_limit_enabled(self) -> bool:
        return self.rate_limit_max_attempts > 0


def _parse_csv(value: str) -> FrozenSet[str]:
    # Origins are compared exactly, so no case folding here.
    items = [x.strip().rstrip("/") for x in (value or "").split(",")]
    return frozenset(x for x in items if x)


def _parse_bool(value: str) -> Optional[bool]:
    v = (value or "").strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    return None


def _parse_int(value: str, default: int) -> int:
    raw = (value or "").strip()
    if not raw:
        return default
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        return default


@lru_cache(maxsize=1)
def load_gateway_config() -> GatewayConfig:
    """
    Load gateway configuration from environment variables.

    The result is cached for the lifetime of the process: the digest and the
    origin allowlist are read once and never change afterwards.
    """
    password_hash = (os.getenv("AUTH_PASSWORD_HASH", "") or "").strip() or None
    allowed_origins = _parse_csv(os.getenv("AUTH_ALLOWED_ORIGINS", ""))

    cookie_secure = _parse_bool(os.getenv("AUTH_COOKIE_SECURE", ""))
    if cookie_secure is None:
        # Default: secure cookies when the UI is served over https; otherwise allow local dev.
        cookie_secure = any(o.startswith("https://") for o in allowed_origins)

    ttl = _parse_int(os.getenv("AUTH_SESSION_TTL_SECONDS", ""), 43200)  # 12h default
    if ttl <= 60:
        ttl = 60

    max_attempts = max(0, _parse_int(os.getenv("AUTH_RATE_LIMIT_MAX_ATTEMPTS", ""), 5))
    window = max(1, _parse_int(os.getenv("AUTH_RATE_LIMIT_WINDOW_SECONDS", ""), 300))

    return GatewayConfig(
        password_hash=password_hash,
        allowed_origins=allowed_origins,
        session_secret=(os.getenv("AUTH_SESSION_SECRET", "") or "").strip() or None,
        session_ttl_seconds=ttl,
        cookie_secure=cookie_secure,
        rate_limit_max_attempts=max_attempts,
        rate_limit_window_seconds=window,
        trust_forwarded_for=bool(_parse_bool(os.getenv("AUTH_TRUST_FORWARDED_FOR", ""))),
        host=(os.getenv("HOST", "") or "0.0.0.0").strip(),
        port=_parse_int(os.getenv("PORT", ""), DEFAULT_PORT),
    )
