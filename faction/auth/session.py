from __future__ import annotations

import json
from datetime import timedelta, timezone
from typing import Optional

from itsdangerous import BadData, URLSafeTimedSerializer

from faction.auth.config import GatewayConfig
from faction.auth.models import OPERATOR_SUBJECT, GatewaySession

SESSION_SALT = "faction-gateway-session-v1"


def session_cookie_name(cfg: GatewayConfig) -> str:
    # `__Host-` requires Secure + Path=/ + no Domain; browsers may reject it on HTTP.
    return "__Host-faction_session" if cfg.cookie_secure else "faction_session"


def _serializer(secret: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key=secret, salt=SESSION_SALT)


def encode_session(secret: str) -> str:
    # Keep the token small and non-sensitive: it only proves a past successful login.
    raw = json.dumps({"sub": OPERATOR_SUBJECT}, separators=(",", ":"), sort_keys=True)
    return _serializer(secret).dumps(raw)


def decode_session(secret: str, value: str | None, max_age: int) -> Optional[GatewaySession]:
    if not value:
        return None
    try:
        raw, signed_at = _serializer(secret).loads(value, max_age=max_age, return_timestamp=True)
        data = json.loads(raw)
    except (BadData, ValueError):
        return None
    if not isinstance(data, dict) or data.get("sub") != OPERATOR_SUBJECT:
        return None
    issued_at = signed_at if signed_at.tzinfo else signed_at.replace(tzinfo=timezone.utc)
    return GatewaySession(
        subject=OPERATOR_SUBJECT,
        issued_at=issued_at,
        expires_at=issued_at + timedelta(seconds=max_age),
    )


def session_cookie_kwargs(cfg: GatewayConfig, value: str, max_age: Optional[int] = None) -> dict:
    """`Response.set_cookie` arguments; an empty value with max_age=0 clears the cookie."""
    return {
        "key": session_cookie_name(cfg),
        "value": value,
        "max_age": cfg.session_ttl_seconds if max_age is None else max_age,
        "httponly": True,
        "secure": cfg.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }
