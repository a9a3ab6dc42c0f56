from __future__ import annotations

from typing import Optional

from faction.auth.config import GatewayConfig


def is_origin_allowed(cfg: GatewayConfig, origin: Optional[str]) -> bool:
    """
    Exact-match origin check.

    An empty allowlist accepts everything (development mode). Requests without an
    `Origin` header are same-origin or non-browser callers and are not subject to
    the cross-origin policy.
    """
    if not cfg.origin_check_enabled:
        return True
    if origin is None:
        return True
    return origin in cfg.allowed_origins


def cors_origins(cfg: GatewayConfig) -> list[str]:
    """Origins handed to the CORS middleware."""
    if not cfg.origin_check_enabled:
        return ["*"]
    return sorted(cfg.allowed_origins)
