from __future__ import annotations

from typing import Optional

from fastapi import Request

from faction.auth.models import GatewaySession
from faction.auth.session import decode_session, session_cookie_name


def _bearer_token(request: Request) -> Optional[str]:
    header = (request.headers.get("authorization") or "").strip()
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def authenticate_request(request: Request) -> Optional[GatewaySession]:
    """
    Authenticate a request and return the session if present/valid.

    Checks the session cookie first (same-origin browser UI), then an
    `Authorization: Bearer` header (cross-origin UI that keeps the token itself).
    """
    cfg = request.app.state.config
    secret = request.app.state.session_secret

    for candidate in (request.cookies.get(session_cookie_name(cfg)), _bearer_token(request)):
        session = decode_session(secret, candidate, cfg.session_ttl_seconds)
        if session is not None:
            return session

    # No valid authentication found
    return None
