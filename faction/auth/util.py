from __future__ import annotations

import base64
import os

from fastapi import Request


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def random_token(nbytes: int = 32) -> str:
    return b64url(os.urandom(nbytes))


def client_identifier(request: Request, trust_forwarded_for: bool = False) -> str:
    """
    Best-effort identity of the caller for attempt limiting.

    `X-Forwarded-For` is only honoured when the gateway is known to sit behind a
    proxy that sets it; otherwise any client could pick its own identity.
    """
    if trust_forwarded_for:
        forwarded = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
        if forwarded:
            return forwarded
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
