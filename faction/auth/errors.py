"""
Gateway error taxonomy.

Each error carries the HTTP status and the public message rendered as
`{"error": message}`. Messages are deliberately generic: none of them says
anything about the secret or about which check failed internally.
"""
from __future__ import annotations


class GatewayError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class BadRequest(GatewayError):
    status_code = 400
    message = "Password required"


class Unauthorized(GatewayError):
    status_code = 401
    message = "Incorrect password"


class ForbiddenOrigin(GatewayError):
    status_code = 403
    message = "Origin not allowed"


class TooManyAttempts(GatewayError):
    status_code = 429
    message = "Too many login attempts. Try again later."


class NotConfigured(GatewayError):
    status_code = 500
    message = "Gateway is not configured"
