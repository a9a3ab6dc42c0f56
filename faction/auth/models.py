from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

# The dashboard has exactly one shared secret, so every session belongs to the same subject.
OPERATOR_SUBJECT = "operator"


@dataclass(frozen=True)
class GatewaySession:
    """A validated session token."""

    subject: str
    issued_at: datetime
    expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "authenticated": True,
            "issued_at": self.issued_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }
