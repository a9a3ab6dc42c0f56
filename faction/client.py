"""
Client side of the gateway: session holder and the login/logout flow.

The holder keeps the session flag (and, since tokens exist, the token that backs
it) in a small JSON file, the local-storage equivalent for non-browser callers.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)

SESSION_FLAG_KEY = "faction_auth"
SESSION_TOKEN_KEY = "faction_session"

MSG_PASSWORD_REQUIRED = "Password required"
MSG_INCORRECT_PASSWORD = "Incorrect password"
MSG_TOO_MANY_ATTEMPTS = "Too many attempts, try again later"


def default_store_path() -> Path:
    return Path(os.getenv("FACTION_SESSION_FILE", "") or Path.home() / ".faction" / "session.json")


class SessionStore:
    """Durable key-value entries, one JSON object per file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_store_path()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    PENDING = "pending"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class LoginResult:
    ok: bool
    message: Optional[str] = None
    # Failed attempts ask the UI to clear the password field so a known-bad value is not resubmitted.
    clear_password: bool = False


class GatewayClient:
    """
    Drives the auth flow against a gateway.

    UNAUTHENTICATED -> PENDING -> AUTHENTICATED (success) or back to
    UNAUTHENTICATED (any failure). A persisted session flag puts the client
    straight into AUTHENTICATED without contacting the gateway. Logout only
    discards local state.
    """

    def __init__(
        self,
        base_url: str,
        store: Optional[SessionStore] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.store = store or SessionStore()
        self.http = session or requests.Session()
        self.timeout = timeout
        self.state = AuthState.AUTHENTICATED if self.store.get(SESSION_FLAG_KEY) == "true" else AuthState.UNAUTHENTICATED

    @property
    def authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    @property
    def token(self) -> Optional[str]:
        return self.store.get(SESSION_TOKEN_KEY)

    def _clear(self) -> None:
        self.store.remove(SESSION_FLAG_KEY)
        self.store.remove(SESSION_TOKEN_KEY)
        self.state = AuthState.UNAUTHENTICATED

    def _fail(self, message: str) -> LoginResult:
        self._clear()
        return LoginResult(ok=False, message=message, clear_password=True)

    def login(self, password: str) -> LoginResult:
        self.state = AuthState.PENDING
        try:
            resp = self.http.post(f"{self.base_url}/login", json={"password": password}, timeout=self.timeout)
        except requests.RequestException as e:
            # Network failures look exactly like a wrong password to the user.
            logger.debug("Login request failed: %s", e)
            return self._fail(MSG_INCORRECT_PASSWORD)

        if resp.status_code == 400:
            return self._fail(MSG_PASSWORD_REQUIRED)
        if resp.status_code == 429:
            return self._fail(MSG_TOO_MANY_ATTEMPTS)
        if resp.status_code != 200:
            return self._fail(MSG_INCORRECT_PASSWORD)

        try:
            body = resp.json()
        except ValueError:
            return self._fail(MSG_INCORRECT_PASSWORD)
        if not isinstance(body, dict) or body.get("success") is not True:
            return self._fail(MSG_INCORRECT_PASSWORD)

        self.store.set(SESSION_FLAG_KEY, "true")
        token = body.get("token")
        if isinstance(token, str) and token:
            self.store.set(SESSION_TOKEN_KEY, token)
        self.state = AuthState.AUTHENTICATED
        return LoginResult(ok=True)

    def logout(self) -> None:
        self._clear()

    def verify_session(self) -> bool:
        """
        Ask the gateway whether the stored token is still valid.

        A definitive 401 (or a flag with no token behind it) drops local state;
        transport errors leave it untouched.
        """
        token = self.token
        if not token:
            # A bare flag proves nothing; make the user log in again.
            self._clear()
            return False
        try:
            resp = self.http.get(
                f"{self.base_url}/session",
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.debug("Session check failed: %s", e)
            return self.authenticated
        if resp.status_code == 401:
            self._clear()
            return False
        return resp.status_code == 200 and self.authenticated
