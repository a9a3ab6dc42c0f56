from __future__ import annotations

import re

import bcrypt

# bcrypt only reads the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72

DEFAULT_ROUNDS = 12

_BCRYPT_DIGEST_RE = re.compile(r"^\$2[aby]\$\d{2}\$[./A-Za-z0-9]{53}$")


def looks_like_digest(value: str | None) -> bool:
    """Cheap shape check for a bcrypt digest (no hashing involved)."""
    return bool(value) and bool(_BCRYPT_DIGEST_RE.match(value or ""))


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """
    Produce a bcrypt digest for the shared dashboard password.

    Used offline (see `main.py --hash-password`); the gateway itself never hashes
    at runtime, it only verifies.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor (log2 of the iteration count)

    Returns:
        Bcrypt hash string

    Raises:
        ValueError: If the password is empty or longer than 72 bytes
    """
    if not password:
        raise ValueError("Password must not be empty")
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash with constant-time comparison.

    bcrypt re-derives the salt and cost factor from the digest, recomputes the
    hash of the candidate and compares the two in constant time.

    Args:
        password: Plain text password
        password_hash: Bcrypt hash

    Returns:
        True if password matches, False otherwise
    """
    if not password or not password_hash:
        return False
    try:
        raw = password.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates (legal in JSON `\ud800` escapes) have no UTF-8 form, so no digest covers them.
        return False
    if len(raw) > MAX_PASSWORD_BYTES:
        # Digests are never produced for longer inputs, so nothing this long can match.
        return False
    try:
        return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
    except ValueError:
        # Invalid hash format
        return False
