"""
Authentication helpers for the dashboard gateway.

Design goals:
- One shared secret, stored only as a bcrypt digest.
- Binary allow/deny answer; nothing about the secret leaks through responses.
- Signed, expiring session tokens instead of a bare client-side flag.
"""
