"""
Signed session cookie values.

The cookie carries `<session_id>.<signature>`. A value that fails
verification for any reason is reported as `None`, exactly like a missing
cookie, so callers cannot (and must not) tell the two apart.
"""

from __future__ import annotations

import hashlib
import hmac

from itsdangerous import BadSignature, Signer

COOKIE_NAME = "current-session"


class CookieSigner:
    def __init__(self, secret: str, *, salt: str = COOKIE_NAME) -> None:
        if not secret:
            raise ValueError("Session secret is empty.")
        self._signer = Signer(secret, salt=salt, digest_method=hashlib.sha256)

    def sign(self, session_id: str) -> str:
        return self._signer.sign(session_id).decode("utf-8")

    def unsign(self, value: str | None) -> str | None:
        # Signed values are pure ASCII; anything else is tampered.
        if not value or not value.isascii():
            return None
        try:
            session_id = self._signer.unsign(value).decode("utf-8")
        except (BadSignature, UnicodeError):
            return None
        # base64 ignores trailing pad bits, so only the canonical encoding is accepted.
        if not hmac.compare_digest(self.sign(session_id).encode("ascii"), value.encode("ascii")):
            return None
        return session_id
