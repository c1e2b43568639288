"""
JWT issuance and classification.

Tokens are HS256-signed with the server salt and carry:
- sub: username
- iat/exp: issue and expiry time (epoch seconds)
- jti: random id, so two issuances never produce the same string
- pwd: fingerprint of the password hash, so a password change retires tokens

`decode` never raises; it sorts every outcome into a `TokenStatus`.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import jwt

ALGORITHM = "HS256"


class TokenStatus(str, Enum):
    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DecodedToken:
    status: TokenStatus
    subject: str | None = None
    reason: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)


def password_fingerprint(password_hash: str, salt: str) -> str:
    digest = hmac.new(salt.encode("utf-8"), (password_hash or "").encode("utf-8"), hashlib.sha256)
    return digest.hexdigest()[:32]


def issue(
    username: str,
    password_hash: str,
    salt: str,
    *,
    expires_in: int,
    now: int | None = None,
) -> str:
    if not salt:
        raise ValueError("Cannot issue a token without a salt.")
    issued_at = int(time.time()) if now is None else int(now)
    payload = {
        "sub": username,
        "iat": issued_at,
        "exp": issued_at + int(expires_in),
        "jti": secrets.token_hex(8),
        "pwd": password_fingerprint(password_hash, salt),
    }
    return jwt.encode(payload, salt, algorithm=ALGORITHM)


def decode(token: str, salt: str) -> DecodedToken:
    raw = (token or "").strip()
    if not raw:
        return DecodedToken(TokenStatus.UNKNOWN, reason="Token is empty.")

    try:
        claims = jwt.decode(
            raw,
            salt,
            algorithms=[ALGORITHM],
            options={"require": ["sub", "iat", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        return DecodedToken(TokenStatus.EXPIRED, reason="Token has expired.")
    except jwt.InvalidSignatureError as exc:
        # Subclass of DecodeError, so it has to be caught first.
        return DecodedToken(TokenStatus.INVALID, reason=str(exc) or "Signature verification failed.")
    except jwt.DecodeError as exc:
        return DecodedToken(TokenStatus.UNKNOWN, reason=str(exc) or "Token could not be decoded.")
    except jwt.InvalidTokenError as exc:
        return DecodedToken(TokenStatus.INVALID, reason=str(exc) or "Token is invalid.")

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        return DecodedToken(TokenStatus.INVALID, reason="Token has no subject.", claims=claims)
    return DecodedToken(TokenStatus.VALID, subject=subject, claims=claims)


def matches_password(decoded: DecodedToken, password_hash: str, salt: str) -> bool:
    claimed = str(decoded.claims.get("pwd") or "")
    return hmac.compare_digest(claimed, password_fingerprint(password_hash, salt))
