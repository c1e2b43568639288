"""
Password policy and bcrypt hashing for user accounts.
"""

from __future__ import annotations

import bcrypt

from core.errors import AppError

MIN_PASSWORD_LENGTH = 8
# bcrypt only looks at the first 72 bytes and newer releases refuse longer input.
MAX_PASSWORD_BYTES = 72


class WeakPassword(AppError):
    status_code = 406
    message = "Password does not meet the requirements."


def check_password_policy(plain_password: str) -> bytes:
    password = (plain_password or "").encode("utf-8")
    if len(plain_password or "") < MIN_PASSWORD_LENGTH:
        raise WeakPassword(f'"password" must be at least {MIN_PASSWORD_LENGTH} characters long')
    if len(password) > MAX_PASSWORD_BYTES:
        raise WeakPassword(f'"password" must be at most {MAX_PASSWORD_BYTES} bytes long')
    return password


def hash_password(plain_password: str) -> str:
    password = check_password_policy(plain_password)
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed or len(password) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False
