from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from passlib.context import CryptContext


_pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
_JWT_ALG = "HS256"

# Computed once so unknown-identifier logins still pay for a hash verification.
_DUMMY_HASH = _pwd.hash("not-a-real-password")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except ValueError:
        # Unrecognized or malformed hash.
        return False


def burn_password_check(password: str) -> None:
    """Spend the same time as a real verification when no account matched."""
    _pwd.verify(password or "x", _DUMMY_HASH)


def create_session_token(
    *,
    secret: str,
    admin_id: int,
    username: str,
    role: str,
    expires_minutes: int,
    now: datetime | None = None,
) -> tuple[str, datetime]:
    """Sign a session JWT. Returns the token and its expiry."""
    if not secret:
        raise ValueError("jwt_secret_blank")

    issued = now or datetime.now(timezone.utc)
    exp = issued + timedelta(minutes=max(1, int(expires_minutes)))

    payload: Dict[str, Any] = {
        "sub": str(admin_id),
        "username": username,
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALG), exp


def decode_session_token(*, token: str, secret: str) -> Dict[str, Any]:
    """Verify signature and expiry. Raises jwt.InvalidTokenError on any problem."""
    if not token:
        raise jwt.InvalidTokenError("token_blank")
    if not secret:
        raise ValueError("jwt_secret_blank")
    return jwt.decode(token, secret, algorithms=[_JWT_ALG], options={"require": ["sub", "role", "exp", "iat"]})
