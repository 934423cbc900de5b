"""Session issuing.

Two ways in (password, OTP), one way out: `mint_session`. A login attempt goes
Unauthenticated -> Verifying -> Authenticated | Rejected within a single call;
nothing is remembered between attempts. Sessions are stateless JWTs, so logout
is the client dropping the cookie and there is no server-side revocation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from blog_platform.config import Config
from blog_platform.errors import AuthenticationFailure, ValidationError
from blog_platform.models import AdminAccount

from .crud import touch_last_login, verify_admin_credentials
from .otp import verify_otp
from .security import create_session_token


def _debug(msg: str) -> None:
    print(f"[session] {msg}")


@dataclass(frozen=True)
class IssuedSession:
    token: str
    account: AdminAccount
    expires_at: datetime

    def payload(self) -> Dict[str, Any]:
        return {
            "success": True,
            "admin": {"id": self.account.id, "username": self.account.username},
            "role": self.account.role,
            "expires_at": self.expires_at.isoformat().replace("+00:00", "Z"),
        }


def mint_session(cfg: Config, account: AdminAccount) -> IssuedSession:
    """Sign a token carrying the account's role as of now."""
    token, exp = create_session_token(
        secret=cfg.AUTH_JWT_SECRET,
        admin_id=account.id,
        username=account.username,
        role=account.role,
        expires_minutes=cfg.AUTH_TOKEN_EXPIRE_MINUTES,
    )
    return IssuedSession(token=token, account=account, expires_at=exp)


def login_with_password(conn: Any, cfg: Config, identifier: str, password: str) -> IssuedSession:
    if not (identifier or "").strip() or not password:
        raise ValidationError("identifier_and_password_required")

    row = verify_admin_credentials(conn, identifier, password)
    if row is None:
        _debug("password login rejected")
        raise AuthenticationFailure()

    account = AdminAccount.from_row(row)
    touch_last_login(conn, account.id)
    _debug(f"password login ok id={account.id} role={account.role}")
    return mint_session(cfg, account)


def login_with_otp(conn: Any, cfg: Config, mobile: str, code: str) -> IssuedSession:
    account = verify_otp(conn, cfg, mobile, code)
    touch_last_login(conn, account.id)
    _debug(f"otp login ok id={account.id} role={account.role}")
    return mint_session(cfg, account)
