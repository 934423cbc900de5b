"""Role gate for the admin console.

`authorize_request` is a pure function of (path, token, config). It decodes the
token on every call; a decision is never cached because tokens expire between
requests. `AdminGateMiddleware` applies it before any handler runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from blog_platform.config import Config
from blog_platform.models import ROLE_SUPER_ADMIN, VALID_ROLES

from .security import decode_session_token

ALLOW = "allow"
REDIRECT_LOGIN = "redirect_login"
REDIRECT_LANDING = "redirect_landing"


@dataclass(frozen=True)
class GateDecision:
    action: str
    location: Optional[str] = None
    claims: Optional[Dict[str, Any]] = None

    @property
    def allowed(self) -> bool:
        return self.action == ALLOW


def path_matches(path: str, prefixes: Iterable[str]) -> bool:
    """Segment-aware prefix match: '/admin' matches '/admin' and '/admin/x', not '/administrator'."""
    p = path.rstrip("/") or "/"
    for prefix in prefixes:
        pre = prefix.rstrip("/") or "/"
        if p == pre or p.startswith(pre + "/"):
            return True
    return False


def read_session_claims(token: Optional[str], cfg: Config) -> Optional[Dict[str, Any]]:
    """Decoded claims for a valid token with a recognized role, else None."""
    if not token:
        return None
    try:
        claims = decode_session_token(token=token, secret=cfg.AUTH_JWT_SECRET)
    except jwt.InvalidTokenError:
        return None
    if claims.get("role") not in VALID_ROLES:
        return None
    return claims


def authorize_request(path: str, token: Optional[str], cfg: Config) -> GateDecision:
    if not path_matches(path, cfg.PROTECTED_PREFIXES):
        return GateDecision(ALLOW)

    claims = read_session_claims(token, cfg)
    if claims is None:
        return GateDecision(REDIRECT_LOGIN, location=cfg.LOGIN_PATH)

    if path_matches(path, cfg.SUPER_ADMIN_PREFIXES) and claims["role"] != ROLE_SUPER_ADMIN:
        return GateDecision(REDIRECT_LANDING, location=cfg.ADMIN_LANDING_PATH, claims=claims)

    return GateDecision(ALLOW, claims=claims)


def token_from_request(request: Request, cfg: Config) -> Optional[str]:
    """Session cookie first, then `Authorization: Bearer` for scripts."""
    token = request.cookies.get(cfg.AUTH_COOKIE_NAME)
    if token:
        return token
    auth = request.headers.get("Authorization") or ""
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


class AdminGateMiddleware(BaseHTTPMiddleware):
    """Redirects unauthenticated or under-privileged requests to admin paths."""

    def __init__(self, app, cfg: Optional[Config] = None):
        super().__init__(app)
        self.cfg = cfg

    async def dispatch(self, request: Request, call_next):
        # Without an explicit config, follow the one the app carries.
        cfg = self.cfg or request.app.state.cfg
        decision = authorize_request(request.url.path, token_from_request(request, cfg), cfg)
        if not decision.allowed:
            return RedirectResponse(url=decision.location, status_code=303)
        request.state.session_claims = decision.claims
        return await call_next(request)
