from __future__ import annotations

from typing import Any, Dict

from fastapi import Depends, HTTPException, Request

from blog_platform.errors import AuthorizationFailure
from blog_platform.models import ROLE_SUPER_ADMIN

from .gate import read_session_claims, token_from_request


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def get_session_claims(request: Request) -> Dict[str, Any]:
    """Claims of the current session.

    Admin paths already went through AdminGateMiddleware, which leaves the
    decoded claims on request.state. Other paths decode here.
    """
    claims = getattr(request.state, "session_claims", None)
    if claims:
        return claims

    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise HTTPException(status_code=500, detail="server_config_missing")

    claims = read_session_claims(token_from_request(request, cfg), cfg)
    if claims is None:
        raise _unauthorized("not_authenticated")
    return claims


def get_current_admin(claims: Dict[str, Any] = Depends(get_session_claims)) -> Dict[str, Any]:
    """Identity as asserted by the token (no database read)."""
    try:
        admin_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        raise _unauthorized("token_sub_invalid")
    return {
        "id": admin_id,
        "username": claims.get("username"),
        "role": claims["role"],
        "is_super": claims["role"] == ROLE_SUPER_ADMIN,
    }


def require_super_admin(admin: Dict[str, Any] = Depends(get_current_admin)) -> Dict[str, Any]:
    if admin["role"] != ROLE_SUPER_ADMIN:
        raise AuthorizationFailure("super_admin_required")
    return admin
