"""Admin authentication / authorization.

- Credential store: admin_users rows (username or email, password hash, status, role)
- One-time SMS codes as a second way to log in
- Stateless JWT sessions in an httpOnly cookie (30 minutes, no refresh)
- A role gate in front of every /admin path

Only `approved` accounts can log in. `role` is authoritative; the legacy
`is_super` flag is derived from it.
"""

from .crud import bootstrap_super_admin_if_needed, create_admin, verify_admin_credentials
from .deps import get_current_admin, require_super_admin
from .gate import AdminGateMiddleware, authorize_request
from .session import IssuedSession, login_with_otp, login_with_password, mint_session

__all__ = [
    "AdminGateMiddleware",
    "IssuedSession",
    "authorize_request",
    "bootstrap_super_admin_if_needed",
    "create_admin",
    "get_current_admin",
    "login_with_otp",
    "login_with_password",
    "mint_session",
    "require_super_admin",
    "verify_admin_credentials",
]
