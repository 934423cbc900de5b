from __future__ import annotations

from typing import Any, Dict, List, Optional

from blog_platform.config import Config
from blog_platform.db import connect
from blog_platform.errors import Conflict, NotFound, ValidationError
from blog_platform.models import (
    ROLE_ADMIN,
    ROLE_SUPER_ADMIN,
    STATUS_APPROVED,
    STATUS_PENDING,
    VALID_ROLES,
    VALID_STATUSES,
    AdminAccount,
)
from blog_platform.util.normalization import normalize_email, normalize_mobile
from blog_platform.util.time import utcnow_iso

from .security import burn_password_check, hash_password, verify_password


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


def normalize_identifier(identifier: str) -> str:
    return (identifier or "").strip().lower()


def public_admin(row: Any) -> Dict[str, Any]:
    return AdminAccount.from_row(row).public()


def get_admin_by_id(conn: Any, admin_id: int) -> Optional[Any]:
    return conn.execute(
        "SELECT * FROM admin_users WHERE id=?",
        (int(admin_id),),
    ).fetchone()


def get_admin_by_identifier(conn: Any, identifier: str) -> Optional[Any]:
    """Look up by username or email."""
    ident = normalize_identifier(identifier)
    if not ident:
        return None
    return conn.execute(
        "SELECT * FROM admin_users WHERE username=? OR email=?",
        (ident, ident),
    ).fetchone()


def get_admin_by_mobile(conn: Any, mobile: str) -> Optional[Any]:
    if not mobile:
        return None
    return conn.execute(
        "SELECT * FROM admin_users WHERE mobile=?",
        (mobile,),
    ).fetchone()


def verify_admin_credentials(conn: Any, identifier: str, password: str) -> Optional[Any]:
    """Return the account row only for an approved account with a matching password.

    Unknown identifier, unapproved status and wrong password all return None,
    and all of them pay for one hash verification.
    """
    row = get_admin_by_identifier(conn, identifier)
    if row is None:
        burn_password_check(password)
        return None
    password_ok = verify_password(password, str(row["password_hash"]))
    if not password_ok or str(row["status"]) != STATUS_APPROVED:
        return None
    return row


def create_admin(
    conn: Any,
    *,
    username: str,
    password: str,
    email: str | None = None,
    mobile: str | None = None,
    name: str | None = None,
    role: str = ROLE_ADMIN,
    status: str = STATUS_PENDING,
) -> Dict[str, Any]:
    u = normalize_identifier(username)
    if not u:
        raise ValidationError("username_blank")
    if role not in VALID_ROLES:
        raise ValidationError("invalid_role")
    if status not in VALID_STATUSES:
        raise ValidationError("invalid_status")
    e = normalize_email(email)
    m = normalize_mobile(mobile) if mobile else None

    existing = conn.execute(
        # Login accepts either username or email, so each must be unique across both columns.
        "SELECT 1 FROM admin_users WHERE username IN (?,?) OR email IN (?,?) OR (mobile IS NOT NULL AND mobile=?)",
        (u, e, u, e, m),
    ).fetchone()
    if existing is not None:
        raise Conflict("admin_exists")

    now = utcnow_iso()
    row = conn.execute(
        """
        INSERT INTO admin_users (username, name, email, mobile, password_hash, status, role, is_super, created_at, updated_at)
        VALUES (?,?,?,?,?,?,?,?,?,?)
        RETURNING *
        """,
        (u, name, e, m, hash_password(password), status, role, 1 if role == ROLE_SUPER_ADMIN else 0, now, now),
    ).fetchone()
    return public_admin(row)


def list_admins(conn: Any) -> List[Dict[str, Any]]:
    rows = conn.execute("SELECT * FROM admin_users ORDER BY created_at DESC, id DESC").fetchall()
    out = []
    for r in rows:
        d = public_admin(r)
        d["mobile"] = r["mobile"]
        d["created_at"] = r["created_at"]
        d["last_login_at"] = r["last_login_at"]
        out.append(d)
    return out


def update_admin_status(conn: Any, *, admin_id: int, status: str) -> Dict[str, Any]:
    """Approve or reject an account. Super-admins cannot be changed this way."""
    if status not in VALID_STATUSES:
        raise ValidationError("invalid_status")
    row = get_admin_by_id(conn, admin_id)
    if row is None:
        raise NotFound("admin_not_found")
    if AdminAccount.from_row(row).is_super:
        raise ValidationError("cannot_modify_super_admin")

    conn.execute(
        "UPDATE admin_users SET status=?, updated_at=? WHERE id=?",
        (status, utcnow_iso(), int(admin_id)),
    )
    _debug(f"admin {admin_id} status -> {status}")
    return public_admin(get_admin_by_id(conn, admin_id))


def update_admin_role(conn: Any, *, admin_id: int, role: str, acting_admin_id: int | None = None) -> Dict[str, Any]:
    """Change the authoritative role; is_super follows it.

    Sessions already minted keep the role they were issued with until they expire.
    """
    if acting_admin_id is not None and int(acting_admin_id) == int(admin_id):
        raise ValidationError("cannot_change_own_role")
    if role not in VALID_ROLES:
        raise ValidationError("invalid_role")
    cur = conn.execute(
        "UPDATE admin_users SET role=?, is_super=?, updated_at=? WHERE id=?",
        (role, 1 if role == ROLE_SUPER_ADMIN else 0, utcnow_iso(), int(admin_id)),
    )
    if cur.rowcount == 0:
        raise NotFound("admin_not_found")
    _debug(f"admin {admin_id} role -> {role}")
    return public_admin(get_admin_by_id(conn, admin_id))


def touch_last_login(conn: Any, admin_id: int) -> None:
    now = utcnow_iso()
    conn.execute(
        "UPDATE admin_users SET last_login_at=?, updated_at=? WHERE id=?",
        (now, now, int(admin_id)),
    )


def bootstrap_super_admin_if_needed(cfg: Config) -> Optional[Dict[str, Any]]:
    """Create the first approved super-admin if admin_users is empty.

    Controlled via environment variables:

    - AUTH_BOOTSTRAP_ADMIN_USERNAME
    - AUTH_BOOTSTRAP_ADMIN_PASSWORD
    - AUTH_BOOTSTRAP_ADMIN_MOBILE (optional, enables OTP login)

    Nothing is created when either username or password is unset.
    """
    username = normalize_identifier(cfg.AUTH_BOOTSTRAP_ADMIN_USERNAME)
    password = cfg.AUTH_BOOTSTRAP_ADMIN_PASSWORD
    if not username or not password:
        return None

    with connect(cfg.DB_DSN) as conn:
        n = conn.execute("SELECT COUNT(*) AS n FROM admin_users").fetchone()["n"]
        if int(n) > 0:
            return None

        return create_admin(
            conn,
            username=username,
            password=password,
            mobile=cfg.AUTH_BOOTSTRAP_ADMIN_MOBILE or None,
            role=ROLE_SUPER_ADMIN,
            status=STATUS_APPROVED,
        )
