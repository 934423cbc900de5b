"""One-time login codes sent by SMS.

Codes are stored as sha256 hashes with an expiry. Issuing a code for a mobile
number retires every older unconsumed code for that number. Verification is a
single conditional UPDATE (compare-and-set on `consumed`), so two concurrent
verifications of the same code cannot both succeed.
"""

from __future__ import annotations

import hashlib
import secrets
from typing import Any

from blog_platform.config import Config
from blog_platform.db import connect
from blog_platform.errors import DeliveryError, InvalidOrExpired, ValidationError
from blog_platform.models import STATUS_APPROVED, AdminAccount
from blog_platform.util.normalization import normalize_mobile
from blog_platform.util.time import iso_in, utcnow_iso

from . import sms
from .crud import get_admin_by_mobile


def _debug(msg: str) -> None:
    print(f"[otp] {msg}")


def generate_code(length: int) -> str:
    return str(secrets.randbelow(10**length)).zfill(length)


def _code_hash(mobile: str, code: str) -> str:
    # Salted by mobile so equal codes for different numbers hash differently.
    return hashlib.sha256(f"{mobile}:{code}".encode("utf-8")).hexdigest()


def issue_otp(cfg: Config, mobile: str) -> bool:
    """Issue and send a code for `mobile`.

    Returns True when a code was sent. Numbers that do not belong to an approved
    admin get no code and no error, so callers cannot probe for accounts.

    The challenge is committed before the SMS goes out, so no write lock is held
    while the SMS provider is contacted. If delivery fails the new challenge is
    retired in a second transaction and DeliveryError is re-raised.
    """
    m = normalize_mobile(mobile)
    code = generate_code(cfg.OTP_LENGTH)

    with connect(cfg.DB_DSN) as conn:
        row = get_admin_by_mobile(conn, m)
        if row is None or str(row["status"]) != STATUS_APPROVED:
            _debug("issue skipped: no approved admin for number")
            return False

        now = utcnow_iso()
        conn.execute(
            "UPDATE otp_challenges SET consumed=1, consumed_at=? WHERE mobile=? AND consumed=0",
            (now, m),
        )
        challenge_id = conn.execute(
            """
            INSERT INTO otp_challenges (mobile, code_hash, expires_at, consumed, created_at)
            VALUES (?,?,?,0,?)
            RETURNING id
            """,
            (m, _code_hash(m, code), iso_in(cfg.OTP_EXPIRE_MINUTES), now),
        ).fetchone()["id"]

    try:
        sms.send_sms(
            cfg,
            to=m,
            body=f"Your admin login code is {code}. It expires in {cfg.OTP_EXPIRE_MINUTES} minutes.",
        )
    except DeliveryError:
        with connect(cfg.DB_DSN) as conn:
            conn.execute(
                "UPDATE otp_challenges SET consumed=1, consumed_at=? WHERE id=? AND consumed=0",
                (utcnow_iso(), int(challenge_id)),
            )
        _debug(f"challenge {challenge_id} retired after delivery failure")
        raise
    return True


def verify_otp(conn: Any, cfg: Config, mobile: str, code: str) -> AdminAccount:
    """Consume a matching, unexpired code and return the owning admin.

    Wrong code, expired code, already-used code and unknown number all raise the
    same InvalidOrExpired.
    """
    m = normalize_mobile(mobile)
    c = (code or "").strip()
    if not c.isdigit() or len(c) != cfg.OTP_LENGTH:
        raise ValidationError("invalid_otp_format")

    now = utcnow_iso()
    cur = conn.execute(
        """
        UPDATE otp_challenges
        SET consumed=1, consumed_at=?
        WHERE mobile=? AND code_hash=? AND consumed=0 AND expires_at > ?
        """,
        (now, m, _code_hash(m, c), now),
    )
    if cur.rowcount < 1:
        raise InvalidOrExpired()

    row = get_admin_by_mobile(conn, m)
    account = AdminAccount.from_row(row) if row is not None else None
    if account is None or not account.is_approved:
        raise InvalidOrExpired()
    return account


def purge_expired_otps(conn: Any) -> int:
    """Delete consumed and expired challenges. Returns the number removed."""
    cur = conn.execute(
        "DELETE FROM otp_challenges WHERE consumed=1 OR expires_at <= ?",
        (utcnow_iso(),),
    )
    return int(cur.rowcount or 0)
