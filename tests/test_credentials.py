import pytest

from blog_platform.auth.crud import (
    bootstrap_super_admin_if_needed,
    create_admin,
    list_admins,
    update_admin_role,
    update_admin_status,
    verify_admin_credentials,
)
from blog_platform.auth.security import decode_session_token
from blog_platform.auth.session import login_with_password
from blog_platform.db import connect
from blog_platform.errors import AuthenticationFailure, Conflict, NotFound, ValidationError
from blog_platform.models import (
    ROLE_ADMIN,
    ROLE_SUPER_ADMIN,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    resolve_role,
)

from conftest import ADMIN_PASSWORD


def test_create_admin_normalizes_and_hides_hash(conn):
    a = create_admin(
        conn,
        username="  Alice ",
        password="pw-123456",
        email="Alice@Example.COM",
        mobile="+1 (555) 123-4567",
    )
    assert a["username"] == "alice"
    assert a["email"] == "alice@example.com"
    assert a["role"] == ROLE_ADMIN
    assert a["status"] == STATUS_PENDING
    assert "password_hash" not in a

    row = conn.execute("SELECT mobile, password_hash FROM admin_users WHERE id=?", (a["id"],)).fetchone()
    assert row["mobile"] == "+15551234567"
    assert row["password_hash"] != "pw-123456"


def test_create_admin_rejects_duplicates(conn):
    create_admin(conn, username="bob", password="pw", email="bob@example.com", mobile="5551112222")
    with pytest.raises(Conflict):
        create_admin(conn, username="BOB", password="pw")
    with pytest.raises(Conflict):
        create_admin(conn, username="bob2", password="pw", email="bob@example.com")
    with pytest.raises(Conflict):
        create_admin(conn, username="bob3", password="pw", mobile="555-111-2222")


def test_username_and_email_cannot_shadow_each_other(conn):
    create_admin(conn, username="carol", password="pw", email="carol@example.com")
    with pytest.raises(Conflict):
        create_admin(conn, username="Carol@Example.com", password="pw")
    create_admin(conn, username="erin@example.com", password="pw")
    with pytest.raises(Conflict):
        create_admin(conn, username="dave", password="pw", email="Erin@example.com")


def test_create_admin_rejects_bad_input(conn):
    with pytest.raises(ValidationError):
        create_admin(conn, username=" ", password="pw")
    with pytest.raises(ValidationError):
        create_admin(conn, username="x", password="pw", role="owner")
    with pytest.raises(ValidationError):
        create_admin(conn, username="x", password="pw", mobile="12")


@pytest.mark.parametrize("status", [STATUS_PENDING, STATUS_REJECTED])
def test_unapproved_accounts_never_pass_password_login(cfg, make_admin, status):
    make_admin("carol", status=status, email="carol@example.com")
    with connect(cfg.DB_DSN) as c:
        assert verify_admin_credentials(c, "carol", ADMIN_PASSWORD) is None
        assert verify_admin_credentials(c, "carol@example.com", ADMIN_PASSWORD) is None
        with pytest.raises(AuthenticationFailure):
            login_with_password(c, cfg, "carol", ADMIN_PASSWORD)


def test_password_login_by_username_or_email(cfg, make_admin):
    a = make_admin("dave", email="dave@example.com")
    with connect(cfg.DB_DSN) as c:
        s1 = login_with_password(c, cfg, "dave", ADMIN_PASSWORD)
        s2 = login_with_password(c, cfg, "DAVE@example.com", ADMIN_PASSWORD)
    assert s1.account.id == a["id"] == s2.account.id
    with connect(cfg.DB_DSN) as c:
        row = c.execute("SELECT last_login_at FROM admin_users WHERE id=?", (a["id"],)).fetchone()
    assert row["last_login_at"] is not None


def test_wrong_password_and_unknown_user_fail_the_same_way(cfg, make_admin):
    make_admin("erin")
    with connect(cfg.DB_DSN) as c:
        with pytest.raises(AuthenticationFailure) as wrong:
            login_with_password(c, cfg, "erin", "nope")
        with pytest.raises(AuthenticationFailure) as unknown:
            login_with_password(c, cfg, "nobody", "nope")
    assert wrong.value.detail == unknown.value.detail


def test_blank_login_input_is_a_validation_error(cfg):
    with connect(cfg.DB_DSN) as c:
        with pytest.raises(ValidationError):
            login_with_password(c, cfg, "", "pw")


def test_role_claim_is_fixed_at_mint_time(cfg, make_admin):
    a = make_admin("frank", role=ROLE_SUPER_ADMIN)
    with connect(cfg.DB_DSN) as c:
        session = login_with_password(c, cfg, "frank", ADMIN_PASSWORD)
    with connect(cfg.DB_DSN) as c:
        update_admin_role(c, admin_id=a["id"], role=ROLE_ADMIN)

    claims = decode_session_token(token=session.token, secret=cfg.AUTH_JWT_SECRET)
    assert claims["role"] == ROLE_SUPER_ADMIN

    with connect(cfg.DB_DSN) as c:
        fresh = login_with_password(c, cfg, "frank", ADMIN_PASSWORD)
    assert decode_session_token(token=fresh.token, secret=cfg.AUTH_JWT_SECRET)["role"] == ROLE_ADMIN


def test_update_admin_status_flow(conn):
    a = create_admin(conn, username="gina", password="pw")
    assert update_admin_status(conn, admin_id=a["id"], status=STATUS_APPROVED)["status"] == STATUS_APPROVED
    with pytest.raises(NotFound):
        update_admin_status(conn, admin_id=9999, status=STATUS_APPROVED)
    with pytest.raises(ValidationError):
        update_admin_status(conn, admin_id=a["id"], status="banned")


def test_update_admin_role(conn):
    a = create_admin(conn, username="hank", password="pw", status=STATUS_APPROVED)
    promoted = update_admin_role(conn, admin_id=a["id"], role=ROLE_SUPER_ADMIN)
    assert promoted["role"] == ROLE_SUPER_ADMIN
    assert conn.execute("SELECT is_super FROM admin_users WHERE id=?", (a["id"],)).fetchone()["is_super"] == 1

    with pytest.raises(ValidationError) as e:
        update_admin_role(conn, admin_id=a["id"], role=ROLE_ADMIN, acting_admin_id=a["id"])
    assert e.value.detail == "cannot_change_own_role"
    with pytest.raises(NotFound):
        update_admin_role(conn, admin_id=9999, role=ROLE_ADMIN)


def test_super_admin_status_cannot_be_changed(conn):
    s = create_admin(conn, username="root", password="pw", role=ROLE_SUPER_ADMIN, status=STATUS_APPROVED)
    with pytest.raises(ValidationError) as e:
        update_admin_status(conn, admin_id=s["id"], status=STATUS_REJECTED)
    assert e.value.detail == "cannot_modify_super_admin"


def test_list_admins_newest_first(conn):
    create_admin(conn, username="first", password="pw")
    create_admin(conn, username="second", password="pw")
    names = [a["username"] for a in list_admins(conn)]
    assert set(names) == {"first", "second"}
    assert all("password_hash" not in a for a in list_admins(conn))


def test_resolve_role_prefers_explicit_role():
    assert resolve_role("admin", 1) == ROLE_ADMIN
    assert resolve_role("super-admin", 0) == ROLE_SUPER_ADMIN
    assert resolve_role(None, 1) == ROLE_SUPER_ADMIN
    assert resolve_role("", 0) == ROLE_ADMIN
    assert resolve_role("owner", 0) == ROLE_ADMIN


def test_bootstrap_creates_super_admin_once(cfg):
    from dataclasses import replace

    boot_cfg = replace(
        cfg,
        AUTH_BOOTSTRAP_ADMIN_USERNAME="owner",
        AUTH_BOOTSTRAP_ADMIN_PASSWORD="owner-pass",
        AUTH_BOOTSTRAP_ADMIN_MOBILE="+15550000000",
    )
    created = bootstrap_super_admin_if_needed(boot_cfg)
    assert created["role"] == ROLE_SUPER_ADMIN
    assert created["status"] == STATUS_APPROVED
    assert bootstrap_super_admin_if_needed(boot_cfg) is None


def test_bootstrap_skipped_without_credentials(cfg):
    assert bootstrap_super_admin_if_needed(cfg) is None
