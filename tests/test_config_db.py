from dataclasses import replace

import pytest

from blog_platform.config import validate_config
from blog_platform.db import _qmark_to_pct, connect, init_db
from blog_platform.errors import ConfigError
from blog_platform.schema import get_schema_sql


def test_validate_config_accepts_test_config(cfg):
    validate_config(cfg)


def test_missing_session_secret_is_fatal(cfg):
    with pytest.raises(ConfigError):
        validate_config(replace(cfg, AUTH_JWT_SECRET="  "))


def test_other_invalid_settings(cfg):
    with pytest.raises(ConfigError):
        validate_config(replace(cfg, AUTH_TOKEN_EXPIRE_MINUTES=0))
    with pytest.raises(ConfigError):
        validate_config(replace(cfg, OTP_LENGTH=3))
    with pytest.raises(ConfigError):
        validate_config(replace(cfg, ENV="production", AUTH_COOKIE_SAMESITE="none", AUTH_COOKIE_SECURE=False))


def test_app_refuses_to_start_without_secret(cfg, monkeypatch):
    from fastapi.testclient import TestClient

    from blog_platform.api import server

    monkeypatch.setattr(server.app.state, "cfg", replace(cfg, AUTH_JWT_SECRET=""))
    with pytest.raises(ConfigError):
        with TestClient(server.app):
            pass


def test_qmark_conversion_for_postgres():
    assert _qmark_to_pct("SELECT * FROM t WHERE a=? AND b=?") == "SELECT * FROM t WHERE a=%s AND b=%s"
    assert _qmark_to_pct("SELECT '?' , ?") == "SELECT '?' , %s"
    assert _qmark_to_pct("SELECT 'it''s ?', ?") == "SELECT 'it''s ?', %s"
    assert _qmark_to_pct("WHERE x LIKE '%a' AND y=?") == "WHERE x LIKE '%%a' AND y=%s"


def test_postgres_schema_is_derived():
    ddl = get_schema_sql("postgres")
    assert "AUTOINCREMENT" not in ddl
    assert "BIGSERIAL PRIMARY KEY" in ddl
    assert "PRAGMA" not in ddl
    assert "CREATE TABLE IF NOT EXISTS admin_users" in ddl


def test_init_db_is_idempotent(cfg):
    init_db(cfg.DB_DSN)
    init_db(cfg.DB_DSN)
    with connect(cfg.DB_DSN) as c:
        tables = {r["name"] for r in c.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()}
    assert {"admin_users", "otp_challenges", "blogs", "categories", "faqs", "comments", "site_info"} <= tables


def test_legacy_is_super_rows_get_a_role(tmp_path):
    import sqlite3

    dsn = str(tmp_path / "legacy.sqlite")
    raw = sqlite3.connect(dsn)
    raw.execute(
        """
        CREATE TABLE admin_users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            email TEXT UNIQUE,
            password_hash TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending',
            is_super INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )
    raw.execute(
        "INSERT INTO admin_users (username, password_hash, status, is_super, created_at, updated_at)"
        " VALUES ('old', 'x', 'approved', 1, '2020-01-01T00:00:00Z', '2020-01-01T00:00:00Z')"
    )
    raw.commit()
    raw.close()

    init_db(dsn)
    with connect(dsn) as c:
        row = c.execute("SELECT role, is_super FROM admin_users WHERE username='old'").fetchone()
    assert row["role"] == "super-admin"
    assert row["is_super"] == 1
