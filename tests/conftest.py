"""
Pytest configuration and fixtures for blog platform tests.

Every test gets its own SQLite file, a Config pointing at it, and an SMS
sender that records messages instead of calling Twilio.
"""
import re
import sys
import pathlib

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from blog_platform.auth.crud import create_admin
from blog_platform.config import Config
from blog_platform.db import connect, init_db
from blog_platform.models import ROLE_ADMIN, STATUS_APPROVED

TEST_SECRET = "test-session-secret"
ADMIN_PASSWORD = "correct horse battery"


@pytest.fixture
def cfg(tmp_path) -> Config:
    dsn = str(tmp_path / "blog.sqlite")
    init_db(dsn)
    return Config(
        ENV="development",
        DB_DSN=dsn,
        AUTH_JWT_SECRET=TEST_SECRET,
        AUTH_TOKEN_EXPIRE_MINUTES=30,
        AUTH_BOOTSTRAP_ADMIN_USERNAME="",
        AUTH_BOOTSTRAP_ADMIN_PASSWORD="",
        AUTH_BOOTSTRAP_ADMIN_MOBILE="",
        AUTH_COOKIE_NAME="blog_session",
        AUTH_COOKIE_DOMAIN=None,
        AUTH_COOKIE_SECURE=False,
        AUTH_COOKIE_SAMESITE="lax",
        OTP_LENGTH=6,
        OTP_EXPIRE_MINUTES=5,
        SMS_DEV_CONSOLE=False,
        TWILIO_ACCOUNT_SID=None,
        TWILIO_AUTH_TOKEN=None,
        TWILIO_FROM_NUMBER=None,
        CLOUDINARY_CLOUD_NAME=None,
        CLOUDINARY_API_KEY=None,
        CLOUDINARY_API_SECRET=None,
    )


@pytest.fixture
def conn(cfg):
    """A connection that commits when the test finishes cleanly."""
    with connect(cfg.DB_DSN) as c:
        yield c


@pytest.fixture
def sent_sms(monkeypatch):
    """Capture outgoing SMS as (to, body) tuples."""
    outbox = []

    def _fake_send(cfg, *, to, body):
        outbox.append((to, body))

    monkeypatch.setattr("blog_platform.auth.sms.send_sms", _fake_send)
    return outbox


def last_code(outbox) -> str:
    """The login code from the most recent captured SMS."""
    assert outbox, "no SMS was sent"
    m = re.search(r"\b(\d{4,10})\b", outbox[-1][1])
    assert m, outbox[-1][1]
    return m.group(1)


@pytest.fixture
def make_admin(cfg):
    """Create an admin in its own committed transaction and return the public dict."""

    def _make(username, *, password=ADMIN_PASSWORD, role=ROLE_ADMIN, status=STATUS_APPROVED, **kw):
        with connect(cfg.DB_DSN) as c:
            return create_admin(c, username=username, password=password, role=role, status=status, **kw)

    return _make


@pytest.fixture
def client(cfg, monkeypatch):
    from fastapi.testclient import TestClient

    from blog_platform.api import server

    monkeypatch.setattr(server.app.state, "cfg", cfg)
    with TestClient(server.app) as c:
        yield c
