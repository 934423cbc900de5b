"""HTTP flows through the FastAPI app: login, OTP, gating, admin CRUD."""
from dataclasses import replace

import pytest

from blog_platform.errors import DeliveryError
from blog_platform.models import ROLE_SUPER_ADMIN, STATUS_PENDING

from conftest import ADMIN_PASSWORD, last_code


def _login(client, username, password=ADMIN_PASSWORD):
    r = client.post("/api/auth/admin/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return r


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_otp_end_to_end(client, make_admin, sent_sms):
    admin = make_admin("phoneadmin", mobile="9999999999")

    r = client.post("/api/auth/admin/send-otp", json={"mobile": "9999999999"})
    assert r.status_code == 200
    assert r.json()["success"] is True
    code = last_code(sent_sms)
    wrong = "000000" if code != "000000" else "111111"

    r = client.post("/api/auth/admin/otp-login", json={"mobile": "9999999999", "otp": wrong})
    assert r.status_code == 401
    assert r.json() == {"success": False, "detail": "invalid_credentials"}
    assert "blog_session" not in client.cookies

    r = client.post("/api/auth/admin/otp-login", json={"mobile": "9999999999", "otp": code})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["admin"] == {"id": admin["id"], "username": "phoneadmin"}
    assert client.cookies.get("blog_session")

    r = client.post("/api/auth/admin/otp-login", json={"mobile": "9999999999", "otp": code})
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_send_otp_to_unknown_number_looks_the_same(client, sent_sms):
    r = client.post("/api/auth/admin/send-otp", json={"mobile": "9999999999"})
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert sent_sms == []


def test_send_otp_delivery_failure_is_reported(client, make_admin, monkeypatch):
    make_admin("smsfail", mobile="9999999999")

    def _boom(cfg, *, to, body):
        raise DeliveryError("sms_delivery_failed: carrier rejected")

    monkeypatch.setattr("blog_platform.auth.sms.send_sms", _boom)
    r = client.post("/api/auth/admin/send-otp", json={"mobile": "9999999999"})
    assert r.status_code == 502
    assert r.json() == {"success": False, "detail": "sms_delivery_failed: carrier rejected"}


def test_malformed_requests_are_400(client):
    assert client.post("/api/auth/admin/send-otp", json={"mobile": "abcdefghijk"}).status_code == 400
    assert client.post("/api/auth/admin/login", json={"password": "x"}).status_code == 400
    assert client.post("/api/auth/admin/otp-login", json={"mobile": "9999999999"}).status_code == 400


def test_password_login_sets_session_cookie(client, make_admin):
    make_admin("cookieadmin")
    r = _login(client, "cookieadmin")
    assert r.json()["role"] == "admin"

    set_cookie = r.headers["set-cookie"]
    assert "blog_session=" in set_cookie
    assert "HttpOnly" in set_cookie
    assert "Max-Age=1800" in set_cookie
    assert "Path=/" in set_cookie
    assert "samesite=lax" in set_cookie.lower()
    assert "secure" not in set_cookie.lower()

    me = client.get("/api/auth/admin/me").json()["admin"]
    assert me["username"] == "cookieadmin"
    assert me["is_super"] is False


def test_secure_cookie_in_production(client, cfg, make_admin, monkeypatch):
    from blog_platform.api import server

    make_admin("prodadmin")
    monkeypatch.setattr(server.app.state, "cfg", replace(cfg, ENV="production", AUTH_COOKIE_SECURE=True))
    r = _login(client, "prodadmin")
    assert "secure" in r.headers["set-cookie"].lower()


def test_pending_admin_cannot_log_in(client, make_admin):
    make_admin("newbie", status=STATUS_PENDING)
    r = client.post("/api/auth/admin/login", json={"username": "newbie", "password": ADMIN_PASSWORD})
    assert r.status_code == 401
    assert r.json()["detail"] == "invalid_credentials"


def test_logout_clears_cookie(client, make_admin):
    make_admin("leaver")
    _login(client, "leaver")
    r = client.post("/api/auth/admin/logout")
    assert r.status_code == 200
    assert "blog_session" not in client.cookies
    assert client.get("/api/auth/admin/me").status_code == 401


def test_gate_redirects(client, make_admin):
    make_admin("plain")
    make_admin("chief", role=ROLE_SUPER_ADMIN)

    r = client.get("/admin/blogs", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/auth/admin/login"

    _login(client, "plain")
    assert client.get("/admin", follow_redirects=False).status_code == 200
    r = client.get("/admin/user-management", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/admin"
    r = client.post("/admin/add-admin", json={"username": "x", "password": "12345678"}, follow_redirects=False)
    assert r.status_code == 303

    client.cookies.clear()
    _login(client, "chief")
    r = client.get("/admin/user-management", follow_redirects=False)
    assert r.status_code == 200
    assert {a["username"] for a in r.json()["admins"]} == {"plain", "chief"}
    landing = client.get("/admin").json()
    assert landing["admin"]["is_super"] is True
    assert landing["counts"]["pending_admins"] == 0


def test_bearer_token_is_accepted(client, make_admin):
    make_admin("scripted")
    _login(client, "scripted")
    token = client.cookies.get("blog_session")
    client.cookies.clear()
    r = client.get("/admin", headers={"Authorization": f"Bearer {token}"}, follow_redirects=False)
    assert r.status_code == 200


def test_super_admin_manages_admins(client, make_admin):
    make_admin("chief", role=ROLE_SUPER_ADMIN)
    _login(client, "chief")

    r = client.post(
        "/admin/add-admin",
        json={"username": "helper", "password": "helper-pass", "mobile": "+15551112222", "approved": False},
    )
    assert r.status_code == 200, r.text
    helper = r.json()["admin"]
    assert helper["status"] == "pending"

    r = client.post("/admin/add-admin", json={"username": "helper", "password": "helper-pass"})
    assert r.status_code == 409

    r = client.post(f"/admin/user-management/{helper['id']}/status", json={"status": "approved"})
    assert r.json()["admin"]["status"] == "approved"

    me = client.get("/api/auth/admin/me").json()["admin"]
    r = client.post(f"/admin/user-management/{me['id']}/status", json={"status": "rejected"})
    assert r.status_code == 400
    assert r.json()["detail"] == "cannot_modify_super_admin"

    r = client.post(f"/admin/user-management/{helper['id']}/status", json={"status": "banned"})
    assert r.status_code == 400


def test_super_admin_changes_roles(client, make_admin):
    make_admin("chief", role=ROLE_SUPER_ADMIN)
    helper = make_admin("deputy")
    _login(client, "chief")

    r = client.post(f"/admin/user-management/{helper['id']}/role", json={"role": ROLE_SUPER_ADMIN})
    assert r.status_code == 200, r.text
    assert r.json()["admin"]["role"] == ROLE_SUPER_ADMIN

    me = client.get("/api/auth/admin/me").json()["admin"]
    r = client.post(f"/admin/user-management/{me['id']}/role", json={"role": "admin"})
    assert r.status_code == 400
    assert r.json()["detail"] == "cannot_change_own_role"

    assert client.post("/admin/user-management/9999/role", json={"role": "admin"}).status_code == 404
    assert client.post(f"/admin/user-management/{helper['id']}/role", json={"role": "owner"}).status_code == 400

    # The promoted account logs in with the new role.
    client.post("/api/auth/admin/logout")
    assert _login(client, "deputy").json()["role"] == ROLE_SUPER_ADMIN


def test_blog_lifecycle_through_api(client, make_admin):
    make_admin("editor")
    _login(client, "editor")

    cat = client.post("/admin/categories", json={"name": "Travel"}).json()["category"]
    r = client.post(
        "/admin/blogs",
        json={
            "title": "Trip to Lisbon",
            "content": "<p>Tram 28</p>",
            "meta_keywords": ["lisbon", "portugal"],
            "category_ids": [cat["id"]],
            "published": False,
        },
    )
    assert r.status_code == 200, r.text
    blog = r.json()["blog"]
    assert blog["slug"] == "trip-to-lisbon"
    assert blog["meta_keywords"] == "lisbon,portugal"

    assert client.get("/api/blogs/trip-to-lisbon").status_code == 404
    assert client.get("/api/blogs/check-slug", params={"slug": "Trip to Lisbon"}).json() == {
        "slug": "trip-to-lisbon",
        "available": False,
    }

    client.post(f"/admin/blogs/{blog['id']}/status", json={"published": True})
    page = client.get("/api/blogs/trip-to-lisbon").json()
    assert page["categories"][0]["slug"] == "travel"

    listing = client.get("/api/blogs", params={"search": "lisbon"}).json()
    assert listing["total"] == 1
    assert client.get("/api/blogs", params={"search": "lis", "suggest": 1}).json()["suggestions"][0]["slug"] == (
        "trip-to-lisbon"
    )
    assert client.get("/api/blogs/categories/travel").json()["blogs"][0]["id"] == blog["id"]

    faq = client.post(f"/admin/blogs/{blog['id']}/faqs", json={"question": "Best time?", "answer": "May"}).json()
    assert faq["faq"]["question"] == "Best time?"

    r = client.post(
        "/api/blogs/trip-to-lisbon/comments",
        json={"name": "Reader", "email": "reader@example.com", "content": "Lovely"},
    )
    assert r.status_code == 200
    assert client.post(
        "/api/blogs/trip-to-lisbon/likes", json={"name": "Reader", "email": "reader@example.com"}
    ).json()["likes"] == 1
    assert client.post(
        "/api/blogs/trip-to-lisbon/claps", json={"name": "Reader", "email": "reader@example.com"}
    ).status_code == 404

    comments = client.get("/admin/comments").json()
    assert comments["total"] == 1
    client.delete(f"/admin/comments/{comments['comments'][0]['id']}")

    r = client.put(f"/admin/blogs/{blog['id']}", json={"title": "Lisbon in May"})
    assert r.json()["blog"]["title"] == "Lisbon in May"

    assert client.delete(f"/admin/blogs/{blog['id']}").status_code == 200
    assert client.get(f"/admin/blogs/{blog['id']}").status_code == 404


def test_site_info_pages(client, make_admin):
    make_admin("editor")
    assert client.get("/api/info/about").status_code == 404
    _login(client, "editor")
    r = client.put("/admin/info/about", json={"title": "About", "content": "We write."})
    assert r.status_code == 200
    assert client.get("/api/info/about").json()["content"] == "We write."
    assert client.get("/api/info/careers").status_code == 400


@pytest.fixture
def cloudinary_cfg(cfg, monkeypatch):
    from blog_platform.api import server

    c = replace(cfg, CLOUDINARY_CLOUD_NAME="demo", CLOUDINARY_API_KEY="key", CLOUDINARY_API_SECRET="secret")
    monkeypatch.setattr(server.app.state, "cfg", c)
    return c


def test_image_upload_and_replacement_cleanup(client, make_admin, cloudinary_cfg, monkeypatch):
    uploads = []
    destroyed = []

    def _upload(file, **kw):
        uploads.append(kw)
        n = len(uploads)
        return {
            "secure_url": f"https://res.cloudinary.com/demo/image/upload/v1/blog-images/img{n}.png",
            "public_id": f"blog-images/img{n}",
        }

    def _destroy(public_id, **kw):
        destroyed.append(public_id)
        return {"result": "ok"}

    monkeypatch.setattr("cloudinary.uploader.upload", _upload)
    monkeypatch.setattr("cloudinary.uploader.destroy", _destroy)

    make_admin("editor")
    _login(client, "editor")

    r = client.post("/admin/media/upload", files={"image": ("a.png", b"\x89PNG fake", "image/png")})
    assert r.status_code == 200, r.text
    first = r.json()
    assert first["public_id"] == "blog-images/img1"
    assert uploads[0]["folder"] == "blog-images"

    r = client.post("/admin/media/upload", files={"image": ("a.txt", b"hello", "text/plain")})
    assert r.status_code == 400

    blog = client.post(
        "/admin/blogs",
        json={"title": "Pictured", "content": "x", "image": first["secure_url"], "image_public_id": first["public_id"]},
    ).json()["blog"]

    second = client.post("/admin/media/upload", files={"image": ("b.png", b"\x89PNG fake2", "image/png")}).json()
    client.put(
        f"/admin/blogs/{blog['id']}",
        json={"image": second["secure_url"], "image_public_id": second["public_id"]},
    )
    assert destroyed == ["blog-images/img1"]

    gallery = client.get("/api/blogs/media").json()
    assert gallery["blogs"][0]["image"] == second["secure_url"]


def test_upload_without_cloudinary_config_fails_cleanly(client, make_admin):
    make_admin("editor")
    _login(client, "editor")
    r = client.post("/admin/media/upload", files={"image": ("a.png", b"\x89PNG", "image/png")})
    assert r.status_code == 502
    assert r.json()["detail"] == "cloudinary_not_configured"


def test_deleting_legacy_blog_destroys_image_from_url(client, make_admin, cloudinary_cfg, monkeypatch):
    destroyed = []
    monkeypatch.setattr("cloudinary.uploader.destroy", lambda public_id, **kw: destroyed.append(public_id) or {"result": "ok"})

    make_admin("editor")
    _login(client, "editor")
    blog = client.post(
        "/admin/blogs",
        json={"title": "Legacy", "content": "x",
              "image": "https://res.cloudinary.com/demo/image/upload/v1600000000/blog-images/legacy.jpg"},
    ).json()["blog"]
    assert blog["image_public_id"] is None

    r = client.delete(f"/admin/blogs/{blog['id']}")
    assert r.status_code == 200, r.text
    assert destroyed == ["blog-images/legacy"]
