from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Query, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, model_validator

from blog_platform.auth import (
    AdminGateMiddleware,
    bootstrap_super_admin_if_needed,
    get_current_admin,
    login_with_otp,
    login_with_password,
    require_super_admin,
)
from blog_platform.auth.crud import create_admin, list_admins, update_admin_role, update_admin_status
from blog_platform.auth.otp import issue_otp
from blog_platform.auth.session import IssuedSession
from blog_platform.config import Config, load_config, validate_config
from blog_platform.content import blogs as blog_store
from blog_platform.content import categories as category_store
from blog_platform.content import comments as comment_store
from blog_platform.content import faqs as faq_store
from blog_platform.content import site_info as info_store
from blog_platform.content.slugs import SLUGGED_TABLES, slug_available
from blog_platform.db import connect, init_db
from blog_platform.errors import (
    AuthenticationFailure,
    AuthorizationFailure,
    BlogPlatformError,
    Conflict,
    DeliveryError,
    ImageHostError,
    NotFound,
    ValidationError,
)
from blog_platform.media import cloudinary_host
from blog_platform.models import STATUS_APPROVED, STATUS_PENDING, VALID_ROLES, VALID_STATUSES
from blog_platform.util.normalization import slugify


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg: Config = app.state.cfg
    validate_config(cfg)

    # Ensure schema exists.
    init_db(cfg.DB_DSN)

    boot = bootstrap_super_admin_if_needed(cfg)
    if boot:
        _debug(f"Bootstrapped initial super-admin: username={boot.get('username')}")
    yield


app = FastAPI(title="Blog Platform", version="0.1.0", lifespan=lifespan)
app.state.cfg = load_config()

# CORS is mainly needed for local development (frontend dev server on another port).
_cors_origins = [o.strip() for o in (app.state.cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]

# Gate first so CORS ends up outermost.
app.add_middleware(AdminGateMiddleware)
if _cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def get_cfg(request: Request) -> Config:
    return request.app.state.cfg


# -----------------------------
# Errors
# -----------------------------

_ERROR_STATUS = (
    (AuthenticationFailure, 401),
    (AuthorizationFailure, 403),
    (ValidationError, 400),
    (NotFound, 404),
    (Conflict, 409),
    (DeliveryError, 502),
    (ImageHostError, 502),
)


@app.exception_handler(BlogPlatformError)
async def _platform_error(request: Request, exc: BlogPlatformError) -> JSONResponse:
    status = 500
    for cls, code in _ERROR_STATUS:
        if isinstance(exc, cls):
            status = code
            break
    if status == 500:
        _debug(f"{request.method} {request.url.path} failed: {exc!r}")
        return JSONResponse(status_code=500, content={"success": False, "detail": "server_error"})
    if isinstance(exc, AuthenticationFailure):
        # Same body for every cause.
        return JSONResponse(status_code=status, content={"success": False, "detail": "invalid_credentials"})
    return JSONResponse(status_code=status, content={"success": False, "detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
    return JSONResponse(status_code=400, content={"success": False, "detail": "invalid_input", "errors": errors})


@app.exception_handler(Exception)
async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    _debug(f"{request.method} {request.url.path} unexpected error: {exc!r}")
    return JSONResponse(status_code=500, content={"success": False, "detail": "server_error"})


# -----------------------------
# Health
# -----------------------------


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}


# -----------------------------
# Auth
# -----------------------------

def _cookie_secure(cfg: Config) -> bool:
    """Return whether the session cookie should be marked Secure."""
    # Browsers require Secure when SameSite=None
    if cfg.AUTH_COOKIE_SAMESITE.lower() == "none":
        return True
    return bool(cfg.AUTH_COOKIE_SECURE)


def _set_session_cookie(response: Response, session: IssuedSession, cfg: Config) -> None:
    response.set_cookie(
        key=cfg.AUTH_COOKIE_NAME,
        value=session.token,
        httponly=True,
        samesite=cfg.AUTH_COOKIE_SAMESITE.lower(),
        secure=_cookie_secure(cfg),
        max_age=int(cfg.AUTH_TOKEN_EXPIRE_MINUTES) * 60,
        path=cfg.AUTH_COOKIE_PATH,
        domain=cfg.AUTH_COOKIE_DOMAIN,
    )


def _clear_session_cookie(response: Response, cfg: Config) -> None:
    response.delete_cookie(key=cfg.AUTH_COOKIE_NAME, path=cfg.AUTH_COOKIE_PATH, domain=cfg.AUTH_COOKIE_DOMAIN)


class LoginRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str = Field(min_length=1, max_length=256)

    @model_validator(mode="after")
    def _one_identifier(self) -> "LoginRequest":
        if not (self.username or self.email or "").strip():
            raise ValueError("username or email is required")
        return self

    @property
    def identifier(self) -> str:
        return (self.username or self.email or "").strip()


class SendOtpRequest(BaseModel):
    mobile: str = Field(min_length=10, max_length=20)


class OtpLoginRequest(BaseModel):
    mobile: str = Field(min_length=10, max_length=20)
    otp: str = Field(min_length=4, max_length=10)


@app.get("/auth/admin/login")
def auth_login_entry(cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    """Login entry point that gated admin paths redirect to."""
    return {
        "methods": ["credentials", "otp"],
        "credentials": "/api/auth/admin/login",
        "send_otp": "/api/auth/admin/send-otp",
        "otp_login": "/api/auth/admin/otp-login",
        "session_minutes": cfg.AUTH_TOKEN_EXPIRE_MINUTES,
    }


@app.post("/api/auth/admin/login")
def auth_login(payload: LoginRequest, response: Response, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        session = login_with_password(conn, cfg, payload.identifier, payload.password)
    _set_session_cookie(response, session, cfg)
    return session.payload()


@app.post("/api/auth/admin/send-otp")
def auth_send_otp(payload: SendOtpRequest, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    # DeliveryError propagates (502); the new challenge is already retired.
    issue_otp(cfg, payload.mobile)
    return {"success": True, "message": "If this number belongs to an admin, a code has been sent."}


@app.post("/api/auth/admin/otp-login")
def auth_otp_login(payload: OtpLoginRequest, response: Response, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        session = login_with_otp(conn, cfg, payload.mobile, payload.otp)
    _set_session_cookie(response, session, cfg)
    return session.payload()


@app.post("/api/auth/admin/logout")
def auth_logout(response: Response, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    """Clear the session cookie. The token itself stays valid until it expires."""
    _clear_session_cookie(response, cfg)
    return {"success": True}


@app.get("/api/auth/admin/me")
def auth_me(admin: Dict[str, Any] = Depends(get_current_admin)) -> Dict[str, Any]:
    return {"admin": admin}


# -----------------------------
# Public blog
# -----------------------------


class ReaderRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(min_length=3, max_length=254)


class CommentRequest(ReaderRequest):
    content: str = Field(min_length=1, max_length=comment_store.MAX_COMMENT_LENGTH)


@app.get("/api/blogs")
def public_list_blogs(
    search: Optional[str] = Query(None, max_length=200),
    suggest: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    cfg: Config = Depends(get_cfg),
) -> Any:
    with connect(cfg.DB_DSN) as conn:
        if suggest:
            return {"suggestions": blog_store.suggest_blogs(conn, search or "", limit=min(limit, 10))}
        return blog_store.list_blogs(conn, search=search, page=page, limit=limit, published_only=True)


@app.get("/api/blogs/check-slug")
def check_slug(
    slug: str = Query(..., min_length=1, max_length=200),
    kind: str = Query("blogs"),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    if kind not in SLUGGED_TABLES:
        raise ValidationError("invalid_kind")
    s = slugify(slug)
    if not s:
        raise ValidationError("invalid_slug")
    with connect(cfg.DB_DSN) as conn:
        return {"slug": s, "available": slug_available(conn, s, table=kind)}


@app.get("/api/blogs/categories")
def public_list_categories(cfg: Config = Depends(get_cfg)) -> List[Dict[str, Any]]:
    with connect(cfg.DB_DSN) as conn:
        return category_store.list_categories(conn)


@app.get("/api/blogs/categories/{slug}")
def public_category(slug: str, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return category_store.list_category_blogs(conn, slug)


@app.get("/api/blogs/media")
def public_blog_media(
    page: int = Query(1, ge=1),
    limit: int = Query(8, ge=1, le=50),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return blog_store.list_blog_media(conn, page=page, limit=limit)


@app.get("/api/blogs/{slug}")
def public_blog(slug: str, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return blog_store.get_published_blog(conn, slug)


@app.post("/api/blogs/{slug}/comments")
def public_add_comment(slug: str, payload: CommentRequest, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        comment = comment_store.add_comment(
            conn, blog_slug=slug, name=payload.name, email=payload.email, content=payload.content
        )
    return {"success": True, "comment": comment}


@app.post("/api/blogs/{slug}/{reaction}")
def public_react(slug: str, reaction: str, payload: ReaderRequest, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    if reaction not in comment_store.REACTION_TABLES:
        raise NotFound("unknown_reaction")
    with connect(cfg.DB_DSN) as conn:
        count = comment_store.add_reaction(
            conn, table=reaction, blog_slug=slug, name=payload.name, email=payload.email
        )
    return {"success": True, reaction: count}


@app.get("/api/info/{kind}")
def public_site_info(kind: str, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return info_store.get_site_info(conn, kind)


# -----------------------------
# Admin console (gated by AdminGateMiddleware)
# -----------------------------


class BlogCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    content: str = Field(min_length=1)
    slug: Optional[str] = Field(None, max_length=200)
    image: Optional[str] = None
    image_public_id: Optional[str] = None
    image_alt: Optional[str] = Field(None, max_length=300)
    meta_title: Optional[str] = Field(None, max_length=300)
    meta_description: Optional[str] = Field(None, max_length=1000)
    meta_keywords: List[str] = Field(default_factory=list)
    category_ids: List[int] = Field(default_factory=list)
    published: bool = True


class BlogUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, max_length=300)
    content: Optional[str] = None
    slug: Optional[str] = Field(None, max_length=200)
    image: Optional[str] = None
    image_public_id: Optional[str] = None
    image_alt: Optional[str] = Field(None, max_length=300)
    meta_title: Optional[str] = Field(None, max_length=300)
    meta_description: Optional[str] = Field(None, max_length=1000)
    meta_keywords: Optional[List[str]] = None
    author_id: Optional[int] = None
    category_ids: Optional[List[int]] = None


class BlogStatusRequest(BaseModel):
    published: bool


class RelatedBlogsRequest(BaseModel):
    related_ids: List[int] = Field(default_factory=list)


class FaqRequest(BaseModel):
    question: str = Field(min_length=1, max_length=500)
    answer: str = Field(min_length=1)


class CategoryCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    slug: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = None
    image_public_id: Optional[str] = None


class CategoryUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=120)
    slug: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = None
    image_public_id: Optional[str] = None


class SiteInfoRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)


class AdminStatusRequest(BaseModel):
    status: str

    @model_validator(mode="after")
    def _known_status(self) -> "AdminStatusRequest":
        if self.status not in VALID_STATUSES:
            raise ValueError(f"status must be one of {', '.join(VALID_STATUSES)}")
        return self


class AdminRoleRequest(BaseModel):
    role: str

    @model_validator(mode="after")
    def _known_role(self) -> "AdminRoleRequest":
        if self.role not in VALID_ROLES:
            raise ValueError(f"role must be one of {', '.join(VALID_ROLES)}")
        return self


class CreateAdminRequest(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=8, max_length=256)
    name: Optional[str] = Field(None, max_length=120)
    email: Optional[str] = Field(None, max_length=254)
    mobile: Optional[str] = Field(None, max_length=20)
    role: str = "admin"
    approved: bool = True

    @model_validator(mode="after")
    def _known_role(self) -> "CreateAdminRequest":
        if self.role not in VALID_ROLES:
            raise ValueError(f"role must be one of {', '.join(VALID_ROLES)}")
        return self


def _keywords(words: Optional[List[str]]) -> Optional[str]:
    if words is None:
        return None
    return ",".join(w.strip() for w in words if w and w.strip())


def _cleanup_image(cfg: Config, public_id: Optional[str]) -> None:
    """Best-effort removal of a replaced or orphaned image after the DB change committed."""
    if not public_id or not cloudinary_host.is_configured(cfg):
        return
    try:
        cloudinary_host.delete_image(cfg, public_id)
    except ImageHostError as e:
        _debug(f"image cleanup failed for {public_id}: {e.detail}")


@app.get("/admin")
def admin_landing(
    admin: Dict[str, Any] = Depends(get_current_admin),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        counts = {
            "blogs": conn.execute("SELECT COUNT(*) AS n FROM blogs").fetchone()["n"],
            "drafts": conn.execute("SELECT COUNT(*) AS n FROM blogs WHERE status=0").fetchone()["n"],
            "categories": conn.execute("SELECT COUNT(*) AS n FROM categories").fetchone()["n"],
            "comments": conn.execute("SELECT COUNT(*) AS n FROM comments").fetchone()["n"],
        }
        if admin["is_super"]:
            counts["pending_admins"] = conn.execute(
                "SELECT COUNT(*) AS n FROM admin_users WHERE status=?",
                (STATUS_PENDING,),
            ).fetchone()["n"]
    return {"admin": admin, "counts": {k: int(v) for k, v in counts.items()}}


# Blogs


@app.get("/admin/blogs")
def admin_list_blogs(
    search: Optional[str] = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return blog_store.list_blogs(conn, search=search, page=page, limit=limit, published_only=False)


@app.post("/admin/blogs")
def admin_create_blog(
    payload: BlogCreateRequest,
    admin: Dict[str, Any] = Depends(get_current_admin),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        blog = blog_store.create_blog(
            conn,
            author_id=admin["id"],
            title=payload.title,
            content=payload.content,
            slug=payload.slug,
            image=payload.image,
            image_public_id=payload.image_public_id,
            image_alt=payload.image_alt,
            meta_title=payload.meta_title,
            meta_description=payload.meta_description,
            meta_keywords=_keywords(payload.meta_keywords),
            category_ids=payload.category_ids,
            published=payload.published,
        )
    return {"success": True, "blog": blog}


@app.get("/admin/blogs/{blog_id}")
def admin_get_blog(blog_id: int, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return {"success": True, "blog": blog_store.get_blog_by_id(conn, blog_id)}


@app.put("/admin/blogs/{blog_id}")
def admin_update_blog(blog_id: int, payload: BlogUpdateRequest, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    fields = payload.model_dump(include=set(blog_store.EDITABLE_FIELDS) - {"meta_keywords"})
    fields["meta_keywords"] = _keywords(payload.meta_keywords)
    with connect(cfg.DB_DSN) as conn:
        blog, replaced = blog_store.update_blog(
            conn,
            blog_id,
            fields=fields,
            slug=payload.slug,
            image=payload.image,
            image_public_id=payload.image_public_id,
            category_ids=payload.category_ids,
        )
    _cleanup_image(cfg, replaced)
    return {"success": True, "blog": blog}


@app.post("/admin/blogs/{blog_id}/status")
def admin_blog_status(blog_id: int, payload: BlogStatusRequest, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return {"success": True, "blog": blog_store.set_blog_status(conn, blog_id, payload.published)}


@app.put("/admin/blogs/{blog_id}/related")
def admin_related_blogs(blog_id: int, payload: RelatedBlogsRequest, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return {"success": True, "related_ids": blog_store.set_related_blogs(conn, blog_id, payload.related_ids)}


@app.delete("/admin/blogs/{blog_id}")
def admin_delete_blog(blog_id: int, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        public_id = blog_store.delete_blog(conn, blog_id)
    _cleanup_image(cfg, public_id)
    return {"success": True}


# FAQs


@app.get("/admin/blogs/{blog_id}/faqs")
def admin_list_faqs(blog_id: int, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return {"faqs": faq_store.list_faqs(conn, blog_id)}


@app.post("/admin/blogs/{blog_id}/faqs")
def admin_create_faq(blog_id: int, payload: FaqRequest, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        faq = faq_store.create_faq(conn, blog_id=blog_id, question=payload.question, answer=payload.answer)
    return {"success": True, "faq": faq}


@app.put("/admin/faqs/{faq_id}")
def admin_update_faq(faq_id: int, payload: FaqRequest, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        faq = faq_store.update_faq(conn, faq_id, question=payload.question, answer=payload.answer)
    return {"success": True, "faq": faq}


@app.delete("/admin/faqs/{faq_id}")
def admin_delete_faq(faq_id: int, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        faq_store.delete_faq(conn, faq_id)
    return {"success": True}


# Categories


@app.get("/admin/categories")
def admin_list_categories(cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return {"categories": category_store.list_categories(conn)}


@app.post("/admin/categories")
def admin_create_category(payload: CategoryCreateRequest, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        category = category_store.create_category(
            conn,
            name=payload.name,
            slug=payload.slug,
            description=payload.description,
            image=payload.image,
            image_public_id=payload.image_public_id,
        )
    return {"success": True, "category": category}


@app.get("/admin/categories/{category_id}")
def admin_get_category(category_id: int, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return {"success": True, "category": category_store.get_category(conn, category_id=category_id)}


@app.put("/admin/categories/{category_id}")
def admin_update_category(
    category_id: int,
    payload: CategoryUpdateRequest,
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        category, replaced = category_store.update_category(
            conn,
            category_id,
            name=payload.name,
            slug=payload.slug,
            description=payload.description,
            image=payload.image,
            image_public_id=payload.image_public_id,
        )
    _cleanup_image(cfg, replaced)
    return {"success": True, "category": category}


@app.delete("/admin/categories/{category_id}")
def admin_delete_category(category_id: int, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        public_id = category_store.delete_category(conn, category_id)
    _cleanup_image(cfg, public_id)
    return {"success": True}


# Comments


@app.get("/admin/comments")
def admin_list_comments(
    blog_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return comment_store.list_comments(conn, blog_id=blog_id, page=page, limit=limit)


@app.delete("/admin/comments/{comment_id}")
def admin_delete_comment(comment_id: int, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        comment_store.delete_comment(conn, comment_id)
    return {"success": True}


# Site pages


@app.put("/admin/info/{kind}")
def admin_update_site_info(
    kind: str,
    payload: SiteInfoRequest,
    admin: Dict[str, Any] = Depends(get_current_admin),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        info = info_store.upsert_site_info(
            conn, kind=kind, title=payload.title, content=payload.content, updated_by=admin["id"]
        )
    return {"success": True, "info": info}


# Media


@app.post("/admin/media/upload")
async def admin_upload_image(image: UploadFile = File(...), cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    data = await image.read()
    uploaded = cloudinary_host.upload_image(cfg, data=data, content_type=image.content_type)
    return {"success": True, "secure_url": uploaded.secure_url, "public_id": uploaded.public_id}


# Admin accounts (super-admin only; also gated by path)


@app.get("/admin/user-management")
def admin_list_admins(
    _super: Dict[str, Any] = Depends(require_super_admin),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return {"admins": list_admins(conn)}


@app.post("/admin/user-management/{admin_id}/status")
def admin_set_admin_status(
    admin_id: int,
    payload: AdminStatusRequest,
    _super: Dict[str, Any] = Depends(require_super_admin),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        admin = update_admin_status(conn, admin_id=admin_id, status=payload.status)
    return {"success": True, "admin": admin}


@app.post("/admin/user-management/{admin_id}/role")
def admin_set_admin_role(
    admin_id: int,
    payload: AdminRoleRequest,
    me: Dict[str, Any] = Depends(require_super_admin),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        admin = update_admin_role(conn, admin_id=admin_id, role=payload.role, acting_admin_id=me["id"])
    return {"success": True, "admin": admin}


@app.post("/admin/add-admin")
def admin_add_admin(
    payload: CreateAdminRequest,
    _super: Dict[str, Any] = Depends(require_super_admin),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        admin = create_admin(
            conn,
            username=payload.username,
            password=payload.password,
            name=payload.name,
            email=payload.email,
            mobile=payload.mobile,
            role=payload.role,
            status=STATUS_APPROVED if payload.approved else STATUS_PENDING,
        )
    return {"success": True, "admin": admin}
