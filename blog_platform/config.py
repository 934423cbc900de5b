import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

from blog_platform.errors import ConfigError

# Load a local .env file if present.
load_dotenv()


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


def _env_list(name: str, default: str) -> Tuple[str, ...]:
    raw = os.environ.get(name, default)
    return tuple(p.strip() for p in raw.split(",") if p.strip())


_ENV = (os.environ.get("BLOG_ENV") or os.environ.get("ENV") or "development").strip().lower()


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    IMPORTANT: Provide secrets via environment variables or a .env file.
    The session signing secret has no default; startup refuses to run without it.
    """

    # -----------------
    # Core
    # -----------------
    ENV: str = _ENV

    # Preferred: set BLOG_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: BLOG_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("BLOG_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("BLOG_DB_PATH", "./blog_platform.sqlite")
    )

    # -----------------
    # Auth (JWT session)
    # -----------------
    AUTH_JWT_SECRET: str = os.environ.get("AUTH_JWT_SECRET", "")
    AUTH_TOKEN_EXPIRE_MINUTES: int = int(os.environ.get("AUTH_TOKEN_EXPIRE_MINUTES", "30"))

    # Bootstrap first super-admin if admin_users is empty.
    AUTH_BOOTSTRAP_ADMIN_USERNAME: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_USERNAME", "")
    AUTH_BOOTSTRAP_ADMIN_PASSWORD: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_PASSWORD", "")
    AUTH_BOOTSTRAP_ADMIN_MOBILE: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_MOBILE", "")

    # Session cookie. Secure defaults to on in production.
    AUTH_COOKIE_NAME: str = os.environ.get("AUTH_COOKIE_NAME", "blog_session")
    AUTH_COOKIE_DOMAIN: str | None = (os.environ.get("AUTH_COOKIE_DOMAIN") or "").strip() or None
    AUTH_COOKIE_PATH: str = os.environ.get("AUTH_COOKIE_PATH", "/")
    AUTH_COOKIE_SAMESITE: str = os.environ.get("AUTH_COOKIE_SAMESITE", "lax")  # lax|strict|none
    AUTH_COOKIE_SECURE: bool = (
        _env_bool("AUTH_COOKIE_SECURE", None)
        if _env_bool("AUTH_COOKIE_SECURE", None) is not None
        else _ENV == "production"
    )

    # -----------------
    # Route gating
    # -----------------
    LOGIN_PATH: str = os.environ.get("LOGIN_PATH", "/auth/admin/login")
    ADMIN_LANDING_PATH: str = os.environ.get("ADMIN_LANDING_PATH", "/admin")
    PROTECTED_PREFIXES: Tuple[str, ...] = _env_list("PROTECTED_PREFIXES", "/admin")
    SUPER_ADMIN_PREFIXES: Tuple[str, ...] = _env_list(
        "SUPER_ADMIN_PREFIXES",
        "/admin/user-management,/admin/add-admin",
    )

    # -----------------
    # OTP
    # -----------------
    OTP_LENGTH: int = int(os.environ.get("OTP_LENGTH", "6"))
    OTP_EXPIRE_MINUTES: int = int(os.environ.get("OTP_EXPIRE_MINUTES", "5"))

    # Write OTP messages to the debug log instead of sending them (ignored in production).
    SMS_DEV_CONSOLE: bool = _env_bool("SMS_DEV_CONSOLE", False) is True

    # Twilio (SMS)
    TWILIO_ACCOUNT_SID: str | None = os.environ.get("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN: str | None = os.environ.get("TWILIO_AUTH_TOKEN")
    TWILIO_FROM_NUMBER: str | None = os.environ.get("TWILIO_FROM_NUMBER")

    # -----------------
    # Cloudinary (images)
    # -----------------
    CLOUDINARY_CLOUD_NAME: str | None = os.environ.get("CLOUDINARY_CLOUD_NAME")
    CLOUDINARY_API_KEY: str | None = os.environ.get("CLOUDINARY_API_KEY")
    CLOUDINARY_API_SECRET: str | None = os.environ.get("CLOUDINARY_API_SECRET")
    CLOUDINARY_FOLDER: str = os.environ.get("CLOUDINARY_FOLDER", "blog-images")
    MAX_IMAGE_BYTES: int = int(os.environ.get("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))

    # -----------------
    # CORS (development)
    # -----------------
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    )

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def load_config() -> Config:
    return Config()


def validate_config(cfg: Config) -> None:
    """Fail fast on missing required settings."""
    if not (cfg.AUTH_JWT_SECRET or "").strip():
        raise ConfigError("AUTH_JWT_SECRET is required")
    if cfg.AUTH_TOKEN_EXPIRE_MINUTES < 1:
        raise ConfigError("AUTH_TOKEN_EXPIRE_MINUTES must be positive")
    if cfg.OTP_LENGTH < 4:
        raise ConfigError("OTP_LENGTH must be at least 4")
    if cfg.is_production and cfg.AUTH_COOKIE_SAMESITE.lower() == "none" and not cfg.AUTH_COOKIE_SECURE:
        raise ConfigError("SameSite=None cookies must be Secure")
