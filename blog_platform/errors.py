"""Error types shared by the auth core, content helpers and the API layer.

Authentication and authorization failures never carry a reason that reaches
the client; `detail` is a short machine string for logs and generic payloads.
"""

from __future__ import annotations


class BlogPlatformError(Exception):
    detail: str = "error"

    def __init__(self, detail: str | None = None):
        if detail:
            self.detail = detail
        super().__init__(self.detail)


class ConfigError(BlogPlatformError):
    detail = "config_error"


class ValidationError(BlogPlatformError):
    """Malformed input, rejected before any store access."""

    detail = "invalid_input"


class AuthenticationFailure(BlogPlatformError):
    """Bad credentials or OTP. The cause is never exposed."""

    detail = "invalid_credentials"


class InvalidOrExpired(AuthenticationFailure):
    detail = "invalid_or_expired"


class AuthorizationFailure(BlogPlatformError):
    detail = "forbidden"


class DeliveryError(BlogPlatformError):
    """The SMS channel could not deliver the code."""

    detail = "delivery_failed"


class NotFound(BlogPlatformError):
    detail = "not_found"


class Conflict(BlogPlatformError):
    detail = "conflict"


class ImageHostError(BlogPlatformError):
    detail = "image_host_error"
