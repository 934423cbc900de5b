from __future__ import annotations

import re
import unicodedata

from blog_platform.errors import ValidationError


_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_mobile(raw: str | None) -> str:
    """Normalize a mobile number: optional leading '+', then 10-15 digits.

    Spaces, dashes, dots and parentheses are dropped. Anything else is rejected.
    """
    s = re.sub(r"[\s\-\.\(\)]", "", str(raw or ""))
    plus = s.startswith("+")
    digits = s[1:] if plus else s
    if not digits.isdigit() or not 10 <= len(digits) <= 15:
        raise ValidationError("invalid_mobile")
    return ("+" if plus else "") + digits


def normalize_email(raw: str | None) -> str | None:
    s = (raw or "").strip().lower()
    if not s:
        return None
    if not _EMAIL_RE.match(s):
        raise ValidationError("invalid_email")
    return s


def slugify(text: str | None) -> str:
    """URL-safe slug: lowercase ASCII words joined by single hyphens."""
    s = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    s = re.sub(r"[^a-zA-Z0-9]+", "-", s).strip("-").lower()
    return re.sub(r"-{2,}", "-", s)


def is_valid_slug(slug: str | None) -> bool:
    return bool(_SLUG_RE.match(slug or ""))
