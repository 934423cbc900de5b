from __future__ import annotations

from typing import Any, Dict

from blog_platform.errors import NotFound, ValidationError
from blog_platform.models import SITE_INFO_KINDS
from blog_platform.util.time import utcnow_iso


def _check_kind(kind: str) -> str:
    k = (kind or "").strip().lower()
    if k not in SITE_INFO_KINDS:
        raise ValidationError("invalid_info_kind")
    return k


def get_site_info(conn: Any, kind: str) -> Dict[str, Any]:
    k = _check_kind(kind)
    row = conn.execute("SELECT kind, title, content, updated_at FROM site_info WHERE kind=?", (k,)).fetchone()
    if row is None:
        raise NotFound("info_not_found")
    return dict(row)


def upsert_site_info(conn: Any, *, kind: str, title: str, content: str, updated_by: int) -> Dict[str, Any]:
    k = _check_kind(kind)
    t = (title or "").strip()
    if not t or not (content or "").strip():
        raise ValidationError("title_and_content_required")
    conn.execute(
        """
        INSERT INTO site_info (kind, title, content, updated_by, updated_at) VALUES (?,?,?,?,?)
        ON CONFLICT(kind) DO UPDATE SET title=excluded.title, content=excluded.content,
            updated_by=excluded.updated_by, updated_at=excluded.updated_at
        """,
        (k, t, content, int(updated_by), utcnow_iso()),
    )
    return get_site_info(conn, k)
