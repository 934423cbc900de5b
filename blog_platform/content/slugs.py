from __future__ import annotations

from typing import Any, Optional

from blog_platform.errors import Conflict, ValidationError
from blog_platform.util.normalization import is_valid_slug, slugify

# Tables that carry a unique `slug` column.
SLUGGED_TABLES = ("blogs", "categories")


def _check_table(table: str) -> None:
    if table not in SLUGGED_TABLES:
        raise ValueError(f"not a slugged table: {table}")


def slug_available(conn: Any, slug: str, *, table: str = "blogs", exclude_id: Optional[int] = None) -> bool:
    _check_table(table)
    if exclude_id is None:
        row = conn.execute(f"SELECT 1 FROM {table} WHERE slug=?", (slug,)).fetchone()
    else:
        row = conn.execute(f"SELECT 1 FROM {table} WHERE slug=? AND id<>?", (slug, int(exclude_id))).fetchone()
    return row is None


def claim_slug(
    conn: Any,
    *,
    table: str,
    slug: Optional[str],
    fallback_text: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> str:
    """Validate (or derive from `fallback_text`) a slug and make sure it is free."""
    s = (slug or "").strip().lower() or slugify(fallback_text)
    if not is_valid_slug(s):
        raise ValidationError("invalid_slug")
    if not slug_available(conn, s, table=table, exclude_id=exclude_id):
        raise Conflict("slug_exists")
    return s
