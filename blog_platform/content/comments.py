"""Reader comments and reactions.

Readers are identified by name + email only; the first interaction creates a
`site_users` row.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from blog_platform.errors import NotFound, ValidationError
from blog_platform.util.normalization import normalize_email
from blog_platform.util.time import utcnow_iso

MAX_COMMENT_LENGTH = 5000
REACTION_TABLES = ("likes", "favorites")


def get_or_create_site_user(conn: Any, *, name: str, email: str) -> int:
    n = (name or "").strip()
    e = normalize_email(email)
    if not n or not e:
        raise ValidationError("name_and_email_required")
    row = conn.execute("SELECT id FROM site_users WHERE email=?", (e,)).fetchone()
    if row is not None:
        return int(row["id"])
    row = conn.execute(
        "INSERT INTO site_users (name, email, created_at) VALUES (?,?,?) RETURNING id",
        (n, e, utcnow_iso()),
    ).fetchone()
    return int(row["id"])


def _published_blog_id(conn: Any, slug: str) -> int:
    row = conn.execute("SELECT id FROM blogs WHERE slug=? AND status=1", (slug,)).fetchone()
    if row is None:
        raise NotFound("blog_not_found")
    return int(row["id"])


def add_comment(conn: Any, *, blog_slug: str, name: str, email: str, content: str) -> Dict[str, Any]:
    text = (content or "").strip()
    if not text:
        raise ValidationError("comment_blank")
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationError("comment_too_long")
    blog_id = _published_blog_id(conn, blog_slug)
    user_id = get_or_create_site_user(conn, name=name, email=email)

    now = utcnow_iso()
    row = conn.execute(
        """
        INSERT INTO comments (blog_id, user_id, content, created_at, updated_at)
        VALUES (?,?,?,?,?)
        RETURNING id
        """,
        (blog_id, user_id, text, now, now),
    ).fetchone()
    return _comment_by_id(conn, int(row["id"]))


def _comment_by_id(conn: Any, comment_id: int) -> Dict[str, Any]:
    row = conn.execute(
        """
        SELECT c.id, c.blog_id, c.content, c.created_at, c.updated_at, u.name AS user_name
        FROM comments c
        JOIN site_users u ON u.id = c.user_id
        WHERE c.id = ?
        """,
        (int(comment_id),),
    ).fetchone()
    if row is None:
        raise NotFound("comment_not_found")
    return dict(row)


def list_blog_comments(conn: Any, blog_id: int) -> List[Dict[str, Any]]:
    """Public comments on one blog, oldest first. Reader emails are not exposed."""
    rows = conn.execute(
        """
        SELECT c.id, c.content, c.created_at, c.updated_at, u.name AS user_name
        FROM comments c
        JOIN site_users u ON u.id = c.user_id
        WHERE c.blog_id = ?
        ORDER BY c.created_at ASC, c.id ASC
        """,
        (int(blog_id),),
    ).fetchall()
    return [dict(r) for r in rows]


def list_comments(conn: Any, *, blog_id: Optional[int] = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
    """Moderation listing across blogs, newest first."""
    p = max(1, int(page))
    lim = min(max(1, int(limit)), 100)
    where = "WHERE c.blog_id = ?" if blog_id is not None else ""
    params: list[Any] = [int(blog_id)] if blog_id is not None else []

    total = conn.execute(f"SELECT COUNT(*) AS n FROM comments c {where}", params).fetchone()["n"]
    rows = conn.execute(
        f"""
        SELECT c.id, c.blog_id, b.title AS blog_title, c.content, c.created_at,
               u.name AS user_name, u.email AS user_email
        FROM comments c
        JOIN blogs b ON b.id = c.blog_id
        JOIN site_users u ON u.id = c.user_id
        {where}
        ORDER BY c.created_at DESC, c.id DESC
        LIMIT ? OFFSET ?
        """,
        params + [lim, (p - 1) * lim],
    ).fetchall()
    return {
        "comments": [dict(r) for r in rows],
        "total": int(total),
        "totalPages": math.ceil(int(total) / lim),
        "currentPage": p,
    }


def delete_comment(conn: Any, comment_id: int) -> None:
    cur = conn.execute("DELETE FROM comments WHERE id=?", (int(comment_id),))
    if cur.rowcount == 0:
        raise NotFound("comment_not_found")


def add_reaction(conn: Any, *, table: str, blog_slug: str, name: str, email: str) -> int:
    """Record a like/favorite once per reader. Returns the blog's new count."""
    if table not in REACTION_TABLES:
        raise ValueError(f"not a reaction table: {table}")
    blog_id = _published_blog_id(conn, blog_slug)
    user_id = get_or_create_site_user(conn, name=name, email=email)
    conn.execute(
        f"""
        INSERT INTO {table} (blog_id, user_id, created_at) VALUES (?,?,?)
        ON CONFLICT(blog_id, user_id) DO NOTHING
        """,
        (blog_id, user_id, utcnow_iso()),
    )
    return int(conn.execute(f"SELECT COUNT(*) AS n FROM {table} WHERE blog_id=?", (blog_id,)).fetchone()["n"])
