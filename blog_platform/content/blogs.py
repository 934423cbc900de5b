from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from blog_platform.db import IntegrityError
from blog_platform.errors import Conflict, NotFound, ValidationError
from blog_platform.media.cloudinary_host import public_id_from_url
from blog_platform.util.time import utcnow_iso

from .comments import list_blog_comments
from .faqs import list_faqs
from .slugs import claim_slug

# Columns an admin may change through update_blog.
EDITABLE_FIELDS = (
    "title",
    "content",
    "image_alt",
    "meta_title",
    "meta_description",
    "meta_keywords",
    "author_id",
)

_BLOG_WITH_AUTHOR = """
    SELECT b.*, u.username AS author_username, u.name AS author_name
    FROM blogs b
    JOIN admin_users u ON u.id = b.author_id
"""


def _page_args(page: int, limit: int, *, max_limit: int = 50) -> Tuple[int, int, int]:
    p = max(1, int(page or 1))
    lim = min(max(1, int(limit or 1)), max_limit)
    return p, lim, (p - 1) * lim


def _like_pattern(term: str) -> str:
    esc = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{esc}%"


def _image_id(row: Any) -> Optional[str]:
    """Stored public id, or one derived from the URL for rows saved before ids were kept."""
    return row.get("image_public_id") or public_id_from_url(row.get("image"))


def _raise_if_slug_taken(e: Exception) -> None:
    # A concurrent writer can take the slug after claim_slug checked it.
    if "slug" in str(e).lower():
        raise Conflict("slug_exists") from e


def _format_blog(row: Any) -> Dict[str, Any]:
    d = dict(row)
    d["status"] = bool(d.get("status"))
    d["author"] = {
        "id": d.get("author_id"),
        "username": d.pop("author_username", None),
        "name": d.pop("author_name", None),
    }
    return d


def _blog_categories(conn: Any, blog_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        """
        SELECT c.id, c.name, c.slug, c.image
        FROM blog_categories bc
        JOIN categories c ON c.id = bc.category_id
        WHERE bc.blog_id = ?
        ORDER BY c.name ASC
        """,
        (int(blog_id),),
    ).fetchall()
    return [dict(r) for r in rows]


def _set_categories(conn: Any, blog_id: int, category_ids: Iterable[int]) -> None:
    ids = sorted({int(c) for c in category_ids})
    if ids:
        found = conn.execute(
            f"SELECT COUNT(*) AS n FROM categories WHERE id IN ({','.join('?' for _ in ids)})",
            ids,
        ).fetchone()["n"]
        if int(found) != len(ids):
            raise ValidationError("unknown_category")
    conn.execute("DELETE FROM blog_categories WHERE blog_id=?", (int(blog_id),))
    for cid in ids:
        conn.execute(
            "INSERT INTO blog_categories (blog_id, category_id) VALUES (?,?)",
            (int(blog_id), cid),
        )


def create_blog(
    conn: Any,
    *,
    author_id: int,
    title: str,
    content: str,
    slug: str | None = None,
    image: str | None = None,
    image_public_id: str | None = None,
    image_alt: str | None = None,
    meta_title: str | None = None,
    meta_description: str | None = None,
    meta_keywords: str | None = None,
    category_ids: Iterable[int] = (),
    published: bool = True,
) -> Dict[str, Any]:
    t = (title or "").strip()
    if not t:
        raise ValidationError("title_required")
    if not (content or "").strip():
        raise ValidationError("content_required")
    s = claim_slug(conn, table="blogs", slug=slug, fallback_text=t)

    now = utcnow_iso()
    try:
        row = conn.execute(
            """
            INSERT INTO blogs (title, slug, content, image, image_public_id, image_alt,
                               meta_title, meta_description, meta_keywords, status, author_id,
                               created_at, updated_at)
            VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?)
            RETURNING id
            """,
            (
                t,
                s,
                content,
                image,
                image_public_id,
                image_alt,
                meta_title,
                meta_description,
                meta_keywords,
                1 if published else 0,
                int(author_id),
                now,
                now,
            ),
        ).fetchone()
    except IntegrityError as e:
        _raise_if_slug_taken(e)
        raise
    blog_id = int(row["id"])
    _set_categories(conn, blog_id, category_ids)
    return get_blog_by_id(conn, blog_id)


def get_blog_by_id(conn: Any, blog_id: int) -> Dict[str, Any]:
    """Admin view of one blog regardless of status."""
    row = conn.execute(_BLOG_WITH_AUTHOR + " WHERE b.id = ?", (int(blog_id),)).fetchone()
    if row is None:
        raise NotFound("blog_not_found")
    blog = _format_blog(row)
    blog["categories"] = _blog_categories(conn, blog_id)
    return blog


def get_published_blog(conn: Any, slug: str) -> Dict[str, Any]:
    """Public article page: blog plus categories, FAQs, comments, reactions and related posts."""
    row = conn.execute(_BLOG_WITH_AUTHOR + " WHERE b.slug = ? AND b.status = 1", (slug,)).fetchone()
    if row is None:
        raise NotFound("blog_not_found")
    blog = _format_blog(row)
    blog.pop("image_public_id", None)
    blog_id = int(blog["id"])

    blog["categories"] = _blog_categories(conn, blog_id)
    blog["faqs"] = list_faqs(conn, blog_id)
    blog["comments"] = list_blog_comments(conn, blog_id)
    for table in ("likes", "favorites"):
        n = conn.execute(f"SELECT COUNT(*) AS n FROM {table} WHERE blog_id=?", (blog_id,)).fetchone()["n"]
        blog[table] = int(n)
    related = conn.execute(
        """
        SELECT b.id, b.title, b.slug, b.image
        FROM blog_relations br
        JOIN blogs b ON b.id = br.related_blog_id
        WHERE br.blog_id = ? AND b.status = 1
        ORDER BY b.created_at DESC
        """,
        (blog_id,),
    ).fetchall()
    blog["related_articles"] = [dict(r) for r in related]
    return blog


def update_blog(
    conn: Any,
    blog_id: int,
    *,
    fields: Dict[str, Any],
    slug: str | None = None,
    image: str | None = None,
    image_public_id: str | None = None,
    category_ids: Optional[Iterable[int]] = None,
) -> Tuple[Dict[str, Any], Optional[str]]:
    """Partial update. Only non-None values are written.

    Returns the updated blog and the public id of a replaced image, if any.
    """
    current = get_blog_by_id(conn, blog_id)

    updates: list[tuple[str, Any]] = []
    for k in EDITABLE_FIELDS:
        v = fields.get(k)
        if v is None:
            continue
        if k == "title" and not str(v).strip():
            raise ValidationError("title_required")
        if k == "content" and not str(v).strip():
            raise ValidationError("content_required")
        if k == "author_id":
            if conn.execute("SELECT 1 FROM admin_users WHERE id=?", (int(v),)).fetchone() is None:
                raise ValidationError("unknown_author")
            v = int(v)
        updates.append((k, v))
    if slug is not None:
        updates.append(("slug", claim_slug(conn, table="blogs", slug=slug, exclude_id=blog_id)))

    replaced: Optional[str] = None
    if image is not None:
        updates.append(("image", image))
        updates.append(("image_public_id", image_public_id))
        old = _image_id(current)
        if old and old != (image_public_id or public_id_from_url(image)):
            replaced = old

    if not updates and category_ids is None:
        raise ValidationError("no_fields_to_update")

    updates.append(("updated_at", utcnow_iso()))
    sets = ", ".join([f"{k}=?" for k, _ in updates])
    params = [v for _, v in updates] + [int(blog_id)]
    try:
        conn.execute(f"UPDATE blogs SET {sets} WHERE id=?", params)
    except IntegrityError as e:
        _raise_if_slug_taken(e)
        raise

    if category_ids is not None:
        _set_categories(conn, blog_id, category_ids)
    return get_blog_by_id(conn, blog_id), replaced


def set_blog_status(conn: Any, blog_id: int, published: bool) -> Dict[str, Any]:
    cur = conn.execute(
        "UPDATE blogs SET status=?, updated_at=? WHERE id=?",
        (1 if published else 0, utcnow_iso(), int(blog_id)),
    )
    if cur.rowcount == 0:
        raise NotFound("blog_not_found")
    return get_blog_by_id(conn, blog_id)


def delete_blog(conn: Any, blog_id: int) -> Optional[str]:
    """Delete a blog; FAQs, comments, reactions and links cascade. Returns its image public id."""
    row = conn.execute("SELECT image, image_public_id FROM blogs WHERE id=?", (int(blog_id),)).fetchone()
    if row is None:
        raise NotFound("blog_not_found")
    conn.execute("DELETE FROM blogs WHERE id=?", (int(blog_id),))
    return _image_id(dict(row))


def set_related_blogs(conn: Any, blog_id: int, related_ids: Iterable[int]) -> List[int]:
    get_blog_by_id(conn, blog_id)
    ids = sorted({int(r) for r in related_ids if int(r) != int(blog_id)})
    if ids:
        found = conn.execute(
            f"SELECT COUNT(*) AS n FROM blogs WHERE id IN ({','.join('?' for _ in ids)})",
            ids,
        ).fetchone()["n"]
        if int(found) != len(ids):
            raise ValidationError("unknown_related_blog")
    conn.execute("DELETE FROM blog_relations WHERE blog_id=?", (int(blog_id),))
    for rid in ids:
        conn.execute(
            "INSERT INTO blog_relations (blog_id, related_blog_id) VALUES (?,?)",
            (int(blog_id), rid),
        )
    return ids


def list_blogs(
    conn: Any,
    *,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
    published_only: bool = True,
) -> Dict[str, Any]:
    """Paged listing, newest first. `search` matches title, keywords and description."""
    p, lim, offset = _page_args(page, limit)

    where: list[str] = []
    params: list[Any] = []
    if published_only:
        where.append("b.status = 1")
    term = (search or "").strip()
    if term:
        pat = _like_pattern(term)
        where.append(
            "(LOWER(b.title) LIKE ? ESCAPE '\\' OR LOWER(COALESCE(b.meta_keywords, '')) LIKE ? ESCAPE '\\'"
            " OR LOWER(COALESCE(b.meta_description, '')) LIKE ? ESCAPE '\\')"
        )
        params.extend([pat, pat, pat])
    where_sql = f"WHERE {' AND '.join(where)}" if where else ""

    total = conn.execute(f"SELECT COUNT(*) AS n FROM blogs b {where_sql}", params).fetchone()["n"]
    rows = conn.execute(
        f"""
        SELECT b.id, b.title, b.slug, b.image, b.image_alt, b.meta_description, b.status,
               b.created_at, b.updated_at, u.username AS author_username, u.name AS author_name
        FROM blogs b
        JOIN admin_users u ON u.id = b.author_id
        {where_sql}
        ORDER BY b.created_at DESC, b.id DESC
        LIMIT ? OFFSET ?
        """,
        params + [lim, offset],
    ).fetchall()

    blogs = []
    for r in rows:
        d = _format_blog(r)
        d["author"].pop("id", None)
        blogs.append(d)
    return {
        "blogs": blogs,
        "total": int(total),
        "totalPages": math.ceil(int(total) / lim),
        "currentPage": p,
    }


def suggest_blogs(conn: Any, term: str, *, limit: int = 5) -> List[Dict[str, Any]]:
    """Title-prefix-first suggestions for the search box."""
    t = (term or "").strip()
    if not t:
        return []
    rows = conn.execute(
        """
        SELECT id, title, slug, image
        FROM blogs
        WHERE status = 1 AND LOWER(title) LIKE ? ESCAPE '\\'
        ORDER BY CASE WHEN LOWER(title) LIKE ? ESCAPE '\\' THEN 0 ELSE 1 END, created_at DESC
        LIMIT ?
        """,
        (_like_pattern(t), _like_pattern(t)[1:], min(max(1, int(limit)), 20)),
    ).fetchall()
    return [dict(r) for r in rows]


def list_blog_media(conn: Any, *, page: int = 1, limit: int = 8) -> Dict[str, Any]:
    """Image gallery over all blogs (admin media picker)."""
    p, lim, offset = _page_args(page, limit)
    total = conn.execute("SELECT COUNT(*) AS n FROM blogs").fetchone()["n"]
    rows = conn.execute(
        "SELECT id, title, image, image_alt FROM blogs ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
        (lim, offset),
    ).fetchall()
    return {
        "blogs": [dict(r) for r in rows],
        "totalPages": math.ceil(int(total) / lim),
        "currentPage": p,
    }
