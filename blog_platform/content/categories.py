from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from blog_platform.db import IntegrityError
from blog_platform.errors import Conflict, NotFound, ValidationError
from blog_platform.media.cloudinary_host import public_id_from_url
from blog_platform.util.time import utcnow_iso

from .slugs import claim_slug


def _image_id(row: Dict[str, Any]) -> Optional[str]:
    return row.get("image_public_id") or public_id_from_url(row.get("image"))


def create_category(
    conn: Any,
    *,
    name: str,
    slug: str | None = None,
    description: str | None = None,
    image: str | None = None,
    image_public_id: str | None = None,
) -> Dict[str, Any]:
    n = (name or "").strip()
    if not n:
        raise ValidationError("name_required")
    if conn.execute("SELECT 1 FROM categories WHERE name=?", (n,)).fetchone() is not None:
        raise Conflict("category_exists")
    s = claim_slug(conn, table="categories", slug=slug, fallback_text=n)

    now = utcnow_iso()
    try:
        row = conn.execute(
            """
            INSERT INTO categories (name, slug, description, image, image_public_id, created_at, updated_at)
            VALUES (?,?,?,?,?,?,?)
            RETURNING *
            """,
            (n, s, description, image, image_public_id, now, now),
        ).fetchone()
    except IntegrityError as e:
        # Lost a race on the unique name or slug.
        raise Conflict("category_exists") from e
    return dict(row)


def list_categories(conn: Any) -> List[Dict[str, Any]]:
    """All categories with their post counts, by name."""
    rows = conn.execute(
        """
        SELECT c.id, c.name, c.slug, c.description, c.image, COUNT(bc.id) AS posts
        FROM categories c
        LEFT JOIN blog_categories bc ON bc.category_id = c.id
        GROUP BY c.id, c.name, c.slug, c.description, c.image
        ORDER BY c.name ASC
        """
    ).fetchall()
    out = []
    for r in rows:
        d = dict(r)
        d["posts"] = int(d["posts"] or 0)
        out.append(d)
    return out


def get_category(conn: Any, *, category_id: Optional[int] = None, slug: Optional[str] = None) -> Dict[str, Any]:
    if category_id is not None:
        row = conn.execute("SELECT * FROM categories WHERE id=?", (int(category_id),)).fetchone()
    elif slug:
        row = conn.execute("SELECT * FROM categories WHERE slug=?", (slug,)).fetchone()
    else:
        raise ValidationError("id_or_slug_required")
    if row is None:
        raise NotFound("category_not_found")
    return dict(row)


def update_category(
    conn: Any,
    category_id: int,
    *,
    name: str | None = None,
    slug: str | None = None,
    description: str | None = None,
    image: str | None = None,
    image_public_id: str | None = None,
) -> Tuple[Dict[str, Any], Optional[str]]:
    """Partial update. Returns the category and the public id of a replaced image, if any."""
    current = get_category(conn, category_id=category_id)

    fields: list[tuple[str, Any]] = []
    if name is not None:
        n = name.strip()
        if not n:
            raise ValidationError("name_required")
        taken = conn.execute("SELECT 1 FROM categories WHERE name=? AND id<>?", (n, int(category_id))).fetchone()
        if taken is not None:
            raise Conflict("category_exists")
        fields.append(("name", n))
    if slug is not None:
        fields.append(("slug", claim_slug(conn, table="categories", slug=slug, exclude_id=category_id)))
    if description is not None:
        fields.append(("description", description))

    replaced: Optional[str] = None
    if image is not None:
        fields.append(("image", image))
        fields.append(("image_public_id", image_public_id))
        old = _image_id(current)
        if old and old != (image_public_id or public_id_from_url(image)):
            replaced = old

    if not fields:
        raise ValidationError("no_fields_to_update")

    fields.append(("updated_at", utcnow_iso()))
    sets = ", ".join([f"{k}=?" for k, _ in fields])
    params = [v for _, v in fields] + [int(category_id)]
    try:
        conn.execute(f"UPDATE categories SET {sets} WHERE id=?", params)
    except IntegrityError as e:
        raise Conflict("category_exists") from e
    return get_category(conn, category_id=category_id), replaced


def delete_category(conn: Any, category_id: int) -> Optional[str]:
    """Delete a category (blog links cascade). Returns its image public id."""
    current = get_category(conn, category_id=category_id)
    conn.execute("DELETE FROM categories WHERE id=?", (int(category_id),))
    return _image_id(current)


def list_category_blogs(conn: Any, slug: str) -> Dict[str, Any]:
    """A category and its published blogs, newest first."""
    category = get_category(conn, slug=slug)
    rows = conn.execute(
        """
        SELECT b.id, b.title, b.slug, b.image, b.image_alt, b.meta_description, b.created_at
        FROM blog_categories bc
        JOIN blogs b ON b.id = bc.blog_id
        WHERE bc.category_id = ? AND b.status = 1
        ORDER BY b.created_at DESC, b.id DESC
        """,
        (int(category["id"]),),
    ).fetchall()
    return {"category": category, "blogs": [dict(r) for r in rows]}
