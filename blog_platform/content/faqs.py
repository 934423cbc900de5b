from __future__ import annotations

from typing import Any, Dict, List

from blog_platform.errors import NotFound, ValidationError
from blog_platform.util.time import utcnow_iso


def _clean(question: str | None, answer: str | None) -> tuple[str, str]:
    q = (question or "").strip()
    a = (answer or "").strip()
    if not q or not a:
        raise ValidationError("question_and_answer_required")
    return q, a


def list_faqs(conn: Any, blog_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT id, blog_id, question, answer, created_at, updated_at FROM faqs WHERE blog_id=? ORDER BY id ASC",
        (int(blog_id),),
    ).fetchall()
    return [dict(r) for r in rows]


def create_faq(conn: Any, *, blog_id: int, question: str, answer: str) -> Dict[str, Any]:
    q, a = _clean(question, answer)
    if conn.execute("SELECT 1 FROM blogs WHERE id=?", (int(blog_id),)).fetchone() is None:
        raise NotFound("blog_not_found")
    now = utcnow_iso()
    row = conn.execute(
        """
        INSERT INTO faqs (blog_id, question, answer, created_at, updated_at)
        VALUES (?,?,?,?,?)
        RETURNING *
        """,
        (int(blog_id), q, a, now, now),
    ).fetchone()
    return dict(row)


def update_faq(conn: Any, faq_id: int, *, question: str, answer: str) -> Dict[str, Any]:
    q, a = _clean(question, answer)
    cur = conn.execute(
        "UPDATE faqs SET question=?, answer=?, updated_at=? WHERE id=?",
        (q, a, utcnow_iso(), int(faq_id)),
    )
    if cur.rowcount == 0:
        raise NotFound("faq_not_found")
    return dict(conn.execute("SELECT * FROM faqs WHERE id=?", (int(faq_id),)).fetchone())


def delete_faq(conn: Any, faq_id: int) -> None:
    cur = conn.execute("DELETE FROM faqs WHERE id=?", (int(faq_id),))
    if cur.rowcount == 0:
        raise NotFound("faq_not_found")
