"""Blog Platform - Backend.

Public blog browsing and search, plus an admin console for content management
(blogs, categories, FAQs, comments, site pages).

Core concepts:
- Admin accounts authenticate by password or by a one-time SMS code.
- Sessions are stateless signed JWTs carried in an httpOnly cookie.
- Every request under /admin is gated by role before any handler runs.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
