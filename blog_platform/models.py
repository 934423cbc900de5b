from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super-admin"
VALID_ROLES = (ROLE_ADMIN, ROLE_SUPER_ADMIN)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
VALID_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)

SITE_INFO_KINDS = ("about", "privacy", "terms")


def resolve_role(role: Optional[str], is_super: Any = False) -> str:
    """Single role-derivation rule.

    An explicit, recognized `role` always wins; the legacy `is_super` flag is only
    consulted for rows that predate the role column.
    """
    r = (role or "").strip().lower()
    if r in VALID_ROLES:
        return r
    return ROLE_SUPER_ADMIN if bool(int(is_super or 0)) else ROLE_ADMIN


@dataclass(frozen=True)
class AdminAccount:
    id: int
    username: str
    role: str
    status: str
    email: Optional[str] = None
    mobile: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_super(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    @property
    def is_approved(self) -> bool:
        return self.status == STATUS_APPROVED

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AdminAccount":
        keys = row.keys()
        return cls(
            id=int(row["id"]),
            username=str(row["username"]),
            role=resolve_role(row["role"] if "role" in keys else None, row["is_super"] if "is_super" in keys else 0),
            status=str(row["status"]),
            email=row["email"] if "email" in keys else None,
            mobile=row["mobile"] if "mobile" in keys else None,
            name=row["name"] if "name" in keys else None,
        )

    def public(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "is_super": self.is_super,
        }
