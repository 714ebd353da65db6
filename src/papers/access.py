"""
Who may see or change a paper.

Approved papers are public. Anything else is visible only to its owner and
to admins; only the owner or an admin may edit or delete a paper; only an
admin may moderate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from src.db.models import ROLE_ADMIN, ROLES, STATUS_APPROVED, Paper
from src.errors import PermissionDeniedError


@dataclass(frozen=True)
class Requester:
    """The authenticated caller, built from verified token claims."""

    id: int
    role: str
    email: str = ""
    name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Requester":
        return cls(
            id=int(claims["id"]),
            role=str(claims.get("role") or ""),
            email=str(claims.get("email") or ""),
            name=str(claims.get("name") or ""),
        )


def can_view(paper: Paper, requester: Optional[Requester]) -> bool:
    if paper.status == STATUS_APPROVED:
        return True
    if requester is None:
        return False
    return requester.is_admin or requester.id == paper.author_id


def can_modify(paper: Paper, requester: Requester) -> bool:
    return requester.is_admin or requester.id == paper.author_id


def require_author(requester: Requester) -> None:
    if requester.role not in ROLES:
        raise PermissionDeniedError("Author access required")


def require_admin(requester: Optional[Requester]) -> None:
    if requester is None or not requester.is_admin:
        raise PermissionDeniedError("Admin access required")
