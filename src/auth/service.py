"""
Account service: registration, login and the caller's own profile.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from src.auth.password import hash_password, verify_password
from src.auth.session import create_token
from src.db import Database
from src.db.models import DESIGNATIONS, ROLE_ADMIN, ROLE_AUTHOR, ROLES, Department, Faculty, User
from src.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from src.log import get_logger
from src.observability.metrics import metrics

logger = get_logger(__name__)


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _check_reference(session: Session, model, ref_id: Optional[int], label: str) -> None:
    if ref_id is not None and session.get(model, ref_id) is None:
        raise ValidationError(f"Invalid {label}")


def _profile(session: Session, user: User) -> Dict[str, Any]:
    out = user.to_public()
    dept = session.get(Department, user.department_id) if user.department_id else None
    fac = session.get(Faculty, user.faculty_id) if user.faculty_id else None
    out["department_name"] = dept.name if dept else None
    out["faculty_name"] = fac.name if fac else None
    return out


class AuthService:
    def __init__(self, db: Database, allow_admin_registration: bool = False):
        self.db = db
        self.allow_admin_registration = allow_admin_registration

    def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Optional[str] = None,
        department_id: Optional[int] = None,
        faculty_id: Optional[int] = None,
        designation: Optional[str] = None,
    ) -> int:
        """Create an account and return its id. Raises ConflictError on a taken e-mail."""
        name = (name or "").strip()
        email = _normalize_email(email)
        if not name or not email or not password:
            raise ValidationError("Missing required fields")
        role = role or ROLE_AUTHOR
        if role not in ROLES:
            raise ValidationError("Invalid role")
        if role == ROLE_ADMIN and not self.allow_admin_registration:
            raise PermissionDeniedError("Admin accounts cannot be self-registered")
        designation = designation or "student"
        if designation not in DESIGNATIONS:
            raise ValidationError("Invalid designation")

        with self.db.session() as session:
            if session.exec(select(User.id).where(User.email == email)).first() is not None:
                raise ConflictError("User already exists")
            _check_reference(session, Department, department_id, "department")
            _check_reference(session, Faculty, faculty_id, "faculty")

            user = User(
                name=name,
                email=email,
                password_hash=hash_password(password),
                role=role,
                designation=designation,
                department_id=department_id,
                faculty_id=faculty_id,
            )
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                # lost a race against a concurrent registration with the same e-mail
                session.rollback()
                raise ConflictError("User already exists")
            session.refresh(user)

        logger.info("registered user id=%s role=%s", user.id, user.role)
        return user.id

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Check credentials; return ``{"token", "user"}`` with the password stripped."""
        email = _normalize_email(email)
        with self.db.session() as session:
            user = session.exec(select(User).where(User.email == email)).first() if email else None
            if user is None or not verify_password(password or "", user.password_hash):
                metrics.login_attempts_total.labels(outcome="failed").inc()
                raise AuthenticationError("Invalid credentials")
            profile = _profile(session, user)

        metrics.login_attempts_total.labels(outcome="success").inc()
        token = create_token(user.id, user.email, user.role, user.name)
        return {"token": token, "user": profile}

    def current_role(self, user_id: int) -> Optional[str]:
        """Role stored for the account now, or None if it no longer exists."""
        with self.db.session() as session:
            user = session.get(User, user_id)
            return user.role if user is not None else None

    def get_profile(self, user_id: int) -> Dict[str, Any]:
        with self.db.session() as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            return _profile(session, user)

    def update_profile(
        self,
        user_id: int,
        name: Optional[str],
        department_id: Optional[int],
        faculty_id: Optional[int],
        designation: Optional[str],
    ) -> Dict[str, Any]:
        """Overwrite name, department, faculty and designation. E-mail never changes."""
        name = (name or "").strip()
        if not name or not department_id or not faculty_id or not designation:
            raise ValidationError("Missing required fields")
        if designation not in DESIGNATIONS:
            raise ValidationError("Invalid designation")

        with self.db.session() as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            _check_reference(session, Department, department_id, "department")
            _check_reference(session, Faculty, faculty_id, "faculty")

            user.name = name
            user.department_id = department_id
            user.faculty_id = faculty_id
            user.designation = designation
            user.updated_at = datetime.now().isoformat()
            session.add(user)
            session.commit()
            session.refresh(user)
            return _profile(session, user)

    def create_admin(self, name: str, email: str, password: str) -> int:
        """Bootstrap helper used by scripts/01_bootstrap.py; bypasses the self-registration guard."""
        return AuthService(self.db, allow_admin_registration=True).register(
            name=name, email=email, password=password, role=ROLE_ADMIN, designation="faculty",
        )
