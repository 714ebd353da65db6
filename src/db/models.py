"""
SQLModel table definitions for the repository: accounts, reference data,
papers and their child rows.

Design rules for SQLModel compatibility:
  - primary_key=True and foreign_key="..." are set in Field() only,
    never combined with sa_column (SQLModel raises RuntimeError otherwise).
  - created_at / updated_at are ISO-8601 TEXT so SQLite and PostgreSQL
    order them identically.
  - Paper children (co-authors, versions) use cascade="all, delete-orphan"
    so deleting a paper removes them in the same transaction.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Column, Date, Index, Integer, Text
from sqlmodel import Field, Relationship, SQLModel

ROLE_AUTHOR = "author"
ROLE_ADMIN = "admin"
ROLES = (ROLE_AUTHOR, ROLE_ADMIN)

DESIGNATIONS = ("student", "faculty")

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
PAPER_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)
DECISION_STATUSES = (STATUS_APPROVED, STATUS_REJECTED)


def _now_iso() -> str:
    return datetime.now().isoformat()


# ──────────────────────────────────────────────────────────────────────────────
# 1. Reference data
# ──────────────────────────────────────────────────────────────────────────────

class Department(SQLModel, table=True):
    __tablename__ = "departments"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(Text, nullable=False, unique=True))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: str = Field(default_factory=_now_iso, sa_column=Column(Text, nullable=False))


class Faculty(SQLModel, table=True):
    __tablename__ = "faculties"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(Text, nullable=False, unique=True))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: str = Field(default_factory=_now_iso, sa_column=Column(Text, nullable=False))


# ──────────────────────────────────────────────────────────────────────────────
# 2. Accounts
# ──────────────────────────────────────────────────────────────────────────────

class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(Text, nullable=False))
    email: str = Field(sa_column=Column(Text, nullable=False, unique=True))
    password_hash: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    role: str = Field(default=ROLE_AUTHOR, sa_column=Column(Text, nullable=False, server_default=ROLE_AUTHOR))
    designation: str = Field(default="student", sa_column=Column(Text, nullable=False, server_default="student"))
    department_id: Optional[int] = Field(default=None, foreign_key="departments.id")
    faculty_id: Optional[int] = Field(default=None, foreign_key="faculties.id")
    created_at: str = Field(default_factory=_now_iso, sa_column=Column(Text, nullable=False))
    updated_at: str = Field(default_factory=_now_iso, sa_column=Column(Text, nullable=False))

    def to_public(self) -> dict:
        """Account fields safe to return to clients (no password hash)."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "designation": self.designation,
            "department_id": self.department_id,
            "faculty_id": self.faculty_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# ──────────────────────────────────────────────────────────────────────────────
# 3. Papers
# ──────────────────────────────────────────────────────────────────────────────

class Paper(SQLModel, table=True):
    __tablename__ = "papers"
    __table_args__ = (
        Index("idx_papers_status_publication_date", "status", "publication_date"),
        Index("idx_papers_author_id", "author_id"),
        Index("idx_papers_created_at", "created_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(sa_column=Column(Text, nullable=False))
    abstract: str = Field(sa_column=Column(Text, nullable=False))
    keywords: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    category_text: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    author_id: int = Field(foreign_key="users.id")
    corresponding_author: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    supervisor: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    co_supervisor: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    department_id: Optional[int] = Field(default=None, foreign_key="departments.id")
    publication_date: date = Field(sa_column=Column(Date, nullable=False))
    doi: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    file_url: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    file_name: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    file_size: int = Field(default=0, sa_column=Column(Integer, nullable=False, server_default="0"))
    status: str = Field(default=STATUS_PENDING, sa_column=Column(Text, nullable=False, server_default=STATUS_PENDING))
    admin_notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    version: int = Field(default=1, sa_column=Column(Integer, nullable=False, server_default="1"))
    created_at: str = Field(default_factory=_now_iso, sa_column=Column(Text, nullable=False))
    updated_at: str = Field(default_factory=_now_iso, sa_column=Column(Text, nullable=False))

    co_authors: List["CoAuthor"] = Relationship(
        back_populates="paper",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "CoAuthor.author_order"},
    )
    versions: List["PaperVersion"] = Relationship(
        back_populates="paper",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    @property
    def stored_filename(self) -> str:
        """Generated name of the backing file (last segment of file_url)."""
        return (self.file_url or "").rsplit("/", 1)[-1]


class CoAuthor(SQLModel, table=True):
    __tablename__ = "co_authors"
    __table_args__ = (
        Index("idx_co_authors_paper_id", "paper_id"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    paper_id: int = Field(foreign_key="papers.id", ondelete="CASCADE")
    co_author_name: str = Field(sa_column=Column(Text, nullable=False))
    author_order: int = Field(default=1, sa_column=Column(Integer, nullable=False, server_default="1"))
    created_at: str = Field(default_factory=_now_iso, sa_column=Column(Text, nullable=False))

    paper: Optional[Paper] = Relationship(back_populates="co_authors")


class PaperVersion(SQLModel, table=True):
    __tablename__ = "paper_versions"
    __table_args__ = (
        Index("idx_paper_versions_paper_id_version", "paper_id", "version_number"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    paper_id: int = Field(foreign_key="papers.id", ondelete="CASCADE")
    version_number: int = Field(default=1, sa_column=Column(Integer, nullable=False, server_default="1"))
    changes: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    file_url: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: str = Field(default_factory=_now_iso, sa_column=Column(Text, nullable=False))

    paper: Optional[Paper] = Relationship(back_populates="versions")
