"""
Shared SELECTs: a paper joined with the display names every listing returns.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from src.db.models import CoAuthor, Department, Faculty, Paper, User


def paper_listing():
    """SELECT paper + author name/e-mail + department name + faculty name.

    The faculty is the one recorded on the submitting account; papers carry
    only a department reference.
    """
    return (
        select(
            Paper,
            User.name.label("author_name"),
            User.email.label("author_email"),
            Department.name.label("department_name"),
            Faculty.name.label("faculty_name"),
        )
        .join(User, Paper.author_id == User.id, isouter=True)
        .join(Department, Paper.department_id == Department.id, isouter=True)
        .join(Faculty, User.faculty_id == Faculty.id, isouter=True)
    )


def paper_to_dict(paper: Paper) -> Dict[str, Any]:
    out = paper.model_dump()
    if isinstance(out.get("publication_date"), date):
        out["publication_date"] = out["publication_date"].isoformat()
    return out


def row_to_dict(row, include_email: bool = False) -> Dict[str, Any]:
    paper, author_name, author_email, department_name, faculty_name = row
    out = paper_to_dict(paper)
    out["author_name"] = author_name
    if include_email:
        out["author_email"] = author_email
    out["department_name"] = department_name
    out["faculty_name"] = faculty_name
    return out


def co_authors_of(session: Session, paper_id: int) -> List[Dict[str, Any]]:
    rows = session.exec(
        select(CoAuthor)
        .where(CoAuthor.paper_id == paper_id)
        .order_by(CoAuthor.author_order, CoAuthor.id)
    ).all()
    return [{"id": c.id, "name": c.co_author_name, "order": c.author_order} for c in rows]


def fetch_detail(session: Session, paper_id: int) -> Optional[Dict[str, Any]]:
    """Paper with joined names, author e-mail and ordered co-authors, or None."""
    row = session.exec(paper_listing().where(Paper.id == paper_id)).first()
    if row is None:
        return None
    out = row_to_dict(row, include_email=True)
    out["co_authors"] = co_authors_of(session, paper_id)
    return out
