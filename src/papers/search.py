"""
Public search over approved papers.

All filters are optional and AND-combined; an omitted filter does not
constrain the result. Results are ordered by publication date, newest first.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import extract, or_

from src.db import Database
from src.db.models import STATUS_APPROVED, Department, Paper
from src.papers.queries import paper_listing, row_to_dict

MAX_PAGE_SIZE = 100


class SearchService:
    def __init__(self, db: Database):
        self.db = db

    def search(
        self,
        query: Optional[str] = None,
        department: Optional[str] = None,
        category: Optional[str] = None,
        year: Optional[int] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """
        Args:
            query: case-insensitive substring of title, abstract, keywords or category.
            department: exact department name.
            category: case-insensitive substring of the category text.
            year: calendar year of the publication date.
            limit / offset: optional paging; no limit returns every match.
        """
        stmt = paper_listing().where(Paper.status == STATUS_APPROVED)

        query = (query or "").strip()
        if query:
            stmt = stmt.where(or_(
                Paper.title.icontains(query, autoescape=True),
                Paper.abstract.icontains(query, autoescape=True),
                Paper.keywords.icontains(query, autoescape=True),
                Paper.category_text.icontains(query, autoescape=True),
            ))
        if department:
            stmt = stmt.where(Department.name == department)
        category = (category or "").strip()
        if category:
            stmt = stmt.where(Paper.category_text.icontains(category, autoescape=True))
        if year is not None:
            stmt = stmt.where(extract("year", Paper.publication_date) == int(year))

        stmt = stmt.order_by(Paper.publication_date.desc(), Paper.id.desc())
        if limit is not None:
            stmt = stmt.limit(max(1, min(int(limit), MAX_PAGE_SIZE)))
        if offset:
            stmt = stmt.offset(max(0, int(offset)))

        with self.db.session() as session:
            return [row_to_dict(r) for r in session.exec(stmt).all()]
