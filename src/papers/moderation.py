"""
Moderation: admin-only listing of every submission and approve/reject decisions.

A paper starts as pending; an admin moves it to approved or rejected. A later
decision on an already decided paper replaces the earlier one. Admin notes are
replaced only when the caller supplies them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import select

from src.db import Database
from src.db.models import DECISION_STATUSES, STATUS_PENDING, Paper
from src.errors import NotFoundError, ValidationError
from src.log import get_logger
from src.observability.metrics import metrics
from src.papers.access import Requester, require_admin
from src.papers.queries import paper_listing, row_to_dict

logger = get_logger(__name__)

_UNSET = object()


class ModerationService:
    def __init__(self, db: Database):
        self.db = db

    def list_all(self, requester: Requester) -> List[Dict[str, Any]]:
        """Every paper regardless of status, newest submission first."""
        require_admin(requester)
        stmt = paper_listing().order_by(Paper.created_at.desc(), Paper.id.desc())
        with self.db.session() as session:
            return [row_to_dict(r) for r in session.exec(stmt).all()]

    def set_status(
        self,
        paper_id: int,
        status: Optional[str],
        requester: Requester,
        notes: Any = _UNSET,
    ) -> Dict[str, Any]:
        require_admin(requester)
        if status not in DECISION_STATUSES:
            raise ValidationError("Invalid status")

        with self.db.transaction() as session:
            paper = session.get(Paper, paper_id)
            if paper is None:
                raise NotFoundError("Paper not found")
            previous = paper.status
            paper.status = status
            if notes is not _UNSET:
                paper.admin_notes = notes
            paper.updated_at = datetime.now().isoformat()
            session.add(paper)
            admin_notes = paper.admin_notes

        metrics.moderation_decisions_total.labels(status=status).inc()
        if previous != STATUS_PENDING:
            logger.warning("paper %s re-moderated by admin %s: %s -> %s", paper_id, requester.id, previous, status)
        else:
            logger.info("paper %s %s by admin %s", paper_id, status, requester.id)
        return {"id": paper_id, "status": status, "previous_status": previous, "admin_notes": admin_notes}

    def pending_count(self, requester: Requester) -> int:
        require_admin(requester)
        with self.db.session() as session:
            count = session.exec(
                select(func.count()).select_from(Paper).where(Paper.status == STATUS_PENDING)
            ).one()
        metrics.pending_papers.set(count)
        return int(count)
