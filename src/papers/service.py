"""
Paper service: submission, retrieval, editing, deletion and version history.

Submission order: validate everything → store the PDF → insert paper,
co-authors and version 1 in one transaction. If the transaction fails the
stored PDF is deleted again. Deletion removes the rows in one transaction
and the PDF only after commit; a failed file removal is logged, not raised.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, BinaryIO, Dict, List, Optional, Tuple

from sqlmodel import select

from src.db import Database
from src.db.models import STATUS_APPROVED, STATUS_PENDING, CoAuthor, Department, Paper, PaperVersion
from src.errors import NotFoundError, PermissionDeniedError, RepositoryError, ValidationError
from src.log import get_logger
from src.observability.metrics import metrics
from src.observability.tracing import tracer
from src.papers.access import Requester, can_modify, can_view, require_author
from src.papers.queries import fetch_detail, paper_listing, row_to_dict
from src.storage import FileStore

logger = get_logger(__name__)

REQUIRED_FIELDS = (
    "title",
    "abstract",
    "keywords",
    "category",
    "department_id",
    "publication_date",
    "corresponding_author",
)

# request key -> Paper column
EDITABLE_FIELDS = {
    "title": "title",
    "abstract": "abstract",
    "keywords": "keywords",
    "category": "category_text",
    "corresponding_author": "corresponding_author",
    "supervisor": "supervisor",
    "co_supervisor": "co_supervisor",
    "department_id": "department_id",
    "publication_date": "publication_date",
    "doi": "doi",
}
OPTIONAL_TEXT_FIELDS = {"supervisor", "co_supervisor", "doi"}


@dataclass
class PaperUpload:
    """The submitted PDF as received from the multipart form."""

    stream: BinaryIO
    filename: str
    content_type: Optional[str]
    size: Optional[int] = None


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_date(value: Any) -> date:
    """YYYY-MM-DD, or a full ISO datetime whose date part is kept."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValidationError("Invalid publication_date")


def _parse_int(value: Any, label: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}")


def _optional_text(value: Any) -> Optional[str]:
    return None if _blank(value) else str(value).strip()


def parse_co_authors(raw: Any, strict: bool = False) -> List[Tuple[str, int]]:
    """
    Parse the co-author payload into ``(name, order)`` pairs.

    Accepts a JSON string or an already-decoded list of ``{"name", "order"}``
    objects. Entries with a blank name are skipped; a missing order falls back
    to the 1-based position. A malformed payload is logged and yields no
    co-authors rather than failing the submission; with ``strict`` it raises
    ValidationError instead, so an edit never wipes the existing list.
    """
    if _blank(raw):
        return []
    items = raw
    if isinstance(raw, (str, bytes)):
        try:
            items = json.loads(raw)
        except ValueError as e:
            if strict:
                raise ValidationError("Invalid co_authors")
            logger.error("Error parsing co-authors: %s", e)
            return []
    if not isinstance(items, list):
        if strict:
            raise ValidationError("Invalid co_authors")
        logger.error("Error parsing co-authors: expected a list, got %s", type(items).__name__)
        return []

    parsed: List[Tuple[str, int]] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        order = item.get("order")
        try:
            order = int(order) if order else index + 1
        except (TypeError, ValueError):
            order = index + 1
        parsed.append((name.strip(), order if order > 0 else index + 1))
    return parsed


class PaperService:
    def __init__(self, db: Database, files: FileStore):
        self.db = db
        self.files = files

    # ── create ──

    def create_paper(
        self,
        requester: Requester,
        metadata: Dict[str, Any],
        upload: Optional[PaperUpload],
    ) -> Dict[str, Any]:
        """Validate, store the PDF and insert the paper as pending. Returns id + file URL."""
        require_author(requester)
        missing = [f for f in REQUIRED_FIELDS if _blank(metadata.get(f))]
        if missing:
            raise ValidationError("Missing required fields")
        if upload is None or not upload.filename:
            raise ValidationError("PDF file is required")

        department_id = _parse_int(metadata["department_id"], "department_id")
        publication_date = _parse_date(metadata["publication_date"])
        co_authors = parse_co_authors(metadata.get("co_authors"))

        with self.db.session() as session:
            if session.get(Department, department_id) is None:
                raise ValidationError("Invalid department_id")

        with tracer.start_as_current_span("papers.create"):
            try:
                stored = self.files.save(upload.stream, upload.filename, upload.content_type, upload.size)
            except RepositoryError:
                metrics.paper_submissions_total.labels(result="rejected_upload").inc()
                raise
            metrics.upload_bytes.observe(stored.size)

            try:
                with self.db.transaction() as session:
                    paper = Paper(
                        title=str(metadata["title"]).strip(),
                        abstract=str(metadata["abstract"]).strip(),
                        keywords=str(metadata["keywords"]).strip(),
                        category_text=str(metadata["category"]).strip(),
                        author_id=requester.id,
                        corresponding_author=str(metadata["corresponding_author"]).strip(),
                        supervisor=_optional_text(metadata.get("supervisor")),
                        co_supervisor=_optional_text(metadata.get("co_supervisor")),
                        department_id=department_id,
                        publication_date=publication_date,
                        doi=_optional_text(metadata.get("doi")),
                        file_url=stored.url,
                        file_name=stored.original_name,
                        file_size=stored.size,
                        status=STATUS_PENDING,
                    )
                    session.add(paper)
                    session.flush()
                    for name, order in co_authors:
                        session.add(CoAuthor(paper_id=paper.id, co_author_name=name, author_order=order))
                    session.add(PaperVersion(
                        paper_id=paper.id,
                        version_number=1,
                        changes="Initial submission",
                        file_url=stored.url,
                    ))
                    paper_id = paper.id
            except Exception:
                logger.exception("Error adding paper; removing orphaned upload %s", stored.name)
                self.files.delete(stored.name)
                metrics.orphan_file_cleanups_total.labels(reason="insert_failed").inc()
                metrics.paper_submissions_total.labels(result="failed").inc()
                raise

        metrics.paper_submissions_total.labels(result="created").inc()
        logger.info(
            "paper %s submitted by user %s (%d co-authors, %d bytes)",
            paper_id, requester.id, len(co_authors), stored.size,
        )
        return {"id": paper_id, "file_url": stored.url, "status": STATUS_PENDING}

    # ── read ──

    def get_paper(self, paper_id: int, requester: Optional[Requester] = None) -> Dict[str, Any]:
        """Paper detail. Non-approved papers are reported as missing unless owner or admin."""
        with self.db.session() as session:
            paper = session.get(Paper, paper_id)
            if paper is None or not can_view(paper, requester):
                raise NotFoundError("Paper not found")
            return fetch_detail(session, paper_id)

    def list_approved(self) -> List[Dict[str, Any]]:
        stmt = (
            paper_listing()
            .where(Paper.status == STATUS_APPROVED)
            .order_by(Paper.publication_date.desc(), Paper.id.desc())
        )
        with self.db.session() as session:
            return [row_to_dict(r) for r in session.exec(stmt).all()]

    def list_mine(self, requester: Requester) -> List[Dict[str, Any]]:
        """The caller's own submissions in every status, newest first."""
        stmt = (
            paper_listing()
            .where(Paper.author_id == requester.id)
            .order_by(Paper.created_at.desc(), Paper.id.desc())
        )
        with self.db.session() as session:
            return [row_to_dict(r) for r in session.exec(stmt).all()]

    def list_versions(self, paper_id: int, requester: Optional[Requester] = None) -> List[Dict[str, Any]]:
        with self.db.session() as session:
            paper = session.get(Paper, paper_id)
            if paper is None or not can_view(paper, requester):
                raise NotFoundError("Paper not found")
            rows = session.exec(
                select(PaperVersion)
                .where(PaperVersion.paper_id == paper_id)
                .order_by(PaperVersion.version_number.desc(), PaperVersion.id.desc())
            ).all()
            return [v.model_dump() for v in rows]

    # ── update ──

    def _clean_updates(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        updates: Dict[str, Any] = {}
        for key, column in EDITABLE_FIELDS.items():
            if key not in fields:
                continue
            value = fields[key]
            if key in OPTIONAL_TEXT_FIELDS:
                updates[column] = _optional_text(value)
            elif _blank(value):
                raise ValidationError(f"{key} cannot be empty")
            elif key == "department_id":
                updates[column] = _parse_int(value, "department_id")
            elif key == "publication_date":
                updates[column] = _parse_date(value)
            else:
                updates[column] = str(value).strip()
        return updates

    def update_paper(
        self,
        paper_id: int,
        requester: Requester,
        fields: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Overwrite the metadata fields present in *fields*; status is never touched.

        A ``co_authors`` key replaces the co-author list. When anything changed
        the version counter is bumped and a version row names the changed fields.
        """
        require_author(requester)
        replace_co_authors = "co_authors" in fields

        with self.db.transaction() as session:
            paper = session.get(Paper, paper_id)
            if paper is None:
                raise NotFoundError("Paper not found")
            if not can_modify(paper, requester):
                raise PermissionDeniedError("You can only edit your own papers")
            updates = self._clean_updates(fields)
            co_authors = parse_co_authors(fields.get("co_authors"), strict=True) if replace_co_authors else []
            if "department_id" in updates and session.get(Department, updates["department_id"]) is None:
                raise ValidationError("Invalid department_id")

            changed = [col for col, value in updates.items() if getattr(paper, col) != value]
            for col in changed:
                setattr(paper, col, updates[col])

            if replace_co_authors:
                current = [(c.co_author_name, c.author_order) for c in paper.co_authors]
                if current != co_authors:
                    paper.co_authors.clear()
                    for name, order in co_authors:
                        paper.co_authors.append(CoAuthor(co_author_name=name, author_order=order))
                    changed.append("co_authors")

            if changed:
                paper.version += 1
                paper.updated_at = datetime.now().isoformat()
                session.add(PaperVersion(
                    paper_id=paper.id,
                    version_number=paper.version,
                    changes="Updated: " + ", ".join(changed),
                    file_url=paper.file_url,
                ))
                session.add(paper)

        if changed:
            logger.info("paper %s updated by user %s: %s", paper_id, requester.id, ", ".join(changed))
        return self.get_paper(paper_id, requester)

    # ── delete ──

    def delete_paper(self, paper_id: int, requester: Requester) -> None:
        """Delete paper, co-authors and versions, then the backing PDF."""
        require_author(requester)
        with self.db.transaction() as session:
            paper = session.get(Paper, paper_id)
            if paper is None:
                raise NotFoundError("Paper not found")
            if not can_modify(paper, requester):
                raise PermissionDeniedError("You can only delete your own papers")
            stored_name = paper.stored_filename
            session.delete(paper)

        logger.info("paper %s deleted by user %s", paper_id, requester.id)
        if stored_name and self.files.delete(stored_name):
            metrics.orphan_file_cleanups_total.labels(reason="paper_deleted").inc()
