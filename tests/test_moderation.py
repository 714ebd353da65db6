"""
审核单元测试：状态流转、备注、待审计数、权限
"""

import pytest

from src.errors import NotFoundError, PermissionDeniedError, ValidationError
from src.papers import ModerationService


@pytest.fixture
def moderation(db):
    return ModerationService(db)


class TestSetStatus:
    def test_approve(self, moderation, papers, author, admin, submit_paper):
        paper_id = submit_paper(author)
        result = moderation.set_status(paper_id, "approved", admin, notes="Looks good")
        assert result == {
            "id": paper_id,
            "status": "approved",
            "previous_status": "pending",
            "admin_notes": "Looks good",
        }
        assert papers.get_paper(paper_id, None)["admin_notes"] == "Looks good"

    @pytest.mark.parametrize("status", ["pending", "published", "", None])
    def test_invalid_status(self, moderation, author, admin, submit_paper, status):
        paper_id = submit_paper(author)
        with pytest.raises(ValidationError, match="Invalid status"):
            moderation.set_status(paper_id, status, admin)

    def test_non_admin(self, moderation, author, submit_paper):
        paper_id = submit_paper(author)
        with pytest.raises(PermissionDeniedError):
            moderation.set_status(paper_id, "approved", author)

    def test_missing_paper(self, moderation, admin):
        with pytest.raises(NotFoundError):
            moderation.set_status(404, "approved", admin)

    def test_re_moderation_keeps_notes_unless_given(self, moderation, author, admin, submit_paper):
        paper_id = submit_paper(author)
        moderation.set_status(paper_id, "approved", admin, notes="ok")
        result = moderation.set_status(paper_id, "rejected", admin)
        assert result["previous_status"] == "approved"
        assert result["status"] == "rejected"
        assert result["admin_notes"] == "ok"

        cleared = moderation.set_status(paper_id, "rejected", admin, notes=None)
        assert cleared["admin_notes"] is None


class TestListing:
    def test_pending_count(self, moderation, author, admin, submit_paper):
        ids = [submit_paper(author, title=f"Paper {i}") for i in range(3)]
        assert moderation.pending_count(admin) == 3
        moderation.set_status(ids[0], "approved", admin)
        moderation.set_status(ids[1], "rejected", admin)
        assert moderation.pending_count(admin) == 1

    def test_list_all_every_status(self, moderation, author, other_author, admin, submit_paper):
        a = submit_paper(author)
        b = submit_paper(other_author)
        moderation.set_status(a, "approved", admin)
        rows = moderation.list_all(admin)
        assert {r["id"] for r in rows} == {a, b}
        assert {r["status"] for r in rows} == {"approved", "pending"}
        assert all("author_email" not in r for r in rows)

    def test_list_all_admin_only(self, moderation, author):
        with pytest.raises(PermissionDeniedError):
            moderation.list_all(author)
        with pytest.raises(PermissionDeniedError):
            moderation.pending_count(author)
