"""
管理员 API：全部论文列表、审核（approve/reject）、待审数量、排查统计。
"""

from fastapi import APIRouter, Depends

from src.api.deps import get_current_admin, get_moderation_service, get_reference_service
from src.api.schemas import PendingCountResponse, StatusUpdateRequest, StatusUpdateResponse
from src.papers import ModerationService, Requester
from src.reference import ReferenceService

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/papers")
def list_all_papers(
    admin: Requester = Depends(get_current_admin),
    moderation: ModerationService = Depends(get_moderation_service),
) -> list[dict]:
    """全部状态的论文，按提交时间倒序。"""
    return moderation.list_all(admin)


@router.put("/papers/{paper_id}/status", response_model=StatusUpdateResponse)
def set_paper_status(
    paper_id: int,
    body: StatusUpdateRequest,
    admin: Requester = Depends(get_current_admin),
    moderation: ModerationService = Depends(get_moderation_service),
) -> StatusUpdateResponse:
    kwargs = {}
    if "admin_notes" in body.model_fields_set:
        kwargs["notes"] = body.admin_notes
    result = moderation.set_status(paper_id, body.status, admin, **kwargs)
    return StatusUpdateResponse(message=f"Paper {result['status']} successfully", **result)


@router.get("/pending-count", response_model=PendingCountResponse)
def pending_count(
    admin: Requester = Depends(get_current_admin),
    moderation: ModerationService = Depends(get_moderation_service),
) -> PendingCountResponse:
    return PendingCountResponse(count=moderation.pending_count(admin))


@router.get("/debug/stats")
def debug_stats(
    _admin: Requester = Depends(get_current_admin),
    reference: ReferenceService = Depends(get_reference_service),
) -> dict:
    return reference.debug_stats()
