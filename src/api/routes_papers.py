"""
论文 API：公开列表/详情/版本历史，作者提交（multipart + PDF）、编辑、删除。
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from src.api.deps import (
    get_current_author,
    get_optional_requester,
    get_paper_service,
)
from src.api.schemas import (
    MessageResponse,
    PaperCreatedResponse,
    PaperUpdatedResponse,
    PaperUpdateRequest,
)
from src.errors import UploadError
from src.papers import PaperService, PaperUpload, Requester

router = APIRouter(prefix="/api/papers", tags=["papers"])


@router.get("")
def list_papers(papers: PaperService = Depends(get_paper_service)) -> list[dict]:
    """所有已审核论文，按发表日期倒序。"""
    return papers.list_approved()


@router.get("/mine")
def list_my_papers(
    requester: Requester = Depends(get_current_author),
    papers: PaperService = Depends(get_paper_service),
) -> list[dict]:
    """当前用户提交的全部论文（含待审/被拒）。"""
    return papers.list_mine(requester)


@router.get("/{paper_id}")
def get_paper(
    paper_id: int,
    requester: Optional[Requester] = Depends(get_optional_requester),
    papers: PaperService = Depends(get_paper_service),
) -> dict:
    """论文详情；未审核论文仅作者本人与管理员可见，其余情况按 404 处理。"""
    return papers.get_paper(paper_id, requester)


@router.get("/{paper_id}/versions")
def list_versions(
    paper_id: int,
    requester: Optional[Requester] = Depends(get_optional_requester),
    papers: PaperService = Depends(get_paper_service),
) -> list[dict]:
    return papers.list_versions(paper_id, requester)


@router.post("", response_model=PaperCreatedResponse, status_code=201)
def create_paper(
    title: Optional[str] = Form(None),
    abstract: Optional[str] = Form(None),
    keywords: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    department_id: Optional[str] = Form(None),
    publication_date: Optional[str] = Form(None),
    corresponding_author: Optional[str] = Form(None),
    supervisor: Optional[str] = Form(None),
    co_supervisor: Optional[str] = Form(None),
    doi: Optional[str] = Form(None),
    co_authors: Optional[str] = Form(None, description='JSON 数组 [{"name": "...", "order": 1}]'),
    file: Optional[List[UploadFile]] = File(None),
    requester: Requester = Depends(get_current_author),
    papers: PaperService = Depends(get_paper_service),
) -> PaperCreatedResponse:
    """提交论文：元数据 + 单个 PDF（字段名 file），初始状态 pending。"""
    if file and len(file) > 1:
        raise UploadError("Too many files. Only one file allowed.")
    upload = None
    if file:
        f = file[0]
        upload = PaperUpload(stream=f.file, filename=f.filename or "", content_type=f.content_type, size=f.size)

    metadata = {
        "title": title,
        "abstract": abstract,
        "keywords": keywords,
        "category": category,
        "department_id": department_id,
        "publication_date": publication_date,
        "corresponding_author": corresponding_author,
        "supervisor": supervisor,
        "co_supervisor": co_supervisor,
        "doi": doi,
        "co_authors": co_authors,
    }
    result = papers.create_paper(requester, metadata, upload)
    return PaperCreatedResponse(id=result["id"], fileUrl=result["file_url"])


@router.put("/{paper_id}", response_model=PaperUpdatedResponse)
def update_paper(
    paper_id: int,
    body: PaperUpdateRequest,
    requester: Requester = Depends(get_current_author),
    papers: PaperService = Depends(get_paper_service),
) -> PaperUpdatedResponse:
    """作者本人或管理员修改元数据；只覆盖请求中出现的字段。"""
    fields = body.model_dump(exclude_unset=True)
    paper = papers.update_paper(paper_id, requester, fields)
    return PaperUpdatedResponse(paper=paper)


@router.delete("/{paper_id}", response_model=MessageResponse)
def delete_paper(
    paper_id: int,
    requester: Requester = Depends(get_current_author),
    papers: PaperService = Depends(get_paper_service),
) -> MessageResponse:
    """删除论文及其共同作者、版本记录和 PDF 文件。"""
    papers.delete_paper(paper_id, requester)
    return MessageResponse(message="Paper deleted successfully")
