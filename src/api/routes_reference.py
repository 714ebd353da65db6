"""
公开 API：检索、院系/学院/分类列表、首页统计。
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.deps import get_reference_service, get_search_service
from src.api.schemas import StatsResponse
from src.papers import SearchService
from src.papers.search import MAX_PAGE_SIZE
from src.reference import ReferenceService

router = APIRouter(prefix="/api", tags=["reference"])


@router.get("/search")
def search_papers(
    q: Optional[str] = Query(None, description="标题/摘要/关键词/分类 子串，不区分大小写"),
    department: Optional[str] = Query(None, description="院系名称，精确匹配"),
    category: Optional[str] = Query(None, description="分类子串"),
    year: Optional[int] = Query(None, ge=1000, le=9999, description="发表年份"),
    limit: Optional[int] = Query(None, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    search: SearchService = Depends(get_search_service),
) -> list[dict]:
    return search.search(q, department, category, year, limit=limit, offset=offset)


@router.get("/departments")
def list_departments(reference: ReferenceService = Depends(get_reference_service)) -> list[dict]:
    return reference.list_departments()


@router.get("/faculties")
def list_faculties(reference: ReferenceService = Depends(get_reference_service)) -> list[dict]:
    return reference.list_faculties()


@router.get("/categories")
def list_categories(reference: ReferenceService = Depends(get_reference_service)) -> list[dict]:
    return reference.list_categories()


@router.get("/stats", response_model=StatsResponse)
def stats(reference: ReferenceService = Depends(get_reference_service)) -> StatsResponse:
    """首页计数，聚合失败时返回回退值（不报错）。"""
    return StatsResponse(**reference.stats())
