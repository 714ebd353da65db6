"""
参考数据（院系、学院、分类）与首页统计。
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import distinct, func
from sqlmodel import select

from src.db import Database
from src.db.models import STATUS_APPROVED, Department, Faculty, Paper, User
from src.log import get_logger

logger = get_logger(__name__)


class ReferenceService:
    def __init__(self, db: Database, founding_year: int = 2001, fallback_departments: int = 8):
        self.db = db
        self.founding_year = founding_year
        self.fallback_departments = fallback_departments

    def years_of_operation(self) -> int:
        return datetime.now().year - self.founding_year

    def list_departments(self) -> List[Dict[str, Any]]:
        with self.db.session() as session:
            return [d.model_dump() for d in session.exec(select(Department).order_by(Department.name)).all()]

    def list_faculties(self) -> List[Dict[str, Any]]:
        with self.db.session() as session:
            return [f.model_dump() for f in session.exec(select(Faculty).order_by(Faculty.name)).all()]

    def list_categories(self) -> List[Dict[str, str]]:
        """去重后的已审核论文分类，按字母序；id 与 name 相同。"""
        stmt = (
            select(Paper.category_text)
            .where(Paper.status == STATUS_APPROVED)
            .where(Paper.category_text != "")
            .distinct()
            .order_by(Paper.category_text)
        )
        with self.db.session() as session:
            return [{"id": c, "name": c} for c in session.exec(stmt).all() if c]

    def stats(self) -> Dict[str, int]:
        """首页计数；聚合失败时返回回退值而不是报错。"""
        try:
            with self.db.session() as session:
                papers = session.exec(
                    select(func.count()).select_from(Paper).where(Paper.status == STATUS_APPROVED)
                ).one()
                authors = session.exec(
                    select(func.count(distinct(Paper.author_id))).where(Paper.status == STATUS_APPROVED)
                ).one()
                departments = session.exec(select(func.count()).select_from(Department)).one()
        except Exception:
            logger.exception("Error fetching stats, returning fallback values")
            return {
                "papers": 0,
                "authors": 0,
                "departments": self.fallback_departments,
                "years": self.years_of_operation(),
            }

        result = {
            "papers": int(papers),
            "authors": int(authors),
            "departments": int(departments),
            "years": self.years_of_operation(),
        }
        logger.debug("stats calculated: %s", result)
        return result

    def debug_stats(self) -> Dict[str, int]:
        """管理员排查用：全部论文数、已审核数、院系数、用户数。"""
        with self.db.session() as session:
            total = session.exec(select(func.count()).select_from(Paper)).one()
            approved = session.exec(
                select(func.count()).select_from(Paper).where(Paper.status == STATUS_APPROVED)
            ).one()
            departments = session.exec(select(func.count()).select_from(Department)).one()
            users = session.exec(select(func.count()).select_from(User)).one()
        return {
            "totalPapers": int(total),
            "approvedPapers": int(approved),
            "departments": int(departments),
            "users": int(users),
            "years": self.years_of_operation(),
        }

    def seed(
        self,
        departments: Iterable[Tuple[str, Optional[str]]] = (),
        faculties: Iterable[Tuple[str, Optional[str]]] = (),
    ) -> Dict[str, int]:
        """插入尚不存在的院系/学院（按名称判重），返回新增数量。"""
        added = {"departments": 0, "faculties": 0}
        with self.db.transaction() as session:
            for model, items, key in ((Department, departments, "departments"), (Faculty, faculties, "faculties")):
                existing = set(session.exec(select(model.name)).all())
                for name, description in items:
                    if name in existing:
                        continue
                    session.add(model(name=name, description=description))
                    existing.add(name)
                    added[key] += 1
        return added
