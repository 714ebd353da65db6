"""
FastAPI 依赖：从 app.state 取共享的 Database / FileStore，
解析 Bearer token，构造各 service。
"""

from dataclasses import replace
from typing import Optional

from fastapi import Depends, Header, Request

from config.settings import settings
from src.auth.service import AuthService
from src.auth.session import decode_token
from src.db import Database
from src.errors import AuthenticationError, InvalidTokenError
from src.papers import ModerationService, PaperService, Requester, SearchService
from src.papers.access import require_admin, require_author
from src.reference import ReferenceService
from src.storage import FileStore


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_files(request: Request) -> FileStore:
    return request.app.state.files


def get_auth_service(db: Database = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_paper_service(
    db: Database = Depends(get_db),
    files: FileStore = Depends(get_files),
) -> PaperService:
    return PaperService(db, files)


def get_moderation_service(db: Database = Depends(get_db)) -> ModerationService:
    return ModerationService(db)


def get_search_service(db: Database = Depends(get_db)) -> SearchService:
    return SearchService(db)


def get_reference_service(db: Database = Depends(get_db)) -> ReferenceService:
    return ReferenceService(
        db,
        founding_year=settings.stats.founding_year,
        fallback_departments=settings.stats.fallback_departments,
    )


def _get_token_from_header(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[7:].strip() or None


def get_current_requester(authorization: Optional[str] = Header(None)) -> Requester:
    """Dependency: token required. Missing → 401, invalid or expired → 403."""
    token = _get_token_from_header(authorization)
    if not token:
        raise AuthenticationError("Access token required")
    claims = decode_token(token)
    if claims is None:
        raise InvalidTokenError("Invalid or expired token")
    return Requester.from_claims(claims)


def get_optional_requester(authorization: Optional[str] = Header(None)) -> Optional[Requester]:
    """Dependency for public routes: a bad token is treated as no token."""
    token = _get_token_from_header(authorization)
    claims = decode_token(token) if token else None
    return Requester.from_claims(claims) if claims else None


def get_current_author(requester: Requester = Depends(get_current_requester)) -> Requester:
    require_author(requester)
    return requester


def get_current_admin(
    requester: Requester = Depends(get_current_requester),
    auth: AuthService = Depends(get_auth_service),
) -> Requester:
    """Admin routes re-read the role so a demoted admin loses access before the token expires."""
    require_admin(requester)
    requester = replace(requester, role=auth.current_role(requester.id) or "")
    require_admin(requester)
    return requester
