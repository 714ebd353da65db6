"""
FastAPI 应用入口 - 论文仓库 REST API

没有模块级 app，导入本模块不会创建上传目录；启动方式:
    uvicorn src.api.server:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import DEFAULT_SECRET, settings
from src.api.routes_admin import router as admin_router
from src.api.routes_auth import router as auth_router
from src.api.routes_papers import router as papers_router
from src.api.routes_reference import router as reference_router
from src.db import Database
from src.errors import RepositoryError
from src.log import cleanup_logs, get_logger
from src.observability import setup_observability
from src.storage import FileStore

logger = get_logger(__name__)


class UploadFiles(StaticFiles):
    """Stored uploads are always answered as PDF, never sniffed by the browser."""

    def file_response(self, *args, **kwargs):
        response = super().file_response(*args, **kwargs)
        response.headers["content-type"] = "application/pdf"
        response.headers["x-content-type-options"] = "nosniff"
        return response


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _register_error_handlers(app: FastAPI) -> None:
    """所有失败统一为 {"error": message}；500 只返回通用信息，细节写日志。"""

    @app.exception_handler(RepositoryError)
    async def _repository_error(request: Request, exc: RepositoryError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return _error(404, "Route not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
            message = f"Invalid {field}: {first.get('msg')}" if field else str(first.get("msg"))
        else:
            message = "Invalid request"
        return _error(400, message)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Something went wrong!")


def create_app(db: Optional[Database] = None, files: Optional[FileStore] = None) -> FastAPI:
    """构建应用。测试可传入临时 Database / FileStore。"""
    files = files or FileStore.from_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """生命周期：连接池 → (开发环境) 建表 → 安全检查 → 日志清理；退出时释放连接池"""
        database = db or Database()
        app.state.db = database
        app.state.files = files

        if not settings.is_prod:
            try:
                database.create_all()
            except Exception as e:
                logger.warning("[startup] create_all failed (may be OK if alembic already ran): %s", e)

        if settings.auth.secret_key == DEFAULT_SECRET:
            logger.warning(
                "[startup] SECURITY WARNING: auth.secret_key is still the default value. "
                "Tokens can be trivially forged. Set JWT_SECRET or auth.secret_key in "
                "config/repo_config.local.json before deploying."
            )

        try:
            report = cleanup_logs()
            if report["deleted_by_age"] or report["deleted_by_size"]:
                logger.info("[startup] log cleanup: %s", report)
        except OSError as e:
            logger.warning("[startup] log cleanup failed: %s", e)

        logger.info("[startup] database=%s uploads=%s", database.url.split("@")[-1], files.root)
        yield

        database.dispose()
        logger.info("[shutdown] connection pool disposed")

    app = FastAPI(
        title="Research Paper Repository API",
        description="论文提交、审核与检索 API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.files = files

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(papers_router)
    app.include_router(reference_router)
    app.include_router(admin_router)

    app.mount(files.url_prefix, UploadFiles(directory=str(files.root)), name="uploads")

    setup_observability(app, uploads_prefix=files.url_prefix)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app
