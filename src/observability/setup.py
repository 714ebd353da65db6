"""
一键初始化 Observability：注册中间件 + /metrics + /health/detailed + 应用元信息。
"""

import os

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from src.log import get_logger
from src.observability.metrics import metrics
from src.observability.middleware import ObservabilityMiddleware
from src.observability.tracing import SERVICE_NAME, SERVICE_VERSION

logger = get_logger(__name__)


def setup_observability(app: FastAPI, uploads_prefix: str = "/uploads") -> None:
    """
    在 FastAPI app 上挂载 Observability 组件。

    应在 router 注册之后、启动之前调用。uploads_prefix 为静态 PDF 的挂载前缀。
    """
    app.add_middleware(ObservabilityMiddleware, uploads_prefix=uploads_prefix)

    @app.get("/metrics", include_in_schema=False)
    def prometheus_metrics():
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health/detailed", tags=["observability"])
    def health_detailed(request: Request):
        """详细健康检查：数据库可达、上传目录可写"""
        checks = {}

        try:
            request.app.state.db.ping()
            checks["database"] = "ok"
        except Exception as e:
            logger.warning("[health] database check failed: %s", e)
            checks["database"] = "error"

        try:
            root = request.app.state.files.root
            checks["file_store"] = "ok" if root.is_dir() and os.access(root, os.W_OK) else "not_writable"
        except Exception as e:
            logger.warning("[health] file store check failed: %s", e)
            checks["file_store"] = "error"

        overall = "ok" if all(v == "ok" for v in checks.values()) else "degraded"
        return {"status": overall, "components": checks}

    metrics.app_info.info({"version": SERVICE_VERSION, "service": SERVICE_NAME})

    logger.info("[observability] middleware + /metrics + /health/detailed registered")
