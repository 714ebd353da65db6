"""
FastAPI 中间件：自动采集 HTTP 请求延迟 / 计数 / 状态码，并为每个请求创建 span。
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.observability.metrics import metrics
from src.observability.tracing import tracer

UNMATCHED = "unmatched"


def _endpoint_label(request: Request, uploads_prefix: str = "/uploads") -> str:
    """
    指标里的 endpoint 只用路由模板，保证基数有上限：
      /api/papers/42/versions           → /api/papers/{paper_id}/versions
      /uploads/paper-1700000000-123.pdf → /uploads/{file}
      其余未匹配路径                      → unmatched
    路由在 call_next 之后才写入 scope，必须在响应返回后调用。
    """
    if request.url.path.startswith(uploads_prefix + "/"):
        return uploads_prefix + "/{file}"
    route = request.scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if template:
        return template
    return UNMATCHED


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """采集每个 HTTP 请求的延迟和计数指标，并创建 trace span。"""

    def __init__(self, app, uploads_prefix: str = "/uploads"):
        super().__init__(app)
        self.uploads_prefix = uploads_prefix.rstrip("/")

    async def dispatch(self, request: Request, call_next):
        if request.url.path in ("/metrics", "/health"):
            return await call_next(request)

        method = request.method
        with tracer.start_as_current_span(method, attributes={"http.method": method}) as span:
            start = time.perf_counter()
            response: Response = await call_next(request)
            elapsed = time.perf_counter() - start

            endpoint = _endpoint_label(request, self.uploads_prefix)
            span.update_name(f"{method} {endpoint}")
            span.set_attribute("http.route", endpoint)
            span.set_attribute("http.status_code", response.status_code)
            metrics.http_requests_total.labels(
                method=method, endpoint=endpoint, status_code=str(response.status_code)
            ).inc()
            metrics.http_request_duration_seconds.labels(
                method=method, endpoint=endpoint
            ).observe(elapsed)

            return response
