"""
Observability 模块：OpenTelemetry tracing + Prometheus metrics。

用法：
    from src.observability import setup_observability, metrics, tracer

    setup_observability(app)   # 在 router 注册之后调用

    with tracer.start_as_current_span("papers.create"):
        ...
    metrics.paper_submissions_total.labels(result="created").inc()
"""

from src.observability.setup import setup_observability
from src.observability.metrics import metrics
from src.observability.tracing import tracer

__all__ = ["setup_observability", "metrics", "tracer"]
