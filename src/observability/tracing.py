"""
OpenTelemetry tracing 配置。

提供全局 tracer 供业务代码使用：
    from src.observability import tracer
    with tracer.start_as_current_span("papers.create"):
        ...

仅在 REPO_TRACE_CONSOLE=1 时把 span 打到控制台，默认只建 span 不导出。
"""

import os

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

SERVICE_NAME = "research-repository"
SERVICE_VERSION = "1.0.0"

_resource = Resource.create({"service.name": SERVICE_NAME, "service.version": SERVICE_VERSION})

_provider = TracerProvider(resource=_resource)

if os.getenv("REPO_TRACE_CONSOLE", "0") == "1":
    _provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

trace.set_tracer_provider(_provider)

tracer = trace.get_tracer(SERVICE_NAME, SERVICE_VERSION)
