"""
Prometheus metrics 定义。

所有自定义指标集中定义，业务模块通过 `from src.observability.metrics import metrics` 引用。
"""

from prometheus_client import Counter, Histogram, Gauge, Info


class _Metrics:
    """集中管理所有 Prometheus 指标"""

    def __init__(self):
        # ── HTTP 请求 ──
        self.http_requests_total = Counter(
            "repo_http_requests_total",
            "HTTP 请求总数",
            ["method", "endpoint", "status_code"],
        )
        self.http_request_duration_seconds = Histogram(
            "repo_http_request_duration_seconds",
            "HTTP 请求延迟 (秒)",
            ["method", "endpoint"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
        )

        # ── 认证 ──
        self.login_attempts_total = Counter(
            "repo_login_attempts_total",
            "登录尝试次数",
            ["outcome"],  # success / failed
        )

        # ── 论文提交与审核 ──
        self.paper_submissions_total = Counter(
            "repo_paper_submissions_total",
            "论文提交次数",
            ["result"],  # created / rejected_upload / failed
        )
        self.moderation_decisions_total = Counter(
            "repo_moderation_decisions_total",
            "管理员审核决定次数",
            ["status"],  # approved / rejected
        )
        self.upload_bytes = Histogram(
            "repo_upload_bytes",
            "已保存 PDF 的大小 (字节)",
            buckets=(64 * 1024, 256 * 1024, 1024 ** 2, 2 * 1024 ** 2, 5 * 1024 ** 2, 10 * 1024 ** 2),
        )
        self.orphan_file_cleanups_total = Counter(
            "repo_orphan_file_cleanups_total",
            "补偿删除的上传文件数",
            ["reason"],  # insert_failed / paper_deleted
        )

        # ── 系统 ──
        self.pending_papers = Gauge(
            "repo_pending_papers",
            "最近一次统计得到的待审核论文数",
        )
        self.app_info = Info(
            "repo_app",
            "应用元信息",
        )


# 单例
metrics = _Metrics()
