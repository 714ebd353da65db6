"""
日志管理：所有 ``src.*`` logger 共用一组 handler。

- 控制台 + 每次启动一个运行日志 logs/app/<启动时间>.log
- ERROR 及以上另写 logs/app/errors.log（追加），500 的 traceback 都在这里
- 运行日志按 时间 / 总大小 清理，errors.log 不参与清理
"""
import json
import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

ROOT_LOGGER = "src"
LOG_DIR_NAME = "app"
ERROR_LOG_NAME = "errors.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_DEFAULTS: dict[str, Any] = {
    "level": "INFO",
    "console_output": True,
    "max_size_mb": 100,
    "max_age_days": 30,
    "min_keep_mb": 20,
}

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_MB = 1024 * 1024


class LogManager:
    """挂载 handler、分发 logger、清理旧运行日志"""

    def __init__(self, config: dict[str, Any] | None = None):
        cfg = {**_DEFAULTS, **(config or {})}
        self.log_dir = Path(cfg["log_dir"]) if cfg.get("log_dir") else _PROJECT_ROOT / "logs" / LOG_DIR_NAME
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.max_size_mb = int(cfg["max_size_mb"])
        self.max_age_days = int(cfg["max_age_days"])
        self.min_keep_mb = int(cfg["min_keep_mb"])
        self.console_output = bool(cfg["console_output"])
        level_name = str(os.getenv("REPO_LOG_LEVEL") or cfg["level"]).upper()
        self.level = getattr(logging, level_name, logging.INFO)
        self.run_log_path = self.log_dir / datetime.now().strftime("%Y-%m-%d_%H-%M-%S.log")
        self.error_log_path = self.log_dir / ERROR_LOG_NAME
        self._install()

    def _install(self) -> None:
        root = logging.getLogger(ROOT_LOGGER)
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        root.setLevel(self.level)
        root.propagate = False

        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        handlers: list[logging.Handler] = [
            logging.FileHandler(self.run_log_path, encoding="utf-8", delay=True),
            logging.FileHandler(self.error_log_path, encoding="utf-8", delay=True),
        ]
        handlers[1].setLevel(logging.ERROR)
        if self.console_output:
            handlers.append(logging.StreamHandler())
        for h in handlers:
            h.setFormatter(formatter)
            root.addHandler(h)

    def get_logger(self, name: str) -> logging.Logger:
        """模块 logger。非 src.* 名称挂到 src 之下，共用同一组 handler。"""
        if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
            name = f"{ROOT_LOGGER}.{name}"
        return logging.getLogger(name)

    def _run_logs(self) -> list[Path]:
        """除当前运行文件与 errors.log 外的运行日志，最旧在前"""
        skip = {self.run_log_path.name, ERROR_LOG_NAME}
        files = [f for f in self.log_dir.glob("*.log") if f.is_file() and f.name not in skip]
        return sorted(files, key=lambda p: p.stat().st_mtime)

    def cleanup(self) -> dict[str, Any]:
        """
        总量低于 min_keep_mb 时不动；否则先删超过 max_age_days 的，
        再从最旧开始删到总量不超过 max_size_mb。
        """
        report: dict[str, Any] = {"deleted_by_age": [], "deleted_by_size": [], "remaining_mb": 0.0}
        files = self._run_logs()
        sizes = {f: f.stat().st_size for f in files}
        if sum(sizes.values()) < self.min_keep_mb * _MB:
            report["remaining_mb"] = sum(sizes.values()) / _MB
            return report

        cutoff = (datetime.now() - timedelta(days=self.max_age_days)).timestamp()
        kept = []
        for f in files:
            if f.stat().st_mtime < cutoff:
                f.unlink()
                report["deleted_by_age"].append(f.name)
            else:
                kept.append(f)

        total = sum(sizes[f] for f in kept)
        while kept and total > self.max_size_mb * _MB:
            oldest = kept.pop(0)
            total -= sizes[oldest]
            oldest.unlink()
            report["deleted_by_size"].append(oldest.name)

        report["remaining_mb"] = total / _MB
        return report


_manager: LogManager | None = None


def _read_logging_section(path: Path) -> dict[str, Any]:
    """config/repo_config.json 的 logging 段，.local.json 同名段覆盖"""
    merged: dict[str, Any] = {}
    for p in (path, path.with_name(f"{path.stem}.local{path.suffix}")):
        if p.exists():
            merged.update(json.loads(p.read_text(encoding="utf-8")).get("logging") or {})
    return merged


def init_logging(config: dict[str, Any] | None = None, config_path: str | Path | None = None) -> LogManager:
    global _manager
    if config is None:
        config = _read_logging_section(Path(config_path or _PROJECT_ROOT / "config" / "repo_config.json"))
    _manager = LogManager(config)
    return _manager


def get_logger(name: str) -> logging.Logger:
    if _manager is None:
        init_logging()
    return _manager.get_logger(name)


def cleanup_logs() -> dict[str, Any]:
    if _manager is None:
        init_logging()
    return _manager.cleanup()
