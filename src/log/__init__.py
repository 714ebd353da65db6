"""Logging entry point: every module calls ``get_logger(__name__)``."""
from .log_manager import LogManager, cleanup_logs, get_logger, init_logging

__all__ = ["LogManager", "get_logger", "init_logging", "cleanup_logs"]
