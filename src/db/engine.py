"""
Database access object: one SQLAlchemy engine plus session helpers.

The API builds a single ``Database`` in its lifespan, keeps it on
``app.state`` and hands it to every service; it is disposed at shutdown.
The URL is resolved from the REPO_DATABASE_URL environment variable or
config/repo_config.json, so switching to PostgreSQL is a configuration
change.
"""

from __future__ import annotations

import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_DB_URL = "sqlite:///data/repository.db"


def _resolve_db_url() -> str:
    """
    Resolve database URL with precedence:
    1. REPO_DATABASE_URL environment variable
    2. config/repo_config.local.json  database.url
    3. config/repo_config.json        database.url
    4. Fallback: sqlite:///data/repository.db
    """
    env_url = os.environ.get("REPO_DATABASE_URL")
    if env_url:
        return env_url

    for cfg_name in ("repo_config.local.json", "repo_config.json"):
        cfg_path = _PROJECT_ROOT / "config" / cfg_name
        if not cfg_path.exists():
            continue
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
        url = (cfg.get("database") or {}).get("url")
        if url:
            return url

    return DEFAULT_DB_URL


def _make_absolute_sqlite_url(url: str) -> str:
    """
    Resolve relative sqlite:/// paths against the project root so the DB
    lands in <project_root>/data/ regardless of cwd.
    """
    if not url.startswith("sqlite:///"):
        return url
    rel_path = url[len("sqlite:///"):]
    if not rel_path or rel_path == ":memory:" or os.path.isabs(rel_path):
        return url
    abs_path = (_PROJECT_ROOT / rel_path).resolve()
    abs_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{abs_path}"


def _set_sqlite_pragmas(dbapi_conn, _connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.close()


class Database:
    """Owns the connection pool for the lifetime of the process."""

    def __init__(self, url: Optional[str] = None, echo: bool = False):
        self.url = _make_absolute_sqlite_url(url or _resolve_db_url())
        self.is_sqlite = self.url.startswith("sqlite")
        connect_args = {"check_same_thread": False, "timeout": 30} if self.is_sqlite else {}

        self.engine: Engine = create_engine(
            self.url,
            echo=echo,
            connect_args=connect_args,
            pool_pre_ping=True,
        )
        if self.is_sqlite:
            event.listen(self.engine, "connect", _set_sqlite_pragmas)

    def session(self) -> Session:
        """New session; objects stay readable after commit."""
        return Session(self.engine, expire_on_commit=False)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Session wrapped in one transaction: commit on success, rollback on error."""
        with self.session() as session:
            with session.begin():
                yield session

    def create_all(self) -> None:
        """
        Create every table that is not yet present.
        Production runs ``alembic upgrade head`` instead; the API calls this at
        startup outside prod, and tests call it on their temporary databases.
        """
        from src.db import models as _models  # noqa: F401 - registers tables
        SQLModel.metadata.create_all(self.engine)

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def dispose(self) -> None:
        self.engine.dispose()
