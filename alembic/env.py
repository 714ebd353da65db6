"""
Alembic environment for the repository schema.

URL precedence: ``alembic -x url=...`` > a real sqlalchemy.url in alembic.ini
> REPO_DATABASE_URL / config/repo_config*.json (same resolution as the API).
"""

from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from sqlmodel import SQLModel

from alembic import context

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import src.db.models  # noqa: F401, E402  registers the tables on SQLModel.metadata
from src.db.engine import Database, _make_absolute_sqlite_url, _resolve_db_url  # noqa: E402

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata

# SQLite needs batch mode for ALTER TABLE; column type changes are detected too.
_CONFIGURE_OPTS = {"render_as_batch": True, "compare_type": True}


def _database_url() -> str:
    url = context.get_x_argument(as_dictionary=True).get("url")
    if not url:
        url = config.get_main_option("sqlalchemy.url", default="")
    if not url or url.startswith("driver://"):
        url = _resolve_db_url()
    return _make_absolute_sqlite_url(url)


def run_migrations_offline() -> None:
    """Print the SQL instead of executing it (``alembic upgrade head --sql``)."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_CONFIGURE_OPTS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    db = Database(_database_url())
    try:
        with db.engine.connect() as connection:
            context.configure(connection=connection, target_metadata=target_metadata, **_CONFIGURE_OPTS)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        db.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
