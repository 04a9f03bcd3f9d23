"""Alembic environment for the flag store.

Uses the same URL as the running service (``DatabaseSettings.url``) and the
async driver it is configured with. SQLite targets run in batch mode so
ALTERs work there too.
"""

from __future__ import annotations

import asyncio
import logging
from logging.config import fileConfig
from typing import TYPE_CHECKING, Any

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from flag_engine.core.database import Base
from flag_engine.core.settings import get_db_settings
from flag_engine.features.featureflags import models  # noqa: F401  (registers tables)

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

# ConfigParser treats % as interpolation; quoted passwords contain it
config.set_main_option("sqlalchemy.url", get_db_settings().url.replace("%", "%%"))

MANAGED_TABLES = frozenset(Base.metadata.tables)


def include_object(obj: Any, name: str | None, type_: str, reflected: bool, compare_to: Any) -> bool:
    """Only diff tables this service owns."""
    if type_ == "table":
        return name in MANAGED_TABLES
    return True


def skip_empty_revision(migration_context: Any, revision: Any, directives: list[Any]) -> None:
    if not getattr(config.cmd_opts, "autogenerate", False) or not directives:
        return
    upgrade_ops = directives[0].upgrade_ops
    if upgrade_ops is not None and upgrade_ops.is_empty():
        directives[:] = []
        logger.info("Schema matches the models; no revision written")


def _configure(**kwargs: Any) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        include_object=include_object,
        **kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


def _run_sync(connection: Connection) -> None:
    _configure(
        connection=connection,
        render_as_batch=connection.dialect.name == "sqlite",
        process_revision_directives=skip_empty_revision,
    )


async def run_migrations_online() -> None:
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_sync)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
