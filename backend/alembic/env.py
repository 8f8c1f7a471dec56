"""
Alembic Migration Environment
=============================

What:  Runs OrderDesk migrations on the async engine.
How:   The URL comes from orderdesk.config (DATABASE_URL or the DB_* parts)
       unless overridden on the command line:

           alembic upgrade head
           alembic -x url=sqlite+aiosqlite:///./local.db upgrade head

       SQLite gets batch mode so ALTER-style operations work there too.
"""

import asyncio
from logging.config import fileConfig
from typing import Any, Dict

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from orderdesk.config import settings
from orderdesk.database import Base
import orderdesk.models  # noqa: F401  (users + orders on Base.metadata)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

database_url = context.get_x_argument(as_dictionary=True).get("url") or settings.sqlalchemy_url
config.set_main_option("sqlalchemy.url", database_url)


def _options() -> Dict[str, Any]:
    return {
        "target_metadata": Base.metadata,
        "compare_type": True,
        "render_as_batch": database_url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Print the SQL instead of executing it (`alembic upgrade head --sql`)."""
    context.configure(
        url=database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_options(),
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_options())
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with engine.connect() as connection:
        await connection.run_sync(_migrate)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
