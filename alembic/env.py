"""Alembic environment: raw-SQL migrations, no SQLAlchemy metadata."""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine

from hubauth.db import migration_url

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# The service shares one DATABASE_URL between asyncpg and these migrations
config.set_main_option("sqlalchemy.url", migration_url(os.environ.get("DATABASE_URL", "")))


def run_migrations_offline() -> None:
    """Emit the SQL to stdout (alembic upgrade --sql)."""
    context.configure(url=config.get_main_option("sqlalchemy.url"), target_metadata=None, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(config.get_main_option("sqlalchemy.url"))
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=None)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
