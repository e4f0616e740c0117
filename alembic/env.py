"""Alembic environment for FeedGate migrations."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

import feedgate.config as feed_config
from feedgate.db import sqlite_connect_args
from feedgate.models import Base

config = context.config

# init_db() runs migrations in-process and keeps the app's logging setup
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

feed_config.validate_and_prepare_config()
config.set_main_option("sqlalchemy.url", feed_config.DATABASE_URL)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connect_args = sqlite_connect_args() if feed_config.DB_BACKEND_EFFECTIVE == "sqlite" else {}
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        connect_args=connect_args,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
