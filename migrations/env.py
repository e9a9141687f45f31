"""Alembic environment for the Commentum schema.

Every table registers on ``Base.metadata`` when ``commentum.db.session`` is
imported. The URL is resolved by ``commentum.scripts.migrate.migration_url`` so the
``alembic`` CLI and ``commentum-migrate`` agree on which database they touch.
"""
from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from commentum.db.session import Base
from commentum.scripts.migrate import migration_url, set_url, uses_batch_mode

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

DATABASE_URL = migration_url(config)
set_url(config, DATABASE_URL)

target_metadata = Base.metadata


def include_object(obj, name, type_, reflected, compare_to):
    return not (type_ == "table" and name == "alembic_version")


def _configure(**options) -> None:
    context.configure(
        target_metadata=target_metadata,
        include_object=include_object,
        compare_type=True,
        render_as_batch=uses_batch_mode(DATABASE_URL),
        **options,
    )


def run_migrations_offline() -> None:
    """Emit SQL for ``DATABASE_URL``'s dialect without connecting."""
    _configure(url=DATABASE_URL, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
