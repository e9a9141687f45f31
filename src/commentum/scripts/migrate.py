# src/commentum/scripts/migrate.py
"""Apply Alembic migrations up to head."""
from __future__ import annotations

import logging
import os

from alembic import command
from alembic.config import Config
from sqlalchemy.engine import make_url

from commentum.core.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
)


def migration_url(config: Config | None = None) -> str:
    """Return the URL migrations run against.

    ``ALEMBIC_URL`` wins, then the URL already on ``config``, then settings.
    """
    override = os.getenv("ALEMBIC_URL")
    if override:
        return override
    configured = config.get_main_option("sqlalchemy.url") if config is not None else None
    # Alembic runs synchronously; hand it the sync driver URL.
    return configured or settings.database_url_sync


def uses_batch_mode(url: str) -> bool:
    """SQLite cannot ALTER most columns, so its migrations copy tables instead."""
    return make_url(url).get_backend_name() == "sqlite"


def set_url(config: Config, url: str) -> None:
    # Config values go through configparser interpolation.
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))


def build_config() -> Config:
    """Return an Alembic config pointing at the project migrations."""
    cfg = Config(os.path.join(MIGRATIONS_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    set_url(cfg, migration_url())
    return cfg


def run_upgrade_head() -> None:
    cfg = build_config()
    logger.info(
        "Upgrading %s schema to head",
        make_url(cfg.get_main_option("sqlalchemy.url")).get_backend_name(),
    )
    command.upgrade(cfg, "head")


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level.upper())
    run_upgrade_head()
