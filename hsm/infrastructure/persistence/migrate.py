"""Alembic upgrades from application code.

Alembic drives a synchronous engine, so the async driver in the configured URL
is swapped for the dialect's default one before handing it over.
"""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

from hsm.infrastructure.persistence.database import normalize_url

logger = logging.getLogger(__name__)

# Directory holding alembic.ini and migrations/
PROJECT_ROOT = Path(__file__).resolve().parents[3]


def to_sync_url(database_url: str) -> str:
    """``sqlite+aiosqlite:///~/x.db`` -> ``sqlite:////home/me/x.db``, ``postgresql+asyncpg`` -> ``postgresql``."""
    url = normalize_url(database_url)
    return url.set(drivername=url.get_backend_name()).render_as_string(hide_password=False)


def get_alembic_config(database_url: str) -> AlembicConfig:
    config = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    # set_main_option interpolates, so a literal % in a password must be doubled
    config.set_main_option("sqlalchemy.url", to_sync_url(database_url).replace("%", "%%"))
    # The app has already configured logging; env.py must not reapply alembic.ini's
    config.attributes["configure_logger"] = False
    return config


def run_migrations(database_url: str, revision: str = "head") -> None:
    """Upgrade the database to ``revision``.

    Blocking. Run it before serving or from a worker thread.
    """
    command.upgrade(get_alembic_config(database_url), revision)
    logger.info("Database migrations complete: revision=%s", revision)
