"""Database maintenance commands."""

import sys

import cyclopts
from sqlalchemy.exc import SQLAlchemyError

from hsm.cli.console import get_console
from hsm.config import Config, configure_logging
from hsm.infrastructure.persistence.migrate import run_migrations

app = cyclopts.App(name="db", help="Database maintenance")


@app.command
def upgrade(revision: str = "head") -> None:
    """Apply Alembic migrations.

    Args:
        revision: Target revision.
    """
    console = get_console()
    config = Config()  # type: ignore[call-arg]
    configure_logging(config.logging)

    try:
        run_migrations(config.database.url, revision)
    except SQLAlchemyError as e:
        console.error(f"Migration failed: {e}", hint="Check HSM_DATABASE__URL")
        sys.exit(1)

    console.success(f"Database upgraded to {revision}")
