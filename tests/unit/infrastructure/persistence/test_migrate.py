"""Tests for the Alembic bridge."""

from pathlib import Path

from hsm.infrastructure.persistence.migrate import get_alembic_config, to_sync_url


class TestToSyncUrl:
    def test_aiosqlite_becomes_sqlite(self, tmp_path: Path):
        url = to_sync_url(f"sqlite+aiosqlite:///{tmp_path}/hsm.db")

        assert url == f"sqlite:///{tmp_path}/hsm.db"

    def test_sqlite_directory_created(self, tmp_path: Path):
        to_sync_url(f"sqlite+aiosqlite:///{tmp_path}/nested/dir/hsm.db")

        assert (tmp_path / "nested" / "dir").is_dir()

    def test_memory_database_untouched(self):
        assert to_sync_url("sqlite+aiosqlite:///:memory:") == "sqlite:///:memory:"

    def test_asyncpg_becomes_default_driver(self):
        url = to_sync_url("postgresql+asyncpg://hsm:secret@db:5432/hsm")

        assert url == "postgresql://hsm:secret@db:5432/hsm"


class TestAlembicConfig:
    def test_points_at_project_migrations(self):
        config = get_alembic_config("postgresql+asyncpg://hsm:p%25ss@db/hsm")

        assert config.get_main_option("script_location").endswith("migrations")
        assert config.get_main_option("sqlalchemy.url") == "postgresql://hsm:p%25ss@db/hsm"
        assert config.attributes["configure_logger"] is False
