"""Tests for application settings."""

from mealdeal.config import Settings


class TestSyncDatabaseURL:
    """Tests for the synchronous driver URL used by imports and Celery."""

    def test_asyncpg_url_uses_psycopg2(self):
        settings = Settings(database_url="postgresql+asyncpg://user:pw@db:5432/mealdeal")
        assert settings.sync_database_url == "postgresql+psycopg2://user:pw@db:5432/mealdeal"

    def test_plain_url_uses_psycopg2(self):
        settings = Settings(database_url="postgresql://localhost/mealdeal")
        assert settings.sync_database_url == "postgresql+psycopg2://localhost/mealdeal"
