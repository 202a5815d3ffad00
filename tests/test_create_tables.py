"""Schema bootstrap script"""

from create_tables import create_tables
from tests.conftest import make_settings


async def test_create_tables_on_fresh_database(sqlite_settings):
    assert await create_tables(sqlite_settings) is True
    # Safe to run twice
    assert await create_tables(sqlite_settings) is True


async def test_create_tables_reports_failure(monkeypatch, tmp_path):
    settings = make_settings(
        monkeypatch,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'contacts.db'}",
    )
    assert await create_tables(settings) is False
