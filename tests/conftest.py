"""
Pytest configuration and fixtures for MedIntake tests.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio

from api.config import Settings
from medintake_lib.db.connection import DatabaseManager
from support import TEST_AUDIENCE, TEST_AUTH_SECRET, TEST_ISSUER


@pytest.fixture
def test_settings() -> Settings:
    """Settings for tests (no real collaborators)."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        auth_secret=TEST_AUTH_SECRET,
        auth_issuer=TEST_ISSUER,
        auth_audience=TEST_AUDIENCE,
        wrapper_url="https://wrapper.test/export_pdf_from_files",
        wrapper_secret="wrapper-test-secret",
    )


@pytest_asyncio.fixture
async def db_manager(tmp_path) -> AsyncGenerator[DatabaseManager, None]:
    """File-backed SQLite database with all tables created."""
    db = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'medintake.db'}")
    await db.init()
    yield db
    await db.close()
