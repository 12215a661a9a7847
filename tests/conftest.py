"""Test configuration and fixtures for the Book Catalog admin shell.

Most tests never touch PostgreSQL:
1. Gateway tests run against an in-memory SQLite session
2. Operation and dispatcher tests use mocked sessions that record every call
3. Configuration tests run with BOOK_CATALOG_* variables cleared

Tests marked ``postgres`` need a live server and are skipped unless
BOOK_CATALOG_TEST_DATABASE_URL is set.
"""

import os
from collections.abc import Generator
from unittest.mock import MagicMock

import pytest

from book_catalog.config import ClientConfig, reset_config
from book_catalog.database.gateway import CatalogSession, open_session
from book_catalog.models import ResultSet
from book_catalog.operations import CatalogOperations

TEST_DATABASE_URL_ENV = "BOOK_CATALOG_TEST_DATABASE_URL"


def pytest_collection_modifyitems(config, items):  # noqa: ARG001
    """Skip live-server tests when no test database is configured."""
    if os.environ.get(TEST_DATABASE_URL_ENV):
        return
    skip_postgres = pytest.mark.skip(reason=f"{TEST_DATABASE_URL_ENV} is not set")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_postgres)


# === Environment Fixtures ===


@pytest.fixture
def clean_env(monkeypatch) -> None:
    """Provide an environment without BOOK_CATALOG_* variables."""
    for key in list(os.environ):
        if key.upper().startswith("BOOK_CATALOG_"):
            monkeypatch.delenv(key)


# === Configuration Fixtures ===


@pytest.fixture
def test_config(clean_env) -> Generator[ClientConfig, None, None]:  # noqa: ARG001
    """Provide a configuration built from defaults only."""
    reset_config()
    config = ClientConfig(_env_file=None)
    yield config
    reset_config()


# === Session Fixtures ===


@pytest.fixture
def sqlite_session(test_config: ClientConfig) -> Generator[CatalogSession, None, None]:
    """Provide a real gateway session on an in-memory SQLite database."""
    session = open_session("sqlite://", config=test_config)
    yield session
    session.close()


@pytest.fixture
def provisioning_session() -> MagicMock:
    """The sub-session handed out by ``CatalogSession.provision()``."""
    return MagicMock(spec=CatalogSession)


@pytest.fixture
def mock_session(provisioning_session: MagicMock) -> MagicMock:
    """Provide a session double that records every call made on it.

    ``execute`` returns an empty result set unless a test configures it.
    """
    session = MagicMock(spec=CatalogSession)
    session.closed = False
    session.execute.return_value = ResultSet()
    session.provision.return_value.__enter__.return_value = provisioning_session
    session.provision.return_value.__exit__.return_value = False
    session.notices.return_value.__exit__.return_value = False
    return session


@pytest.fixture
def operations(mock_session: MagicMock) -> CatalogOperations:
    return CatalogOperations(mock_session)


@pytest.fixture
def sample_rows() -> list[tuple]:
    """Rows shaped like the search routine's result table."""
    return [
        (1, "The Great Gatsby", "F. Scott Fitzgerald", "Scribner", 1925),
        (2, "Gatsby's Shadow", "A. N. Author", "Small Press", 2004),
    ]


# === Cleanup Fixtures ===


@pytest.fixture(autouse=True)
def cleanup_after_test():
    """Reset the global configuration after each test."""
    yield
    reset_config()
