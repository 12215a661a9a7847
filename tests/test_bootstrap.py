"""Tests for session bootstrap."""

from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from book_catalog.bootstrap import Credentials, bootstrap
from book_catalog.database.gateway import CatalogSession, open_session
from book_catalog.errors import BootstrapError, CatalogConnectionError
from book_catalog.roles import Role


@pytest.fixture
def session():
    return MagicMock(spec=CatalogSession)


class TestCredentials:
    def test_password_hidden_from_repr(self):
        credentials = Credentials(catalog="library", username="admin", password="hunter2")
        assert "hunter2" not in repr(credentials)

    def test_catalog_required(self):
        with pytest.raises(ValidationError):
            Credentials(catalog="", username="admin", password="pw")

    def test_username_required(self):
        with pytest.raises(ValidationError):
            Credentials(catalog="library", username="", password="pw")


class TestBootstrap:
    def test_admin_bootstrap(self, test_config, session):
        credentials = Credentials(catalog="library", username="admin", password="pw")

        with patch("book_catalog.bootstrap.connect", return_value=session) as mock_connect:
            result = bootstrap(credentials, test_config)

        mock_connect.assert_called_once_with("library", "admin", "pw", config=test_config)
        session.install_routines.assert_called_once()
        assert result.session is session
        assert result.role is Role.ADMINISTRATOR

    def test_restricted_bootstrap(self, test_config, session):
        credentials = Credentials(catalog="library", username="reader", password="pw")

        with patch("book_catalog.bootstrap.connect", return_value=session):
            result = bootstrap(credentials, test_config)

        assert result.role is Role.RESTRICTED
        session.install_routines.assert_called_once()

    def test_connection_failure_propagates(self, test_config):
        credentials = Credentials(catalog="library", username="admin", password="wrong")

        with patch(
            "book_catalog.bootstrap.connect",
            side_effect=CatalogConnectionError("password authentication failed"),
        ):
            with pytest.raises(CatalogConnectionError, match="authentication"):
                bootstrap(credentials, test_config)

    def test_routine_failure_closes_session(self, test_config, session):
        session.install_routines.side_effect = BootstrapError(
            'extension "dblink" is not available', operation="install routines"
        )
        credentials = Credentials(catalog="library", username="admin", password="pw")

        with patch("book_catalog.bootstrap.connect", return_value=session):
            with pytest.raises(BootstrapError, match="dblink"):
                bootstrap(credentials, test_config)

        session.close.assert_called_once()

    def test_real_session_closed_when_routines_fail(self, test_config):
        """End to end on SQLite: the PL/pgSQL script cannot install."""
        opened = []

        def fake_connect(catalog, user, password, config):  # noqa: ARG001
            opened.append(open_session("sqlite://", config=config))
            return opened[-1]

        credentials = Credentials(catalog="library", username="admin", password="pw")
        with patch("book_catalog.bootstrap.connect", side_effect=fake_connect):
            with pytest.raises(BootstrapError):
                bootstrap(credentials, test_config)

        assert opened[0].closed is True
