"""Tests for client configuration.

These tests cover:
1. Default values
2. Environment variable loading
3. Validation of levels
4. Connection URL construction
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from book_catalog.config import ClientConfig, get_config, reset_config


class TestClientConfig:
    """Test configuration behavior."""

    def test_default_configuration(self, test_config):
        assert test_config.host == "localhost"
        assert test_config.port == 5432
        assert test_config.driver == "postgresql+psycopg2"
        assert test_config.maintenance_catalog == "postgres"
        assert test_config.admin_username == "admin"
        assert test_config.show_notices is True
        assert test_config.client_min_messages == "notice"
        assert test_config.log_level == "WARNING"
        assert test_config.debug is False

    def test_environment_variable_loading(self, clean_env):
        env_vars = {
            "BOOK_CATALOG_HOST": "db.internal",
            "BOOK_CATALOG_PORT": "6543",
            "BOOK_CATALOG_ADMIN_USERNAME": "librarian",
            "BOOK_CATALOG_SHOW_NOTICES": "false",
            "BOOK_CATALOG_LOG_LEVEL": "DEBUG",
        }

        with patch.dict(os.environ, env_vars):
            config = ClientConfig(_env_file=None)

        assert config.host == "db.internal"
        assert config.port == 6543
        assert config.admin_username == "librarian"
        assert config.show_notices is False
        assert config.log_level == "DEBUG"

    def test_case_insensitive_env_vars(self, clean_env):
        with patch.dict(os.environ, {"book_catalog_maintenance_catalog": "template1"}):
            config = ClientConfig(_env_file=None)
        assert config.maintenance_catalog == "template1"

    def test_log_level_normalized(self, clean_env):
        assert ClientConfig(_env_file=None, log_level="info").log_level == "INFO"

    def test_log_level_validation(self, clean_env):
        with pytest.raises(ValidationError):
            ClientConfig(_env_file=None, log_level="VERBOSE")

    def test_client_min_messages_validation(self, clean_env):
        assert ClientConfig(_env_file=None, client_min_messages="WARNING").client_min_messages == (
            "warning"
        )
        with pytest.raises(ValidationError):
            ClientConfig(_env_file=None, client_min_messages="loud")

    def test_port_range(self, clean_env):
        with pytest.raises(ValidationError):
            ClientConfig(_env_file=None, port=0)
        with pytest.raises(ValidationError):
            ClientConfig(_env_file=None, port=70000)

    def test_effective_log_level(self, clean_env):
        assert ClientConfig(_env_file=None, log_level="ERROR").effective_log_level == "ERROR"
        assert (
            ClientConfig(_env_file=None, log_level="ERROR", debug=True).effective_log_level
            == "DEBUG"
        )

    def test_database_url(self, test_config):
        url = test_config.get_database_url("library", "admin", "secret")

        assert url.drivername == "postgresql+psycopg2"
        assert url.host == "localhost"
        assert url.port == 5432
        assert url.database == "library"
        assert url.username == "admin"
        assert url.password == "secret"

    def test_database_url_keeps_special_characters(self, test_config):
        """Credentials with URL metacharacters survive as-is."""
        url = test_config.get_database_url("library", "o'neil", "p@ss:w/rd")

        assert url.username == "o'neil"
        assert url.password == "p@ss:w/rd"
        # Rendered form hides the password
        assert "p@ss:w/rd" not in str(url)

    def test_global_config_singleton(self, clean_env):
        reset_config()

        config1 = get_config()
        config2 = get_config()
        assert config1 is config2

        reset_config()
        assert get_config() is not config1
