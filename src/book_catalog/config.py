"""Configuration management for the Book Catalog admin shell.

Settings are loaded from ``BOOK_CATALOG_*`` environment variables (and an
optional ``.env`` file) and validated with Pydantic v2. Credentials are never
part of the configuration: they are prompted for at startup and only combined
with these settings when a connection URL is built.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Accepted values of the PostgreSQL client_min_messages setting
MESSAGE_LEVELS = ("debug5", "debug4", "debug3", "debug2", "debug1", "log", "notice", "warning", "error")


class ClientConfig(BaseSettings):
    """Settings for the backend connection and the interactive surface."""

    model_config = SettingsConfigDict(
        env_prefix="BOOK_CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Backend Connection ===

    host: str = Field(
        default="localhost",
        description="PostgreSQL server host",
    )

    port: int = Field(
        default=5432,
        description="PostgreSQL server port",
        ge=1,
        le=65535,
    )

    driver: str = Field(
        default="postgresql+psycopg2",
        description="SQLAlchemy dialect+driver used for every session",
        pattern=r"^[a-z0-9_]+(\+[a-z0-9_]+)?$",
    )

    maintenance_catalog: str = Field(
        default="postgres",
        description="Catalog used by provisioning sub-sessions (create/drop database)",
        min_length=1,
    )

    # === Roles ===

    admin_username: str = Field(
        default="admin",
        description="Username that is granted the administrator role",
        min_length=1,
    )

    # === Notices ===

    show_notices: bool = Field(
        default=True,
        description="Forward backend notices to the console while an operation runs",
    )

    client_min_messages: str = Field(
        default="notice",
        description="Lowest backend message level delivered to the client",
    )

    # === Logging ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the log level and reject unknown names."""
        v = v.upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v

    @field_validator("client_min_messages")
    @classmethod
    def validate_client_min_messages(cls, v: str) -> str:
        v = v.lower()
        if v not in MESSAGE_LEVELS:
            raise ValueError(f"client_min_messages must be one of {', '.join(MESSAGE_LEVELS)}")
        return v

    @property
    def effective_log_level(self) -> str:
        """DEBUG when the debug flag is set, otherwise the configured level."""
        return "DEBUG" if self.debug else self.log_level

    def get_database_url(self, catalog: str, user: str, password: str) -> URL:
        """Build the SQLAlchemy URL for a session on ``catalog``.

        ``URL.create`` escapes the credentials, so usernames and passwords
        containing ``@``, ``:`` or ``/`` survive intact.
        """
        return URL.create(
            self.driver,
            username=user,
            password=password,
            host=self.host,
            port=self.port,
            database=catalog,
        )


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: ClientConfig | None = None


def get_config() -> ClientConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = ClientConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
