"""
Book Catalog admin shell.

An interactive administrative client for a PostgreSQL catalog of books. Every
action is a parameterized call to a server-side stored routine, gated by the
caller's role.

Key Components:
- config: Configuration management with pydantic-settings
- database: Backend gateway (session, execution, notices) and stored routines
- operations: One method per catalog action
- dispatcher: Role-gated dispatch with result-style outcomes
- bootstrap: Session setup at startup
- console / cli: The numbered menu and its entry point
"""

__version__ = "0.1.0"

from .errors import (
    BootstrapError,
    CatalogConnectionError,
    CatalogError,
    CommandError,
    SessionClosedError,
    Unauthorized,
)

__all__ = [
    "BootstrapError",
    "CatalogConnectionError",
    "CatalogError",
    "CommandError",
    "SessionClosedError",
    "Unauthorized",
    "__version__",
]
