"""
Error taxonomy for the Book Catalog admin shell.

Every failure the core can produce is a ``CatalogError``. The dispatcher is the
recovery boundary for per-action failures; bootstrap failures propagate to the
entry point and end the process.

Backend notices are not errors and never appear here.
"""


class CatalogError(Exception):
    """Base exception for catalog client failures."""

    def __init__(self, message: str, *, operation: str | None = None):
        super().__init__(message)
        self.operation = operation

    def __str__(self) -> str:
        message = super().__str__()
        if self.operation:
            return f"{self.operation}: {message}"
        return message


class CatalogConnectionError(CatalogError):
    """Raised when a session to the backend cannot be established."""


class CommandError(CatalogError):
    """Raised when a remote call fails (constraint, bad identifier, permission)."""


class BootstrapError(CatalogError):
    """Raised when the server-side routines cannot be installed."""


class SessionClosedError(CatalogError):
    """Raised when a session is used after it has been closed."""


class Unauthorized(CatalogError):
    """Raised when the caller's role does not allow the requested action."""
