"""
Catalog operations for the Book Catalog admin shell.

One method per administrative action. Each builds a parameter list, runs a
fixed call template through the session and interprets the result. Failures
surface as the typed errors raised by the gateway; nothing here catches them.

Contracts callers should know:
- ``update_book`` on an id that matches no row succeeds silently.
- ``delete_books_by_title`` removes every row with that exact title, and
  succeeds when there are none.
"""

import logging

from .database import routines
from .database.gateway import CatalogSession
from .errors import CommandError
from .models import BookDraft, BookRecord

logger = logging.getLogger(__name__)


class CatalogOperations:
    """Typed wrappers around the stored routines, bound to one session."""

    def __init__(self, session: CatalogSession):
        """Initialize operations with the shell's session."""
        self.session = session

    # === Database Lifecycle ===

    def create_database(self, name: str) -> None:
        """
        Create a new catalog.

        Runs through a provisioning sub-session on the maintenance catalog.

        Raises:
            CatalogConnectionError: If the sub-session cannot connect
            CommandError: If the name is invalid or the catalog exists
        """
        with self.session.provision() as provisioning:
            provisioning.execute(routines.CREATE_DATABASE, [name])
        logger.info("Database %s created", name)

    def drop_database(self, name: str) -> None:
        """
        Drop a catalog, terminating its other sessions first.

        Dropping a catalog that does not exist is not an error.

        Raises:
            CatalogConnectionError: If the sub-session cannot connect
            CommandError: If the backend cannot terminate sessions or drop
        """
        with self.session.provision() as provisioning:
            provisioning.execute(routines.DROP_DATABASE, [name])
        logger.info("Database %s dropped", name)

    # === Table Lifecycle ===

    def create_table(self, table: str) -> None:
        """Create the book table unless one with that name already exists."""
        self.session.execute(routines.CREATE_TABLE, [table])

    def clear_table(self, table: str) -> None:
        """Remove every row, keeping the table."""
        self.session.execute(routines.CLEAR_TABLE, [table])

    # === Books ===

    def add_book(self, table: str, draft: BookDraft) -> None:
        """Insert a book. The backend assigns the id and reports it in a notice."""
        self.session.execute(routines.ADD_BOOK, [table, *draft.as_params()])

    def search_books_by_title(self, table: str, title_filter: str = "") -> list[BookRecord]:
        """
        Find books whose title contains ``title_filter``, ignoring case.

        An empty filter matches every row. A missing table yields an empty
        list rather than an error.

        Returns:
            Matching records in the order the backend returns them

        Raises:
            CommandError: If the backend fails or returns rows that are not
                shaped like book records
        """
        result = self.session.execute(routines.SEARCH_BOOKS_BY_TITLE, [table, title_filter])
        try:
            books = [BookRecord.from_row(row) for row in result.rows]
        except ValueError as e:
            raise CommandError(
                f"Unexpected row from {table}: {e}",
                operation=routines.describe(routines.SEARCH_BOOKS_BY_TITLE),
            ) from e
        logger.debug("Search in %s for %r returned %d book(s)", table, title_filter, len(books))
        return books

    def list_books(self, table: str) -> list[BookRecord]:
        """Every book in the table."""
        return self.search_books_by_title(table, "")

    def update_book(self, table: str, book_id: int, draft: BookDraft) -> None:
        """Replace every field except the id of the book with ``book_id``."""
        self.session.execute(routines.UPDATE_BOOK, [table, book_id, *draft.as_params()])

    def delete_books_by_title(self, table: str, title: str) -> None:
        """Delete all books whose title equals ``title`` exactly."""
        self.session.execute(routines.DELETE_BOOK_BY_TITLE, [table, title])

    # === Users ===

    def create_db_user(self, username: str, password: str, mode: str) -> None:
        """
        Create a login role on the server.

        ``mode`` "admin" (any case) grants superuser; anything else grants no
        elevated privileges.

        Raises:
            CommandError: If the user already exists
        """
        self.session.execute(routines.CREATE_DB_USER, [username, password, mode])
        logger.info("Database user %s created (mode=%s)", username, mode)
