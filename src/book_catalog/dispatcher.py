"""
Role-gated command dispatcher.

The dispatcher is the single place where the caller's role is checked and the
single recovery boundary for per-action failures. ``ACTION_ROLES`` declares,
once, which roles may run each action; a forbidden action never reaches the
backend.

``dispatch()`` returns an ``Outcome`` instead of raising, so the interactive
loop only has to inspect a status. Notices are forwarded for exactly the
duration of one operation.
"""

import enum
import logging
from typing import Any

from pydantic import BaseModel, Field

from .database.gateway import CatalogSession, NoticeObserver
from .errors import CatalogConnectionError, CommandError, SessionClosedError, Unauthorized
from .models import BookRecord
from .operations import CatalogOperations
from .roles import Role

logger = logging.getLogger(__name__)

REJECTION_MESSAGE = "Invalid choice or operation not available for the current role."


class Action(str, enum.Enum):
    """Actions a caller can request."""

    CREATE_DATABASE = "create_database"
    DROP_DATABASE = "drop_database"
    CREATE_TABLE = "create_table"
    CLEAR_TABLE = "clear_table"
    ADD_BOOK = "add_book"
    UPDATE_BOOK = "update_book"
    DELETE_BOOK = "delete_book"
    SEARCH_BOOKS = "search_books"
    LIST_BOOKS = "list_books"
    CREATE_USER = "create_user"
    EXIT = "exit"


_ADMIN_ONLY = frozenset({Role.ADMINISTRATOR})
_EVERYONE = frozenset(Role)

ACTION_ROLES: dict[Action, frozenset[Role]] = {
    Action.CREATE_DATABASE: _ADMIN_ONLY,
    Action.DROP_DATABASE: _ADMIN_ONLY,
    Action.CREATE_TABLE: _ADMIN_ONLY,
    Action.CLEAR_TABLE: _ADMIN_ONLY,
    Action.ADD_BOOK: _ADMIN_ONLY,
    Action.UPDATE_BOOK: _ADMIN_ONLY,
    Action.DELETE_BOOK: _ADMIN_ONLY,
    Action.SEARCH_BOOKS: _EVERYONE,
    Action.LIST_BOOKS: _EVERYONE,
    Action.CREATE_USER: _ADMIN_ONLY,
    Action.EXIT: _EVERYONE,
}

# Action -> (CatalogOperations method, message on success)
_HANDLERS: dict[Action, tuple[str, str | None]] = {
    Action.CREATE_DATABASE: ("create_database", "Database created."),
    Action.DROP_DATABASE: ("drop_database", "Database dropped."),
    Action.CREATE_TABLE: ("create_table", "Table created."),
    Action.CLEAR_TABLE: ("clear_table", "Table cleared."),
    Action.ADD_BOOK: ("add_book", "Book added."),
    Action.UPDATE_BOOK: ("update_book", "Book updated."),
    Action.DELETE_BOOK: ("delete_books_by_title", "Book deleted."),
    Action.SEARCH_BOOKS: ("search_books_by_title", None),
    Action.LIST_BOOKS: ("list_books", None),
    Action.CREATE_USER: ("create_db_user", "New DB user created."),
}


class OutcomeStatus(str, enum.Enum):
    OK = "ok"
    FAILED = "failed"
    UNAUTHORIZED = "unauthorized"
    EXIT = "exit"


class Outcome(BaseModel):
    """Result of one dispatched action."""

    status: OutcomeStatus
    action: Action | None = None
    message: str = ""
    books: list[BookRecord] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK


class CommandDispatcher:
    """
    Runs actions on behalf of a caller whose role was fixed at bootstrap.

    Args:
        role: The caller's role
        session: The shell's session, closed on EXIT
        operations: Catalog operations; defaults to ones bound to ``session``
        notice_observer: Receives backend notices while an action runs
        show_notices: When False, notices are discarded
    """

    def __init__(
        self,
        role: Role,
        session: CatalogSession,
        operations: CatalogOperations | None = None,
        notice_observer: NoticeObserver | None = None,
        show_notices: bool = True,
    ):
        self.role = role
        self.session = session
        self.operations = operations or CatalogOperations(session)
        self.notice_observer = notice_observer
        self.show_notices = show_notices

    def is_allowed(self, action: Action | str) -> bool:
        try:
            self.require(action)
        except Unauthorized:
            return False
        return True

    def require(self, action: Action | str) -> Action:
        """
        Resolve ``action`` and check it against the caller's role.

        Raises:
            Unauthorized: If the action is unknown or not allowed for the role
        """
        try:
            resolved = Action(action)
        except ValueError as e:
            raise Unauthorized(REJECTION_MESSAGE) from e
        if self.role not in ACTION_ROLES.get(resolved, frozenset()):
            raise Unauthorized(REJECTION_MESSAGE)
        return resolved

    def dispatch(self, action: Action | str, **params: Any) -> Outcome:
        """
        Run one action and report how it went.

        Backend and connection failures are caught here and returned as
        ``FAILED`` outcomes; the session stays usable for the next action.
        """
        try:
            resolved = self.require(action)
        except Unauthorized:
            logger.info("Rejected %r for role %s", action, self.role.value)
            return Outcome(status=OutcomeStatus.UNAUTHORIZED, message=REJECTION_MESSAGE)

        if resolved is Action.EXIT:
            self.session.close()
            return Outcome(status=OutcomeStatus.EXIT, action=resolved)

        method_name, success_message = _HANDLERS[resolved]
        handler = getattr(self.operations, method_name)
        observer = self.notice_observer if self.show_notices else None

        try:
            with self.session.notices(observer):
                result = handler(**params)
        except (CommandError, CatalogConnectionError, SessionClosedError) as e:
            logger.warning("%s failed: %s", resolved.value, e)
            return Outcome(status=OutcomeStatus.FAILED, action=resolved, message=str(e))

        if isinstance(result, list):
            return Outcome(
                status=OutcomeStatus.OK,
                action=resolved,
                message=f"{len(result)} book(s) found.",
                books=result,
            )
        return Outcome(status=OutcomeStatus.OK, action=resolved, message=success_message or "")
