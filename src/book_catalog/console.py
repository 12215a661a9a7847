"""
Interactive menu for the Book Catalog admin shell.

The menu is numbered per role. Choices 1-9 name the same action for every
caller; whether the caller may run it is decided by the dispatcher, so a
restricted caller typing an administrator's number gets the same rejection
as one typing nonsense. Parameters are only prompted for allowed actions.
"""

import logging
import sys
from collections.abc import Callable
from typing import Any, TextIO

from .dispatcher import REJECTION_MESSAGE, Action, CommandDispatcher, Outcome, OutcomeStatus
from .models import BookDraft, BookRecord
from .roles import Role

logger = logging.getLogger(__name__)

MENU_LABELS: dict[Action, str] = {
    Action.CREATE_DATABASE: "Create database",
    Action.DROP_DATABASE: "Drop database",
    Action.CREATE_TABLE: "Create table",
    Action.CLEAR_TABLE: "Clear table",
    Action.ADD_BOOK: "Add book",
    Action.UPDATE_BOOK: "Update book",
    Action.DELETE_BOOK: "Delete book by Title",
    Action.SEARCH_BOOKS: "Search book by Title",
    Action.LIST_BOOKS: "View all records",
    Action.CREATE_USER: "Create new DB user",
    Action.EXIT: "Exit",
}

# Choices that mean the same action regardless of role
SHARED_CHOICES: dict[int, Action] = {
    1: Action.CREATE_DATABASE,
    2: Action.DROP_DATABASE,
    3: Action.CREATE_TABLE,
    4: Action.CLEAR_TABLE,
    5: Action.ADD_BOOK,
    6: Action.UPDATE_BOOK,
    7: Action.DELETE_BOOK,
    8: Action.SEARCH_BOOKS,
    9: Action.LIST_BOOKS,
}

ROLE_MENUS: dict[Role, dict[int, Action]] = {
    Role.ADMINISTRATOR: {**SHARED_CHOICES, 10: Action.CREATE_USER, 11: Action.EXIT},
    Role.RESTRICTED: {8: Action.SEARCH_BOOKS, 9: Action.LIST_BOOKS, 10: Action.EXIT},
}

NO_BOOKS_MESSAGE = "No books found."


def render_menu(role: Role) -> str:
    lines = ["Available operations:"]
    lines.extend(f"{number}. {MENU_LABELS[action]}" for number, action in ROLE_MENUS[role].items())
    return "\n".join(lines)


def resolve_choice(role: Role, raw: str) -> Action | None:
    """
    Map a typed menu choice to an action.

    Returns None for anything that is not a number naming an action for
    this role's menu layout.
    """
    try:
        number = int(raw.strip())
    except ValueError:
        return None
    if number in SHARED_CHOICES:
        return SHARED_CHOICES[number]
    return ROLE_MENUS[role].get(number)


def format_books(books: list[BookRecord]) -> str:
    if not books:
        return NO_BOOKS_MESSAGE
    return "\n".join(book.describe() for book in books)


class Console:
    """
    Drives the dispatch loop from line-oriented input.

    Args:
        dispatcher: Dispatcher bound to the caller's role and session
        table: Table every book operation works on
        input_func: Reads one line after showing a prompt
        out: Stream for menus and results
        err: Stream for errors
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        table: str,
        input_func: Callable[[str], str] = input,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ):
        self.dispatcher = dispatcher
        self.table = table
        self._input = input_func
        self.out = out or sys.stdout
        self.err = err or sys.stderr

    @property
    def role(self) -> Role:
        return self.dispatcher.role

    def _print(self, message: str) -> None:
        print(message, file=self.out, flush=True)

    def _error(self, message: str) -> None:
        print(f"Error: {message}", file=self.err, flush=True)

    def _prompt_int(self, prompt: str, field: str) -> int:
        raw = self._input(prompt)
        try:
            return int(raw.strip())
        except ValueError:
            raise ValueError(f"{field} must be a whole number, got {raw!r}") from None

    def _prompt_draft(self, prefix: str = "") -> BookDraft:
        title = self._input(f"Enter {prefix}Title: ")
        author = self._input(f"Enter {prefix}Author: ")
        publisher = self._input(f"Enter {prefix}Publisher: ")
        year = self._prompt_int(f"Enter {prefix}Year: ", "Year")
        return BookDraft(title=title, author=author, publisher=publisher, year=year)

    def collect_params(self, action: Action) -> dict[str, Any]:
        """
        Prompt for whatever ``action`` needs.

        Raises:
            ValueError: If a numeric field is not a whole number
        """
        if action is Action.CREATE_DATABASE:
            return {"name": self._input("Enter the name of the database to create: ")}
        if action is Action.DROP_DATABASE:
            return {"name": self._input("Enter the name of the database to drop: ")}
        if action in (Action.CREATE_TABLE, Action.CLEAR_TABLE, Action.LIST_BOOKS):
            return {"table": self.table}
        if action is Action.ADD_BOOK:
            return {"table": self.table, "draft": self._prompt_draft()}
        if action is Action.UPDATE_BOOK:
            book_id = self._prompt_int("Enter the ID of the book to update: ", "ID")
            return {"table": self.table, "book_id": book_id, "draft": self._prompt_draft("new ")}
        if action is Action.DELETE_BOOK:
            return {"table": self.table, "title": self._input("Enter the Title of the book to delete: ")}
        if action is Action.SEARCH_BOOKS:
            return {"table": self.table, "title_filter": self._input("Enter part of the Title to search: ")}
        if action is Action.CREATE_USER:
            return {
                "username": self._input("Enter new DB username: "),
                "password": self._input("Enter new DB user password: "),
                "mode": self._input("Enter access mode for new user (admin/guest): "),
            }
        return {}

    def handle(self, raw_choice: str) -> Outcome | None:
        """
        Process one menu choice.

        Returns:
            The dispatcher's outcome, or None when parameter input was
            invalid and nothing was dispatched
        """
        action = resolve_choice(self.role, raw_choice)
        if action is None:
            outcome = Outcome(status=OutcomeStatus.UNAUTHORIZED, message=REJECTION_MESSAGE)
            self.report(outcome)
            return outcome
        if not self.dispatcher.is_allowed(action):
            # Rejected by the dispatcher before any prompt is shown
            outcome = self.dispatcher.dispatch(action)
            self.report(outcome)
            return outcome

        try:
            params = self.collect_params(action)
        except ValueError as e:
            self._error(str(e))
            return None

        outcome = self.dispatcher.dispatch(action, **params)
        self.report(outcome)
        return outcome

    def report(self, outcome: Outcome) -> None:
        if outcome.status is OutcomeStatus.UNAUTHORIZED:
            self._print(REJECTION_MESSAGE)
        elif outcome.status is OutcomeStatus.FAILED:
            self._error(outcome.message)
        elif outcome.status is OutcomeStatus.OK:
            if outcome.action in (Action.SEARCH_BOOKS, Action.LIST_BOOKS):
                self._print(format_books(outcome.books))
            else:
                self._print(outcome.message)

    def run(self) -> None:
        """Show the menu and dispatch choices until the caller exits."""
        while True:
            self._print("")
            self._print(render_menu(self.role))
            try:
                outcome = self.handle(self._input("Choose an operation: "))
            except EOFError:
                logger.info("Input closed, exiting")
                self.dispatcher.dispatch(Action.EXIT)
                return
            if outcome is not None and outcome.status is OutcomeStatus.EXIT:
                return
