"""
Book models for the Book Catalog admin shell.

``BookRecord`` is what the backend hands back from a title search: the
``sp_search_book_by_title`` routine returns the columns
(id, title, author, publisher, year) in that order. ``BookDraft`` carries the
user-entered fields of an add or update; the id is never client-generated.

Text fields are kept exactly as typed. Quotes, semicolons and surrounding
whitespace are data, not syntax, and travel to the backend as bound
parameters.
"""

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Column order of the search routine's result table
BOOK_COLUMNS = ("id", "title", "author", "publisher", "year")


class BookDraft(BaseModel):
    """The editable fields of a book, used by add and full-replace update."""

    model_config = ConfigDict(str_strip_whitespace=False)

    title: str = Field(..., description="The title of the book", examples=["The Great Gatsby"])

    author: str = Field(..., description="The book's author", examples=["F. Scott Fitzgerald"])

    publisher: str = Field(..., description="The book's publisher", examples=["Scribner"])

    year: int = Field(..., description="Year the book was published", examples=[1925])

    def as_params(self) -> list[Any]:
        """Positional parameters in the order the book routines expect them."""
        return [self.title, self.author, self.publisher, self.year]


class BookRecord(BookDraft):
    """A stored book with its backend-assigned identity.

    Every column but ``id`` may be NULL in the book table.
    """

    id: int = Field(..., description="Identity assigned by the backend on creation")

    title: str | None = Field(default=None, description="The title of the book")

    author: str | None = Field(default=None, description="The book's author")

    publisher: str | None = Field(default=None, description="The book's publisher")

    year: int | None = Field(default=None, description="Year the book was published")

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "BookRecord":
        """Map one search result row onto a record.

        Raises:
            ValueError: If the row does not have exactly five columns
        """
        if len(row) != len(BOOK_COLUMNS):
            raise ValueError(f"Expected {len(BOOK_COLUMNS)} columns, got {len(row)}")
        return cls.model_validate(dict(zip(BOOK_COLUMNS, row, strict=True)))

    def describe(self) -> str:
        """One-line listing format: ``id: title by author (publisher, year)``.

        Missing values are shown as ``-``.
        """
        title, author, publisher, year = (
            "-" if value is None else value
            for value in (self.title, self.author, self.publisher, self.year)
        )
        return f"{self.id}: {title} by {author} ({publisher}, {year})"

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "The Great Gatsby",
                "author": "F. Scott Fitzgerald",
                "publisher": "Scribner",
                "year": 1925,
            }
        }
    )
