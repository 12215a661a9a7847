"""
Book Catalog models.

Pydantic models for the data that crosses the backend boundary:
- BookDraft: user-entered fields of a book
- BookRecord: a stored book with its backend-assigned id
- ResultSet: rows returned by one backend command
"""

from .book import BOOK_COLUMNS, BookDraft, BookRecord
from .result_set import ResultSet

__all__ = [
    "BOOK_COLUMNS",
    "BookDraft",
    "BookRecord",
    "ResultSet",
]
