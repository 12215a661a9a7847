"""Tabular result of one backend command."""

from typing import Any

from pydantic import BaseModel, Field


class ResultSet(BaseModel):
    """Rows returned by a command, plus the driver's affected-row count.

    ``rowcount`` is -1 when the driver cannot tell (CALL statements on
    PostgreSQL report no count), so it is informational only.
    """

    columns: list[str] = Field(default_factory=list)
    rows: list[tuple[Any, ...]] = Field(default_factory=list)
    rowcount: int = -1

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows
