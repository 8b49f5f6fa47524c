from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .db.validation import ValidationResult


class TablewrightError(Exception):
    """Base exception for tablewright errors."""


class RecordError(TablewrightError):
    """A record could not be turned into a command."""


class ValidationFailed(RecordError):
    """One or more validation messages were reported for a record."""

    def __init__(self, action: str, result: "ValidationResult") -> None:
        self.action = action
        self.result = result
        super().__init__(f"Can't {action}: {result.message}")

    @property
    def errors(self) -> tuple[str, ...]:
        return self.result.errors


class EmptyFieldSetError(RecordError):
    """Insert or update attempted with no usable fields."""


class MissingPrimaryKeyError(RecordError):
    """Update by convention attempted on a record without a primary key value."""


class BatchShapeError(RecordError):
    """Records in a bulk insert cannot share one column list."""


class ExecutionError(TablewrightError):
    """Any failure raised by the driver while executing commands."""
