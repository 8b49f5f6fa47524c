from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

# A check inspects a FieldMap and appends messages to the error list.
Check = Callable[[Mapping[str, Any], List[str]], None]

_NUMERIC_TYPES = (int, float, Decimal)


@dataclass(frozen=True)
class ValidationResult:
    errors: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def message(self) -> str:
        return "; ".join(self.errors)

    def __bool__(self) -> bool:
        return self.is_valid

    def merge(self, messages: Iterable[str]) -> "ValidationResult":
        extra = tuple(messages)
        if not extra:
            return self
        return ValidationResult(self.errors + extra)


def presence_of(field: str, message: str = "Required") -> Check:
    def check(fields: Mapping[str, Any], errors: List[str]) -> None:
        value = fields.get(field)
        if value is None or str(value) == "":
            errors.append(message)
    return check


def numericality_of(field: str, message: str = "Should be a number") -> Check:
    def check(fields: Mapping[str, Any], errors: List[str]) -> None:
        value = fields.get(field)
        if isinstance(value, bool) or not isinstance(value, _NUMERIC_TYPES):
            errors.append(message)
    return check


def currency(field: str, message: str = "Should be money") -> Check:
    def check(fields: Mapping[str, Any], errors: List[str]) -> None:
        value = fields.get(field)
        if value is None or isinstance(value, bool):
            errors.append(message)
            return
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            errors.append(message)
            return
        if not amount.is_finite():
            errors.append(message)
    return check


class Validator:
    """
    Ordered chain of checks run against a FieldMap.

    Every call to ``validate`` starts from an empty error list and returns
    its own ``ValidationResult``; nothing is kept between calls.

    Usage:
        validator = (
            Validator()
            .validates_presence_of("Name")
            .validates_numericality_of("Age")
        )
        result = validator.validate({"Name": "", "Age": "x"})
        result.errors  # ("Required", "Should be a number")
    """

    def __init__(self, checks: Iterable[Check] = ()) -> None:
        self._checks: list[Check] = list(checks)

    def add(self, check: Check) -> "Validator":
        self._checks.append(check)
        return self

    def validates_presence_of(self, field: str, message: str = "Required") -> "Validator":
        return self.add(presence_of(field, message))

    def validates_numericality_of(self, field: str, message: str = "Should be a number") -> "Validator":
        return self.add(numericality_of(field, message))

    def validates_currency(self, field: str, message: str = "Should be money") -> "Validator":
        return self.add(currency(field, message))

    def validate(self, fields: Mapping[str, Any]) -> ValidationResult:
        errors: list[str] = []
        for check in self._checks:
            check(fields, errors)
        return ValidationResult(tuple(errors))

    def is_valid(self, fields: Mapping[str, Any]) -> bool:
        return self.validate(fields).is_valid

    def __len__(self) -> int:
        return len(self._checks)


class TableHooks:
    """
    Lifecycle callbacks for a DbTable.

    Pass an instance (usually of a subclass) to ``DbTable(hooks=...)``.
    Defaults accept everything and do nothing.
    """

    def validate(self, fields: Mapping[str, Any]) -> Iterable[str]:
        """Return error messages for ``fields``; empty means valid."""
        return ()

    def before_save(self, fields: Mapping[str, Any]) -> bool:
        """Return False to skip the insert/update."""
        return True

    def before_delete(self, row: Optional[Mapping[str, Any]]) -> bool:
        """Return False to skip the delete. ``row`` is None if the key matched nothing."""
        return True

    def after_insert(self, fields: Mapping[str, Any]) -> None:
        pass

    def after_update(self, fields: Mapping[str, Any]) -> None:
        pass

    def after_delete(self, row: Optional[Mapping[str, Any]]) -> None:
        pass
