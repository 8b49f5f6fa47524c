from __future__ import annotations

import re

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
# the keyword itself, not a column like where_id or whereabouts
_WHERE_RE = re.compile(r"where\b", re.IGNORECASE)


def validate_identifier(name: str, identifier_type: str = "identifier") -> str:
    """
    Validate that an identifier (table/column name) is safe for SQL interpolation.

    Identifiers are restricted to letters, digits and underscores, starting with
    a letter or underscore.

    ⚠️ SECURITY CONTRACT ⚠️
    This function validates identifier format but does NOT make identifiers that
    come from untrusted user input safe. Table names, key fields and record
    field names MUST be trusted (hardcoded or whitelisted at application
    boundaries). Values are always bound as parameters.

    Args:
        name: The identifier to validate
        identifier_type: Description of the identifier (for error messages)

    Returns:
        The validated identifier (unchanged if valid)

    Raises:
        TypeError: If identifier is not a string
        ValueError: If identifier contains unsafe characters or is empty

    Example:
        >>> validate_identifier("People", "table")
        'People'
        >>> validate_identifier("'; DROP TABLE--", "table")
        ValueError: Invalid table "'; DROP TABLE--": ...
    """
    if not isinstance(name, str):
        raise TypeError(f"{identifier_type} must be a string, got {type(name).__name__}")

    if not name:
        raise ValueError(f"{identifier_type} cannot be empty")

    if not _IDENTIFIER_RE.match(name):
        raise ValueError(
            f"Invalid {identifier_type} {name!r}: "
            "must start with letter/underscore and contain only alphanumeric characters and underscores"
        )

    return name


def validate_table_name(name: str) -> str:
    """Like validate_identifier, but allows schema-qualified names (``dbo.People``)."""
    if not isinstance(name, str):
        raise TypeError(f"table must be a string, got {type(name).__name__}")
    for part in name.split("."):
        validate_identifier(part, "table")
    return name


def where_clause(where: str | None) -> str:
    """
    Normalize a caller-supplied filter into a WHERE clause.

    Returns "" for an empty filter; otherwise the clause verbatim, prefixed
    with "WHERE " unless it already starts with it (case-insensitive).
    """
    if not where or not where.strip():
        return ""
    where = where.strip()
    if _WHERE_RE.match(where):
        return where
    return "WHERE " + where


def order_by_clause(order_by: str | None) -> str:
    if not order_by or not order_by.strip():
        return ""
    order_by = order_by.strip()
    if order_by.lower().startswith("order by"):
        return order_by
    return "ORDER BY " + order_by
