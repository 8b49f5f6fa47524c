from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .helpers import validate_identifier, validate_table_name

# Ordered column name -> value mapping for one record.
FieldMap = Dict[str, Any]


class OperationType(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    SELECT = "select"
    RAW = "raw"


@dataclass(frozen=True)
class ColumnSpec:
    """
    One column of an explicit table schema.

    ``type`` is used to coerce database-generated keys written back onto
    typed records; ``None`` means "leave the value as the driver returned it".
    """
    name: str
    type: Optional[type] = None

    def __post_init__(self) -> None:
        validate_identifier(self.name, "column")


@dataclass(frozen=True)
class TableMetadata:
    """
    Everything the command builders need to know about a table.

    When ``columns`` is non-empty it is the table's schema: records are
    mapped onto exactly those columns, in that order.
    """
    table_name: str
    primary_key_field: str = "ID"
    is_identity: bool = True
    columns: Tuple[ColumnSpec, ...] = ()

    def __post_init__(self) -> None:
        validate_table_name(self.table_name)
        validate_identifier(self.primary_key_field, "primary key field")
        # accept any iterable of ColumnSpec, store a tuple
        object.__setattr__(self, "columns", tuple(self.columns))

    def is_primary_key(self, name: str) -> bool:
        return name.lower() == self.primary_key_field.lower()


@dataclass(frozen=True)
class Command:
    """
    A parameterized SQL statement.

    Placeholders are positional: ``@i`` in ``sql`` binds ``parameters[i]``.
    """
    sql: str
    parameters: Tuple[Any, ...] = ()
    op_type: OperationType = OperationType.RAW
    # table is optional contextual info, used for metrics only
    table: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", tuple(self.parameters))
