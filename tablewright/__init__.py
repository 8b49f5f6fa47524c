from .config import BatchConfig
from .db.models import ColumnSpec, Command, TableMetadata
from .db.table import DbTable
from .db.validation import TableHooks, Validator

__all__ = [
    "DbTable",
    "TableMetadata",
    "ColumnSpec",
    "Command",
    "BatchConfig",
    "Validator",
    "TableHooks",
]
