from .batch import BatchPlanner
from .builder import CommandBuilder
from .dialects import Dialect, MySQLDialect, PostgresDialect, SQLiteDialect, SqlServerDialect, dialect_for
from .executor import Executor
from .mapper import RecordMapper
from .models import ColumnSpec, Command, FieldMap, OperationType, TableMetadata
from .session import DbSession
from .table import DbTable
from .validation import TableHooks, ValidationResult, Validator

__all__ = [
    "DbTable",
    "DbSession",
    "Executor",
    "CommandBuilder",
    "BatchPlanner",
    "RecordMapper",
    "Validator",
    "ValidationResult",
    "TableHooks",
    "TableMetadata",
    "ColumnSpec",
    "Command",
    "FieldMap",
    "OperationType",
    "Dialect",
    "MySQLDialect",
    "SQLiteDialect",
    "PostgresDialect",
    "SqlServerDialect",
    "dialect_for",
]
