from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from sqlalchemy.engine import Engine

from ..config import BatchConfig
from ..errors import MissingPrimaryKeyError, ValidationFailed
from .batch import BatchPlanner
from .builder import CommandBuilder
from .dialects import Dialect, dialect_for
from .executor import Executor
from .mapper import RecordMapper
from .metrics import observe_validation_failure
from .models import Command, FieldMap, OperationType, TableMetadata
from .validation import TableHooks, ValidationResult, Validator

logger = logging.getLogger(__name__)


class DbTable:
    """
    Single-table CRUD over records of any supported shape.

    Records can be mappings, dataclasses, named tuples, ``(name, value)``
    pair sequences or plain objects. Every write is validated (Validator
    chain plus ``hooks.validate``) before any SQL is built.

    Usage:
        people = DbTable(engine, TableMetadata("People", "ID"))
        ann = people.insert({"Name": "Ann", "Age": 30})   # {"Name": ..., "ID": 1}
        people.update({"Age": 31}, ann["ID"])
        people.all("Age > @0", "Name", 10, "*", 18)
    """

    def __init__(
        self,
        engine: Engine,
        metadata: TableMetadata,
        *,
        dialect: Optional[Dialect] = None,
        validator: Optional[Validator] = None,
        hooks: Optional[TableHooks] = None,
        batch_config: Optional[BatchConfig] = None,
        record_type: Optional[type] = None,
    ) -> None:
        self.engine = engine
        self.metadata = metadata
        self.dialect = dialect or dialect_for(engine)
        self.validator = validator or Validator()
        self.hooks = hooks or TableHooks()
        self.record_type = record_type
        self.mapper = RecordMapper(metadata.columns)
        self.builder = CommandBuilder(metadata, self.dialect)
        self.planner = BatchPlanner(metadata, batch_config, self.mapper)
        self.executor = Executor(engine)

    @property
    def table_name(self) -> str:
        return self.metadata.table_name

    @property
    def primary_key_field(self) -> str:
        return self.metadata.primary_key_field

    # keys

    def has_key(self, record: Any) -> bool:
        return self.mapper.has_key(record, self.primary_key_field)

    def get_key(self, record: Any) -> Any:
        return self.mapper.get_key(record, self.primary_key_field)

    def set_key(self, record: Any, value: Any) -> None:
        self.mapper.set_key(record, self.primary_key_field, value)

    # validation

    def check(self, record: Any) -> ValidationResult:
        """Validate a record without raising."""
        fields = self.mapper.to_field_map(record)
        return self._validate(fields)

    def _validate(self, fields: FieldMap) -> ValidationResult:
        return self.validator.validate(fields).merge(self.hooks.validate(fields))

    def _require_valid(self, fields: FieldMap, action: str) -> None:
        result = self._validate(fields)
        if not result.is_valid:
            observe_validation_failure(self.table_name)
            logger.warning("Rejected %s on %s: %s", action, self.table_name, result.message)
            raise ValidationFailed(action, result)

    # reads

    def query(self, sql: str, *args: Any) -> list[Any]:
        rows = self.executor.query(Command(sql, args, OperationType.SELECT, self.table_name))
        return [self.mapper.from_row(row, self.record_type) for row in rows]

    def scalar(self, sql: str, *args: Any) -> Any:
        return self.executor.scalar(Command(sql, args, OperationType.SELECT, self.table_name))

    def execute(self, sql: str | Command | Iterable[Command], *args: Any) -> int:
        """
        Run raw SQL with ``@i`` placeholders, or already built Commands, in
        one transaction.

        Returns:
            Total affected row count
        """
        if isinstance(sql, str):
            sql = Command(sql, args, OperationType.RAW, self.table_name)
        return self.executor.execute(sql)

    def all(
        self,
        where: str = "",
        order_by: str = "",
        limit: int = 0,
        columns: str = "*",
        *args: Any,
    ) -> list[Any]:
        cmd = self.builder.build_select(where, order_by, limit, columns, *args)
        return [self.mapper.from_row(row, self.record_type) for row in self.executor.query(cmd)]

    def first_or_default(self, where: str, *args: Any) -> Any:
        row = self.executor.query_one(self.builder.build_first(where, *args))
        return self.mapper.from_row(row, self.record_type) if row is not None else None

    def find(self, key: Any) -> Any:
        row = self.executor.query_one(self.builder.build_find(key))
        return self.mapper.from_row(row, self.record_type) if row is not None else None

    def count(self, where: str = "", *args: Any) -> int:
        return int(self.executor.scalar(self.builder.build_count(where, *args)) or 0)

    # writes

    def insert(self, record: Any) -> Any:
        """
        Insert one record.

        For identity tables the generated key is read back: mutable records
        get it set in place, frozen dataclasses and named tuples come back as
        copies, read-only mappings and pair sequences as a new dict.

        Returns:
            The record, or None if ``hooks.before_save`` declined it

        Raises:
            ValidationFailed: If validation reported any message
            EmptyFieldSetError: If no insertable field is set
            ExecutionError: On driver failure
        """
        fields = self.mapper.to_field_map(record)
        self._require_valid(fields, "insert")
        if not self.hooks.before_save(fields):
            return None

        cmd = self.builder.build_insert(fields)
        if not self.metadata.is_identity:
            self.executor.execute(cmd)
            self.hooks.after_insert(fields)
            return record

        key = self.executor.insert_returning_key(cmd, self.dialect.last_insert_id_sql())
        record = self.mapper.with_key(record, self.primary_key_field, key)
        fields[self.primary_key_field] = key
        self.hooks.after_insert(fields)
        return record

    def bulk_insert(self, records: Iterable[Any]) -> int:
        """
        Insert many new records in as few multi-row commands as the batch
        limits allow, all in one transaction. Records are not validated and
        no hooks run; generated keys are not read back.

        Returns:
            Total inserted row count
        """
        commands = self.planner.plan_inserts(records)
        if not commands:
            return 0
        return self.executor.execute(commands)

    def update(self, record: Any, key: Any = None) -> int:
        """
        Update the row identified by ``key``, or by the record's own primary
        key when ``key`` is omitted.

        Returns:
            Affected row count (0 if ``hooks.before_save`` declined it)

        Raises:
            MissingPrimaryKeyError: If no key was given and the record has none
            ValidationFailed, EmptyFieldSetError, ExecutionError
        """
        fields = self.mapper.to_field_map(record)
        if key is None:
            key = self.get_key(record)
            if key is None:
                raise MissingPrimaryKeyError(
                    f"No {self.primary_key_field} value on the record; can't pick a row of {self.table_name} to update"
                )
        self._require_valid(fields, "update")
        if not self.hooks.before_save(fields):
            return 0
        result = self.executor.execute(self.builder.build_update(fields, key))
        self.hooks.after_update(fields)
        return result

    def build_commands(self, *records: Any) -> list[Command]:
        """UPDATE for each record with a primary key value, INSERT for the rest."""
        commands = []
        for record in records:
            fields = self.mapper.to_field_map(record)
            key = self.get_key(record)
            if key is not None:
                commands.append(self.builder.build_update(fields, key))
            else:
                commands.append(self.builder.build_insert(fields))
        return commands

    def save(self, *records: Any) -> int:
        """
        Validate every record, then insert or update each of them in a single
        transaction. Records declined by ``hooks.before_save`` are skipped.
        Generated keys are not read back; use ``insert`` for that.
        """
        field_maps = [self.mapper.to_field_map(r) for r in records]
        for fields in field_maps:
            self._require_valid(fields, "save")
        accepted = [r for r, f in zip(records, field_maps) if self.hooks.before_save(f)]
        commands = self.build_commands(*accepted)
        if not commands:
            return 0
        return self.executor.execute(commands)

    def delete(self, key: Any) -> int:
        """
        Delete one row by primary key, consulting ``hooks.before_delete`` first.

        The hooks receive the row as ``find`` returns it (a ``record_type``
        instance when one is configured, None when no row matches).
        """
        deleted = self.find(key)
        if not self.hooks.before_delete(deleted):
            return 0
        result = self.executor.execute(self.builder.build_delete(None, key))
        self.hooks.after_delete(deleted)
        return result

    def delete_where(self, where: str = "", *args: Any) -> int:
        return self.executor.execute(self.builder.build_delete(where, None, *args))

    def __repr__(self) -> str:
        return f"<DbTable {self.table_name} pk={self.primary_key_field}>"
