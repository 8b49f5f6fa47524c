from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..errors import EmptyFieldSetError
from .dialects import Dialect, MySQLDialect
from .helpers import order_by_clause, validate_identifier, where_clause
from .models import Command, FieldMap, OperationType, TableMetadata

logger = logging.getLogger(__name__)


def insertable_fields(fields: Mapping[str, Any], meta: TableMetadata) -> FieldMap:
    """
    Copy of ``fields`` without the primary key when the table generates it.
    The key is matched case-insensitively, as in ``build_update``.
    """
    if not meta.is_identity:
        return dict(fields)
    return {name: value for name, value in fields.items() if not meta.is_primary_key(name)}


def column_list(fields: Mapping[str, Any]) -> str:
    return ",".join(validate_identifier(name, "column") for name in fields)


class CommandBuilder:
    """
    Builds parameterized single-table commands from FieldMaps.

    Generated SQL uses positional ``@i`` placeholders; column order and
    parameter order both follow the FieldMap's iteration order.
    """

    def __init__(self, meta: TableMetadata, dialect: Optional[Dialect] = None) -> None:
        self.meta = meta
        self.dialect = dialect or MySQLDialect()

    def _command(self, sql: str, params: Any, op_type: OperationType) -> Command:
        cmd = Command(sql=sql, parameters=tuple(params), op_type=op_type, table=self.meta.table_name)
        logger.debug("Built %s command for %s: %s", op_type.value, self.meta.table_name, sql)
        return cmd

    def build_insert(self, fields: Mapping[str, Any]) -> Command:
        """
        INSERT INTO <table> (<cols>) VALUES (@0,@1,...).

        Raises:
            EmptyFieldSetError: If no fields remain once an identity key is dropped
        """
        settings = insertable_fields(fields, self.meta)
        if not settings:
            raise EmptyFieldSetError(
                f"Can't insert into {self.meta.table_name}: there are no fields set"
            )
        placeholders = ",".join(f"@{i}" for i in range(len(settings)))
        sql = f"INSERT INTO {self.meta.table_name} ({column_list(settings)}) VALUES ({placeholders})"
        return self._command(sql, settings.values(), OperationType.INSERT)

    def build_update(self, fields: Mapping[str, Any], key: Any) -> Command:
        """
        UPDATE <table> SET <col>=@0, ... WHERE <pk>=@n.

        The primary key (matched case-insensitively) and ``None`` values are
        never SET; the key is always the last parameter.

        Raises:
            EmptyFieldSetError: If no settable field remains
        """
        assignments = []
        params = []
        for name, value in fields.items():
            if self.meta.is_primary_key(name) or value is None:
                continue
            assignments.append(f"{validate_identifier(name, 'column')}=@{len(params)}")
            params.append(value)
        if not assignments:
            raise EmptyFieldSetError(
                f"Can't update {self.meta.table_name}: no settable fields were supplied"
            )
        sql = (
            f"UPDATE {self.meta.table_name} SET {', '.join(assignments)} "
            f"WHERE {self.meta.primary_key_field}=@{len(params)}"
        )
        params.append(key)
        return self._command(sql, params, OperationType.UPDATE)

    def build_delete(self, where: Optional[str] = None, key: Any = None, *args: Any) -> Command:
        """
        DELETE FROM <table> with a key match or a caller-supplied filter.

        A key wins over ``where`` and becomes the only parameter. Without
        either, every row is deleted.
        """
        sql = f"DELETE FROM {self.meta.table_name}"
        if key is not None:
            sql += f" WHERE {self.meta.primary_key_field}=@0"
            args = (key,)
        else:
            clause = where_clause(where)
            if clause:
                sql += " " + clause
        return self._command(sql, args, OperationType.DELETE)

    def build_select(
        self,
        where: Optional[str] = None,
        order_by: Optional[str] = None,
        limit: int = 0,
        columns: str = "*",
        *args: Any,
    ) -> Command:
        template = self.dialect.select_template(where_clause(where), order_by_clause(order_by), limit)
        sql = template.format(columns=columns or "*", table=self.meta.table_name)
        return self._command(sql, args, OperationType.SELECT)

    def build_find(self, key: Any) -> Command:
        return self.build_select(f"{self.meta.primary_key_field} = @0", None, 1, "*", key)

    def build_first(self, where: str, *args: Any) -> Command:
        return self.build_select(where, None, 1, "*", *args)

    def build_count(self, where: Optional[str] = None, *args: Any) -> Command:
        sql = f"SELECT COUNT(1) FROM {self.meta.table_name}"
        clause = where_clause(where)
        if clause:
            sql += " " + clause
        return self._command(sql, args, OperationType.SELECT)
