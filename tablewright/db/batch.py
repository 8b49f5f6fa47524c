from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from ..config import BatchConfig
from ..errors import BatchShapeError, EmptyFieldSetError
from .builder import column_list, insertable_fields
from .mapper import RecordMapper
from .models import Command, OperationType, TableMetadata

logger = logging.getLogger(__name__)


class BatchPlanner:
    """
    Splits a bulk insert into multi-row INSERT commands.

    Each command looks like ``INSERT INTO t (a,b) VALUES (@0,@1),(@2,@3)``.
    A command is closed before appending a row once the parameters would
    reach ``max_parameters`` or the rows already reached ``max_rows``;
    placeholder numbering restarts at ``@0`` in every command.

    All records must map to the first record's columns, in the same order.
    """

    def __init__(
        self,
        meta: TableMetadata,
        config: Optional[BatchConfig] = None,
        mapper: Optional[RecordMapper] = None,
    ) -> None:
        self.meta = meta
        self.config = config or BatchConfig()
        self.mapper = mapper or RecordMapper(meta.columns)

    def plan_inserts(self, records: Iterable[Any]) -> list[Command]:
        """
        Raises:
            EmptyFieldSetError: If the records have no insertable fields
            BatchShapeError: If a record's columns differ from the first
                record's, or one row alone exceeds the parameter limit
        """
        rows = [insertable_fields(self.mapper.to_field_map(r), self.meta) for r in records]
        if not rows:
            return []

        names = tuple(rows[0])
        width = len(names)
        if width == 0:
            raise EmptyFieldSetError(
                f"Can't bulk insert into {self.meta.table_name}: there are no fields set"
            )
        if width >= self.config.max_parameters:
            raise BatchShapeError(
                f"A {width}-column row can't fit under the {self.config.max_parameters} parameter limit"
            )
        for index, row in enumerate(rows):
            if tuple(row) != names:
                raise BatchShapeError(
                    f"Record {index} has columns {list(row)}; expected {list(names)}"
                )

        stub = f"INSERT INTO {self.meta.table_name} ({column_list(rows[0])}) VALUES "
        commands: list[Command] = []
        groups: list[str] = []
        params: list[Any] = []

        for row in rows:
            if len(params) + width >= self.config.max_parameters or len(groups) >= self.config.max_rows:
                commands.append(self._finish(stub, groups, params))
                groups, params = [], []
            start = len(params)
            groups.append("(" + ",".join(f"@{i}" for i in range(start, start + width)) + ")")
            params.extend(row.values())
        commands.append(self._finish(stub, groups, params))

        logger.info(
            "Planned %d insert command(s) for %d row(s) into %s",
            len(commands),
            len(rows),
            self.meta.table_name,
        )
        return commands

    def _finish(self, stub: str, groups: list[str], params: list[Any]) -> Command:
        return Command(
            sql=stub + ",".join(groups),
            parameters=tuple(params),
            op_type=OperationType.INSERT,
            table=self.meta.table_name,
        )
