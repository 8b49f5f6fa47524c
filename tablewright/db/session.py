from __future__ import annotations

import re
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.sql import TextClause

from .models import Command

# @0, @1, ... but not @@IDENTITY-style server variables
_PLACEHOLDER_RE = re.compile(r"(?<![@\w])@(\d+)\b")


def bind(command: Command) -> tuple[TextClause, dict[str, Any]]:
    """
    Translate a Command's positional ``@i`` placeholders into SQLAlchemy binds.

    ``@i`` becomes ``:p<i>`` and ``parameters[i]`` is passed as ``p<i>``.

    Raises:
        ValueError: If a placeholder has no matching parameter
    """
    count = len(command.parameters)

    def _sub(match: re.Match) -> str:
        index = int(match.group(1))
        if index >= count:
            raise ValueError(
                f"Placeholder @{index} has no parameter; {count} parameter(s) were supplied"
            )
        return f":p{index}"

    sql = _PLACEHOLDER_RE.sub(_sub, command.sql)
    params = {f"p{i}": value for i, value in enumerate(command.parameters)}
    return text(sql), params


class DbSession:
    """
    Transactional wrapper around a SQLAlchemy Engine connection.

    Use as:
        with DbSession(engine) as session:
            session.execute(command)
            row = session.fetch_one(command)

    The transaction commits when the block exits normally and rolls back if
    it raises; the connection is closed on every exit path.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._conn: Connection | None = None
        self._tx = None

    def __enter__(self) -> "DbSession":
        if self._conn is not None:
            raise RuntimeError("DbSession is already active; nested sessions are not allowed")
        self._conn = self.engine.connect()
        self._tx = self._conn.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._tx is not None:
                if exc_type:
                    self._tx.rollback()
                else:
                    self._tx.commit()
        finally:
            if self._conn is not None:
                self._conn.close()

            self._conn = None
            self._tx = None

        # propagate exceptions (if any)
        return False

    def _connection(self) -> Connection:
        if self._conn is None:
            raise RuntimeError("DbSession is not active; use within a context manager")
        return self._conn

    def execute(self, command: Command) -> int:
        """
        Execute a non-SELECT command and return affected row count.
        """
        conn = self._connection()
        stmt, params = bind(command)
        result = conn.execute(stmt, params)
        try:
            if result.rowcount is None:
                raise RuntimeError(
                    "execute() received None rowcount for statement. "
                    "This may indicate a DDL statement or unsupported operation type."
                )
            return int(result.rowcount)
        finally:
            result.close()

    def execute_scalar(self, command: Command) -> Any:
        """
        Execute a command expected to return a single scalar value.
        """
        conn = self._connection()
        stmt, params = bind(command)
        result = conn.execute(stmt, params)
        try:
            return result.scalar_one_or_none()
        finally:
            result.close()

    def fetch_one(self, command: Command) -> dict[str, Any] | None:
        """
        Execute a SELECT expected to return 0 or 1 row. Raises if more than one row.
        """
        conn = self._connection()
        stmt, params = bind(command)
        result = conn.execute(stmt, params)
        try:
            row = result.mappings().one_or_none()
            if row is None:
                return None
            return dict(row)
        finally:
            result.close()

    def fetch_all(self, command: Command) -> list[dict[str, Any]]:
        """
        Execute a SELECT expected to return multiple rows.
        """
        conn = self._connection()
        stmt, params = bind(command)
        result = conn.execute(stmt, params)
        try:
            return [dict(row) for row in result.mappings()]
        finally:
            result.close()
