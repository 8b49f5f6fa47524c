from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import ExecutionError
from .metrics import observe_db_write
from .models import Command, OperationType
from .session import DbSession, bind

logger = logging.getLogger(__name__)


class Executor:
    """
    Runs Commands against a SQLAlchemy Engine.

    Every call acquires its own connection and releases it before
    returning, whether the call succeeds or fails. Driver failures are
    raised as ExecutionError chained to the original SQLAlchemy error; no
    call is ever retried.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @contextmanager
    def _observe(self, command: Command) -> Iterator[None]:
        start_time = time.monotonic()
        status = "success"
        try:
            yield
        except Exception:
            status = "error"
            raise
        finally:
            observe_db_write(
                table=command.table or "unknown",
                op_type=command.op_type.value,
                status=status,
                latency_s=time.monotonic() - start_time,
            )

    def execute(self, commands: Command | Iterable[Command]) -> int:
        """
        Execute commands in order inside one transaction and commit.

        Returns:
            Total affected row count

        Raises:
            ExecutionError: If any command fails; the whole transaction is
                rolled back, so none of the commands take effect
        """
        if isinstance(commands, Command):
            commands = [commands]
        commands = list(commands)
        affected = 0
        try:
            with DbSession(self.engine) as session:
                for cmd in commands:
                    with self._observe(cmd):
                        affected += session.execute(cmd)
        except SQLAlchemyError as exc:
            logger.warning(
                "Rolled back %d command(s) after driver error: %s", len(commands), exc
            )
            raise ExecutionError(str(exc)) from exc
        return affected

    def insert_returning_key(self, command: Command, key_sql: str) -> Any:
        """
        Execute an INSERT, then read back the generated key on the same connection.

        ``key_sql`` is the dialect's last-generated-key statement. Both run in
        one transaction.
        """
        try:
            with DbSession(self.engine) as session:
                with self._observe(command):
                    session.execute(command)
                    key = session.execute_scalar(
                        Command(key_sql, op_type=OperationType.SELECT, table=command.table)
                    )
        except SQLAlchemyError as exc:
            raise ExecutionError(str(exc)) from exc
        logger.info("Inserted into %s with generated key %r", command.table, key)
        return key

    def scalar(self, command: Command) -> Any:
        """
        Execute a single command and return the first column of the first
        row (None when there are no rows).

        The command commits on its own, so writes that return a value
        (``INSERT ... RETURNING``) persist.
        """
        stmt, params = bind(command)
        try:
            with self.engine.begin() as conn:
                return conn.execute(stmt, params).scalar()
        except SQLAlchemyError as exc:
            raise ExecutionError(str(exc)) from exc

    def query(self, command: Command) -> list[dict[str, Any]]:
        try:
            with DbSession(self.engine) as session:
                return session.fetch_all(command)
        except SQLAlchemyError as exc:
            raise ExecutionError(str(exc)) from exc

    def query_one(self, command: Command) -> dict[str, Any] | None:
        """Run a SELECT that yields at most one row (find, first_or_default)."""
        try:
            with DbSession(self.engine) as session:
                return session.fetch_one(command)
        except SQLAlchemyError as exc:
            raise ExecutionError(str(exc)) from exc
