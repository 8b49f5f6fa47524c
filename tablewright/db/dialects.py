from __future__ import annotations

from abc import ABC, abstractmethod

from sqlalchemy.engine import Engine


class Dialect(ABC):
    """
    Driver-specific SQL fragments the command builders cannot know.

    Dialects only own row limiting in SELECTs and the statement that reads
    back the last database-generated key. Placeholders are always ``@i``.
    """

    name = "generic"

    def select_template(self, where: str, order_by: str, limit: int) -> str:
        """
        Return a SELECT template with ``{columns}`` and ``{table}`` slots.

        ``where`` and ``order_by`` are already normalized clauses (or "").
        A ``limit`` of 0 means unlimited.
        """
        parts = ["SELECT {columns} FROM {table}"]
        if where:
            parts.append(self._escape(where))
        if order_by:
            parts.append(self._escape(order_by))
        if limit > 0:
            parts.append(f"LIMIT {int(limit)}")
        return " ".join(parts)

    @abstractmethod
    def last_insert_id_sql(self) -> str:
        """SQL returning the key generated by the last INSERT on this connection."""
        ...

    @staticmethod
    def _escape(fragment: str) -> str:
        return fragment.replace("{", "{{").replace("}", "}}")

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


class MySQLDialect(Dialect):
    name = "mysql"

    def last_insert_id_sql(self) -> str:
        return "SELECT LAST_INSERT_ID()"


class SQLiteDialect(Dialect):
    name = "sqlite"

    def last_insert_id_sql(self) -> str:
        return "SELECT last_insert_rowid()"


class PostgresDialect(Dialect):
    name = "postgresql"

    def last_insert_id_sql(self) -> str:
        return "SELECT lastval()"


class SqlServerDialect(Dialect):
    name = "mssql"

    def select_template(self, where: str, order_by: str, limit: int) -> str:
        top = f"TOP {int(limit)} " if limit > 0 else ""
        parts = [f"SELECT {top}{{columns}} FROM {{table}}"]
        if where:
            parts.append(self._escape(where))
        if order_by:
            parts.append(self._escape(order_by))
        return " ".join(parts)

    def last_insert_id_sql(self) -> str:
        return "SELECT SCOPE_IDENTITY()"


_DIALECTS: dict[str, type[Dialect]] = {
    cls.name: cls for cls in (MySQLDialect, SQLiteDialect, PostgresDialect, SqlServerDialect)
}
# MariaDB engines report their own name but speak MySQL here
_DIALECTS["mariadb"] = MySQLDialect


def dialect_for(engine: Engine) -> Dialect:
    """
    Pick the dialect matching a SQLAlchemy engine.

    Raises:
        ValueError: If the engine's database is not supported
    """
    name = engine.dialect.name
    try:
        return _DIALECTS[name]()
    except KeyError:
        raise ValueError(
            f"Unsupported database {name!r}; pass an explicit Dialect instead"
        ) from None
