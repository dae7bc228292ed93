"""
This module defines our core SQLite database interface.
"""

from __future__ import annotations

import logging
import os
import re
import sqlite3
import weakref
from contextlib import closing
from types import TracebackType
from typing import Callable, Iterator, Union

from .errors import OpenError, ResultCode, errstr
from .statement import Row, Statement


__all__ = ["Database", "split_statements"]


_logger = logging.getLogger(__name__)

# Whitespace and comments before the first token of a statement.
_LEADING_COMMENTS = re.compile(
    r"(?:\s+|--[^\n]*(?:\n|$)|/\*.*?(?:\*/|$))*", re.DOTALL
)
_EXPLAIN = re.compile(r"explain\b", re.IGNORECASE)
_BINDINGS_USED = re.compile(r"uses (\d+), and there are \d+ supplied")

# Exceptions raised by sqlite3 when compiling or running SQL. Older Python versions
# raise sqlite3.Warning for multiple statements and ValueError for null characters.
_SQL_ERRORS = (sqlite3.Error, sqlite3.Warning, ValueError)

StrPath = Union[str, "os.PathLike[str]"]


def split_statements(script: str) -> Iterator[str]:
    """
    Splits an SQL script into its individual statements. Semicolons inside string
    literals, comments and trigger bodies do not end a statement.

    :param script: SQL script.
    :returns: Iterator over statements.
    """
    buffer = ""
    *parts, tail = script.split(";")

    for part in parts:
        buffer += part + ";"
        if sqlite3.complete_statement(buffer):
            if buffer.strip(" \t\n\r;"):
                yield buffer.strip()
            buffer = ""

    buffer += tail

    if buffer.strip():
        yield buffer.strip()


class Database:
    """
    Wrapper around sqlite3.Connection which compiles reusable statements, runs one-shot
    SQL and streams query results.

    The connection is opened in autocommit mode: no transactions are started or
    committed implicitly. Group statements with explicit ``BEGIN`` / ``COMMIT`` /
    ``ROLLBACK`` statements instead.

    The database must stay open while any statement compiled from it is in use.

    :param path: Path of the database file. Use ":memory:" for an in-memory database.
    :param timeout: Seconds to wait for a lock held by another connection.
    :param check_same_thread: Whether to prevent use of the connection from a thread
        other than the one which opened it.
    :param logger: Logger to emit diagnostics to. Defaults to the module logger.
    :raises OpenError: if the database cannot be opened.
    """

    def __init__(
        self,
        path: StrPath,
        timeout: float = 5.0,
        check_same_thread: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self.path = os.fspath(path)
        self.logger = logger or _logger

        self._errcode = ResultCode.OK
        self._errmsg = errstr(ResultCode.OK)

        try:
            connection = sqlite3.connect(
                self.path,
                timeout=timeout,
                isolation_level=None,
                check_same_thread=check_same_thread,
            )
        except sqlite3.Error as exc:
            raise OpenError("Could not open database", str(exc)) from exc

        self.connection = connection
        self._finalizer = weakref.finalize(self, connection.close)

    @classmethod
    def from_config(
        cls, config_name: str, logger: logging.Logger | None = None
    ) -> Database:
        """
        Opens the database of the given configuration.

        :param config_name: Name of the configuration. A new config file will be
            created with default values if none exists.
        :param logger: Logger to emit diagnostics to.
        :returns: Opened database.
        :raises OpenError: if the database cannot be opened.
        """
        from .config import DatabaseConfig, get_database_path

        conf = DatabaseConfig(config_name)

        return cls(
            get_database_path(config_name),
            timeout=conf.get("database", "timeout"),
            check_same_thread=conf.get("database", "check_same_thread"),
            logger=logger,
        )

    # ---- lifecycle -------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        """Whether the connection has been closed."""
        return not self._finalizer.alive

    def close(self) -> None:
        """Closes the SQL connection. Calling this more than once has no effect."""
        self._finalizer()

    def __enter__(self) -> Database:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # ---- diagnostics -----------------------------------------------------------------

    @property
    def errcode(self) -> ResultCode:
        """The result code of the most recent operation."""
        return self._errcode

    @property
    def errmsg(self) -> str:
        """The engine's diagnostic message for the most recent operation."""
        return self._errmsg

    def _record_result(self, code: ResultCode, message: str | None = None) -> None:
        self._errcode = code
        self._errmsg = message or errstr(code)

    def _record_exception(self, exc: Exception) -> None:
        self._record_result(ResultCode.from_exception(exc), str(exc))

    # ---- SQL -------------------------------------------------------------------------

    def exec(self, sql: str) -> bool:
        """
        Runs SQL without parameters and discards any returned rows. This is meant for
        DDL and other simple statements. Several statements may be separated by
        semicolons, they are run in order until one fails.

        :param sql: SQL statement(s) to run.
        :returns: Whether all statements succeeded. Failures are logged.
        """
        try:
            for statement in split_statements(sql):
                cursor = self.connection.execute(statement)
                try:
                    cursor.fetchall()
                finally:
                    cursor.close()
        except _SQL_ERRORS as exc:
            self._record_exception(exc)
            self.logger.error("SQL exec() failed: %s", self._errmsg)
            return False

        self._record_result(ResultCode.OK)
        return True

    def prepare(self, sql: str) -> Statement:
        """
        Compiles an SQL statement.

        :param sql: A single SQL statement. Use "?" as placeholder for parameters.
        :returns: Compiled statement. If compilation fails, the failure is logged and
            an invalid statement is returned on which all operations fail. SQL without
            any statement, such as an empty string or only comments, gives an invalid
            statement without logging.
        """
        try:
            param_count = self._compile(sql)
        except _SQL_ERRORS as exc:
            self._record_exception(exc)
            self.logger.error("Database prepare failed: %s", self._errmsg)
            return Statement(self, sql, None)

        self._record_result(ResultCode.OK)
        return Statement(self, sql, param_count)

    def _compile(self, sql: str) -> int | None:
        """
        Compiles an SQL statement without running it.

        :param sql: SQL statement.
        :returns: The number of parameters of the statement or ``None`` if the SQL
            contains no statement.
        :raises sqlite3.Error: if the statement does not compile.
        """
        body = sql[_LEADING_COMMENTS.match(sql).end() :]

        if not body:
            return None

        explain = body if _EXPLAIN.match(body) else f"EXPLAIN {body}"

        try:
            self.connection.execute(explain, ()).close()
        except sqlite3.ProgrammingError as exc:
            # sqlite3 compiles before checking the number of supplied parameters.
            match = _BINDINGS_USED.search(str(exc))
            if not match:
                raise
            return int(match.group(1))

        return 0

    def query(self, sql: str, callback: Callable[[Row], bool]) -> bool:
        """
        Runs a query and passes each result row to a callback.

        :param sql: SQL query without parameters.
        :param callback: Called with each row. Return ``False`` to stop iteration.
        :returns: ``True`` if all rows were passed to the callback, ``False`` if the
            query failed to compile or the callback stopped the iteration.
        """
        with self.prepare(sql) as stmt:
            if not stmt:
                return False

            row: Row = {}

            while stmt.fetch(row):
                if not callback(row):
                    return False

        return True

    def last_insert_id(self) -> int:
        """The rowid of the most recent successful insert on this connection."""
        with closing(self.connection.execute("SELECT last_insert_rowid()")) as cursor:
            return cursor.fetchone()[0]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(path='{self.path}')>"
