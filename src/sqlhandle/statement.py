"""
Compiled SQL statements with positional parameter binding, single-step execution and
row-by-row iteration of results.

Statements are created by :meth:`sqlhandle.core.Database.prepare` and keep a
non-owning reference to their database, used to step the statement and to retrieve the
engine's diagnostics. The database must remain open while any of its statements is in
use.
"""

from __future__ import annotations

import enum
import sqlite3
from types import TracebackType
from typing import Any, Callable, Dict, Iterator, Optional, TYPE_CHECKING

from .errors import ResultCode
from .value import (
    INT32_MAX,
    INT32_MIN,
    INT64_MAX,
    INT64_MIN,
    Blob,
    SQLiteType,
    Value,
    ValueKind,
)

if TYPE_CHECKING:
    from .core import Database


__all__ = ["Row", "State", "Statement", "infer_kind"]


Row = Dict[str, Value]


class State(enum.Enum):
    """Execution state of a statement"""

    Prepared = 0
    Bound = 1
    RowAvailable = 2
    Done = 3
    Failed = 4
    Invalid = 5


# ==== binding =========================================================================


def _bind_blob(value: Any) -> bytes:
    if isinstance(value, Blob):
        return bytes(memoryview(value.data)[: value.size])
    elif isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"Cannot bind {type(value).__name__} as blob")


def _bind_real(value: Any) -> float:
    if not isinstance(value, (int, float)):
        raise TypeError(f"Cannot bind {type(value).__name__} as real")
    return float(value)


def _bind_integer(value: Any) -> int:
    if not isinstance(value, int):
        raise TypeError(f"Cannot bind {type(value).__name__} as integer")
    if not INT32_MIN <= value <= INT32_MAX:
        raise OverflowError("Integer does not fit into 32 bits")
    return int(value)


def _bind_big_integer(value: Any) -> int:
    if not isinstance(value, int):
        raise TypeError(f"Cannot bind {type(value).__name__} as big integer")
    if not INT64_MIN <= value <= INT64_MAX:
        raise OverflowError("Integer does not fit into 64 bits")
    return int(value)


def _bind_null(value: Any) -> None:
    return None


def _bind_text(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Cannot bind {type(value).__name__} as text")
    return value


_BINDERS: Dict[ValueKind, Callable[[Any], SQLiteType]] = {
    ValueKind.BLOB: _bind_blob,
    ValueKind.REAL: _bind_real,
    ValueKind.INTEGER: _bind_integer,
    ValueKind.BIG_INTEGER: _bind_big_integer,
    ValueKind.NULL: _bind_null,
    ValueKind.TEXT: _bind_text,
}


def infer_kind(value: Any) -> Optional[ValueKind]:
    """
    Determines the kind to bind a Python object as.

    :param value: Object to bind.
    :returns: Kind for the object or ``None`` if the object cannot be bound.
    """
    if value is None:
        return ValueKind.NULL
    elif isinstance(value, Value):
        return value.kind
    elif isinstance(value, int):
        if INT32_MIN <= value <= INT32_MAX:
            return ValueKind.INTEGER
        return ValueKind.BIG_INTEGER
    elif isinstance(value, float):
        return ValueKind.REAL
    elif isinstance(value, str):
        return ValueKind.TEXT
    elif isinstance(value, (Blob, bytes, bytearray, memoryview)):
        return ValueKind.BLOB
    else:
        return None


# ==== statement =======================================================================


class Statement:
    """
    A compiled SQL statement.

    A statement whose compilation failed is inert: it can be held and finalized but all
    other operations report failure. Use :meth:`is_valid` or ``bool(stmt)`` to check.

    Statements are context managers and are finalized when leaving the context.

    :param db: Database which compiled the statement.
    :param sql: SQL text of the statement.
    :param param_count: Number of positional parameters or ``None`` if compilation
        failed.
    """

    def __init__(self, db: Database, sql: str, param_count: int | None) -> None:
        self._db = db
        self._sql = sql
        self._params: list[SQLiteType] = [None] * (param_count or 0)
        self._cursor: sqlite3.Cursor | None = None
        self._columns: list[str] = []
        self._row: tuple[Any, ...] | None = None

        if param_count is None:
            self._state = State.Invalid
        else:
            self._state = State.Prepared

    # ---- properties ------------------------------------------------------------------

    @property
    def sql(self) -> str:
        """The SQL text the statement was compiled from."""
        return self._sql

    @property
    def state(self) -> State:
        """The current execution state."""
        return self._state

    def is_valid(self) -> bool:
        """Whether the statement holds a compiled query."""
        return self._state is not State.Invalid

    def param_count(self) -> int:
        """The number of positional parameters in the statement."""
        return len(self._params)

    # ---- binding ---------------------------------------------------------------------

    def bind(self, index: int, value: Any, kind: ValueKind | None = None) -> bool:
        """
        Binds a value to a positional parameter. The value is copied before this call
        returns.

        :param index: 1-based index of the parameter.
        :param value: Value to bind: bytes-like or :class:`sqlhandle.value.Blob`,
            float, int, None, str or a :class:`sqlhandle.value.Value`.
        :param kind: Kind to bind the value as. If not given, it is inferred from the
            type of ``value``.
        :returns: Whether the value was bound. Failures are logged.
        """
        if not self.is_valid():
            return False

        if self._state not in (State.Prepared, State.Bound):
            return self._fail("bind", ResultCode.MISUSE)

        if not 1 <= index <= len(self._params):
            return self._fail("bind", ResultCode.RANGE)

        if kind is None:
            kind = infer_kind(value)

        if isinstance(value, Value):
            value = value.raw

        if kind is None:
            return self._fail("bind", ResultCode.MISMATCH)

        try:
            self._params[index - 1] = _BINDERS[kind](value)
        except (TypeError, ValueError, OverflowError):
            return self._fail("bind", ResultCode.MISMATCH)

        self._state = State.Bound
        return True

    def clear_bindings(self) -> None:
        """Sets all parameters to NULL."""
        self._params = [None] * len(self._params)

    # ---- execution -------------------------------------------------------------------

    def step(self) -> ResultCode:
        """
        Advances the statement by one step. A statement which has completed or failed
        is restarted with its current bindings.

        :returns: :attr:`ResultCode.ROW` if a row is available, :attr:`ResultCode.DONE`
            if the statement has completed or an error code.
        """
        if not self.is_valid():
            return ResultCode.MISUSE

        if self._state in (State.Done, State.Failed):
            self._rewind()

        try:
            if self._cursor is None:
                self._cursor = self._db.connection.execute(self._sql, self._params)
                self._columns = [d[0] for d in self._cursor.description or ()]
            row = self._cursor.fetchone()
        except (sqlite3.Error, ValueError) as exc:
            self._row = None
            self._state = State.Failed
            self._db._record_exception(exc)
            return self._db.errcode

        if row is None:
            self._row = None
            self._state = State.Done
            code = ResultCode.DONE
        else:
            self._row = row
            self._state = State.RowAvailable
            code = ResultCode.ROW

        self._db._record_result(code)
        return code

    def execute(self, *values: Any) -> bool:
        """
        Binds the given values to parameters 1, 2, ... and steps the statement once.
        This is meant for statements which do not return rows. A value which cannot be
        bound is logged and leaves its parameter unchanged; the statement is stepped
        regardless.

        :param values: Values to bind in parameter order.
        :returns: ``True`` if the statement ran to completion. Producing a row counts
            as failure.
        """
        if not self.is_valid():
            return False

        for index, value in enumerate(values, start=1):
            self.bind(index, value)

        if self.step() != ResultCode.DONE:
            self._log_failure("execution")
            return False

        return True

    def fetch(self, row: Row) -> bool:
        """
        Steps the statement and fills ``row`` with the resulting row.

        .. note:: :mod:`sqlite3` steps the following row before returning the current
            one. An error in row N + 1 is therefore reported when fetching row N, which
            is lost, and row N + 1's side effects happen before row N is returned.

        :param row: Mapping to fill. It is cleared first and stays empty if no row is
            returned.
        :returns: Whether a row was fetched.
        """
        row.clear()

        if not self.is_valid():
            return False

        code = self.step()

        if code == ResultCode.ROW:
            for i in range(self.col_count()):
                # The first of several equally named columns wins.
                row.setdefault(self.col_name(i), self.col_value(i))
            return True

        if code != ResultCode.DONE:
            self._log_failure("fetch")

        return False

    def fetch_all(self) -> list[Row]:
        """
        Fetches all remaining rows.

        :returns: List of rows, empty if there are none or if the statement is invalid.
        """
        return list(self)

    def __iter__(self) -> Iterator[Row]:
        row: Row = {}
        while self.fetch(row):
            yield dict(row)

    def reset(self) -> None:
        """
        Returns the statement to its state before execution. The compiled query and
        bound parameters are kept.
        """
        if self.is_valid():
            self._rewind()

    def finalize(self) -> None:
        """Releases the compiled query. The statement is invalid afterwards."""
        self._close_cursor()
        self._row = None
        self._state = State.Invalid

    # ---- columns ---------------------------------------------------------------------

    def col_count(self) -> int:
        """The number of result columns. Known once the statement has been stepped."""
        return len(self._columns)

    def col_name(self, i: int) -> str:
        """
        :param i: 0-based column index.
        :returns: Name of the result column.
        """
        self._check_column(i)
        return self._columns[i]

    def col_value(self, i: int) -> Value:
        """
        :param i: 0-based column index.
        :returns: Copy of the cell in the current row, NULL if no row is available.
        """
        self._check_column(i)
        if self._row is None:
            return Value()
        return Value(self._row[i])

    def col_size(self, i: int) -> int:
        """
        :param i: 0-based column index.
        :returns: Size in bytes of the cell in the current row.
        """
        return self.col_value(i).size()

    # ---- helpers ---------------------------------------------------------------------

    def _check_column(self, i: int) -> None:
        if not 0 <= i < len(self._columns):
            raise IndexError("column index out of range")

    def _close_cursor(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None

    def _rewind(self) -> None:
        self._close_cursor()
        self._row = None
        self._state = State.Prepared

    def _fail(self, operation: str, code: ResultCode) -> bool:
        self._db._record_result(code)
        self._log_failure(operation)
        return False

    def _log_failure(self, operation: str) -> None:
        self._db.logger.error("Statement %s failed: %s", operation, self._db.errmsg)

    # ---- dunder methods --------------------------------------------------------------

    def __bool__(self) -> bool:
        return self.is_valid()

    def __enter__(self) -> Statement:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.finalize()

    def __repr__(self) -> str:
        name = self.__class__.__name__
        return f"<{name}(sql={self._sql!r}, state={self._state.name})>"
