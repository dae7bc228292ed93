# -*- coding: utf-8 -*-
"""
This module defines sqlhandle's error classes and the SQLite result codes used to
report statement outcomes. It should be kept free of memory heavy imports.

Only failures to open a connection are raised as exceptions. All errors inherit from
:class:`SqlHandleError` which has title and message attributes to display the error to
the user. Failures of individual statements are reported by return values carrying a
:class:`ResultCode`.
"""

import enum


class SqlHandleError(Exception):
    """Base class for sqlhandle errors

    :param title: A short description of the error type. This can be used in a CLI to
        give a short error summary.
    :param message: A more verbose description, typically the diagnostic text reported
        by the SQLite engine.
    """

    def __init__(self, title: str, message: str = "") -> None:
        super().__init__(title, message)
        self.title = title
        self.message = message

    def __str__(self) -> str:
        return ". ".join([self.title, self.message])


class OpenError(SqlHandleError):
    """Raised when a connection to a database file cannot be established. The message
    is the engine's own diagnostic string."""


class ResultCode(enum.IntEnum):
    """Primary SQLite result codes"""

    OK = 0
    ERROR = 1
    INTERNAL = 2
    PERM = 3
    ABORT = 4
    BUSY = 5
    LOCKED = 6
    NOMEM = 7
    READONLY = 8
    INTERRUPT = 9
    IOERR = 10
    CORRUPT = 11
    NOTFOUND = 12
    FULL = 13
    CANTOPEN = 14
    PROTOCOL = 15
    EMPTY = 16
    SCHEMA = 17
    TOOBIG = 18
    CONSTRAINT = 19
    MISMATCH = 20
    MISUSE = 21
    NOLFS = 22
    AUTH = 23
    FORMAT = 24
    RANGE = 25
    NOTADB = 26
    NOTICE = 27
    WARNING = 28
    ROW = 100
    DONE = 101

    @classmethod
    def from_exception(cls, exc: Exception) -> "ResultCode":
        """
        Returns the primary result code for an exception raised by :mod:`sqlite3`.
        Extended codes are reduced to their primary code. Exceptions which do not carry
        a code (Python < 3.11 or errors raised by the binding itself) map to
        :attr:`ERROR`.

        :param exc: Exception raised by sqlite3 or by the sqlite3 binding.
        :returns: Primary result code.
        """
        code = getattr(exc, "sqlite_errorcode", None)

        if code is None:
            return cls.ERROR

        try:
            return cls(code & 0xFF)
        except ValueError:
            return cls.ERROR


# Messages as returned by sqlite3_errstr().
_ERRSTR = {
    ResultCode.OK: "not an error",
    ResultCode.ERROR: "SQL logic error",
    ResultCode.INTERNAL: "internal error",
    ResultCode.PERM: "access permission denied",
    ResultCode.ABORT: "query aborted",
    ResultCode.BUSY: "database is locked",
    ResultCode.LOCKED: "database table is locked",
    ResultCode.NOMEM: "out of memory",
    ResultCode.READONLY: "attempt to write a readonly database",
    ResultCode.INTERRUPT: "interrupted",
    ResultCode.IOERR: "disk I/O error",
    ResultCode.CORRUPT: "database disk image is malformed",
    ResultCode.NOTFOUND: "unknown operation",
    ResultCode.FULL: "database or disk is full",
    ResultCode.CANTOPEN: "unable to open database file",
    ResultCode.PROTOCOL: "locking protocol",
    ResultCode.SCHEMA: "database schema has changed",
    ResultCode.TOOBIG: "string or blob too big",
    ResultCode.CONSTRAINT: "constraint failed",
    ResultCode.MISMATCH: "datatype mismatch",
    ResultCode.MISUSE: "bad parameter or other API misuse",
    ResultCode.AUTH: "authorization denied",
    ResultCode.RANGE: "column index out of range",
    ResultCode.NOTADB: "file is not a database",
    ResultCode.NOTICE: "notification message",
    ResultCode.WARNING: "warning message",
    ResultCode.ROW: "another row available",
    ResultCode.DONE: "no more rows available",
}


def errstr(code: ResultCode) -> str:
    """
    Returns the English-language description of a result code.

    :param code: SQLite result code.
    :returns: Description of the code.
    """
    return _ERRSTR.get(code, "unknown error")
