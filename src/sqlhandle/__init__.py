# -*- coding: utf-8 -*-
"""
Resource-safe access to SQLite databases: owned value snapshots, reusable compiled
statements and connections which stream query results row by row.
"""

from .core import Database
from .errors import OpenError, ResultCode, SqlHandleError
from .statement import Row, Statement
from .value import Blob, Value, ValueKind


__version__ = "1.0.0"

__all__ = [
    "Blob",
    "Database",
    "OpenError",
    "ResultCode",
    "Row",
    "SqlHandleError",
    "Statement",
    "Value",
    "ValueKind",
]
