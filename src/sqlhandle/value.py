"""
Owned snapshots of single SQLite cells, including SQLite's conversion rules between
storage classes.

A :class:`Value` is created by duplicating a cell at the time it is read. It therefore
stays valid after the statement which produced it has stepped, been reset or been
finalized.
"""

from __future__ import annotations

import enum
import math
import re
from typing import Any, NamedTuple, Union

SQLiteType = Union[None, int, float, str, bytes]

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Whitespace as recognised by SQLite's parsers. Unicode whitespace is not skipped.
_SPACE = "[ \t\n\v\f\r]*"
_INT_PREFIX = re.compile(_SPACE + r"([+-]?\d+)")
_REAL_PREFIX = re.compile(_SPACE + r"([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


__all__ = [
    "Blob",
    "SQLiteType",
    "Value",
    "ValueKind",
]


class ValueKind(enum.Enum):
    """Kinds of values which can be bound to statement parameters and stored in
    cells"""

    BLOB = "blob"
    REAL = "real"
    INTEGER = "integer"
    BIG_INTEGER = "big_integer"
    NULL = "null"
    TEXT = "text"


class Blob(NamedTuple):
    """A view of binary cell content and its length in bytes"""

    data: bytes
    size: int


def clamp_int64(n: int) -> int:
    """Saturates an integer to the range of a signed 64-bit integer."""
    if n > INT64_MAX:
        return INT64_MAX
    elif n < INT64_MIN:
        return INT64_MIN
    else:
        return n


def wrap_int32(n: int) -> int:
    """Keeps the low 32 bits of an integer, interpreted as two's complement."""
    return (n - INT32_MIN) % 2**32 + INT32_MIN


def real_to_int64(r: float) -> int:
    """
    Converts a float to a 64-bit integer by truncating toward zero. Values outside the
    64-bit range saturate, NaN converts to zero.
    """
    if math.isnan(r):
        return 0
    elif r <= INT64_MIN:
        return INT64_MIN
    elif r >= INT64_MAX:
        return INT64_MAX
    else:
        return int(r)


def text_to_int64(text: str) -> int:
    """
    Parses the leading integer prefix of a string, as SQLite does when reading a text
    cell as integer. Text without such a prefix yields zero.
    """
    match = _INT_PREFIX.match(text)
    if not match:
        return 0
    return clamp_int64(int(match.group(1)))


def text_to_real(text: str) -> float:
    """
    Parses the leading real number prefix of a string, as SQLite does when reading a
    text cell as real. Text without such a prefix yields zero.
    """
    match = _REAL_PREFIX.match(text)
    if not match:
        return 0.0
    return float(match.group(1))


def format_real(r: float) -> str:
    """
    Formats a float with 15 significant digits, always including a decimal point. This
    matches SQLite's "%!.15g" conversion of REAL values to TEXT.
    """
    if math.isinf(r):
        return "Inf" if r > 0 else "-Inf"

    mantissa, sep, exponent = f"{r:.15g}".partition("e")

    if "." not in mantissa and mantissa != "nan":
        mantissa += ".0"

    return mantissa + sep + exponent


def duplicate(value: Any) -> SQLiteType:
    """
    Creates an independent copy of a scalar as stored by SQLite.

    :param value: Scalar to copy. Accepts None, int, float, str, bytes-like objects and
        :class:`Blob` views.
    :returns: Copy of the scalar which shares no mutable state with the input.
    :raises TypeError: if the value cannot be represented as an SQLite scalar.
    :raises OverflowError: if an integer does not fit into 64 bits.
    """
    if value is None or isinstance(value, (str, float)):
        return value
    elif isinstance(value, int):
        if not INT64_MIN <= value <= INT64_MAX:
            raise OverflowError("SQLite integers are limited to 64 bits")
        return int(value)
    elif isinstance(value, Blob):
        return bytes(memoryview(value.data)[: value.size])
    elif isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    else:
        raise TypeError(f"Cannot store {type(value).__name__} in an SQLite value")


class Value:
    """
    An owned, immutable snapshot of a single SQLite cell.

    The scalar is copied when the Value is created. Accessors convert between storage
    classes following SQLite's rules, for instance reading :meth:`integer` from a text
    cell parses a leading number and reading anything from a NULL cell returns the
    zero or empty value of the requested type.

    :param value: Cell content or a scalar created by the caller. Defaults to NULL.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Any = None) -> None:
        if isinstance(value, Value):
            value = value.raw
        self._value = duplicate(value)

    @property
    def raw(self) -> SQLiteType:
        """The stored Python object: None, int, float, str or bytes."""
        return self._value

    @property
    def kind(self) -> ValueKind:
        """The storage kind of the value. Integers are reported as
        :attr:`ValueKind.INTEGER` if they fit into 32 bits."""
        value = self._value

        if value is None:
            return ValueKind.NULL
        elif isinstance(value, int):
            if INT32_MIN <= value <= INT32_MAX:
                return ValueKind.INTEGER
            return ValueKind.BIG_INTEGER
        elif isinstance(value, float):
            return ValueKind.REAL
        elif isinstance(value, str):
            return ValueKind.TEXT
        else:
            return ValueKind.BLOB

    def is_null(self) -> bool:
        return self._value is None

    def integer(self) -> int:
        """
        :returns: The value as 32-bit integer. Larger integers keep their low 32 bits.
        """
        return wrap_int32(self.big_integer())

    def big_integer(self) -> int:
        """
        :returns: The value as 64-bit integer.
        """
        value = self._value

        if value is None:
            return 0
        elif isinstance(value, int):
            return value
        elif isinstance(value, float):
            return real_to_int64(value)
        else:
            return text_to_int64(self.text())

    def real(self) -> float:
        """
        :returns: The value as double precision float.
        """
        value = self._value

        if value is None:
            return 0.0
        elif isinstance(value, (int, float)):
            return float(value)
        else:
            return text_to_real(self.text())

    def pointer(self) -> None:
        """
        Pointer values can only be passed through SQLite's C pointer passing interface
        which is not available from Python. Cells therefore never hold a pointer.

        :returns: Always ``None``.
        """
        return None

    def text(self) -> str:
        """
        :returns: The value as string. Blobs are decoded as UTF-8, replacing invalid
            sequences.
        """
        value = self._value

        if value is None:
            return ""
        elif isinstance(value, str):
            return value
        elif isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        elif isinstance(value, float):
            return format_real(value)
        else:
            return str(value)

    def blob(self) -> Blob:
        """
        :returns: The value's binary content and its size in bytes.
        """
        value = self._value

        if isinstance(value, bytes):
            data = value
        elif value is None:
            data = b""
        else:
            data = self.text().encode("utf-8")

        return Blob(data, len(data))

    def size(self) -> int:
        """
        :returns: Size of the text or blob representation in bytes, without any
            terminator.
        """
        value = self._value

        if value is None:
            return 0
        elif isinstance(value, bytes):
            return len(value)
        else:
            return len(self.text().encode("utf-8"))

    def __copy__(self) -> Value:
        return Value(self._value)

    def __deepcopy__(self, memo: dict[int, Any]) -> Value:
        return Value(self._value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return type(self._value) is type(other._value) and self._value == other._value

    def __hash__(self) -> int:
        return hash((type(self._value), self._value))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.kind.name}: {self._value!r})>"
