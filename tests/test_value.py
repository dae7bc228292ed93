import copy

import pytest

from sqlhandle.value import INT64_MAX, INT64_MIN, Blob, Value, ValueKind


def test_null():
    value = Value()

    assert value.is_null()
    assert value.kind is ValueKind.NULL
    assert value.integer() == 0
    assert value.big_integer() == 0
    assert value.real() == 0.0
    assert value.text() == ""
    assert value.blob() == Blob(b"", 0)
    assert value.size() == 0
    assert value.pointer() is None


@pytest.mark.parametrize(
    "raw,kind",
    [
        (1, ValueKind.INTEGER),
        (-(2**31), ValueKind.INTEGER),
        (2**31, ValueKind.BIG_INTEGER),
        (1.0, ValueKind.REAL),
        ("a", ValueKind.TEXT),
        (b"a", ValueKind.BLOB),
        (None, ValueKind.NULL),
    ],
)
def test_kind(raw, kind):
    assert Value(raw).kind is kind


@pytest.mark.parametrize(
    "text,expected",
    [
        ("42", 42),
        ("  -7abc", -7),
        ("+5", 5),
        ("3.9", 3),
        ("1e3", 1),
        ("abc", 0),
        ("", 0),
        ("99999999999999999999", INT64_MAX),
        ("-99999999999999999999", INT64_MIN),
    ],
)
def test_text_to_integer(text, expected):
    assert Value(text).big_integer() == expected


@pytest.mark.parametrize(
    "text,expected",
    [
        ("3.5xyz", 3.5),
        ("1e3", 1000.0),
        (".5", 0.5),
        (" -2", -2.0),
        ("abc", 0.0),
    ],
)
def test_text_to_real(text, expected):
    assert Value(text).real() == expected


def test_real_to_integer():
    assert Value(3.99).integer() == 3
    assert Value(-3.99).integer() == -3
    assert Value(1e30).big_integer() == INT64_MAX
    assert Value(-1e30).big_integer() == INT64_MIN
    assert Value(float("nan")).big_integer() == 0


def test_integer_keeps_low_32_bits():
    assert Value(2**32 + 5).integer() == 5
    assert Value(2**31).integer() == -(2**31)
    assert Value(2**31).big_integer() == 2**31
    assert Value(-1).integer() == -1


@pytest.mark.parametrize(
    "raw,expected",
    [
        (42, "42"),
        (1.5, "1.5"),
        (2.0, "2.0"),
        (1e20, "1.0e+20"),
        (float("inf"), "Inf"),
        (b"bytes", "bytes"),
        (b"\xff", "�"),
    ],
)
def test_to_text(raw, expected):
    assert Value(raw).text() == expected


def test_size():
    assert Value("hello").size() == 5
    assert Value("héllo").size() == 6
    assert Value(b"\x00\x01").size() == 2
    assert Value(123).size() == 3
    assert Value(1.5).size() == 3


def test_blob():
    assert Value("abc").blob() == Blob(b"abc", 3)
    assert Value(b"\x00\xff").blob() == Blob(b"\x00\xff", 2)
    assert Value(12).blob() == Blob(b"12", 2)


def test_duplicates_on_construction():
    buffer = bytearray(b"abc")
    value = Value(buffer)
    buffer[0] = ord("x")

    assert value.blob().data == b"abc"
    assert Value(memoryview(b"abcdef")[2:]).raw == b"cdef"
    assert Value(Blob(b"abcdef", 3)).raw == b"abc"


def test_copy():
    value = Value("text")
    duplicate = copy.copy(value)

    assert duplicate == value
    assert duplicate is not value
    assert copy.deepcopy(value) == value
    assert Value(value) == value


def test_equality():
    assert Value("a") == Value("a")
    assert Value(1) != Value(1.0)
    assert Value(1) != Value("1")
    assert len({Value(1), Value(1), Value(2)}) == 2


def test_bool_is_stored_as_integer():
    value = Value(True)

    assert value.raw == 1
    assert type(value.raw) is int


def test_invalid_scalars():
    with pytest.raises(TypeError):
        Value(object())

    with pytest.raises(TypeError):
        Value([1, 2])

    with pytest.raises(OverflowError):
        Value(2**64)


def test_repr():
    assert repr(Value("a")) == "<Value(TEXT: 'a')>"
