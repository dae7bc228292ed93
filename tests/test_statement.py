import logging

import pytest

from sqlhandle import Blob, ResultCode, Value, ValueKind
from sqlhandle.statement import State, infer_kind


@pytest.mark.parametrize(
    "value,accessor,expected",
    [
        ("alice", "text", "alice"),
        (42, "integer", 42),
        (-(2**31), "integer", -(2**31)),
        (2**40, "big_integer", 2**40),
        (3.25, "real", 3.25),
        (b"\x00\x01\xff", "blob", Blob(b"\x00\x01\xff", 3)),
        (bytearray(b"\x02"), "blob", Blob(b"\x02", 1)),
        (Blob(b"abcdef", 2), "blob", Blob(b"ab", 2)),
        (Value("snapshot"), "text", "snapshot"),
        (True, "integer", 1),
    ],
)
def test_bind_round_trip(db, value, accessor, expected):
    stmt = db.prepare("SELECT ? AS v")
    row = {}

    assert stmt.bind(1, value)
    assert stmt.fetch(row)
    assert getattr(row["v"], accessor)() == expected


def test_bind_null(db):
    stmt = db.prepare("SELECT ? AS v")
    row = {}

    assert stmt.bind(1, None)
    assert stmt.fetch(row)
    assert row["v"].is_null()
    assert row["v"].integer() == 0
    assert row["v"].text() == ""


@pytest.mark.parametrize("text", ["hello", "héllo", ""])
def test_bound_text_size(db, text):
    stmt = db.prepare("SELECT ? AS v")

    assert stmt.bind(1, text)
    assert stmt.step() == ResultCode.ROW
    assert stmt.col_size(0) == len(text.encode())


def test_bind_explicit_kind(db):
    stmt = db.prepare("SELECT ? AS v")
    row = {}

    assert stmt.bind(1, 7, kind=ValueKind.REAL)
    assert stmt.fetch(row)
    assert row["v"].kind is ValueKind.REAL
    assert row["v"].raw == 7.0

    stmt.reset()

    assert stmt.bind(1, "ignored", kind=ValueKind.NULL)
    assert stmt.fetch(row)
    assert row["v"].is_null()

    stmt.reset()

    assert not stmt.bind(1, 2**40, kind=ValueKind.INTEGER)
    assert not stmt.bind(1, "text", kind=ValueKind.INTEGER)
    assert not stmt.bind(1, 1.5, kind=ValueKind.TEXT)


def test_bind_failures(db, caplog):
    stmt = db.prepare("SELECT ? AS v")

    with caplog.at_level(logging.ERROR):
        assert not stmt.bind(0, 1)
        assert not stmt.bind(2, 1)
        assert db.errcode == ResultCode.RANGE
        assert "Statement bind failed: column index out of range" in caplog.text

        assert not stmt.bind(1, object())
        assert not stmt.bind(1, 2**70)
        assert db.errcode == ResultCode.MISMATCH
        assert "Statement bind failed: datatype mismatch" in caplog.text


def test_bind_while_running(db, caplog):
    stmt = db.prepare("SELECT ? AS v UNION ALL SELECT 2")
    row = {}

    assert stmt.bind(1, 1)
    assert stmt.fetch(row)

    with caplog.at_level(logging.ERROR):
        assert not stmt.bind(1, 5)
        assert "bad parameter or other API misuse" in caplog.text

    stmt.reset()

    assert stmt.bind(1, 5)
    assert stmt.fetch(row)
    assert row["v"].integer() == 5


def test_infer_kind():
    assert infer_kind(None) is ValueKind.NULL
    assert infer_kind(1) is ValueKind.INTEGER
    assert infer_kind(2**32) is ValueKind.BIG_INTEGER
    assert infer_kind(1.0) is ValueKind.REAL
    assert infer_kind("a") is ValueKind.TEXT
    assert infer_kind(b"a") is ValueKind.BLOB
    assert infer_kind(memoryview(b"a")) is ValueKind.BLOB
    assert infer_kind(Value(2.5)) is ValueKind.REAL
    assert infer_kind({}) is None


def test_execute(db):
    db.exec("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT, score REAL, data BLOB)")
    stmt = db.prepare("INSERT INTO t (name, score, data) VALUES (?, ?, ?)")

    assert stmt.execute("alice", 1.5, b"\x01")
    assert stmt.state is State.Done
    assert db.last_insert_id() == 1

    (row,) = db.prepare("SELECT name, score, data FROM t").fetch_all()

    assert row["name"].text() == "alice"
    assert row["score"].real() == 1.5
    assert row["data"].blob() == Blob(b"\x01", 1)


def test_execute_producing_row_fails(db, caplog):
    stmt = db.prepare("SELECT 1")

    with caplog.at_level(logging.ERROR):
        assert not stmt.execute()

    assert stmt.state is State.RowAvailable
    assert "Statement execution failed: another row available" in caplog.text


def test_execute_constraint_failure(db, caplog):
    db.exec("CREATE TABLE u (x INTEGER UNIQUE)")
    stmt = db.prepare("INSERT INTO u (x) VALUES (?)")

    assert stmt.execute(1)
    stmt.reset()

    with caplog.at_level(logging.ERROR):
        assert not stmt.execute(1)

    assert stmt.state is State.Failed
    assert "Statement execution failed: UNIQUE constraint failed: u.x" in caplog.text


def test_execute_steps_after_bind_failure(db, caplog):
    db.exec("CREATE TABLE t (name TEXT)")
    stmt = db.prepare("INSERT INTO t (name) VALUES (?)")

    with caplog.at_level(logging.ERROR):
        assert stmt.execute("a", "b")

    assert "Statement bind failed: column index out of range" in caplog.text

    stmt.reset()
    stmt.clear_bindings()

    # an unbindable value leaves its parameter NULL
    assert stmt.execute(object())

    rows = db.prepare("SELECT name FROM t").fetch_all()
    assert [row["name"].raw for row in rows] == ["a", None]


def test_reset_and_reuse(db):
    db.exec("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
    stmt = db.prepare("INSERT INTO t (name) VALUES (?)")

    for i, name in enumerate(["alice", "bob", "carol"], start=1):
        assert stmt.bind(1, name)
        assert stmt.execute()
        assert db.last_insert_id() == i
        stmt.reset()

    names = [row["name"].text() for row in db.prepare("SELECT name FROM t")]
    assert names == ["alice", "bob", "carol"]


def test_reset_keeps_bindings(db):
    db.exec("CREATE TABLE t (name TEXT)")
    stmt = db.prepare("INSERT INTO t (name) VALUES (?)")

    assert stmt.execute("x")
    stmt.reset()
    assert stmt.execute()
    stmt.reset()
    stmt.clear_bindings()
    assert stmt.execute()

    rows = db.prepare("SELECT name FROM t").fetch_all()
    assert [row["name"].raw for row in rows] == ["x", "x", None]


def test_step_restarts_finished_statement(db):
    stmt = db.prepare("SELECT 1 AS v")
    row = {}

    assert stmt.fetch(row)
    assert not stmt.fetch(row)
    assert stmt.state is State.Done
    assert stmt.fetch(row)
    assert row["v"].integer() == 1


def test_fetch_all(people):
    rows = people.prepare("SELECT id, name FROM t ORDER BY id").fetch_all()

    assert [list(row) for row in rows] == [["id", "name"]] * 3
    assert [row["name"].text() for row in rows] == ["alice", "bob", "carol"]


def test_fetch_all_empty(db):
    db.exec("CREATE TABLE t (x)")

    assert db.prepare("SELECT * FROM t").fetch_all() == []


def test_fetch_clears_row(db):
    db.exec("CREATE TABLE t (x)")
    stmt = db.prepare("SELECT * FROM t")
    row = {"stale": Value(1)}

    assert not stmt.fetch(row)
    assert row == {}


def test_values_outlive_statement(people):
    stmt = people.prepare("SELECT name FROM t ORDER BY id")
    row = {}

    assert stmt.fetch(row)
    first = row["name"]

    rows = stmt.fetch_all()
    stmt.finalize()

    assert first.text() == "alice"
    assert [r["name"].text() for r in rows] == ["bob", "carol"]


def test_invalid_statement(db, caplog):
    db.exec("CREATE TABLE t (x)")

    with caplog.at_level(logging.ERROR):
        stmt = db.prepare("INSERT INTO t VALUES (?")

    assert "Database prepare failed: " in caplog.text
    assert not stmt
    assert not stmt.is_valid()
    assert stmt.state is State.Invalid

    row = {"stale": Value(1)}

    assert not stmt.bind(1, 1)
    assert not stmt.execute(1)
    assert not stmt.fetch(row)
    assert row == {}
    assert stmt.fetch_all() == []
    assert list(stmt) == []
    assert stmt.step() == ResultCode.MISUSE
    stmt.reset()
    stmt.finalize()

    assert db.prepare("SELECT * FROM t").fetch_all() == []


@pytest.mark.parametrize(
    "sql",
    ["SELEC 1", "SELECT * FROM missing", "SELECT 1; SELECT 2", ""],
)
def test_prepare_failures(db, sql):
    assert not db.prepare(sql).is_valid()


def test_columns(db):
    stmt = db.prepare("SELECT 1 AS a, 'x' AS b")

    assert stmt.col_count() == 0
    assert stmt.step() == ResultCode.ROW
    assert stmt.col_count() == 2
    assert stmt.col_name(1) == "b"
    assert stmt.col_value(0) == Value(1)
    assert stmt.col_value(1).text() == "x"
    assert stmt.col_size(1) == 1

    with pytest.raises(IndexError):
        stmt.col_name(2)

    with pytest.raises(IndexError):
        stmt.col_value(-1)

    assert stmt.step() == ResultCode.DONE
    assert stmt.col_count() == 2
    assert stmt.col_value(0).is_null()
    assert stmt.col_size(0) == 0


def test_duplicate_column_names(db):
    stmt = db.prepare("SELECT 1 AS a, 2 AS a")
    row = {}

    assert stmt.fetch(row)
    assert len(row) == 1
    assert row["a"].integer() == 1


def test_metadata(db):
    stmt = db.prepare("SELECT ?, ?")

    assert stmt.param_count() == 2
    assert stmt.sql == "SELECT ?, ?"
    assert repr(stmt) == "<Statement(sql='SELECT ?, ?', state=Prepared)>"


def test_context_manager_finalizes(db):
    with db.prepare("SELECT 1") as stmt:
        assert stmt.is_valid()

    assert not stmt.is_valid()
    assert stmt.state is State.Invalid


def test_fetch_reads_one_row_ahead(db, caplog):
    # sqlite3 steps the next row before returning the current one, so a failure in
    # the second row hides the first.
    stmt = db.prepare("SELECT 1 AS v UNION ALL SELECT abs(-9223372036854775808)")
    row = {}

    with caplog.at_level(logging.ERROR):
        assert not stmt.fetch(row)

    assert row == {}
    assert stmt.state is State.Failed
    assert "Statement fetch failed: integer overflow" in caplog.text
