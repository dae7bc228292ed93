# -*- coding: utf-8 -*-

import pytest

from sqlhandle import Database
from sqlhandle.config import main as config_main


@pytest.fixture(autouse=True)
def app_dirs(tmp_path, monkeypatch):
    """Keeps config and data files created by a test in its temporary directory."""
    home = tmp_path / "home"
    home.mkdir()

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))

    config_main._config_instances.clear()
    yield home
    config_main._config_instances.clear()


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "test.db")
    yield database
    database.close()


@pytest.fixture
def people(db):
    """Database with a table of three people."""
    db.exec("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")

    with db.prepare("INSERT INTO t (name) VALUES (?)") as stmt:
        for name in ("alice", "bob", "carol"):
            stmt.execute(name)
            stmt.reset()

    return db
