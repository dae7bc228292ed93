from __future__ import annotations

import functools
import logging
import sys
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar, TYPE_CHECKING

import click
from typing_extensions import ParamSpec

from .. import __version__
from .core import ConfigName
from .output import echo, ok, render_value, rich_table, warn

if TYPE_CHECKING:
    from ..core import Database
    from ..logging import CachedHandler


DEFAULT_CONFIG_NAME = "sqlhandle"

P = ParamSpec("P")
T = TypeVar("T")


def convert_db_errors(func: Callable[P, T]) -> Callable[P, T]:
    """
    Decorator that catches a SqlHandleError and prints a formatted error message to
    stdout before exiting. Calls ``sys.exit(1)`` after printing the error to stdout.
    """

    from ..errors import SqlHandleError

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return func(*args, **kwargs)
        except SqlHandleError as exc:
            warn(f"{exc.title}. {exc.message}")
            sys.exit(1)

    return wrapper


@contextmanager
def open_database(
    config_name: str, database: str | None, verbose: bool
) -> Iterator[tuple[Database, CachedHandler]]:
    """
    Opens the given database or the database of a configuration. Diagnostics are
    collected in the returned handler. The database is closed and all log handlers are
    removed again when leaving the context.

    :param config_name: Configuration to use for connection options.
    :param database: Path of the database file. If not given, the configured database
        is opened.
    :param verbose: Whether to also log diagnostics to stderr.
    :returns: Context manager for the opened database and the handler which collects
        its diagnostics.
    """
    from ..config import DatabaseConfig
    from ..core import Database
    from ..logging import CachedHandler, setup_logging

    stderr_handlers = setup_logging(config_name) if verbose else []

    handler = CachedHandler(level=logging.ERROR, maxlen=1)
    logger = logging.getLogger(f"sqlhandle.cli.{config_name}")
    logger.addHandler(handler)

    try:
        if database is None:
            db = Database.from_config(config_name, logger=logger)
        else:
            conf = DatabaseConfig(config_name)
            db = Database(
                database,
                timeout=conf.get("database", "timeout"),
                check_same_thread=conf.get("database", "check_same_thread"),
                logger=logger,
            )

        with db:
            yield db, handler
    finally:
        logger.removeHandler(handler)

        for stderr_handler in stderr_handlers:
            logging.getLogger("sqlhandle").removeHandler(stderr_handler)
            stderr_handler.close()


config_option = click.option(
    "-c",
    "--config-name",
    default=DEFAULT_CONFIG_NAME,
    type=ConfigName(existing=False),
    is_eager=True,
    expose_value=True,
    help="Run command with the given configuration.",
)
existing_config_option = click.option(
    "-c",
    "--config-name",
    default=DEFAULT_CONFIG_NAME,
    type=ConfigName(),
    is_eager=True,
    expose_value=True,
    help="Run command with the given configuration.",
)

database_option = click.option(
    "-d",
    "--database",
    type=click.Path(dir_okay=False),
    default=None,
    help="Database file to use instead of the configured one.",
)

verbose_option = click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Print diagnostics to stderr.",
)


@click.group(help="Run SQL against SQLite databases.")
@click.version_option(version=__version__, message="%(version)s")
def main() -> None:
    pass


@main.command(name="exec", help="Run SQL statements, discarding any rows.")
@click.argument("sql")
@config_option
@database_option
@verbose_option
@convert_db_errors
def exec_(sql: str, config_name: str, database: str | None, verbose: bool) -> None:
    with open_database(config_name, database, verbose) as (db, handler):
        if db.exec(sql):
            ok("Done")
        else:
            warn(handler.get_last_message())
            sys.exit(1)


@main.command(help="Run a query and print the resulting rows.")
@click.argument("sql")
@click.option(
    "-l",
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of rows to print.",
)
@config_option
@database_option
@verbose_option
@convert_db_errors
def query(
    sql: str, limit: int | None, config_name: str, database: str | None, verbose: bool
) -> None:
    from rich.console import Console

    with open_database(config_name, database, verbose) as (db, handler):
        with db.prepare(sql) as stmt:
            if not stmt:
                warn(handler.get_last_message())
                sys.exit(1)

            rows = []

            for row in stmt:
                rows.append(row)
                if limit is not None and len(rows) >= limit:
                    break

            if handler.cached_records:
                warn(handler.get_last_message())
                sys.exit(1)

            if stmt.col_count() == 0:
                ok("Done")
                return

            # Rows only hold the first of several equally named columns.
            names = dict.fromkeys(stmt.col_name(i) for i in range(stmt.col_count()))
            table = rich_table(*names)

            for row in rows:
                table.add_row(*(render_value(value) for value in row.values()))

            console = Console()
            console.print(table)


@main.command(name="config-path", help="Show the path of the config file.")
@config_option
def config_path(config_name: str) -> None:
    from ..config import DatabaseConfig

    echo(DatabaseConfig(config_name).config_path)


@main.command(
    name="config-remove", help="Remove a config file. Database files are kept."
)
@existing_config_option
def config_remove(config_name: str) -> None:
    from ..config import DatabaseConfig, remove_configuration

    path = DatabaseConfig(config_name).config_path
    remove_configuration(config_name)
    ok(f"Removed: {path}")
