"""
This module provides methods for formatted output to stdout, including tables of
query results.
"""

from __future__ import annotations

import enum

import click
from rich.table import Column, Table
from rich.text import Text

from ..utils import natural_size
from ..value import Value, ValueKind


# ==== printing structured data to console =============================================


def rich_table(*headers: Column | str) -> Table:
    return Table(*headers, padding=(0, 2, 0, 0), box=None, show_header=len(headers) > 0)


def render_value(value: Value) -> Text:
    """
    Renders a cell for display in a table. NULL and blobs are shown as dimmed
    placeholders.

    :param value: Cell to render.
    :returns: Rich text.
    """
    if value.kind is ValueKind.NULL:
        return Text("NULL", style="dim")
    elif value.kind is ValueKind.BLOB:
        return Text(f"<blob {natural_size(value.size())}>", style="dim")
    else:
        return Text(value.text())


# ==== printing messages to console ====================================================


class Prefix(enum.Enum):
    """Prefix for command line output"""

    Ok = 0
    Warn = 1
    NONE = 2


def echo(message: str, nl: bool = True, prefix: Prefix = Prefix.NONE) -> None:
    """
    Print a message to stdout.

    :param message: The string to output.
    :param nl: Whether to end with a new line.
    :param prefix: Any prefix to output before the message,
    """
    if prefix is Prefix.Ok:
        pre = click.style("✓", fg="green") + " "
    elif prefix is Prefix.Warn:
        pre = click.style("!", fg="red") + " "
    else:
        pre = ""

    click.echo(f"{pre}{message}", nl=nl)


def warn(message: str, nl: bool = True) -> None:
    """
    Print a warning to stdout. Will be prefixed with an exclamation mark.

    :param message: The string to output.
    :param nl: Whether to end with a new line.
    """
    echo(message, nl=nl, prefix=Prefix.Warn)


def ok(message: str, nl: bool = True) -> None:
    """
    Print a confirmation to stdout. Will be prefixed with a checkmark.

    :param message: The string to output.
    :param nl: Whether to end with a new line.
    """
    echo(message, nl=nl, prefix=Prefix.Ok)
