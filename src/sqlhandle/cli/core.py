"""
Custom click parameter types and exceptions for the sqlhandle command line.
"""
from __future__ import annotations

from typing import Any

import click
from click.shell_completion import CompletionItem

from .output import warn


class CliException(click.ClickException):
    """A :class:`click.ClickException` which is printed as a warning."""

    def show(self, file: Any = None) -> None:
        warn(self.format_message())


class ConfigName(click.ParamType):
    """Name of a configuration, completed from the existing config files

    :param existing: Whether to only accept names of existing configurations. Otherwise
        any name without whitespace is accepted and the config is created on first use.
    """

    name = "config"

    def __init__(self, existing: bool = True) -> None:
        self.existing = existing

    def convert(
        self,
        value: str | None,
        param: click.Parameter | None,
        ctx: click.Context | None,
    ) -> str | None:
        from ..config import list_configs, validate_config_name

        if value is None:
            return None

        if self.existing and value not in list_configs():
            raise CliException(
                f"Configuration '{value}' does not exist. "
                f"Use 'sqlhandle config-path -c {value}' to create it."
            )

        try:
            return validate_config_name(value)
        except ValueError:
            raise CliException("Configuration name may not contain any whitespace")

    def shell_complete(
        self,
        ctx: click.Context | None,
        param: click.Parameter | None,
        incomplete: str,
    ) -> list[CompletionItem]:
        from ..config import list_configs

        return [CompletionItem(n) for n in list_configs() if n.startswith(incomplete)]
