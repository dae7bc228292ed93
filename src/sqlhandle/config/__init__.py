# -*- coding: utf-8 -*-

import os
from typing import List, TypeVar

from .base import get_conf_path, get_data_path
from .main import CONFIG_DIR_NAME, DatabaseConfig, _config_instances, _config_lock


__all__ = [
    "DatabaseConfig",
    "get_database_path",
    "list_configs",
    "remove_configuration",
    "validate_config_name",
]


_C = TypeVar("_C", bound=str)


def list_configs() -> List[str]:
    """
    Lists all sqlhandle configs.

    :returns: A list of the names of all existing config files.
    """
    configs = []
    for file in os.listdir(get_conf_path(CONFIG_DIR_NAME)):
        if file.endswith(".ini"):
            configs.append(os.path.splitext(os.path.basename(file))[0])

    return configs


def remove_configuration(config_name: str) -> None:
    """
    Removes the config file associated with the given configuration. Database files
    are left untouched.

    :param config_name: The configuration to remove.
    """
    DatabaseConfig(config_name).cleanup()

    with _config_lock:
        _config_instances.pop(config_name, None)


def validate_config_name(string: _C) -> _C:
    """
    Validates that the config name does not contain any whitespace.

    :param string: String to validate.
    :returns: The input value.
    :raises ValueError: if the config name contains whitespace.
    """
    if len(string.split()) > 1:
        raise ValueError("Config name may not contain any whitespace")

    return string


def get_database_path(config_name: str) -> str:
    """
    Returns the database file of a configuration. This is the configured path or, if
    none is configured, a file in the platform's data directory.

    :param config_name: Name of the configuration.
    :returns: Path of the database file.
    """
    path = DatabaseConfig(config_name).get("database", "path")
    return path or get_data_path(CONFIG_DIR_NAME, f"{config_name}.db")
