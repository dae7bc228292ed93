"""
This module contains the default configuration values and a function to return the
config instance for a specified config_name.
"""

from __future__ import annotations

import threading

from packaging.version import Version

from .base import get_conf_path
from .user import UserConfig, _DefaultsType


CONFIG_DIR_NAME = "sqlhandle"


# =============================================================================
#  Defaults
# =============================================================================

DEFAULTS_CONFIG: _DefaultsType = {
    "database": {
        "path": "",  # database file, default: <data dir>/sqlhandle/<config_name>.db
        "timeout": 5.0,  # seconds to wait for locks held by other connections
        "check_same_thread": True,  # only allow use from the opening thread
    },
    "app": {
        "log_level": 20,  # log level for stderr and file, default: INFO
    },
}

# Bump the major version when removing or renaming options, the minor version when
# changing a default value. Adding options requires no change.
CONF_VERSION = Version("1.0")


# =============================================================================
# Factories
# =============================================================================

_config_instances: dict[str, UserConfig] = {}
_config_lock = threading.Lock()


def DatabaseConfig(config_name: str) -> UserConfig:
    """
    Returns an existing config instance or creates a new one.

    :param config_name: Name of the configuration. A new config file will be created
        if none exists for the given config_name.
    :return: Config instance which saves any changes to the drive.
    """
    with _config_lock:
        try:
            return _config_instances[config_name]
        except KeyError:
            pass

        config_path = get_conf_path(CONFIG_DIR_NAME, f"{config_name}.ini")

        try:
            conf = UserConfig(
                config_path,
                defaults=DEFAULTS_CONFIG,
                version=CONF_VERSION,
                backup=True,
            )
        except OSError:
            conf = UserConfig(
                config_path,
                defaults=DEFAULTS_CONFIG,
                version=CONF_VERSION,
                load=False,
            )

        _config_instances[config_name] = conf

        return conf
