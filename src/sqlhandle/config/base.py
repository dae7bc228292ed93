"""
This module locates the directories for config files and default database files.
Paths are resolved here instead of in a general utility module so that the config
package has no imports from the rest of sqlhandle.
"""

import os
import os.path as osp
import platform
from typing import Optional


def _app_dir(
    base: str, subfolder: Optional[str], filename: Optional[str], create: bool
) -> str:
    folder = osp.join(base, subfolder) if subfolder else base

    if create:
        os.makedirs(folder, exist_ok=True)

    return osp.join(folder, filename) if filename else folder


def _platform_base(xdg_var: str, *fallback: str) -> str:
    home = osp.expanduser("~")

    if platform.system() == "Darwin":
        return osp.join(home, "Library", "Application Support")

    return os.environ.get(xdg_var) or osp.join(home, *fallback)


def get_conf_path(
    subfolder: Optional[str] = None, filename: Optional[str] = None, create: bool = True
) -> str:
    """
    Returns the path for config files. On macOS this is in
    "~/Library/Application Support", elsewhere in "$XDG_CONFIG_HOME" with
    "~/.config" as fallback.

    :param subfolder: Subfolder for the app.
    :param filename: File name to append.
    :param create: Whether to create the folder if it does not exist.
    """
    base = _platform_base("XDG_CONFIG_HOME", ".config")
    return _app_dir(base, subfolder, filename, create)


def get_data_path(
    subfolder: Optional[str] = None, filename: Optional[str] = None, create: bool = True
) -> str:
    """
    Returns the path for application data such as database files. On macOS this is in
    "~/Library/Application Support", elsewhere in "$XDG_DATA_HOME" with
    "~/.local/share" as fallback.

    :param subfolder: Subfolder for the app.
    :param filename: File name to append.
    :param create: Whether to create the folder if it does not exist.
    """
    base = _platform_base("XDG_DATA_HOME", ".local", "share")
    return _app_dir(base, subfolder, filename, create)
