"""
This module provides INI file backed configuration with typed default values. The
design follows the config module of the Spyder IDE.
"""

from __future__ import annotations

import ast
import configparser as cp
import copy
import logging
import os
import os.path as osp
import shutil
from threading import RLock
from typing import Any, Dict

from packaging.version import Version


logger = logging.getLogger(__name__)

_DefaultsType = Dict[str, Dict[str, Any]]


class NoDefault:
    """Marker for options without a default value."""


class UserConfig(cp.ConfigParser):
    """
    Configuration stored in an INI file. Every option has a default which also
    determines the type that values are parsed to when reading from the file. This
    class is safe to use from different threads but not from different processes.

    :param path: Path of the INI file.
    :param defaults: Default values, by section and option.
    :param load: Whether to load existing values from the file.
    :param version: Version of the configuration layout. Stored in the "main" section.
    :param backup: Whether to back up the file before it is changed by a version
        update.
    :param remove_obsolete: Whether to drop options without a default when the major
        version increases.
    """

    DEFAULT_SECTION_NAME = "main"

    def __init__(
        self,
        path: str,
        defaults: _DefaultsType | None = None,
        load: bool = True,
        version: Version = Version("0.0.0"),
        backup: bool = False,
        remove_obsolete: bool = False,
    ) -> None:
        super().__init__(interpolation=None)

        self._path = path
        self._dirname, basename = osp.split(path)
        self._filename, self._suffix = osp.splitext(basename)
        self._backup_folder = "backups"

        self._lock = RLock()

        self.default_config = copy.deepcopy(defaults) if defaults else {}
        self.default_config.setdefault(self.DEFAULT_SECTION_NAME, {})
        self.default_config[self.DEFAULT_SECTION_NAME]["version"] = str(version)

        self.reset_to_defaults(save=False)

        if not load:
            return

        self._load_from_ini()

        try:
            old_version = self.get_version()
        except cp.NoOptionError:
            old_version = version

        if old_version != version:
            if backup:
                self._make_backup(old_version)

            if remove_obsolete and version.major > old_version.major:
                self.remove_obsolete_options()

            self.set_version(version, save=False)

        self.save()

    # ---- file handling ---------------------------------------------------------------

    @property
    def config_path(self) -> str:
        """The INI file where this configuration is stored."""
        return self._path

    def backup_path_for_version(self, version: Version | None) -> str:
        """
        :param version: Config version of the backup, if any.
        :returns: Path of the backup file.
        """
        filename = f"{self._filename}-{version}" if version else self._filename
        return osp.join(self._dirname, self._backup_folder, f"{filename}.bak")

    def _make_backup(self, version: Version | None = None) -> None:
        backup_path = self.backup_path_for_version(version)
        os.makedirs(osp.dirname(backup_path), exist_ok=True)

        try:
            shutil.copyfile(self.config_path, backup_path)
        except OSError:
            logger.debug("Could not back up config file", exc_info=True)

    def _load_from_ini(self) -> None:
        with self._lock:
            try:
                self.read(self.config_path, encoding="utf-8")
            except cp.MissingSectionHeaderError:
                logger.error("File contains no section headers.")

    def save(self) -> None:
        """Saves the config to its INI file."""
        with self._lock:
            os.makedirs(self._dirname, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                self.write(f)

    def cleanup(self) -> None:
        """Removes the INI file and its backups and resets all values to defaults."""
        with self._lock:
            self.reset_to_defaults(save=False)

            try:
                os.remove(self.config_path)
            except FileNotFoundError:
                pass

            backup_dir = osp.join(self._dirname, self._backup_folder)

            if osp.isdir(backup_dir):
                for entry in os.scandir(backup_dir):
                    if entry.name.startswith(self._filename):
                        os.remove(entry.path)

    # ---- versions --------------------------------------------------------------------

    def get_version(self) -> Version:
        """
        :returns: Configuration (not application!) version.
        """
        with self._lock:
            return Version(super().get(self.DEFAULT_SECTION_NAME, "version"))

    def set_version(self, version: Version, save: bool = True) -> None:
        """
        :param version: Configuration (not application!) version to store.
        :param save: Whether to save the change to the file.
        """
        self.set(self.DEFAULT_SECTION_NAME, "version", str(version), save=save)

    def remove_obsolete_options(self) -> None:
        """Removes options which have no default value."""
        with self._lock:
            for section in self.sections():
                for option, _ in self.items(section, raw=True):
                    if self.get_default(section, option) is NoDefault:
                        super().remove_option(section, option)
                if not self.items(section, raw=True):
                    super().remove_section(section)

    # ---- values ----------------------------------------------------------------------

    def _set(self, section: str, option: str, value: Any) -> None:
        if not self.has_section(section):
            self.add_section(section)
        if not isinstance(value, str):
            value = repr(value)
        super().set(section, option, value)

    def reset_to_defaults(self, section: str | None = None, save: bool = True) -> None:
        """
        Resets options to their default values.

        :param section: Section to reset. Resets all sections if not given.
        :param save: Whether to save the changes to the file.
        """
        with self._lock:
            for sec, options in self.default_config.items():
                if section is None or section == sec:
                    for option, value in options.items():
                        self._set(sec, option, value)
            if save:
                self.save()

    def get_default(self, section: str, option: str) -> Any:
        """
        :param section: Config section.
        :param option: Config option.
        :returns: Default value or :class:`NoDefault` if there is none.
        """
        with self._lock:
            return self.default_config.get(section, {}).get(option, NoDefault)

    def get(self, section: str, option: str, default: Any = NoDefault) -> Any:  # type: ignore
        """
        Gets an option, parsed to the type of its default value.

        :param section: Config section.
        :param option: Config option.
        :param default: Value to return and store if the option does not exist.
        :returns: Config value.
        :raises cp.NoSectionError: if the section does not exist and no default is
            given.
        :raises cp.NoOptionError: if the option does not exist and no default is given.
        """
        with self._lock:
            if not self.has_option(section, option):
                if default is NoDefault:
                    if not self.has_section(section):
                        raise cp.NoSectionError(section)
                    raise cp.NoOptionError(option, section)
                self.set(section, option, default)
                return default

            raw_value: str = super().get(section, option, raw=True)
            default_value = self.get_default(section, option)

            if isinstance(default_value, str):
                return raw_value

            try:
                value = ast.literal_eval(raw_value)
            except (SyntaxError, ValueError):
                value = raw_value

            if default_value is not NoDefault and type(default_value) is not type(value):
                logger.error(
                    "Inconsistent config type for [%s][%s]. Expected %s but got %s.",
                    section,
                    option,
                    type(default_value).__name__,
                    type(value).__name__,
                )

            return value

    def set(self, section: str, option: str, value: Any, save: bool = True) -> None:  # type: ignore
        """
        Sets an option. Options without a default take the given value as default.

        :param section: Config section.
        :param option: Config option.
        :param value: Value to set, must have the type of the default value.
        :param save: Whether to save the change to the file.
        :raises ValueError: if the value does not match the type of the default.
        """
        with self._lock:
            default_value = self.get_default(section, option)

            if default_value is NoDefault:
                default_value = value
                self.default_config.setdefault(section, {})[option] = value

            if isinstance(default_value, float) and isinstance(value, int):
                value = float(value)

            if type(default_value) is not type(value):
                raise ValueError(
                    f"Inconsistent type for config value [{section}][{option}]. "
                    f"Expected {type(default_value).__name__} but "
                    f"got {type(value).__name__}."
                )

            self._set(section, option, value)

            if save:
                self.save()
