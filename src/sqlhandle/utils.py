"""Utility functions"""

import os


def natural_size(num: float, unit: str = "B", sep: bool = True) -> str:
    """
    Convert number to a human-readable string with decimal prefix.

    :param float num: Value in given unit.
    :param unit: Unit suffix.
    :param sep: Whether to separate unit and value with a space.
    :returns: Human-readable string with decimal prefixes.
    """
    sep_char = " " if sep else ""

    for prefix in ("", "K", "M", "G"):
        if abs(num) < 1000.0:
            return f"{num:3.1f}{sep_char}{prefix}{unit}"
        num /= 1000.0

    return f"{num:.1f}{sep_char}T{unit}"


def sanitize_string(string: str) -> str:
    """
    Converts a string which may contain surrogate escapes, for instance from file
    paths or text decoded with "surrogateescape", to a string which can always be
    displayed or printed. Invalid characters are replaced with "�".

    :param string: Original string.
    :returns: Sanitised string.
    """
    return os.fsencode(string).decode(errors="replace")
