"""Path resolution and platform text helpers.

Tool paths must be absolute. Shorthand for the home directory and
environment variables is expanded first; a relative result is rejected with
a suggestion of the absolute path the caller most likely meant.
"""
from __future__ import annotations

import os
import re
import sys
from pathlib import Path, PureWindowsPath
from typing import Optional

from .errors import InvalidParametersError

_WINDOWS_ENV_VAR = re.compile(r"%([^%]+)%")


def expand_path(path_str: str) -> str:
    """Expand ``~``, ``$VAR``/``${VAR}`` and, on Windows, ``%VAR%``."""
    expanded = os.path.expanduser(path_str)
    expanded = os.path.expandvars(expanded)
    if sys.platform == "win32":
        expanded = _WINDOWS_ENV_VAR.sub(
            lambda m: os.environ.get(m.group(1), m.group(0)), expanded
        )
    return expanded


def is_absolute_path(path_str: str) -> bool:
    if sys.platform == "win32":
        # Accept drive-qualified and UNC paths, as well as forward slashes
        return PureWindowsPath(path_str).is_absolute() or path_str.startswith("\\\\")
    return Path(path_str).is_absolute()


def resolve_path(path_str: str, cwd: Optional[Path] = None) -> Path:
    """Resolve a caller-supplied path to an absolute path.

    Args:
        path_str: Raw path from the tool arguments
        cwd: Directory used to build the suggestion (defaults to cwd)

    Returns:
        The expanded absolute path

    Raises:
        InvalidParametersError: If the expanded path is not absolute
    """
    expanded = expand_path(path_str)
    if is_absolute_path(expanded):
        return Path(expanded)

    suggestion = (cwd or Path.cwd()) / expanded
    raise InvalidParametersError(
        f"The path {path_str} is not an absolute path, did you possibly mean {suggestion}?"
    )


def normalize_line_endings(text: str) -> str:
    """Normalize line endings for the host platform."""
    if sys.platform == "win32":
        # Collapse first so existing CRLF does not become CRCRLF
        return text.replace("\r\n", "\n").replace("\n", "\r\n")
    return text.replace("\r\n", "\n")
