"""File search by glob pattern, filtered through the access gate."""
from __future__ import annotations

import glob as globlib
import logging
import os
from pathlib import Path
from typing import Optional

from .errors import InvalidParametersError
from .ignore import AccessGate
from .paths import expand_path

logger = logging.getLogger(__name__)


def glob_files(
    pattern: str,
    gate: AccessGate,
    path: Optional[str] = None,
    cwd: Optional[Path] = None,
) -> list[Path]:
    """List files matching a glob pattern, newest first.

    Args:
        pattern: Glob pattern; ``**`` matches recursively
        gate: Access gate; restricted matches are dropped
        path: Directory to search in (defaults to cwd)
        cwd: Base for relative search paths (defaults to the process cwd)

    Returns:
        Matching regular files sorted by modification time, newest first

    Raises:
        InvalidParametersError: If the pattern is empty or the directory is missing
    """
    if not pattern:
        raise InvalidParametersError("The pattern string is required")

    base = cwd or Path.cwd()
    if path and path != ".":
        base = base / expand_path(path)
    if not base.is_dir():
        raise InvalidParametersError(f"The search path '{base}' is not a directory")

    matches: list[tuple[Path, float]] = []
    for rel in globlib.iglob(pattern, root_dir=base, recursive=True):
        candidate = base / rel
        if gate.is_ignored(candidate):
            continue
        try:
            stat = candidate.stat()
        except OSError as e:
            logger.warning(f"Error reading glob entry {candidate}: {e}")
            continue
        if not os.path.isfile(candidate):
            continue
        matches.append((candidate, stat.st_mtime))

    matches.sort(key=lambda item: item[1], reverse=True)
    return [candidate for candidate, _ in matches]
