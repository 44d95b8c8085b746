"""Shell command execution package.

Commands run through the platform shell with both output streams drained
concurrently. Path-like arguments are checked against the access gate
before anything is spawned.
"""
from __future__ import annotations

from .execution import (
    MAX_CHAR_COUNT,
    ProgressSink,
    check_command_paths,
    get_shell_config,
    run_shell,
)
from .types import ShellConfig, ShellOutput

__all__ = [
    # Constants
    "MAX_CHAR_COUNT",
    # Types
    "ProgressSink",
    "ShellConfig",
    "ShellOutput",
    # Execution
    "check_command_paths",
    "get_shell_config",
    "run_shell",
]
