"""Shell-related type definitions.

- ShellConfig: interpreter used to run command strings on this platform
- ShellOutput: shaped result of a finished command
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class ShellConfig(BaseModel):
    """Interpreter executable plus the flags that precede the command string."""

    executable: str
    args: list[str] = Field(default_factory=list)


class ShellOutput(BaseModel):
    """Result from a shell command execution."""

    engine: str = Field(description="Assistant-facing output, may point at a spill file")
    human: str = Field(description="User-facing output, bounded to the last lines")
    exit_code: Optional[int] = None
    line_count: int = 0
    char_count: int = 0
    spill_path: Optional[Path] = None

    @property
    def truncated(self) -> bool:
        return self.spill_path is not None


__all__ = [
    "ShellConfig",
    "ShellOutput",
]
