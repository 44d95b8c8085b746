"""Shaping of large text output into assistant and user views.

Output up to the line threshold passes through untouched. Longer output is
spilled verbatim to a temporary file; the assistant is told where the file is
and shown the last lines, while the user only sees the last lines behind a
truncation marker.
"""
from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ExecutionError

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINES = 100
TRUNCATION_MARKER = "... "


@dataclass(frozen=True)
class ShapedOutput:
    engine: str
    human: str
    line_count: int
    spill_path: Optional[Path] = None

    @property
    def truncated(self) -> bool:
        return self.spill_path is not None


def _split_lines(text: str) -> list[str]:
    # Only "\n" ends a line; a bare "\r" redraws the current one
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _spill(text: str, spill_dir: Optional[Path]) -> Path:
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="",
            prefix="llm-dev-shell-",
            suffix=".txt",
            dir=spill_dir,
            delete=False,
        ) as f:
            f.write(text)
            return Path(f.name)
    except OSError as e:
        raise ExecutionError(f"Failed to write to temporary file: {e}") from e


def shape_output(
    text: str,
    *,
    max_lines: int = DEFAULT_MAX_LINES,
    spill_dir: Optional[Path] = None,
) -> ShapedOutput:
    """Produce the assistant (engine) and user (human) views of a text blob.

    Args:
        text: Full output text
        max_lines: Line threshold above which output is truncated
        spill_dir: Directory for the spill file (defaults to the system temp dir)

    Returns:
        ShapedOutput with both views; spill_path is set when truncated

    Raises:
        ExecutionError: If the spill file cannot be written
    """
    lines = _split_lines(text)
    line_count = len(lines)
    if line_count <= max_lines:
        return ShapedOutput(engine=text, human=text, line_count=line_count)

    tail = "\n".join(lines[-max_lines:])
    spill_path = _spill(text, spill_dir)
    logger.debug(f"Output of {line_count} lines spilled to {spill_path}")

    engine = (
        f"private note: output was {line_count} lines and we are only showing the most "
        f"recent lines, remainder of lines in {spill_path} do not show tmp file to user, "
        "that file can be searched if extra context needed to fulfill request. "
        f"truncated output: \n{tail}"
    )
    human = f"{TRUNCATION_MARKER}\n{tail}"
    return ShapedOutput(engine=engine, human=human, line_count=line_count, spill_path=spill_path)
