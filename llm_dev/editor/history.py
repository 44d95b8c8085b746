"""Per-file undo history.

Each path maps to a stack of earlier full-file contents, most recent last.
The lock covers only the in-memory push/pop; file writes happen outside it,
so two concurrent edits of the same file may interleave their undo entries.
History lives in memory and is lost on restart.
"""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional


class EditHistory:
    """Thread-safe mapping of path to a stack of previous contents."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stacks: dict[Path, list[str]] = {}

    def push(self, path: Path, content: str) -> None:
        with self._lock:
            self._stacks.setdefault(path, []).append(content)

    def pop(self, path: Path) -> Optional[str]:
        """Remove and return the most recent entry, or None if there is none."""
        with self._lock:
            stack = self._stacks.get(path)
            if not stack:
                return None
            return stack.pop()

    def depth(self, path: Path) -> int:
        with self._lock:
            return len(self._stacks.get(path, ()))

    def clear(self, path: Optional[Path] = None) -> None:
        with self._lock:
            if path is None:
                self._stacks.clear()
            else:
                self._stacks.pop(path, None)
