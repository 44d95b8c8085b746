"""Text editor package: file operations with undo history and an optional edit delegate."""
from __future__ import annotations

from .delegate import AgentEditDelegate, EditDelegate, create_edit_delegate
from .engine import MAX_CHAR_COUNT, MAX_FILE_SIZE, TextEditor, split_lines
from .history import EditHistory

__all__ = [
    "AgentEditDelegate",
    "EditDelegate",
    "EditHistory",
    "MAX_CHAR_COUNT",
    "MAX_FILE_SIZE",
    "TextEditor",
    "create_edit_delegate",
    "split_lines",
]
