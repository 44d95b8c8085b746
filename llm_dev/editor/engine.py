"""Text editing operations with undo history.

Supports five commands on absolute file paths:
- view: line-numbered rendering, optionally restricted to a line range
- write: full-file create or overwrite
- str_replace / edit_file: replace one exact occurrence of a fragment,
  optionally through an edit delegate first
- insert: splice text in after a given line
- undo_edit: restore the content from before the last edit

Every command resolves the path and consults the access gate before it
touches the filesystem. Mutations push the previous content onto the
history exactly once and only when they succeed.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from ..content import EmbeddedResource, ToolResult, for_assistant, for_user, text
from ..errors import ExecutionError, InvalidParametersError
from ..ignore import AccessGate, IGNORE_FILENAME
from ..paths import normalize_line_endings, resolve_path
from .delegate import EditDelegate
from .history import EditHistory
from .lang import language_for

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 400 * 1024  # bytes
MAX_CHAR_COUNT = 400_000
SNIPPET_LINES = 4

REVIEW_NOTE = "Review the changes above for errors. Undo and edit the file again if necessary!"


def split_lines(content: str) -> list[str]:
    """Split on newlines without producing a trailing empty line."""
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _fence(language: str, body: str) -> str:
    return f"```{language}\n{body}\n```\n"


def _read_text(path: Path) -> str:
    try:
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ExecutionError(f"Failed to read file: {e}") from e


def _write_text(path: Path, content: str) -> None:
    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
    except OSError as e:
        raise ExecutionError(f"Failed to write file: {e}") from e


class TextEditor:
    """File viewing and editing against the access gate and undo history."""

    def __init__(
        self,
        gate: AccessGate,
        *,
        history: Optional[EditHistory] = None,
        delegate: Optional[EditDelegate] = None,
        cwd: Optional[Path] = None,
    ):
        self._gate = gate
        self._history = history if history is not None else EditHistory()
        self._delegate = delegate
        self._cwd = cwd

    @property
    def history(self) -> EditHistory:
        return self._history

    @property
    def delegate(self) -> Optional[EditDelegate]:
        return self._delegate

    @property
    def replace_command(self) -> str:
        """Name under which the replace operation is advertised."""
        return "edit_file" if self._delegate is not None else "str_replace"

    def resolve(self, path_str: str) -> Path:
        """Resolve a raw path and reject it if the gate restricts it."""
        path = resolve_path(path_str, self._cwd)
        if self._gate.is_ignored(path):
            raise ExecutionError(f"Access to '{path}' is restricted by {IGNORE_FILENAME}")
        return path

    # -- history -----------------------------------------------------------

    def _commit(self, path: Path, previous: str, content: str) -> None:
        """Record the previous content, then write; roll back the entry on failure."""
        self._history.push(path, previous)
        try:
            _write_text(path, content)
        except ExecutionError:
            self._history.pop(path)
            raise

    def _require_file(self, path: Path) -> None:
        if not path.exists():
            raise InvalidParametersError(
                f"File '{path}' does not exist, you can write a new file with the `write` command"
            )
        if not path.is_file():
            raise InvalidParametersError(f"The path '{path}' is not a file.")

    # -- commands ----------------------------------------------------------

    def view(self, path_str: str, view_range: Optional[Sequence[int]] = None) -> ToolResult:
        path = self.resolve(path_str)
        if not path.is_file():
            raise ExecutionError(f"The path '{path}' does not exist or is not a file.")

        try:
            file_size = path.stat().st_size
        except OSError as e:
            raise ExecutionError(f"Failed to get file metadata: {e}") from e
        if file_size > MAX_FILE_SIZE:
            raise ExecutionError(
                f"File '{path}' is too large ({file_size / 1024:.2f}KB). "
                "Maximum size is 400KB to prevent memory issues."
            )

        content = _read_text(path)
        char_count = len(content)
        if char_count > MAX_CHAR_COUNT:
            raise ExecutionError(
                f"File '{path}' has too many characters ({char_count}). "
                f"Maximum character count is {MAX_CHAR_COUNT}."
            )

        lines = split_lines(content)
        total_lines = len(lines)
        start_idx, end_idx = 0, total_lines
        if view_range is not None:
            if len(view_range) != 2:
                raise InvalidParametersError(
                    "view_range must contain exactly two integers: [start_line, end_line]"
                )
            start_line, end_line = int(view_range[0]), int(view_range[1])
            start_idx = start_line - 1 if start_line > 0 else 0
            end_idx = total_lines if end_line == -1 else min(end_line, total_lines)
            if start_idx >= total_lines:
                raise InvalidParametersError(
                    f"Start line {start_line} is beyond the end of the file (total lines: {total_lines})"
                )
            if start_idx >= end_idx:
                raise InvalidParametersError(
                    f"Start line {start_line} must be less than end line {end_line}"
                )

        numbered = "\n".join(
            f"{idx + 1}: {line}" for idx, line in enumerate(lines[start_idx:end_idx], start=start_idx)
        )

        if view_range is not None:
            end_label = "end" if view_range[1] == -1 else str(view_range[1])
            header = f"### {path} (lines {view_range[0]}-{end_label})"
        else:
            header = f"### {path}"
        formatted = f"{header}\n{_fence(language_for(path), numbered)}"

        # The assistant gets the numbered text as a resource, the user a
        # rendered block at low priority
        return ToolResult(
            content=[
                EmbeddedResource(uri=path.as_uri(), text=numbered, audience=["assistant"]),
                for_user(formatted, priority=0.0),
            ]
        )

    def write(self, path_str: str, file_text: str) -> ToolResult:
        path = self.resolve(path_str)
        if path.is_dir():
            raise ExecutionError(f"The path '{path}' is a directory.")

        normalized = normalize_line_endings(file_text)
        if not normalized.endswith("\n"):
            normalized += "\n"

        previous = _read_text(path) if path.is_file() else ""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExecutionError(f"Failed to create directory: {e}") from e
        self._commit(path, previous, normalized)

        return ToolResult(
            content=[
                for_assistant(f"Successfully wrote to {path}"),
                for_user(f"### {path}\n{_fence(language_for(path), normalized)}", priority=0.2),
            ]
        )

    async def replace(self, path_str: str, old_str: str, new_str: str) -> ToolResult:
        path = self.resolve(path_str)
        self._require_file(path)
        content = _read_text(path)

        pushed = False
        if self._delegate is not None:
            self._history.push(path, content)
            pushed = True
            try:
                updated = await self._delegate.edit_fragment(content, old_str, new_str)
            except Exception as e:  # noqa: BLE001 - any delegate failure falls back
                logger.warning(f"Edit delegate failed: {e}, falling back to string replacement")
            else:
                try:
                    _write_text(path, normalize_line_endings(updated))
                except ExecutionError:
                    self._history.pop(path)
                    raise
                return ToolResult(
                    content=[
                        for_assistant(f"Successfully edited {path}"),
                        for_user(f"File {path} has been edited", priority=0.2),
                    ]
                )

        try:
            self._check_unique(content, old_str)
        except InvalidParametersError:
            if pushed:
                self._history.pop(path)
            raise

        new_content = content.replace(old_str, new_str, 1)
        if pushed:
            try:
                _write_text(path, normalize_line_endings(new_content))
            except ExecutionError:
                self._history.pop(path)
                raise
        else:
            self._commit(path, content, normalize_line_endings(new_content))

        # Line of the replacement, counted in the original content
        replacement_line = content.split(old_str, 1)[0].count("\n")
        start = max(0, replacement_line - SNIPPET_LINES)
        end = replacement_line + SNIPPET_LINES + new_str.count("\n")
        snippet = "\n".join(split_lines(new_content)[start : end + 1])

        output = _fence(language_for(path), snippet)
        message = (
            f"The file {path} has been edited, and the section now reads:\n"
            f"{output}\n{REVIEW_NOTE}\n"
        )
        return ToolResult(content=[for_assistant(message), for_user(output, priority=0.2)])

    @staticmethod
    def _check_unique(content: str, old_str: str) -> None:
        if not old_str:
            raise InvalidParametersError("'old_str' must not be empty")
        occurrences = content.count(old_str)
        if occurrences > 1:
            raise InvalidParametersError(
                "'old_str' must appear exactly once in the file, but it appears multiple times"
            )
        if occurrences == 0:
            raise InvalidParametersError(
                "'old_str' must appear exactly once in the file, but it does not appear in the file. "
                "Make sure the string exactly matches existing file content, including whitespace!"
            )

    def insert(self, path_str: str, insert_line: int, new_str: str) -> ToolResult:
        path = self.resolve(path_str)
        self._require_file(path)
        content = _read_text(path)

        lines = split_lines(content)
        total_lines = len(lines)
        if insert_line < 0:
            raise InvalidParametersError(
                f"Insert line {insert_line} is negative. Use 0 to insert at the beginning "
                f"or {total_lines} to insert at the end."
            )
        if insert_line > total_lines:
            raise InvalidParametersError(
                f"Insert line {insert_line} is beyond the end of the file (total lines: {total_lines}). "
                f"Use 0 to insert at the beginning or {total_lines} to insert at the end."
            )

        new_lines = lines[:insert_line] + [new_str] + lines[insert_line:]
        final_content = normalize_line_endings("\n".join(new_lines))
        if not final_content.endswith("\n"):
            final_content += "\n"

        self._commit(path, content, final_content)

        insertion_line = insert_line + 1
        inserted_count = max(len(split_lines(new_str)), 1)
        file_lines = split_lines(final_content)
        first = max(1, insertion_line - SNIPPET_LINES)
        last = min(insertion_line + inserted_count - 1 + SNIPPET_LINES, len(file_lines))
        snippet = "\n".join(f"{n}: {file_lines[n - 1]}" for n in range(first, last + 1))

        output = _fence(language_for(path), snippet)
        message = (
            f"Text has been inserted at line {insertion_line} in {path}. The section now reads:\n"
            f"{output}\n{REVIEW_NOTE}\n"
        )
        return ToolResult(content=[for_assistant(message), for_user(output, priority=0.2)])

    def undo(self, path_str: str) -> ToolResult:
        path = self.resolve(path_str)
        previous = self._history.pop(path)
        if previous is None:
            raise InvalidParametersError("No edit history available to undo")
        try:
            _write_text(path, previous)
        except ExecutionError:
            self._history.push(path, previous)
            raise
        logger.debug(f"Restored previous content of {path}")
        return ToolResult(content=[text("Undid the last edit")])
