"""Developer tools as a PydanticAI toolset.

DeveloperToolset is the single entry point for tool calls. It:
1. Exposes shell, glob, grep, text_editor, list_windows, screen_capture and
   image_processor to LLMs
2. Validates the argument bag against the per-tool argument models
3. Routes to the shell, editor, search and screen modules
4. Returns a ToolResult whose items are tagged with an audience and priority

`dispatch()` is usable without a run context (CLI, tests). `call_tool()` is
the PydanticAI entry and turns tool errors into retry prompts for the model.
"""

from __future__ import annotations

import logging
import platform
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional, Type, cast

from pydantic import BaseModel, Field
from pydantic_ai import ModelRetry
from pydantic_ai.tools import ToolDefinition
from pydantic_ai.toolsets import AbstractToolset, ToolsetTool
from pydantic_ai.toolsets.abstract import SchemaValidatorProt

from .config import DEFAULT_MAX_OUTPUT_CHARS, DEFAULT_MAX_OUTPUT_LINES, DeveloperConfig
from .content import ImageContent, ToolResult, for_assistant, for_user, text
from .editor import EditDelegate, EditHistory, TextEditor, create_edit_delegate
from .errors import InvalidParametersError, ToolError, ToolNotFoundError
from .ignore import IGNORE_FILENAME, AccessGate
from .screen import PillowScreenBackend, ScreenBackend, capture_screen, load_image_file
from .search import glob_files
from .shell import ProgressSink, run_shell
from .validators import ArgsValidator, validate_args

logger = logging.getLogger(__name__)


class ShellArgs(BaseModel):
    """Arguments for shell."""

    command: str = Field(description="Command to run through the platform shell")


class GrepArgs(BaseModel):
    """Arguments for grep."""

    command: str = Field(description="Search command to run, e.g. `rg -n 'pattern' src/`")


class GlobArgs(BaseModel):
    """Arguments for glob."""

    pattern: str = Field(description="Glob pattern, e.g. `**/*.py`")
    path: Optional[str] = Field(default=None, description="Directory to search in (default: current directory)")


class TextEditorArgs(BaseModel):
    """Arguments for text_editor."""

    command: str = Field(description="One of view, write, str_replace/edit_file, insert, undo_edit")
    path: str = Field(description="Absolute path to the file")
    view_range: Optional[list[int]] = Field(
        default=None,
        description="For view: [start_line, end_line], 1-indexed; end_line -1 means end of file",
    )
    file_text: Optional[str] = Field(default=None, description="For write: full file content")
    old_str: Optional[str] = Field(default=None, description="For replace: fragment to replace")
    new_str: Optional[str] = Field(default=None, description="For replace and insert: new text")
    insert_line: Optional[int] = Field(
        default=None,
        description="For insert: line after which to insert (0 for the beginning)",
    )


class ListWindowsArgs(BaseModel):
    """Arguments for list_windows."""


class ScreenCaptureArgs(BaseModel):
    """Arguments for screen_capture."""

    display: Optional[int] = Field(default=0, description="Display number to capture (default 0)")
    window_title: Optional[str] = Field(
        default=None,
        description="Title of a window to capture instead of a display",
    )


class ImageProcessorArgs(BaseModel):
    """Arguments for image_processor."""

    path: str = Field(description="Absolute path to the image file")


SHELL_DESCRIPTION = (
    "Execute a command in the shell. Output of stdout and stderr is returned combined. "
    "Long output is truncated to the most recent lines and the full output is saved to "
    "a temporary file. Prefer the grep tool for searching file contents and the glob "
    f"tool for finding files. Paths restricted by {IGNORE_FILENAME} cannot be accessed."
)

GREP_DESCRIPTION = (
    "Search file contents with a command line search tool such as `rg` or `grep`. "
    "Runs through the same shell as the shell tool, with the same output limits."
)

GLOB_DESCRIPTION = (
    "Find files by glob pattern, e.g. `**/*.py`. Results are sorted by modification "
    f"time, newest first. Files restricted by {IGNORE_FILENAME} are omitted."
)

LIST_WINDOWS_DESCRIPTION = "List the titles of the windows available for screen capture."

SCREEN_CAPTURE_DESCRIPTION = (
    "Capture a screenshot of a display or of a window by title. "
    "The image is scaled down to at most 768 pixels wide."
)

IMAGE_PROCESSOR_DESCRIPTION = (
    "Load an image file, scale it down to at most 768 pixels wide and return it as PNG. "
    "Files larger than 10MB are rejected."
)

TOOL_ARGS: dict[str, Type[BaseModel]] = {
    "shell": ShellArgs,
    "glob": GlobArgs,
    "grep": GrepArgs,
    "text_editor": TextEditorArgs,
    "list_windows": ListWindowsArgs,
    "screen_capture": ScreenCaptureArgs,
    "image_processor": ImageProcessorArgs,
}


class DeveloperToolset(AbstractToolset[Any]):
    """Developer tools routed to the shell, editor, search and screen modules.

    Every path-touching call consults the access gate first. The edit history
    and delegate are owned by the text editor and shared by all calls on this
    toolset.
    """

    def __init__(
        self,
        gate: AccessGate,
        *,
        editor: Optional[TextEditor] = None,
        delegate: Optional[EditDelegate] = None,
        notifier: Optional[ProgressSink] = None,
        screen: Optional[ScreenBackend] = None,
        cwd: Optional[Path] = None,
        max_output_lines: int = DEFAULT_MAX_OUTPUT_LINES,
        max_output_chars: int = DEFAULT_MAX_OUTPUT_CHARS,
        spill_dir: Optional[Path] = None,
        id: Optional[str] = None,
        max_retries: int = 1,
    ):
        """Initialize the toolset.

        Args:
            gate: Access gate consulted before any path-touching operation
            editor: Text editor to use (built from gate and delegate if omitted)
            delegate: Optional edit delegate for the replace command
            notifier: Optional sink for live shell output lines
            screen: Screen backend for capture and window listing
            cwd: Working directory for commands and path suggestions
            max_output_lines: Line threshold for shaped shell output
            max_output_chars: Character ceiling for shell output
            spill_dir: Directory for spill files (platform temp dir if omitted)
            id: Optional toolset ID for durable execution.
            max_retries: Maximum retries for tool calls.
        """
        self._gate = gate
        self._cwd = cwd or Path.cwd()
        self._editor = editor or TextEditor(
            gate,
            history=EditHistory(),
            delegate=delegate,
            cwd=self._cwd,
        )
        self._notifier = notifier
        self._screen = screen or PillowScreenBackend()
        self._max_output_lines = max_output_lines
        self._max_output_chars = max_output_chars
        self._spill_dir = spill_dir
        self._id = id
        self._max_retries = max_retries

    @classmethod
    def from_config(
        cls,
        config: DeveloperConfig,
        notifier: Optional[ProgressSink] = None,
        **kwargs: Any,
    ) -> "DeveloperToolset":
        """Build the toolset from loaded configuration.

        Raises:
            IgnoreRulesError: If the ignore rule files cannot be read or compiled
        """
        gate = AccessGate.load(config.cwd, config.config_dir)
        return cls(
            gate,
            delegate=create_edit_delegate(config.editor),
            notifier=notifier,
            cwd=config.cwd,
            max_output_lines=config.max_output_lines,
            max_output_chars=config.max_output_chars,
            **kwargs,
        )

    @property
    def id(self) -> str | None:
        """Return toolset ID for durable execution."""
        return self._id

    @property
    def gate(self) -> AccessGate:
        return self._gate

    @property
    def editor(self) -> TextEditor:
        return self._editor

    @property
    def instructions(self) -> str:
        """Preamble describing the environment the tools run in."""
        return (
            "The developer tools run commands and edit files on the user's machine.\n"
            f"operating system: {platform.system() or 'unknown'}\n"
            f"current directory: {self._cwd}\n"
        )

    def _text_editor_description(self) -> str:
        replace = self._editor.replace_command
        if self._editor.delegate is not None:
            replace_help = self._editor.delegate.str_replace_description()
        else:
            replace_help = (
                "`old_str` must match exactly one location in the file, including "
                "whitespace, and is replaced by `new_str`"
            )
        return (
            "Perform text editing operations on files. Paths must be absolute.\n"
            "- view: show the file with line numbers, optionally limited by view_range\n"
            "- write: create or overwrite a file with file_text\n"
            f"- {replace}: {replace_help}\n"
            "- insert: insert new_str after line insert_line (0 for the beginning)\n"
            "- undo_edit: restore the file to its content before the last edit"
        )

    def _describe(self, name: str) -> str:
        if name == "text_editor":
            return self._text_editor_description()
        return {
            "shell": SHELL_DESCRIPTION,
            "glob": GLOB_DESCRIPTION,
            "grep": GREP_DESCRIPTION,
            "list_windows": LIST_WINDOWS_DESCRIPTION,
            "screen_capture": SCREEN_CAPTURE_DESCRIPTION,
            "image_processor": IMAGE_PROCESSOR_DESCRIPTION,
        }[name]

    async def get_tools(self, ctx: Any) -> dict[str, ToolsetTool]:
        """Return the tool definitions."""
        tools = {}
        for name, schema in TOOL_ARGS.items():
            parameters = schema.model_json_schema()
            if name == "text_editor":
                parameters["properties"]["command"]["enum"] = [
                    "view",
                    "write",
                    self._editor.replace_command,
                    "insert",
                    "undo_edit",
                ]
            tools[name] = ToolsetTool(
                toolset=self,
                tool_def=ToolDefinition(
                    name=name,
                    description=self._describe(name),
                    parameters_json_schema=parameters,
                ),
                max_retries=self._max_retries,
                args_validator=cast(SchemaValidatorProt, ArgsValidator(schema)),
            )
        return tools

    async def call_tool(
        self,
        name: str,
        tool_args: dict[str, Any],
        ctx: Any,
        tool: ToolsetTool[Any],
    ) -> ToolResult:
        """Execute a tool call from an agent run.

        Tool errors are handed back to the model as retry prompts so it can
        correct its input or try another approach.
        """
        try:
            return await self.dispatch(name, tool_args)
        except ToolError as e:
            logger.info(f"Tool {name} failed ({e.kind}): {e.message}")
            raise ModelRetry(e.message) from e

    async def dispatch(self, name: str, args: Mapping[str, Any] | None = None) -> ToolResult:
        """Route a tool call by name.

        Raises:
            ToolNotFoundError: If no tool has this name
            InvalidParametersError: If the arguments are missing or malformed
            ExecutionError: If the operation could not complete
        """
        schema = TOOL_ARGS.get(name)
        if schema is None:
            raise ToolNotFoundError(name)
        logger.debug(f"Dispatching {name}")

        if name in ("shell", "grep") and (args or {}).get("command") in (None, ""):
            raise InvalidParametersError("The command string is required")

        params = validate_args(schema, args)
        if name in ("shell", "grep"):
            return await self._shell(params["command"])
        if name == "glob":
            return self._glob(params["pattern"], params.get("path"))
        if name == "text_editor":
            return await self._text_editor(params)
        if name == "list_windows":
            return self._list_windows()
        if name == "screen_capture":
            return self._screen_capture(params.get("display"), params.get("window_title"))
        return self._image_processor(params["path"])

    # -- tools -------------------------------------------------------------

    async def _shell(self, command: str) -> ToolResult:
        output = await run_shell(
            command,
            gate=self._gate,
            notifier=self._notifier,
            cwd=self._cwd,
            max_chars=self._max_output_chars,
            max_lines=self._max_output_lines,
            spill_dir=self._spill_dir or Path(tempfile.gettempdir()),
        )
        content = [for_assistant(output.engine), for_user(output.human, priority=0.0)]
        if output.exit_code:
            content.append(for_assistant(f"Command exited with status {output.exit_code}"))
        return ToolResult(content=content)

    def _glob(self, pattern: str, path: Optional[str]) -> ToolResult:
        matches = glob_files(pattern, self._gate, path=path, cwd=self._cwd)
        listing = "\n".join(str(match) for match in matches)
        return ToolResult(content=[for_assistant(listing), for_user(listing, priority=0.0)])

    async def _text_editor(self, params: dict[str, Any]) -> ToolResult:
        command = params["command"]
        path = params["path"]

        if command == "view":
            return self._editor.view(path, params.get("view_range"))

        if command == "write":
            if params.get("file_text") is None:
                raise InvalidParametersError("Missing 'file_text' parameter")
            return self._editor.write(path, params["file_text"])

        if command in ("str_replace", "edit_file"):
            if params.get("old_str") is None:
                raise InvalidParametersError("Missing 'old_str' parameter")
            if params.get("new_str") is None:
                raise InvalidParametersError("Missing 'new_str' parameter")
            return await self._editor.replace(path, params["old_str"], params["new_str"])

        if command == "insert":
            if params.get("insert_line") is None:
                raise InvalidParametersError("Missing 'insert_line' parameter")
            if params.get("new_str") is None:
                raise InvalidParametersError("Missing 'new_str' parameter")
            return self._editor.insert(path, params["insert_line"], params["new_str"])

        if command == "undo_edit":
            return self._editor.undo(path)

        raise InvalidParametersError(f"Unknown command '{command}'")

    def _list_windows(self) -> ToolResult:
        windows = self._screen.list_windows()
        listing = "Available windows:\n" + "\n".join(windows)
        return ToolResult(content=[for_assistant(listing), for_user(listing, priority=0.0)])

    def _screen_capture(self, display: Optional[int], window_title: Optional[str]) -> ToolResult:
        data = capture_screen(self._screen, display=display or 0, window_title=window_title)
        return ToolResult(
            content=[
                text("Screenshot captured", audience=["assistant"]),
                ImageContent(data=data, priority=0.0),
            ]
        )

    def _image_processor(self, path_str: str) -> ToolResult:
        path = self._editor.resolve(path_str)
        data = load_image_file(path)
        return ToolResult(
            content=[
                text(f"Successfully processed image from {path}", audience=["assistant"]),
                ImageContent(data=data, priority=0.0),
            ]
        )


__all__ = [
    "DeveloperToolset",
    "GlobArgs",
    "GrepArgs",
    "ImageProcessorArgs",
    "ListWindowsArgs",
    "ScreenCaptureArgs",
    "ShellArgs",
    "TOOL_ARGS",
    "TextEditorArgs",
]
