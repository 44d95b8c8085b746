#!/usr/bin/env python
"""Invoke a developer tool from the command line.

Usage:
    llm-dev shell --arg command="ls -la"
    llm-dev text_editor --args '{"command": "view", "path": "/tmp/notes.txt"}'
    llm-dev text_editor --arg command=view --arg path=/tmp/notes.txt --arg 'view_range=[1, 5]'

Arguments:
    --args takes a JSON object. --arg KEY=VALUE may be repeated; VALUE is
    parsed as JSON when possible and used as a plain string otherwise.

Shell output is streamed to stderr while the command runs. The result items
meant for the chosen audience (user by default) are printed to stdout.

Exit codes: 0 on success, 1 on execution errors, 2 on invalid parameters.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, TextIO

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import load_config
from .content import ImageContent, Role, ToolResult
from .errors import InvalidParametersError, ToolError
from .notifications import ProgressChannel
from .toolset import TOOL_ARGS, DeveloperToolset

logger = logging.getLogger(__name__)

EXIT_EXECUTION_ERROR = 1
EXIT_INVALID_PARAMETERS = 2


def _configure_logging(verbosity: int, console: Console) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def build_tool_args(args_json: Optional[str], pairs: Sequence[str]) -> dict[str, Any]:
    """Merge --args JSON with repeated --arg KEY=VALUE pairs.

    Raises:
        InvalidParametersError: If the JSON is malformed or a pair has no '='
    """
    tool_args: dict[str, Any] = {}
    if args_json:
        try:
            parsed = json.loads(args_json)
        except json.JSONDecodeError as e:
            raise InvalidParametersError(f"--args is not valid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise InvalidParametersError("--args must be a JSON object")
        tool_args.update(parsed)
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise InvalidParametersError(f"Expected KEY=VALUE, got '{pair}'")
        tool_args[key] = _parse_value(value)
    return tool_args


def _write_record(stream: TextIO, record: Mapping[str, Any]) -> None:
    json.dump(record, stream)
    stream.write("\n")
    stream.flush()


def render_result(result: ToolResult, audience: Role, console: Console) -> None:
    for item in result.for_audience(audience):
        if isinstance(item, ImageContent):
            console.print(f"[dim][image {item.mime_type}, {len(item.data)} base64 characters][/dim]")
        else:
            console.print(item.text, markup=False, highlight=False, soft_wrap=True)


async def _show_progress(channel: ProgressChannel, console: Console, as_json: bool) -> None:
    async for event in channel:
        if as_json:
            _write_record(console.file, event.to_notification())
        elif event.stream == "stderr":
            console.print(event.output.rstrip("\n"), style="red", markup=False, highlight=False, soft_wrap=True)
        else:
            console.print(event.output.rstrip("\n"), markup=False, highlight=False, soft_wrap=True)


async def run_tool(
    tool: str,
    tool_args: dict[str, Any],
    *,
    cwd: Path,
    err_console: Console,
    as_json: bool = False,
) -> ToolResult:
    """Load configuration, build the toolset and dispatch one call."""
    config = load_config(cwd)
    if config.path:
        logger.info(f"Loaded config from {config.path}")
    channel = ProgressChannel(maxsize=config.progress_queue_size)
    toolset = DeveloperToolset.from_config(config, notifier=channel)

    consumer = asyncio.create_task(_show_progress(channel, err_console, as_json))
    try:
        return await toolset.dispatch(tool, tool_args)
    finally:
        await channel.close()
        await consumer
        if channel.dropped:
            logger.info(f"Dropped {channel.dropped} progress events")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the llm-dev CLI.

    Returns:
        Exit code (0 for success, 1 for execution errors, 2 for invalid parameters)
    """
    parser = argparse.ArgumentParser(
        prog="llm-dev",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("tool", choices=sorted(TOOL_ARGS), help="Tool to invoke")
    parser.add_argument("--args", dest="args_json", metavar="JSON", help="Tool arguments as a JSON object")
    parser.add_argument(
        "--arg", "-a",
        action="append",
        dest="pairs",
        default=[],
        metavar="KEY=VALUE",
        help="Single tool argument (repeatable)",
    )
    parser.add_argument(
        "--audience",
        choices=["user", "assistant"],
        default="user",
        help="Which result items to print (default: user)",
    )
    parser.add_argument(
        "--cwd",
        type=Path,
        default=None,
        help="Working directory for the tools (default: current directory)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print result items and progress events as JSON",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Show log messages (-v for info, -vv for debug)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show full tracebacks on error",
    )
    args = parser.parse_args(argv)

    out_console = Console()
    err_console = Console(stderr=True)
    _configure_logging(args.verbose, err_console)

    try:
        tool_args = build_tool_args(args.args_json, args.pairs)
        result = asyncio.run(run_tool(
            args.tool,
            tool_args,
            cwd=(args.cwd or Path.cwd()).resolve(),
            err_console=err_console,
            as_json=args.json,
        ))
    except InvalidParametersError as e:
        err_console.print(f"[red]Invalid parameters:[/red] {escape(e.message)}", highlight=False, soft_wrap=True)
        if args.debug:
            raise
        return EXIT_INVALID_PARAMETERS
    except ToolError as e:
        err_console.print(f"[red]Error:[/red] {escape(e.message)}", highlight=False, soft_wrap=True)
        if args.debug:
            raise
        return EXIT_EXECUTION_ERROR
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False, soft_wrap=True)
        if args.debug:
            raise
        return EXIT_EXECUTION_ERROR
    except KeyboardInterrupt:
        err_console.print("\nAborted by user")
        return EXIT_EXECUTION_ERROR

    if args.json:
        for item in result.for_audience(args.audience):
            _write_record(sys.stdout, item.model_dump(mode="json"))
    else:
        render_result(result, args.audience, out_console)
    return 0


if __name__ == "__main__":
    sys.exit(main())
