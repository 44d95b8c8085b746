"""Shell command execution with live output streaming.

This module provides:
- A pre-spawn check of path-like arguments against the access gate
- Platform shell selection
- Concurrent draining of stdout and stderr, one line at a time, with a
  best-effort progress notification per line
- A ceiling on total output size and shaping of the final text

Security note: the gate check is UX only, not security. A command can still
reach restricted files through globs, variables or subshells.
"""
from __future__ import annotations

import asyncio
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Mapping, Optional, Protocol

from ..errors import ExecutionError
from ..ignore import AccessGate, IGNORE_FILENAME
from ..notifications import ShellProgress, StreamName
from ..output import DEFAULT_MAX_LINES, shape_output
from .types import ShellConfig, ShellOutput

logger = logging.getLogger(__name__)

# Maximum number of characters accepted from a single command
MAX_CHAR_COUNT = 400_000


class ProgressSink(Protocol):
    def try_send(self, event: ShellProgress) -> bool: ...


def get_shell_config() -> ShellConfig:
    """Return the interpreter used to run command strings on this platform."""
    if sys.platform == "win32":
        return ShellConfig(executable="cmd", args=["/c"])
    executable = "bash" if shutil.which("bash") else "sh"
    return ShellConfig(executable=executable, args=["-c"])


def check_command_paths(
    command: str,
    gate: AccessGate,
    cwd: Optional[Path] = None,
) -> None:
    """Reject commands whose arguments name existing restricted paths.

    Heuristic: every whitespace-separated token after the command itself that
    is not a flag and exists on disk is checked against the gate.

    Raises:
        ExecutionError: If an argument is restricted
    """
    for arg in command.split()[1:]:
        # Skip command flags
        if arg.startswith("-"):
            continue
        path = Path(arg)
        if cwd is not None and not path.is_absolute():
            path = cwd / path
        if not os.path.exists(path):
            continue
        if gate.is_ignored(path):
            raise ExecutionError(
                f"The command attempts to access '{arg}' which is restricted by {IGNORE_FILENAME}"
            )


async def _read_line(reader: asyncio.StreamReader) -> bytes:
    """Read up to and including the next newline; b"" means end of stream."""
    try:
        return await reader.readuntil(b"\n")
    except asyncio.IncompleteReadError as e:
        # End of stream, possibly with a final unterminated line
        return e.partial
    except asyncio.LimitOverrunError as e:
        # Overlong line: hand back what is buffered and continue from there
        return await reader.read(e.consumed)


def _notify(notifier: Optional[ProgressSink], stream: StreamName, line: str) -> None:
    if notifier is None:
        return
    try:
        notifier.try_send(ShellProgress(stream=stream, output=line))
    except Exception as e:  # noqa: BLE001 - progress delivery must never fail the command
        logger.debug(f"Dropped {stream} progress event: {e}")


async def _drain(
    reader: asyncio.StreamReader,
    stream: StreamName,
    combined: list[str],
    notifier: Optional[ProgressSink],
) -> None:
    while True:
        chunk = await _read_line(reader)
        if not chunk:
            return
        line = chunk.decode("utf-8", errors="replace")
        _notify(notifier, stream, line)
        combined.append(line)


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    logger.debug(f"Killing shell process {proc.pid}")
    try:
        proc.kill()
    except ProcessLookupError:
        pass
    await proc.wait()


async def run_shell(
    command: str,
    *,
    gate: AccessGate,
    notifier: Optional[ProgressSink] = None,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    max_chars: int = MAX_CHAR_COUNT,
    max_lines: int = DEFAULT_MAX_LINES,
    spill_dir: Optional[Path] = None,
) -> ShellOutput:
    """Run a command through the platform shell and collect its output.

    Both output streams are drained concurrently so a child blocked on a full
    pipe never stalls the other stream. Interleaving across streams is best
    effort. The child is killed if this coroutine is cancelled.

    Args:
        command: Command string passed to the shell
        gate: Access gate consulted for path-like arguments before spawning
        notifier: Optional sink receiving one ShellProgress per output line
        cwd: Working directory for the command (defaults to the process cwd)
        env: Environment for the command (defaults to the current environment)
        max_chars: Maximum number of characters of combined output
        max_lines: Line threshold for the shaped views
        spill_dir: Directory for spill files of long output

    Returns:
        ShellOutput with the assistant and user views and the exit code

    Raises:
        ExecutionError: If an argument is restricted, the process cannot be
            spawned or read, or the output exceeds max_chars
    """
    check_command_paths(command, gate, cwd)

    shell = get_shell_config()
    logger.info(f"Executing shell command: {command}")

    try:
        proc = await asyncio.create_subprocess_exec(
            shell.executable,
            *shell.args,
            command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=dict(env) if env is not None else None,
        )
    except OSError as e:
        raise ExecutionError(f"Failed to execute command: {e}") from e

    if proc.stdout is None or proc.stderr is None:
        await _terminate(proc)
        raise ExecutionError("Failed to capture command output")
    combined: list[str] = []
    try:
        await asyncio.gather(
            _drain(proc.stdout, "stdout", combined, notifier),
            _drain(proc.stderr, "stderr", combined, notifier),
        )
        exit_code = await proc.wait()
    except OSError as e:
        raise ExecutionError(f"Failed to read command output: {e}") from e
    finally:
        await _terminate(proc)

    logger.debug(f"Shell command exited with status {exit_code}")

    output = "".join(combined)
    char_count = len(output)
    if char_count > max_chars:
        raise ExecutionError(
            f"Shell output from command '{command}' has too many characters ({char_count}). "
            f"Maximum character count is {max_chars}."
        )

    shaped = shape_output(output, max_lines=max_lines, spill_dir=spill_dir)
    return ShellOutput(
        engine=shaped.engine,
        human=shaped.human,
        exit_code=exit_code,
        line_count=shaped.line_count,
        char_count=char_count,
        spill_path=shaped.spill_path,
    )

