"""Tests for shell command execution and progress streaming."""
from __future__ import annotations

import asyncio
import os
import sys

import pytest

from llm_dev.errors import ExecutionError
from llm_dev.notifications import ProgressChannel, ShellProgress
from llm_dev.shell import check_command_paths, get_shell_config, run_shell

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell syntax")


class RecordingSink:
    """Collects every progress event it receives."""

    def __init__(self):
        self.events: list[ShellProgress] = []

    def try_send(self, event: ShellProgress) -> bool:
        self.events.append(event)
        return True


class ExplodingSink:
    def try_send(self, event: ShellProgress) -> bool:
        raise RuntimeError("consumer went away")


class TestShellConfig:
    def test_posix_shell(self):
        config = get_shell_config()
        assert config.executable in ("bash", "sh")
        assert config.args == ["-c"]

    def test_windows_shell(self, monkeypatch):
        monkeypatch.setattr("llm_dev.shell.execution.sys.platform", "win32")
        config = get_shell_config()
        assert config.executable == "cmd"
        assert config.args == ["/c"]


class TestCheckCommandPaths:
    """Tests for the pre-spawn gate check."""

    def test_restricted_existing_path_is_rejected(self, gate, tmp_path):
        secret = tmp_path / "secret.txt"
        secret.write_text("hunter2")
        with pytest.raises(ExecutionError) as excinfo:
            check_command_paths(f"cat {secret}", gate)
        assert excinfo.value.message == (
            f"The command attempts to access '{secret}' which is restricted by .llmdevignore"
        )

    def test_relative_argument_resolved_against_cwd(self, gate, tmp_path):
        (tmp_path / "secret.txt").write_text("hunter2")
        with pytest.raises(ExecutionError, match="secret.txt"):
            check_command_paths("cat secret.txt", gate, tmp_path)

    def test_nonexistent_restricted_path_is_allowed(self, gate, tmp_path):
        check_command_paths(f"cat {tmp_path / 'secret.txt'}", gate)

    def test_flags_are_skipped(self, gate, tmp_path):
        check_command_paths("ls -la", gate, tmp_path)

    def test_command_token_is_skipped(self, gate, tmp_path):
        (tmp_path / "secret.txt").write_text("")
        check_command_paths("secret.txt --help", gate, tmp_path)


@pytest.mark.anyio
class TestRunShell:
    """Tests for command execution."""

    async def test_stdout_is_captured(self, open_gate, tmp_path):
        result = await run_shell("echo hello", gate=open_gate, cwd=tmp_path)
        assert result.engine == "hello\n"
        assert result.human == "hello\n"
        assert result.exit_code == 0
        assert not result.truncated

    async def test_stderr_is_captured(self, open_gate, tmp_path):
        result = await run_shell("echo oops >&2", gate=open_gate, cwd=tmp_path)
        assert "oops" in result.engine

    async def test_both_streams_are_combined(self, open_gate, tmp_path):
        result = await run_shell("echo out; echo err >&2", gate=open_gate, cwd=tmp_path)
        assert "out\n" in result.engine
        assert "err\n" in result.engine

    async def test_exit_code_is_reported(self, open_gate, tmp_path):
        result = await run_shell("echo failing; exit 3", gate=open_gate, cwd=tmp_path)
        assert result.exit_code == 3
        assert result.engine == "failing\n"

    async def test_runs_in_cwd(self, open_gate, tmp_path):
        (tmp_path / "marker.txt").write_text("")
        result = await run_shell("ls", gate=open_gate, cwd=tmp_path)
        assert "marker.txt" in result.engine

    async def test_final_line_without_newline(self, open_gate, tmp_path):
        result = await run_shell("printf 'a\\nb'", gate=open_gate, cwd=tmp_path)
        assert result.engine == "a\nb"

    async def test_restricted_path_aborts_before_spawn(self, gate, tmp_path):
        (tmp_path / "secret.txt").write_text("hunter2")
        marker = tmp_path / "spawned"
        with pytest.raises(ExecutionError, match="restricted by .llmdevignore"):
            await run_shell(f"touch {marker} secret.txt", gate=gate, cwd=tmp_path)
        assert not marker.exists()

    async def test_long_output_is_truncated(self, open_gate, tmp_path):
        command = 'for i in $(seq 1 150); do echo "Line $i"; done'
        result = await run_shell(command, gate=open_gate, cwd=tmp_path, spill_dir=tmp_path)

        assert result.truncated
        assert result.line_count == 150
        assert result.human.startswith("... ")
        assert "Line 51\n" in result.human
        assert "Line 150" in result.human
        assert "Line 50\n" not in result.human

        spilled = result.spill_path.read_text().splitlines()
        assert len(spilled) == 150
        assert spilled[0] == "Line 1"
        assert spilled[-1] == "Line 150"

    async def test_full_stderr_pipe_does_not_stall(self, open_gate, tmp_path):
        # 300 KB on stderr is several pipe buffers while stdout stays open
        command = "head -c 300000 /dev/zero | tr '\\0' x | fold -w 100 >&2; echo done"
        result = await asyncio.wait_for(
            run_shell(command, gate=open_gate, cwd=tmp_path, spill_dir=tmp_path),
            timeout=30,
        )

        assert result.exit_code == 0
        assert result.truncated
        assert result.line_count >= 3000
        assert "done" in result.spill_path.read_text()

    async def test_size_ceiling(self, open_gate, tmp_path):
        with pytest.raises(ExecutionError) as excinfo:
            await run_shell("seq 1 1000", gate=open_gate, cwd=tmp_path, max_chars=100)
        assert excinfo.value.message.startswith(
            "Shell output from command 'seq 1 1000' has too many characters ("
        )
        assert "Maximum character count is 100." in excinfo.value.message

    async def test_spawn_failure(self, open_gate, tmp_path):
        with pytest.raises(ExecutionError, match="Failed to execute command"):
            await run_shell("echo hi", gate=open_gate, cwd=tmp_path / "missing")

    async def test_missing_pipes_are_an_execution_error(self, open_gate, tmp_path, monkeypatch):
        class PipelessProcess:
            stdout = None
            stderr = None
            returncode = 0
            pid = 1

        async def fake_exec(*args, **kwargs):
            return PipelessProcess()

        monkeypatch.setattr("llm_dev.shell.execution.asyncio.create_subprocess_exec", fake_exec)
        with pytest.raises(ExecutionError, match="Failed to capture command output"):
            await run_shell("echo hi", gate=open_gate, cwd=tmp_path)

    async def test_environment_is_passed(self, open_gate, tmp_path):
        result = await run_shell(
            "echo $LLM_DEV_TEST_VALUE",
            gate=open_gate,
            cwd=tmp_path,
            env={"LLM_DEV_TEST_VALUE": "from-env", "PATH": "/usr/bin:/bin"},
        )
        assert result.engine == "from-env\n"


@pytest.mark.anyio
class TestProgress:
    """Tests for per-line progress notifications."""

    async def test_each_line_is_reported(self, open_gate, tmp_path):
        sink = RecordingSink()
        await run_shell("echo one; echo two >&2", gate=open_gate, notifier=sink, cwd=tmp_path)

        by_stream = {(event.stream, event.output) for event in sink.events}
        assert ("stdout", "one\n") in by_stream
        assert ("stderr", "two\n") in by_stream

    async def test_full_channel_drops_without_failing(self, open_gate, tmp_path):
        channel = ProgressChannel(maxsize=1)
        result = await run_shell("seq 1 20", gate=open_gate, notifier=channel, cwd=tmp_path)

        assert result.engine.splitlines() == [str(i) for i in range(1, 21)]
        assert channel.sent == 1
        assert channel.dropped == 19

    async def test_failing_sink_does_not_abort(self, open_gate, tmp_path):
        result = await run_shell("echo still-runs", gate=open_gate, notifier=ExplodingSink(), cwd=tmp_path)
        assert result.engine == "still-runs\n"

    async def test_channel_iteration_ends_on_close(self, open_gate, tmp_path):
        channel = ProgressChannel(maxsize=10)
        await run_shell("echo a; echo b", gate=open_gate, notifier=channel, cwd=tmp_path)
        await channel.close()
        outputs = [event.output async for event in channel]
        assert outputs == ["a\n", "b\n"]


def test_notification_payload():
    event = ShellProgress(stream="stderr", output="warning\n")
    assert event.to_notification() == {
        "method": "notifications/message",
        "params": {
            "level": "info",
            "data": {"type": "shell", "stream": "stderr", "output": "warning\n"},
        },
    }


@pytest.mark.anyio
async def test_cancellation_kills_child(open_gate, tmp_path):
    pid_file = tmp_path / "pid"
    task = asyncio.create_task(
        run_shell(f"echo $$ > {pid_file}; exec sleep 30", gate=open_gate, cwd=tmp_path)
    )
    for _ in range(100):
        if pid_file.exists() and pid_file.read_text().strip():
            break
        await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    pid = int(pid_file.read_text().strip())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)
