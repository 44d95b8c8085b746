"""Tests for output shaping and spill files."""
from __future__ import annotations

import pytest

from llm_dev.errors import ExecutionError
from llm_dev.output import TRUNCATION_MARKER, shape_output


def _lines(count: int) -> str:
    return "".join(f"Line {i}\n" for i in range(1, count + 1))


class TestShapeOutput:
    """Tests for the engine and human views."""

    def test_short_output_is_unchanged(self, tmp_path):
        text = _lines(100)
        shaped = shape_output(text, spill_dir=tmp_path)
        assert shaped.engine == text
        assert shaped.human == text
        assert shaped.line_count == 100
        assert not shaped.truncated
        assert list(tmp_path.iterdir()) == []

    def test_empty_output(self, tmp_path):
        shaped = shape_output("", spill_dir=tmp_path)
        assert shaped.engine == ""
        assert shaped.line_count == 0

    def test_long_output_is_spilled(self, tmp_path):
        shaped = shape_output(_lines(150), spill_dir=tmp_path)

        assert shaped.truncated
        assert shaped.line_count == 150
        assert shaped.human.startswith(TRUNCATION_MARKER)
        assert "Line 51\n" in shaped.human
        assert shaped.human.endswith("Line 150")
        assert "Line 50\n" not in shaped.human

        spilled = shaped.spill_path.read_text().splitlines()
        assert len(spilled) == 150
        assert spilled[0] == "Line 1"
        assert spilled[-1] == "Line 150"

    def test_engine_view_points_at_spill_file(self, tmp_path):
        shaped = shape_output(_lines(101), spill_dir=tmp_path)
        assert shaped.engine.startswith("private note: output was 101 lines")
        assert str(shaped.spill_path) in shaped.engine
        assert "do not show tmp file to user" in shaped.engine
        assert shaped.engine.endswith("Line 101")
        assert "Line 1\n" not in shaped.engine

    def test_spill_file_is_verbatim(self, tmp_path):
        text = _lines(120).replace("Line 7\n", "Line 7\r\n")
        shaped = shape_output(text, spill_dir=tmp_path)
        assert shaped.spill_path.read_bytes().decode("utf-8") == text

    def test_carriage_returns_do_not_split_lines(self, tmp_path):
        text = "".join(f"{i}%\r" for i in range(150)) + "done\n"
        shaped = shape_output(text, spill_dir=tmp_path)
        assert shaped.line_count == 1
        assert not shaped.truncated
        assert shaped.engine == text
        assert shaped.human == text
        assert list(tmp_path.iterdir()) == []

    def test_crlf_lines_are_counted_once(self, tmp_path):
        text = "".join(f"Line {i}\r\n" for i in range(1, 101))
        shaped = shape_output(text, spill_dir=tmp_path)
        assert shaped.line_count == 100
        assert shaped.engine == text

    def test_custom_threshold(self, tmp_path):
        shaped = shape_output(_lines(10), max_lines=3, spill_dir=tmp_path)
        assert shaped.human == f"{TRUNCATION_MARKER}\nLine 8\nLine 9\nLine 10"

    def test_spill_failure_is_execution_error(self, tmp_path):
        missing = tmp_path / "does-not-exist"
        with pytest.raises(ExecutionError, match="Failed to write to temporary file"):
            shape_output(_lines(150), spill_dir=missing)
