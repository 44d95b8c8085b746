"""Tests for glob file search."""
from __future__ import annotations

import os

import pytest

from llm_dev.errors import InvalidParametersError
from llm_dev.search import glob_files


@pytest.fixture
def tree(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("")
    (tmp_path / "src" / "util.py").write_text("")
    (tmp_path / "README.md").write_text("")
    (tmp_path / "private").mkdir()
    (tmp_path / "private" / "hidden.py").write_text("")
    (tmp_path / "prod.env").write_text("")
    return tmp_path


class TestGlobFiles:
    def test_recursive_pattern(self, gate, tree):
        matches = glob_files("**/*.py", gate, cwd=tree)
        assert set(matches) == {tree / "src" / "app.py", tree / "src" / "util.py"}

    def test_restricted_paths_are_dropped(self, gate, tree):
        assert glob_files("*.env", gate, cwd=tree) == []

    def test_directories_are_dropped(self, gate, tree):
        assert glob_files("*", gate, cwd=tree) == [tree / "README.md"]

    def test_newest_first(self, gate, tree):
        os.utime(tree / "src" / "app.py", (1_000_000, 1_000_000))
        os.utime(tree / "src" / "util.py", (2_000_000, 2_000_000))
        assert glob_files("src/*.py", gate, cwd=tree) == [
            tree / "src" / "util.py",
            tree / "src" / "app.py",
        ]

    def test_search_path(self, gate, tree):
        matches = glob_files("*.py", gate, path="src", cwd=tree)
        assert len(matches) == 2

    def test_absolute_search_path(self, gate, tree):
        matches = glob_files("*.py", gate, path=str(tree / "src"), cwd=tree)
        assert len(matches) == 2

    def test_empty_pattern(self, gate, tree):
        with pytest.raises(InvalidParametersError, match="pattern string is required"):
            glob_files("", gate, cwd=tree)

    def test_missing_directory(self, gate, tree):
        with pytest.raises(InvalidParametersError, match="is not a directory"):
            glob_files("*.py", gate, path="nope", cwd=tree)
