"""Shared test fixtures for the llm-dev test suite."""
from pathlib import Path

import pytest

from llm_dev.editor import EditHistory, TextEditor
from llm_dev.ignore import AccessGate


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "live: tests that hit real APIs",
    )


@pytest.fixture
def gate(tmp_path: Path) -> AccessGate:
    """Gate rooted at tmp_path that restricts secrets and a private directory."""
    return AccessGate.from_patterns(tmp_path, ["secret.txt", "*.env", "private/"])


@pytest.fixture
def open_gate(tmp_path: Path) -> AccessGate:
    """Gate with no rules at all."""
    return AccessGate.from_patterns(tmp_path, [])


@pytest.fixture
def editor(gate: AccessGate, tmp_path: Path) -> TextEditor:
    return TextEditor(gate, history=EditHistory(), cwd=tmp_path)


@pytest.fixture
def anyio_backend() -> str:
    """The code under test is asyncio-based; run async tests on asyncio only."""
    return "asyncio"
