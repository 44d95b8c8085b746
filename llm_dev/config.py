"""Configuration loading for llm-dev.

Reads an optional TOML config file from the working directory, then applies
``LLM_DEV_*`` environment overrides. The resulting DeveloperConfig is built
once at startup and handed to the toolset.
"""

from __future__ import annotations

import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional


CONFIG_FILENAMES = ("llm-dev.toml",)
APP_NAME = "llm-dev"

ENV_CONFIG_DIR = "LLM_DEV_CONFIG_DIR"
ENV_EDITOR_MODEL = "LLM_DEV_EDITOR_MODEL"
ENV_EDITOR_HOST = "LLM_DEV_EDITOR_HOST"
ENV_EDITOR_API_KEY = "LLM_DEV_EDITOR_API_KEY"
ENV_MAX_OUTPUT_LINES = "LLM_DEV_MAX_OUTPUT_LINES"

DEFAULT_MAX_OUTPUT_LINES = 100
DEFAULT_MAX_OUTPUT_CHARS = 400_000


@dataclass
class EditorSettings:
    """Settings for the optional edit delegate."""

    model: Optional[str] = None
    host: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = 60.0

    @property
    def enabled(self) -> bool:
        return bool(self.model)


@dataclass
class DeveloperConfig:
    cwd: Path = field(default_factory=Path.cwd)
    config_dir: Path = field(default_factory=lambda: default_config_dir())
    max_output_lines: int = DEFAULT_MAX_OUTPUT_LINES
    max_output_chars: int = DEFAULT_MAX_OUTPUT_CHARS
    progress_queue_size: int = 64
    editor: EditorSettings = field(default_factory=EditorSettings)
    path: Optional[Path] = None


def default_config_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    """Return the per-user config directory holding the global ignore file."""
    env = os.environ if env is None else env
    override = env.get(ENV_CONFIG_DIR)
    if override:
        return Path(override).expanduser()
    if sys.platform == "win32":
        appdata = env.get("APPDATA")
        if appdata:
            return Path(appdata) / APP_NAME
    xdg = env.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path("~/.config").expanduser() / APP_NAME


def load_config(
    base_dir: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> DeveloperConfig:
    """Load config from the first matching file in the working directory."""
    base_dir = Path.cwd() if base_dir is None else base_dir
    env = os.environ if env is None else env

    config = DeveloperConfig(cwd=base_dir, config_dir=default_config_dir(env))
    for filename in CONFIG_FILENAMES:
        candidate = base_dir / filename
        if not candidate.exists():
            continue
        with candidate.open("rb") as f:
            data = tomllib.load(f)
        _apply_file(config, data)
        config.path = candidate
        break

    _apply_env(config, env)
    return config


def _apply_file(config: DeveloperConfig, data: dict) -> None:
    output = data.get("output", {})
    if "max_lines" in output:
        config.max_output_lines = int(output["max_lines"])
    if "max_chars" in output:
        config.max_output_chars = int(output["max_chars"])
    if "progress_queue_size" in output:
        config.progress_queue_size = int(output["progress_queue_size"])
    config.editor = _parse_editor(data.get("editor", {}))
    if "config_dir" in data:
        config.config_dir = Path(data["config_dir"]).expanduser()


def _parse_editor(raw: dict) -> EditorSettings:
    return EditorSettings(
        model=raw.get("model"),
        host=raw.get("host"),
        api_key=raw.get("api_key"),
        timeout=float(raw.get("timeout", 60.0)),
    )


def _apply_env(config: DeveloperConfig, env: Mapping[str, str]) -> None:
    if env.get(ENV_CONFIG_DIR):
        config.config_dir = Path(env[ENV_CONFIG_DIR]).expanduser()
    if env.get(ENV_EDITOR_MODEL):
        config.editor.model = env[ENV_EDITOR_MODEL]
    if env.get(ENV_EDITOR_HOST):
        config.editor.host = env[ENV_EDITOR_HOST]
    if env.get(ENV_EDITOR_API_KEY):
        config.editor.api_key = env[ENV_EDITOR_API_KEY]
    if env.get(ENV_MAX_OUTPUT_LINES):
        config.max_output_lines = int(env[ENV_MAX_OUTPUT_LINES])
