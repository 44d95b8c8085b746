"""llm-dev: local developer tools for LLM agents.

This package provides the tool execution core behind an agent's developer
tools: shell commands with live output, file viewing and editing with undo,
file search and image capture.

Main entry points:
- DeveloperToolset: PydanticAI toolset routing tool calls by name
- llm-dev CLI: invoke a single tool from the command line

Security model: the ignore-file access gate is a convenience, not a
sandbox. Commands can still reach restricted files indirectly.
"""
from __future__ import annotations

from .config import DeveloperConfig, EditorSettings, load_config
from .content import (
    EmbeddedResource,
    ImageContent,
    TextContent,
    ToolResult,
)
from .editor import EditDelegate, EditHistory, TextEditor
from .errors import (
    ExecutionError,
    IgnoreRulesError,
    InvalidParametersError,
    ToolError,
    ToolNotFoundError,
)
from .ignore import AccessGate, IgnoreRuleSet, build_ignore_rules
from .notifications import ProgressChannel, ShellProgress
from .toolset import DeveloperToolset

__version__ = "0.1.0"

__all__ = [
    # Toolset
    "DeveloperToolset",
    "DeveloperConfig",
    "EditorSettings",
    "load_config",
    # Results
    "EmbeddedResource",
    "ImageContent",
    "TextContent",
    "ToolResult",
    # Editing
    "EditDelegate",
    "EditHistory",
    "TextEditor",
    # Access gate
    "AccessGate",
    "IgnoreRuleSet",
    "build_ignore_rules",
    # Progress
    "ProgressChannel",
    "ShellProgress",
    # Errors
    "ExecutionError",
    "IgnoreRulesError",
    "InvalidParametersError",
    "ToolError",
    "ToolNotFoundError",
]
