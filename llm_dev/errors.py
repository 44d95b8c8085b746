"""Tool errors with LLM-friendly messages.

Every failure surfaced to the caller is one of two kinds:
- InvalidParametersError: the caller supplied malformed or out-of-range input
  and can recover by correcting it
- ExecutionError: the input was valid but the operation could not complete
  (restricted path, I/O failure, size ceiling, spawn failure)

Messages embed the offending value so the caller can act on them directly.
"""
from __future__ import annotations


class ToolError(Exception):
    """Base class for errors raised by developer tools."""

    kind = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidParametersError(ToolError):
    """Raised when tool arguments are missing, malformed or out of range."""

    kind = "invalid_parameters"


class ExecutionError(ToolError):
    """Raised when a valid request could not be carried out."""

    kind = "execution_error"


class ToolNotFoundError(InvalidParametersError):
    """Raised when the dispatcher is asked for a tool it does not provide."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool {name} not found")


class IgnoreRulesError(ExecutionError):
    """Raised when ignore rules cannot be read or compiled.

    This is fatal at startup: the gate must never silently pass everything.
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to build ignore rules from {source}: {reason}")


__all__ = [
    "ExecutionError",
    "IgnoreRulesError",
    "InvalidParametersError",
    "ToolError",
    "ToolNotFoundError",
]
