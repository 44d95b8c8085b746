"""Optional edit delegate for the replace operation.

A delegate receives the full file content plus the old and new fragments and
returns the complete updated content. The editor tries it first when one is
configured and falls back to literal replacement on any failure.
"""
from __future__ import annotations

import logging
import re
from typing import Optional, Protocol

from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel

from ..config import EditorSettings
from ..providers import EditModelProvider

logger = logging.getLogger(__name__)

EDITOR_INSTRUCTIONS = """\
You apply edits to source files. You receive the original file, the snippet
to change and its replacement. Return the complete updated file and nothing
else: no explanations and no markdown fences. Preserve everything that is not
part of the edit exactly, including whitespace.
"""

_FENCE = re.compile(r"\A```[^\n]*\n(?P<body>.*?)\n?```\s*\Z", re.DOTALL)


class EditDelegate(Protocol):
    async def edit_fragment(self, content: str, old: str, new: str) -> str: ...

    def str_replace_description(self) -> str: ...


def strip_code_fence(text: str) -> str:
    """Remove a single markdown fence wrapping the whole answer, if present."""
    match = _FENCE.match(text.strip())
    if match is None:
        return text
    return match.group("body") + "\n"


def build_edit_prompt(content: str, old: str, new: str) -> str:
    return (
        f"<original_file>\n{content}\n</original_file>\n"
        f"<old_snippet>\n{old}\n</old_snippet>\n"
        f"<new_snippet>\n{new}\n</new_snippet>"
    )


class AgentEditDelegate:
    """Edit delegate backed by a PydanticAI agent with plain-text output."""

    def __init__(self, model: Model | str):
        self._agent = Agent(
            model=model,
            instructions=EDITOR_INSTRUCTIONS,
            output_type=str,
            defer_model_check=True,
        )

    async def edit_fragment(self, content: str, old: str, new: str) -> str:
        result = await self._agent.run(build_edit_prompt(content, old, new))
        updated = strip_code_fence(result.output)
        if not updated.strip() and content.strip():
            raise ValueError("Edit model returned empty content")
        return updated

    def str_replace_description(self) -> str:
        return (
            "`old_str` identifies the section to change and `new_str` is its new "
            "content. An edit model merges the change into the file, so the match "
            "does not need to be exact"
        )


def create_edit_delegate(settings: EditorSettings) -> Optional[AgentEditDelegate]:
    """Build the delegate from settings, or return None when not configured."""
    if not settings.enabled:
        return None
    if settings.host:
        logger.info(f"Using edit model {settings.model} at {settings.host}")
        provider = EditModelProvider.from_settings(settings)
        return AgentEditDelegate(OpenAIChatModel(settings.model, provider=provider))
    logger.info(f"Using edit model {settings.model}")
    return AgentEditDelegate(settings.model)
