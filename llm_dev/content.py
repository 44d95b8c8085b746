"""Tool result content items.

A ToolResult is an ordered list of content items. Each item may name the
audience it is meant for (the calling assistant, the human user, or both
when unset) and a display priority; lower priority marks supplementary
output a client may collapse.
"""
from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

Role = Literal["assistant", "user"]


class _ContentBase(BaseModel):
    audience: Optional[list[Role]] = None
    priority: Optional[float] = None

    def is_for(self, role: Role) -> bool:
        return self.audience is None or role in self.audience


class TextContent(_ContentBase):
    type: Literal["text"] = "text"
    text: str


class ImageContent(_ContentBase):
    type: Literal["image"] = "image"
    data: str = Field(description="Base64-encoded image bytes")
    mime_type: str = "image/png"


class EmbeddedResource(_ContentBase):
    type: Literal["resource"] = "resource"
    uri: str
    text: str
    mime_type: str = "text/plain"


Content = Annotated[
    Union[TextContent, ImageContent, EmbeddedResource],
    Field(discriminator="type"),
]


def text(
    value: str,
    *,
    audience: Optional[list[Role]] = None,
    priority: Optional[float] = None,
) -> TextContent:
    return TextContent(text=value, audience=audience, priority=priority)


def for_assistant(value: str) -> TextContent:
    return TextContent(text=value, audience=["assistant"])


def for_user(value: str, priority: float = 0.0) -> TextContent:
    return TextContent(text=value, audience=["user"], priority=priority)


class ToolResult(BaseModel):
    """Ordered content items returned from a tool call."""

    content: list[Content] = Field(default_factory=list)

    def for_audience(self, role: Role) -> list[Content]:
        return [item for item in self.content if item.is_for(role)]

    def text_for(self, role: Role) -> str:
        """Concatenate the textual payloads meant for a role."""
        parts = []
        for item in self.for_audience(role):
            if isinstance(item, (TextContent, EmbeddedResource)):
                parts.append(item.text)
        return "\n".join(parts)


__all__ = [
    "Content",
    "EmbeddedResource",
    "ImageContent",
    "Role",
    "TextContent",
    "ToolResult",
    "for_assistant",
    "for_user",
    "text",
]
