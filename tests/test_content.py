"""Tests for tool result content items."""
from __future__ import annotations

from llm_dev.content import (
    EmbeddedResource,
    ImageContent,
    ToolResult,
    for_assistant,
    for_user,
    text,
)


class TestToolResult:
    def test_audience_filtering(self):
        result = ToolResult(
            content=[
                for_assistant("engine"),
                for_user("human", priority=0.0),
                text("both"),
            ]
        )
        assert result.text_for("assistant") == "engine\nboth"
        assert result.text_for("user") == "human\nboth"

    def test_images_are_not_text(self):
        result = ToolResult(content=[for_assistant("caption"), ImageContent(data="aGk=")])
        assert result.text_for("assistant") == "caption"
        assert len(result.for_audience("assistant")) == 2

    def test_resource_text_included(self):
        result = ToolResult(
            content=[EmbeddedResource(uri="file:///tmp/a", text="1: a", audience=["assistant"])]
        )
        assert result.text_for("assistant") == "1: a"
        assert result.text_for("user") == ""

    def test_round_trip_through_json(self):
        result = ToolResult(
            content=[
                for_user("shown", priority=0.2),
                ImageContent(data="aGk=", priority=0.0),
                EmbeddedResource(uri="file:///tmp/a", text="1: a"),
            ]
        )
        restored = ToolResult.model_validate_json(result.model_dump_json())
        assert restored == result
        assert isinstance(restored.content[1], ImageContent)
