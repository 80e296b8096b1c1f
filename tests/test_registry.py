"""Tests for tool identifiers and the tool registry."""

import pytest

from snowscribe.tools import ToolDefinition, ToolId, ToolRegistry, get_tool_registry


class TestToolId:
    """Tests for tool identifier parsing."""

    def test_parse_known(self):
        assert ToolId.parse("outline_chat") is ToolId.OUTLINE_CHAT

    def test_parse_unknown(self):
        assert ToolId.parse("outline-chat") is None

    def test_value_is_string(self):
        assert f"ai-tool-{ToolId.WRITING_COACH}" == "ai-tool-writing_coach"


class TestToolRegistry:
    """Tests for the registry lookups."""

    def test_lists_every_tool(self):
        registry = ToolRegistry()
        assert {tool.id for tool in registry.list()} == set(ToolId)

    def test_page_tools_in_order(self):
        ids = [tool.id for tool in ToolRegistry().list_page_tools()]
        assert ids == [
            ToolId.MANUSCRIPT_CHAT,
            ToolId.OUTLINE_CHAT,
            ToolId.PLOT_HOLE_CHECKER,
            ToolId.CHARACTER_CHAT,
            ToolId.CHARACTER_NAME_GENERATOR,
            ToolId.WORLD_BUILDING_CHAT,
            ToolId.WRITING_COACH,
        ]

    def test_get_by_string_and_enum(self):
        registry = ToolRegistry()
        assert registry.get("writing_coach") is registry.get(ToolId.WRITING_COACH)
        assert registry.get("writing_coach").display_name == "Writing Coach"

    def test_get_unknown_returns_none(self):
        registry = ToolRegistry()
        assert registry.get("not_a_tool") is None
        assert not registry.has_tool("not_a_tool")

    def test_duplicate_definitions_rejected(self):
        tool = ToolDefinition(ToolId.WRITING_COACH, "Coach", "Advice")
        with pytest.raises(ValueError, match="Duplicate tool definition"):
            ToolRegistry((tool, tool))

    def test_lookup_keys_default_to_id(self):
        tool = ToolDefinition(ToolId.SCENE_HELPER, "Scene Helper", "Help")
        assert tool.model_lookup_key == "scene_helper"
        assert tool.prompt_lookup_key == "scene_helper"

        custom = ToolDefinition(ToolId.SCENE_HELPER, "Scene Helper", "Help", model_key="fast", prompt_category="scene")
        assert custom.model_lookup_key == "fast"
        assert custom.prompt_lookup_key == "scene"

    def test_singleton(self):
        assert get_tool_registry() is get_tool_registry()
