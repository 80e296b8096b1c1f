"""Static registry of the AI tools offered to writers."""

from types import MappingProxyType

from snowscribe.tools.base import ToolDefinition, ToolId

DEFAULT_TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(ToolId.MANUSCRIPT_CHAT, "Manuscript Chat", "Chat about your entire manuscript."),
    ToolDefinition(ToolId.OUTLINE_CHAT, "Outline Chat", "Discuss your project outline."),
    ToolDefinition(ToolId.PLOT_HOLE_CHECKER, "Plot Hole Checker", "Analyze manuscript or outline for plot holes."),
    ToolDefinition(ToolId.CHARACTER_CHAT, "Character Chat", "Chat with one of your characters."),
    ToolDefinition(ToolId.CHARACTER_NAME_GENERATOR, "Character Name Generator", "Generate character names."),
    ToolDefinition(ToolId.WORLD_BUILDING_CHAT, "World Building Chat", "Discuss your world and create notes."),
    ToolDefinition(ToolId.WRITING_COACH, "Writing Coach", "Get writing advice without project context."),
    ToolDefinition(
        ToolId.PLOT_HOLE_CHECKER_MANUSCRIPT,
        "Plot Hole Checker (Manuscript)",
        "Check the written manuscript for plot holes.",
        listed=False,
    ),
    ToolDefinition(
        ToolId.PLOT_HOLE_CHECKER_OUTLINE,
        "Plot Hole Checker (Outline)",
        "Check the outline for plot holes.",
        listed=False,
    ),
    ToolDefinition(ToolId.SCENE_HELPER, "Scene Helper", "Get help with the scene you are editing.", listed=False),
    ToolDefinition(ToolId.SCENE_ANALYZER, "Scene Analyzer", "Analyze a single scene.", listed=False),
    ToolDefinition(ToolId.SCENE_OUTLINER, "Scene Outliner", "Draft an outline description for a scene.", listed=False),
    ToolDefinition(
        ToolId.OUTLINE_JSON_GENERATOR,
        "Outline Generator",
        "Turn a one-page synopsis into chapters, scenes and characters.",
        listed=False,
    ),
    ToolDefinition(
        ToolId.WORLD_NOTE_SUGGESTER,
        "World Note Suggester",
        "Suggest a title and category for a world note.",
        listed=False,
    ),
)


class ToolRegistry:
    """Read-only lookup of tool definitions, fixed at construction."""

    def __init__(self, tools: tuple[ToolDefinition, ...] = DEFAULT_TOOLS):
        registered: dict[ToolId, ToolDefinition] = {}
        for tool in tools:
            if tool.id in registered:
                raise ValueError(f"Duplicate tool definition: {tool.id}")
            registered[tool.id] = tool
        self._tools = MappingProxyType(registered)

    def list_page_tools(self) -> list[ToolDefinition]:
        """Get the tools shown in the AI page tool picker."""
        return [tool for tool in self._tools.values() if tool.listed]

    def get(self, tool_id: ToolId | str) -> ToolDefinition | None:
        """Get a tool definition, or None for unknown identifiers."""
        parsed = tool_id if isinstance(tool_id, ToolId) else ToolId.parse(tool_id)
        if parsed is None:
            return None
        return self._tools.get(parsed)

    def has_tool(self, tool_id: ToolId | str) -> bool:
        """Check if a tool is registered."""
        return self.get(tool_id) is not None

    # Last in the class body so ``list`` in the annotations above is the builtin
    def list(self) -> list[ToolDefinition]:
        """Get all tool definitions in registration order."""
        return list(self._tools.values())


_tool_registry: ToolRegistry | None = None


def get_tool_registry() -> ToolRegistry:
    """Get or create the tool registry instance."""
    global _tool_registry
    if _tool_registry is None:
        _tool_registry = ToolRegistry()
    return _tool_registry
