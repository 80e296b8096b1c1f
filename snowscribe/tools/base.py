"""Tool identifiers and static tool definitions."""

from dataclasses import dataclass
from enum import StrEnum


class ToolId(StrEnum):
    """Closed set of AI tools.

    The value doubles as the default model-binding key and prompt category.
    """

    MANUSCRIPT_CHAT = "manuscript_chat"
    OUTLINE_CHAT = "outline_chat"
    CHARACTER_CHAT = "character_chat"
    WORLD_BUILDING_CHAT = "world_building_chat"
    PLOT_HOLE_CHECKER = "plot_hole_checker"
    PLOT_HOLE_CHECKER_MANUSCRIPT = "plot_hole_checker_manuscript"
    PLOT_HOLE_CHECKER_OUTLINE = "plot_hole_checker_outline"
    WRITING_COACH = "writing_coach"
    CHARACTER_NAME_GENERATOR = "character_name_generator"
    SCENE_HELPER = "scene_helper"
    SCENE_ANALYZER = "scene_analyzer"
    SCENE_OUTLINER = "scene_outliner"
    OUTLINE_JSON_GENERATOR = "outline_json_generator"
    WORLD_NOTE_SUGGESTER = "world_note_suggester"

    @classmethod
    def parse(cls, value: str) -> "ToolId | None":
        """Return the matching identifier, or None for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class ToolDefinition:
    """Display metadata and configuration lookup keys for a tool."""

    id: ToolId
    display_name: str
    description: str
    # Shown in the AI page tool picker
    listed: bool = True
    model_key: str | None = None
    prompt_category: str | None = None

    @property
    def model_lookup_key(self) -> str:
        return self.model_key or self.id.value

    @property
    def prompt_lookup_key(self) -> str:
        return self.prompt_category or self.id.value
