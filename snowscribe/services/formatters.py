"""Context formatters: project data in, prompt-ready text out.

Formatters are pure. They never perform I/O and substitute placeholder text for
missing optional fields, so the same input always yields the same string.
"""

from collections.abc import Callable
from typing import Any, assert_never

from pydantic import ValidationError

from snowscribe.models.project import (
    Chapter,
    Character,
    CharacterContext,
    ManuscriptContext,
    OutlineContext,
    Scene,
    SceneContext,
    SceneTag,
    WorldBuildingContext,
    WorldBuildingNote,
)
from snowscribe.tools.base import ToolId
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)

SCENE_SNIPPET_CHARS = 750

# Tools whose prompt is the whole input; any other tool without a formatter is a gap
CONTEXT_FREE_TOOLS = frozenset({ToolId.WRITING_COACH, ToolId.OUTLINE_JSON_GENERATOR})

ContextFormatter = Callable[[Any], str]


class FormatterError(Exception):
    """Raised when context data cannot be formatted for a tool."""

    def __init__(self, tool_id: str, message: str):
        super().__init__(f"Context formatting failed for '{tool_id}': {message}")
        self.tool_id = tool_id


def format_manuscript(chapters: list[Chapter]) -> str:
    """Format the full manuscript, chapter by chapter and scene by scene."""
    if not chapters:
        return "No manuscript content available."

    parts = ["## Manuscript Content\n\n"]
    for chapter in chapters:
        parts.append(f"### Chapter: {chapter.title or 'Untitled Chapter'} (Order: {chapter.order})\n\n")
        if not chapter.scenes:
            parts.append("No scenes in this chapter.\n\n")
            continue
        for scene in chapter.scenes:
            parts.append(f"#### Scene: {scene.title or 'Untitled Scene'} (Order: {scene.order})\n")
            parts.append(f"{scene.content or 'No content for this scene.'}\n\n")
    return "".join(parts).strip()


def _names_for(ids: list[str], lookup: dict[str, str]) -> str:
    return ", ".join(lookup[item_id] for item_id in ids if item_id in lookup)


def format_outline(chapters: list[Chapter], characters: list[Character], scene_tags: list[SceneTag]) -> str:
    """Format the outline: scene descriptions, cast, tags and categories."""
    if not chapters:
        return "No outline data available."

    character_names = {character.id: character.name for character in characters}
    tag_names = {tag.id: tag.name for tag in scene_tags}

    parts = ["## Project Outline Context\n\n"]
    for chapter in chapters:
        parts.append(f"### Chapter {chapter.order + 1}: {chapter.title or 'Untitled Chapter'}\n")
        if not chapter.scenes:
            parts.append("  No scenes in this chapter.\n\n")
            continue
        for scene in chapter.scenes:
            pov = character_names.get(scene.pov_character_id or "", "N/A")
            others = _names_for(scene.other_character_ids, character_names)
            tags = _names_for(scene.tag_ids, tag_names)
            parts.append(f"  #### Scene {scene.order + 1}: {scene.title or 'Untitled Scene'}\n")
            parts.append(f"    Description: {scene.outline_description or 'N/A'}\n")
            parts.append(f"    POV Character: {pov}\n")
            parts.append(f"    Other Characters: {others or 'None'}\n")
            parts.append(f"    Tags: {tags or 'None'}\n")
            parts.append(f"    Primary Category: {scene.primary_category or 'N/A'}\n\n")

    if characters:
        parts.append("\n### Characters List:\n")
        for character in characters:
            suffix = f": {character.description}" if character.description else ""
            parts.append(f"- {character.name}{suffix}\n")

    if scene_tags:
        parts.append("\n### Scene Tags List:\n")
        for tag in scene_tags:
            suffix = f": {tag.description}" if tag.description else ""
            parts.append(f"- {tag.name}{suffix}\n")

    return "".join(parts).strip()


def format_character(character: Character | None, related_scenes: list[Scene]) -> str:
    """Format a character profile plus scene excerpts for impersonation."""
    if character is None:
        return "CHARACTER PROFILE UNAVAILABLE FOR IMPERSONATION."

    parts = [f"## IMPERSONATE THIS CHARACTER:\n\n### Character Profile: {character.name}\n"]
    if character.nickname:
        parts.append(f"Nickname: {character.nickname}\n")
    if character.description:
        parts.append(f"Description: {character.description}\n")
    if character.notes:
        parts.append(f"Detailed Notes/Backstory/Motivations:\n{character.notes}\n")

    parts.append("\n### SCENE CONTEXTS (Excerpts from scenes this character appears in):\n")
    if related_scenes:
        for index, scene in enumerate(related_scenes, start=1):
            parts.append(f"\n--- Scene Excerpt {index} ---\n")
            parts.append(f"Title: {scene.title or 'Untitled Scene'}\n")
            if scene.outline_description:
                parts.append(f"Outline/Summary: {scene.outline_description}\n")

            if scene.pov_character_id == character.id:
                parts.append(
                    f"Role in Scene: POV Character (This scene is from {character.name}'s Point of View.)\n"
                )
            else:
                parts.append("Role in Scene: Present Character\n")

            if scene.content:
                snippet = scene.content
                if len(snippet) > SCENE_SNIPPET_CHARS:
                    snippet = snippet[:SCENE_SNIPPET_CHARS] + "..."
            else:
                snippet = "No detailed content provided for this scene excerpt."
            parts.append(f'Content Snippet:\n"""\n{snippet}\n"""\n')
    else:
        parts.append(
            "This character has not yet appeared in any scenes with detailed content provided in this context.\n"
        )

    parts.append(
        "\nIMPORTANT: You are to respond *as* this character, using all the provided information to inform "
        "your personality, knowledge, and replies. Do not break character.\n"
    )
    return "".join(parts).strip()


def format_world_building(notes: list[WorldBuildingNote]) -> str:
    if not notes:
        return "No world building notes available."

    parts = ["## World Building Notes\n\n"]
    for note in notes:
        parts.append(f"### Note: {note.title}\n")
        if note.category:
            parts.append(f"Category: {note.category}\n")
        parts.append(f"Content:\n{note.content or 'No content.'}\n\n")
    return "".join(parts).strip()


def format_scene(scene: Scene | None) -> str:
    """Format a single scene with its full content."""
    if scene is None:
        return "No scene data available."

    parts = [f"## Scene Context: {scene.title or 'Untitled Scene'}\n\n"]
    if scene.primary_category:
        parts.append(f"Primary Category: {scene.primary_category}\n")
    if scene.outline_description:
        parts.append(f"Outline Description: {scene.outline_description}\n")
    parts.append(f"Full Scene Content:\n{scene.content or 'No content.'}\n")
    return "".join(parts).strip()


def _manuscript_context(data: Any) -> str:
    return format_manuscript(ManuscriptContext.model_validate(data).chapters)


def _outline_context(data: Any) -> str:
    context = OutlineContext.model_validate(data)
    return format_outline(context.chapters, context.characters, context.scene_tags)


def _character_context(data: Any) -> str:
    context = CharacterContext.model_validate(data)
    return format_character(context.character, context.related_scenes)


def _world_building_context(data: Any) -> str:
    return format_world_building(WorldBuildingContext.model_validate(data).notes)


def _scene_context(data: Any) -> str:
    return format_scene(SceneContext.model_validate(data).scene)


def select_formatter(tool_id: ToolId) -> ContextFormatter | None:
    """Pick the formatter for a tool; None means the tool takes no context."""
    match tool_id:
        case ToolId.MANUSCRIPT_CHAT | ToolId.PLOT_HOLE_CHECKER_MANUSCRIPT:
            return _manuscript_context
        case ToolId.OUTLINE_CHAT | ToolId.PLOT_HOLE_CHECKER_OUTLINE:
            return _outline_context
        case ToolId.CHARACTER_CHAT:
            return _character_context
        case ToolId.WORLD_BUILDING_CHAT:
            return _world_building_context
        case ToolId.SCENE_HELPER | ToolId.SCENE_ANALYZER | ToolId.SCENE_OUTLINER:
            return _scene_context
        case (
            ToolId.WRITING_COACH
            | ToolId.CHARACTER_NAME_GENERATOR
            | ToolId.PLOT_HOLE_CHECKER
            | ToolId.OUTLINE_JSON_GENERATOR
            | ToolId.WORLD_NOTE_SUGGESTER
        ):
            return None
        case _:
            assert_never(tool_id)


def format_context(tool_id: ToolId, context_data: Any) -> str:
    """Run the tool's formatter over raw context data.

    Returns an empty string when the tool takes no context or no data was given.

    Raises:
        FormatterError: If the data does not fit the tool's context shape or the
            formatter itself fails
    """
    formatter = select_formatter(tool_id)
    if formatter is None:
        if context_data is not None and tool_id not in CONTEXT_FREE_TOOLS:
            logger.warning(
                f"No specific context formatter for tool '{tool_id.value}'. Context data might not be used as intended."
            )
        return ""
    if context_data is None:
        return ""

    try:
        return formatter(context_data)
    except ValidationError as e:
        raise FormatterError(tool_id.value, f"context data does not match the expected shape: {e}") from e
    except Exception as e:
        raise FormatterError(tool_id.value, str(e)) from e
