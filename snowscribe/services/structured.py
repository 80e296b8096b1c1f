"""Helpers that ask a tool for JSON and parse the reply."""

import json
import re

from pydantic import BaseModel, Field, ValidationError

from snowscribe.services.orchestrator import AIOrchestrator
from snowscribe.tools.base import ToolId
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$")
_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


class ParsedCharacter(BaseModel):
    name: str
    description: str | None = None


class ParsedScene(BaseModel):
    title: str
    order: int
    description: str | None = None
    pov_character_name: str | None = Field(default=None, alias="povCharacterName")
    other_character_names: list[str] = Field(default_factory=list, alias="otherCharacterNames")
    tag_names: list[str] = Field(default_factory=list, alias="tagNames")
    primary_category: str | None = Field(default=None, alias="primaryCategory")

    class Config:
        populate_by_name = True


class ParsedChapter(BaseModel):
    title: str
    order: int
    scenes: list[ParsedScene] = Field(default_factory=list)


class ParsedOutline(BaseModel):
    """Outline structure produced from a synopsis."""

    characters: list[ParsedCharacter]
    chapters: list[ParsedChapter]


class NoteSuggestion(BaseModel):
    title: str = ""
    category: str = ""


class OutlineGenerationError(Exception):
    """Raised when an outline cannot be generated; the message is writer-safe."""


async def generate_outline(
    orchestrator: AIOrchestrator, project_id: str, synopsis: str, *, user_id: str | None
) -> ParsedOutline:
    """Generate chapters, scenes and characters from a one-page synopsis.

    Raises:
        OutlineGenerationError: If the synopsis is empty, the AI call fails, or
            the reply is not a valid outline
    """
    if not synopsis or not synopsis.strip():
        raise OutlineGenerationError("Project synopsis is missing.")

    turn = await orchestrator.send_message(
        project_id, ToolId.OUTLINE_JSON_GENERATOR, synopsis, {"synopsis": synopsis}, user_id=user_id
    )

    error = turn.error_block
    if error is not None:
        logger.error(f"Outline generation failed: {error.public_message} ({error.private_message})")
        raise OutlineGenerationError(error.public_message or "AI service failed to generate outline.")

    if not turn.text_blocks:
        raise OutlineGenerationError("AI did not return usable outline data.")

    cleaned = _FENCE_PATTERN.sub("", turn.text_blocks[0].text.strip())
    try:
        return ParsedOutline.model_validate_json(cleaned)
    except ValidationError as e:
        logger.error(f"Failed to parse AI outline JSON: {e}. Raw JSON: {cleaned[:500]}")
        raise OutlineGenerationError("AI returned invalid JSON for the outline.") from e


async def suggest_world_note(
    orchestrator: AIOrchestrator, project_id: str, content: str, *, user_id: str | None
) -> NoteSuggestion:
    """Ask for a title and category for a world note; empty suggestion on failure."""
    prompt = (
        f"Here is the content for the world note:\n\n---\n\n{content}\n\n---\n\n"
        "Please generate a title and category for this content."
    )
    turn = await orchestrator.send_message(project_id, ToolId.WORLD_NOTE_SUGGESTER, prompt, None, user_id=user_id)

    if turn.is_error or not turn.text_blocks:
        error = turn.error_block
        logger.error(f"Failed to get note suggestions: {error.public_message if error else 'no text in reply'}")
        return NoteSuggestion()

    match = _JSON_OBJECT_PATTERN.search(turn.text_blocks[0].text)
    if not match:
        logger.error("AI response did not contain a valid JSON object")
        return NoteSuggestion()

    try:
        data = json.loads(match.group(0))
        return NoteSuggestion.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"AI response JSON has an incorrect structure: {e}")
        return NoteSuggestion()
