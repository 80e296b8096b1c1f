"""Project domain records and the context shapes passed to formatters."""

from pydantic import BaseModel, Field


class ProjectRecord(BaseModel):
    """Base for rows coming from the relational store."""

    class Config:
        extra = "ignore"


class Scene(ProjectRecord):
    """A scene inside a chapter."""

    id: str
    title: str | None = None
    content: str | None = None
    order: int = 0
    outline_description: str | None = None
    pov_character_id: str | None = None
    other_character_ids: list[str] = Field(default_factory=list)
    tag_ids: list[str] = Field(default_factory=list)
    primary_category: str | None = None


class Chapter(ProjectRecord):
    """A chapter with its (optionally loaded) scenes."""

    id: str
    title: str | None = None
    order: int = 0
    scenes: list[Scene] = Field(default_factory=list)


class Character(ProjectRecord):
    """A character card."""

    id: str
    name: str
    nickname: str | None = None
    description: str | None = None
    notes: str | None = None


class SceneTag(ProjectRecord):
    id: str
    name: str
    description: str | None = None


class WorldBuildingNote(ProjectRecord):
    id: str
    title: str
    content: str | None = None
    category: str | None = None


class ManuscriptContext(ProjectRecord):
    chapters: list[Chapter] = Field(default_factory=list)


class OutlineContext(ProjectRecord):
    chapters: list[Chapter] = Field(default_factory=list)
    characters: list[Character] = Field(default_factory=list)
    scene_tags: list[SceneTag] = Field(default_factory=list, alias="sceneTags")

    class Config:
        extra = "ignore"
        populate_by_name = True


class CharacterContext(ProjectRecord):
    character: Character | None = None
    related_scenes: list[Scene] = Field(default_factory=list, alias="relatedScenes")

    class Config:
        extra = "ignore"
        populate_by_name = True


class WorldBuildingContext(ProjectRecord):
    notes: list[WorldBuildingNote] = Field(default_factory=list)


class SceneContext(ProjectRecord):
    scene: Scene | None = None
