"""Request and response models for the HTTP API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from snowscribe.models.llm import ConversationTurn
from snowscribe.models.session import ChatSession, UIMessage
from snowscribe.tools.base import ToolDefinition, ToolId


class SendMessageRequest(BaseModel):
    """Request model for the stateless send-message endpoint."""

    tool_id: ToolId
    prompt: str = Field(..., min_length=1)
    context_data: Any = None
    history: list[ConversationTurn] = Field(default_factory=list)


class SessionCreateRequest(BaseModel):
    project_id: str = Field(..., min_length=1)
    tool_id: ToolId | None = None


class SessionMessageRequest(BaseModel):
    """Request model for sending a message in a session."""

    message: str = Field(..., min_length=1)
    context_data: Any = None


class SwitchToolRequest(BaseModel):
    tool_id: ToolId | None = None


class OutlineRequest(BaseModel):
    """Request model for generating an outline from a synopsis."""

    synopsis: str


class WorldNoteSuggestionRequest(BaseModel):
    content: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    """Display view of a chat session."""

    session_id: str
    project_id: str
    tool_id: str | None
    state: str
    is_loading: bool
    last_error: str | None
    messages: list[UIMessage]

    @classmethod
    def from_session(cls, session: ChatSession) -> "SessionResponse":
        return cls(
            session_id=session.session_id,
            project_id=session.project_id,
            tool_id=session.tool_id,
            state=session.state,
            is_loading=session.is_loading,
            last_error=session.last_error,
            messages=session.ui_messages,
        )


class ToolDefinitionResponse(BaseModel):
    id: str
    display_name: str
    description: str
    listed: bool

    @classmethod
    def from_definition(cls, tool: ToolDefinition) -> "ToolDefinitionResponse":
        return cls(id=tool.id.value, display_name=tool.display_name, description=tool.description, listed=tool.listed)


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
