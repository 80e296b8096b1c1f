"""API endpoints for the Snowscribe AI service."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from snowscribe import __version__
from snowscribe.api.dependencies import get_conversation_service, get_orchestrator, get_session_manager
from snowscribe.models.conversation import (
    HealthResponse,
    OutlineRequest,
    SendMessageRequest,
    SessionCreateRequest,
    SessionMessageRequest,
    SessionResponse,
    SwitchToolRequest,
    ToolDefinitionResponse,
    WorldNoteSuggestionRequest,
)
from snowscribe.models.llm import ConversationTurn
from snowscribe.models.session import ChatSession, SessionBusyError
from snowscribe.services.conversation import ConversationService, NoToolSelectedError
from snowscribe.services.orchestrator import AIOrchestrator
from snowscribe.services.session_manager import InMemorySessionManager
from snowscribe.services.structured import (
    NoteSuggestion,
    OutlineGenerationError,
    ParsedOutline,
    generate_outline,
    suggest_world_note,
)
from snowscribe.tools.registry import get_tool_registry
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

UserId = Annotated[str | None, Header(alias="X-User-Id")]


def _require_session(session_id: str, session_manager: InMemorySessionManager) -> ChatSession:
    session = session_manager.get_session(session_id)
    if not session:
        logger.warning(f"Unknown session ID: {session_id}")
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return session


@router.get("/ai/tools", response_model=list[ToolDefinitionResponse], tags=["Tools"])
async def list_tools(listed: bool = Query(False)) -> list[ToolDefinitionResponse]:
    """List the AI tools; with ``listed=true`` only those shown in the tool picker."""
    registry = get_tool_registry()
    tools = registry.list_page_tools() if listed else registry.list()
    return [ToolDefinitionResponse.from_definition(tool) for tool in tools]


@router.post("/projects/{project_id}/ai/messages", response_model=ConversationTurn, tags=["AI"])
async def send_message(
    project_id: str,
    request: SendMessageRequest,
    user_id: UserId = None,
    orchestrator: AIOrchestrator = Depends(get_orchestrator),
) -> ConversationTurn:
    """Run one AI call with caller-supplied history.

    Failures come back as a turn carrying an error block, not as an HTTP error.
    """
    logger.info(f"Send message for project {project_id} with tool {request.tool_id}")
    return await orchestrator.send_message(
        project_id,
        request.tool_id,
        request.prompt,
        request.context_data,
        request.history,
        user_id=user_id,
    )


@router.post("/projects/{project_id}/ai/outline", response_model=ParsedOutline, tags=["AI"])
async def create_outline(
    project_id: str,
    request: OutlineRequest,
    user_id: UserId = None,
    orchestrator: AIOrchestrator = Depends(get_orchestrator),
) -> ParsedOutline:
    """Generate characters, chapters and scenes from the project synopsis."""
    logger.info(f"Generating outline for project {project_id}")
    try:
        return await generate_outline(orchestrator, project_id, request.synopsis, user_id=user_id)
    except OutlineGenerationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.post("/projects/{project_id}/ai/world-note-suggestion", response_model=NoteSuggestion, tags=["AI"])
async def create_world_note_suggestion(
    project_id: str,
    request: WorldNoteSuggestionRequest,
    user_id: UserId = None,
    orchestrator: AIOrchestrator = Depends(get_orchestrator),
) -> NoteSuggestion:
    """Suggest a title and category for a world note; empty fields when none could be made."""
    return await suggest_world_note(orchestrator, project_id, request.content, user_id=user_id)


@router.post("/sessions", response_model=SessionResponse, status_code=201, tags=["Sessions"])
async def create_session(
    request: SessionCreateRequest,
    user_id: UserId = None,
    session_manager: InMemorySessionManager = Depends(get_session_manager),
) -> SessionResponse:
    session = session_manager.create_session(
        request.project_id, user_id=user_id, tool_id=request.tool_id.value if request.tool_id else None
    )
    logger.info(f"Created session {session.session_id} for project {request.project_id}")
    return SessionResponse.from_session(session)


@router.get("/sessions/{session_id}", response_model=SessionResponse, tags=["Sessions"])
async def get_session(
    session_id: str, session_manager: InMemorySessionManager = Depends(get_session_manager)
) -> SessionResponse:
    return SessionResponse.from_session(_require_session(session_id, session_manager))


@router.post("/sessions/{session_id}/messages", response_model=SessionResponse, tags=["Sessions"])
async def send_session_message(
    session_id: str,
    request: SessionMessageRequest,
    session_manager: InMemorySessionManager = Depends(get_session_manager),
    conversation_service: ConversationService = Depends(get_conversation_service),
) -> SessionResponse:
    """Send the writer's message in a session and return the updated view."""
    session = _require_session(session_id, session_manager)

    try:
        logger.info(f"Processing message for session {session_id}: {request.message[:50]}...")
        await conversation_service.send_user_message(session, request.message, request.context_data)
    except SessionBusyError as e:
        logger.warning(f"Rejected concurrent message for session {session_id}")
        raise HTTPException(status_code=409, detail=str(e)) from e
    except NoToolSelectedError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return SessionResponse.from_session(session)


@router.put("/sessions/{session_id}/tool", response_model=SessionResponse, tags=["Sessions"])
async def switch_tool(
    session_id: str,
    request: SwitchToolRequest,
    session_manager: InMemorySessionManager = Depends(get_session_manager),
    conversation_service: ConversationService = Depends(get_conversation_service),
) -> SessionResponse:
    """Switch the session's tool; the conversation is cleared."""
    session = _require_session(session_id, session_manager)
    conversation_service.switch_tool(session, request.tool_id.value if request.tool_id else None)
    return SessionResponse.from_session(session)


@router.delete("/sessions/{session_id}/messages", response_model=SessionResponse, tags=["Sessions"])
async def clear_session_messages(
    session_id: str,
    session_manager: InMemorySessionManager = Depends(get_session_manager),
    conversation_service: ConversationService = Depends(get_conversation_service),
) -> SessionResponse:
    session = _require_session(session_id, session_manager)
    conversation_service.clear_chat(session)
    return SessionResponse.from_session(session)


@router.delete("/sessions/{session_id}", status_code=204, tags=["Sessions"])
async def delete_session(
    session_id: str, session_manager: InMemorySessionManager = Depends(get_session_manager)
) -> None:
    if not session_manager.delete_session(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    logger.info(f"Deleted session {session_id}")


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )
