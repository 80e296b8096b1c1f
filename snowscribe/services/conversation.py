"""Conversation service: drives a chat session through one AI turn."""

from typing import Any

from snowscribe.models.llm import ConversationTurn
from snowscribe.models.session import ChatSession
from snowscribe.services.orchestrator import AIOrchestrator
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)


class NoToolSelectedError(ValueError):
    """Raised when a message is sent before a tool is chosen."""


class ConversationService:
    """Applies session transitions around the stateless orchestrator.

    History passed to call N is the history after call N-1's result plus this
    call's user turn. A result that arrives after the session was cleared or
    switched to another tool is dropped.
    """

    def __init__(self, orchestrator: AIOrchestrator):
        self.orchestrator = orchestrator

    async def send_user_message(
        self, session: ChatSession, text: str, context_data: Any = None
    ) -> ConversationTurn | None:
        """Send the writer's message and record the AI's reply.

        Returns:
            The AI turn if it was appended to the session, None if it was
            discarded because the session changed while the call was in flight

        Raises:
            SessionBusyError: If the session already has a call in flight
            NoToolSelectedError: If the session has no active tool
        """
        if not session.tool_id:
            raise NoToolSelectedError("Select an AI tool before sending a message.")

        generation = session.start_request()
        tool_id = session.tool_id
        try:
            session.append_user_turn(text)
            history = session.native_history

            logger.info(
                f"Sending message for session {session.session_id} with tool {tool_id} "
                f"({len(history)} turns of history)"
            )
            try:
                turn = await self.orchestrator.send_message(
                    session.project_id,
                    tool_id,
                    text,
                    context_data,
                    history,
                    user_id=session.user_id,
                )
            except Exception as e:
                logger.error(f"Error sending message for session {session.session_id}: {e}", exc_info=True)
                session.record_failure("An unexpected error occurred.", generation)
                return None

            if session.receive_ai_result(turn, generation):
                return turn
            return None
        finally:
            session.finish_request(generation)

    def switch_tool(self, session: ChatSession, tool_id: str | None) -> None:
        session.switch_tool(tool_id)

    def clear_chat(self, session: ChatSession) -> None:
        session.clear_chat()
