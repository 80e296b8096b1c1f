"""Conversation session state for one writer, one project and one tool."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from cuid2 import cuid_wrapper
from pydantic import BaseModel

from snowscribe.models.llm import ConversationTurn
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()


class SessionBusyError(Exception):
    """Raised when a turn is started while another one is still in flight."""


class UIMessage(BaseModel):
    """Display-only message derived from the session's entries."""

    id: str
    text: str
    sender: Literal["user", "ai", "system"]
    type: Literal["text", "info", "error"] = "text"
    timestamp: datetime
    raw_response: ConversationTurn | None = None


@dataclass
class SessionEntry:
    """One item of the canonical sequence.

    Entries with a ``turn`` are part of the model history. Entries without one
    are synthetic system messages that only exist in the display view.
    """

    id: str
    timestamp: datetime
    turn: ConversationTurn | None = None
    system_text: str | None = None
    system_type: Literal["info", "error"] = "info"

    def to_ui_message(self) -> UIMessage:
        if self.turn is None:
            return UIMessage(
                id=self.id,
                text=self.system_text or "",
                sender="system",
                type=self.system_type,
                timestamp=self.timestamp,
            )

        if self.turn.role == "user":
            return UIMessage(id=self.id, text=self.turn.text, sender="user", timestamp=self.timestamp)

        text, message_type = _display_text(self.turn)
        return UIMessage(
            id=self.id,
            text=text,
            sender="ai",
            type=message_type,
            timestamp=self.timestamp,
            raw_response=self.turn,
        )


def _display_text(turn: ConversationTurn) -> tuple[str, Literal["text", "error"]]:
    """Pick the text shown for an AI turn from its first content block."""
    if turn.content:
        first = turn.content[0]
        if first.type == "text":
            return first.text, "text"
        if first.type == "error":
            return first.public_message, "error"
    elif turn.role == "error":
        return "An error occurred with the AI service.", "error"
    return "AI response could not be processed.", "text"


@dataclass
class ChatSession:
    """Client-scoped chat state.

    The entry list is the single source of truth; ``native_history`` and
    ``ui_messages`` are views over it. ``generation`` changes on every clear so
    a result that was in flight during a clear can be recognised and dropped.
    """

    session_id: str
    project_id: str
    user_id: str | None = None
    tool_id: str | None = None
    entries: list[SessionEntry] = field(default_factory=list)
    is_loading: bool = False
    last_error: str | None = None
    generation: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def state(self) -> Literal["empty", "active"]:
        return "active" if self.entries else "empty"

    @property
    def native_history(self) -> list[ConversationTurn]:
        """Turns in the order they are replayed to the model."""
        return [entry.turn for entry in self.entries if entry.turn is not None]

    @property
    def ui_messages(self) -> list[UIMessage]:
        return [entry.to_ui_message() for entry in self.entries]

    def update_activity(self) -> None:
        """Update the last activity timestamp."""
        self.last_activity = datetime.now(UTC)

    def start_request(self) -> int:
        """Take the in-flight slot and return the generation it belongs to."""
        if self.is_loading:
            raise SessionBusyError(f"Session {self.session_id} already has a message in flight")
        self.is_loading = True
        self.last_error = None
        self.update_activity()
        return self.generation

    def finish_request(self, generation: int) -> None:
        """Release the in-flight slot unless a clear already released it."""
        if generation == self.generation:
            self.is_loading = False

    def append_user_turn(self, text: str) -> ConversationTurn:
        """Append the writer's message to both views."""
        turn = ConversationTurn.user(text)
        self.entries.append(SessionEntry(id=cuid(), timestamp=datetime.now(UTC), turn=turn))
        self.update_activity()
        return turn

    def receive_ai_result(self, turn: ConversationTurn, generation: int | None = None) -> bool:
        """Append the AI turn, or drop it if the session was cleared meanwhile.

        Returns:
            True if the turn was appended
        """
        if generation is not None and generation != self.generation:
            logger.info(f"Discarding stale AI result for session {self.session_id} (generation {generation})")
            return False

        entry = SessionEntry(id=cuid(), timestamp=datetime.now(UTC), turn=turn)
        message = entry.to_ui_message()
        if message.type == "error":
            self.last_error = message.text
        self.entries.append(entry)
        self.update_activity()
        return True

    def record_failure(self, message: str, generation: int | None = None) -> bool:
        """Add a system error message that is never replayed to the model."""
        if generation is not None and generation != self.generation:
            return False
        self.last_error = message
        self.entries.append(
            SessionEntry(id=cuid(), timestamp=datetime.now(UTC), system_text=f"Error: {message}", system_type="error")
        )
        self.update_activity()
        return True

    def clear_chat(self) -> None:
        """Drop every message and error, and release any in-flight slot."""
        self.entries = []
        self.last_error = None
        self.is_loading = False
        self.generation += 1
        self.update_activity()

    def switch_tool(self, tool_id: str | None) -> None:
        """Change the active tool; history never survives a tool change."""
        logger.info(f"Session {self.session_id} switching tool {self.tool_id} -> {tool_id}")
        self.clear_chat()
        self.tool_id = tool_id

    def as_dict(self) -> dict[str, Any]:
        """Return the session summary as a dictionary."""
        return {
            "session_id": self.session_id,
            "project_id": self.project_id,
            "tool_id": self.tool_id,
            "state": self.state,
            "messages": len(self.entries),
            "is_loading": self.is_loading,
            "last_error": self.last_error,
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }
