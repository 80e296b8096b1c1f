"""Session management for in-memory storage."""

from datetime import UTC, datetime, timedelta

from cuid2 import cuid_wrapper

from snowscribe.models.session import ChatSession

cuid = cuid_wrapper()


class InMemorySessionManager:
    """In-memory chat session store with inactivity expiry."""

    def __init__(self, session_timeout_minutes: int = 60):
        """Initialize session manager.

        Args:
            session_timeout_minutes: Minutes before session expires
        """
        self.sessions: dict[str, ChatSession] = {}
        self.session_timeout = timedelta(minutes=session_timeout_minutes)

    def create_session(self, project_id: str, user_id: str | None = None, tool_id: str | None = None) -> ChatSession:
        """Create an empty session for a project."""
        self._cleanup_expired_sessions()

        session = ChatSession(
            session_id=self._generate_session_id(), project_id=project_id, user_id=user_id, tool_id=tool_id
        )
        self.sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> ChatSession | None:
        """Get existing session by ID.

        Args:
            session_id: Session identifier

        Returns:
            Session if found and not expired, None otherwise
        """
        self._cleanup_expired_sessions()

        session = self.sessions.get(session_id)
        if session:
            session.update_activity()
        return session

    def delete_session(self, session_id: str) -> bool:
        """Delete a session.

        Args:
            session_id: Session identifier

        Returns:
            True if session was deleted, False if not found
        """
        if session_id in self.sessions:
            del self.sessions[session_id]
            return True
        return False

    def _generate_session_id(self) -> str:
        """Generate a new CUID-based session ID."""
        return cuid()

    def _cleanup_expired_sessions(self) -> None:
        """Remove expired sessions from memory.

        Sessions with a call in flight are kept until the call finishes.
        """
        current_time = datetime.now(UTC)
        expired_sessions = [
            session_id
            for session_id, session in self.sessions.items()
            if not session.is_loading and current_time - session.last_activity > self.session_timeout
        ]

        for session_id in expired_sessions:
            del self.sessions[session_id]

    def get_session_count(self) -> int:
        """Get current number of active sessions."""
        self._cleanup_expired_sessions()
        return len(self.sessions)
