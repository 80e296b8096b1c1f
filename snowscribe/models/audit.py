"""Audit trail record for completed AI calls."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from snowscribe.models.llm import ConversationTurn


class AuditRecord(BaseModel):
    """Write-once record of one orchestrated call."""

    project_id: str
    user_id: str
    tool_id: str
    model_used: str | None = None
    input_context_raw: Any = None
    input_context_formatted: str = ""
    prompt_text: str
    user_prompt: str
    response_data: ConversationTurn
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
