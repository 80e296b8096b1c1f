"""Shared types for vendor chat clients."""

from dataclasses import dataclass, field
from typing import Literal, Protocol

from pydantic import BaseModel


class ChatMessage(BaseModel):
    """A plain-text message in vendor-neutral form."""

    role: Literal["user", "assistant"]
    content: str


@dataclass
class TokenUsage:
    """Token counts reported by a vendor."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class VendorReply:
    """Text and usage returned by one vendor call."""

    texts: list[str]
    model: str
    usage: TokenUsage | None = None
    stop_reason: str | None = None
    raw: dict = field(default_factory=dict)


class VendorError(Exception):
    """A vendor call failed.

    ``public_message`` is safe to show to the writer; ``private_message`` keeps
    the diagnostic for logs.
    """

    def __init__(self, public_message: str, private_message: str = "", status_code: int | None = None):
        super().__init__(private_message or public_message)
        self.public_message = public_message
        self.private_message = private_message or public_message
        self.status_code = status_code


def public_message_for_status(status_code: int | None) -> str:
    """Writer-facing explanation for a vendor HTTP status."""
    if status_code in (401, 403):
        return "The AI provider rejected the request credentials."
    if status_code == 429:
        return "The AI service is busy right now. Please try again in a moment."
    if status_code is not None and status_code >= 500:
        return "The AI service is temporarily unavailable. Please try again."
    return "The AI service could not process this request."


class VendorClient(Protocol):
    """One call to a vendor's chat endpoint."""

    async def send_chat(
        self,
        *,
        model: str,
        messages: list[ChatMessage],
        system_prompt: str,
        max_tokens: int | None = None,
    ) -> VendorReply: ...
