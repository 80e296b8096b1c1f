"""Provider-agnostic conversation turn models."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class TextBlock(BaseModel):
    """Text content block."""

    type: Literal["text"] = "text"
    text: str

    class Config:
        extra = "ignore"


class ErrorBlock(BaseModel):
    """Error content block.

    ``public_message`` is safe to show to the writer. ``private_message`` carries
    the diagnostic; it is accepted on input but never serialized, so it stays
    in logs and in-process records.
    """

    type: Literal["error"] = "error"
    public_message: str = Field(alias="publicMessage")
    private_message: str = Field(default="", alias="privateMessage", exclude=True)

    class Config:
        extra = "ignore"
        populate_by_name = True


ContentBlock = Annotated[TextBlock | ErrorBlock, Field(discriminator="type")]


class ChatUsage(BaseModel):
    """Token usage and cost reported for one model call."""

    input_tokens: int = Field(default=0, alias="inputTokens")
    output_tokens: int = Field(default=0, alias="outputTokens")
    total_cost: float | None = Field(default=None, alias="totalCost")

    class Config:
        populate_by_name = True


class ConversationTurn(BaseModel):
    """One turn of a conversation in the adapter-native form.

    User turns are synthesized locally and use the same block structure as
    assistant turns so the whole list can be replayed as history.
    """

    role: Literal["user", "assistant", "error"]
    content: list[ContentBlock] = Field(default_factory=list)
    usage: ChatUsage | None = None
    model: str | None = None

    class Config:
        populate_by_name = True

    @classmethod
    def user(cls, text: str) -> "ConversationTurn":
        """Build the local user turn for ``text``."""
        return cls(role="user", content=[TextBlock(text=text)])

    @classmethod
    def assistant_error(cls, public_message: str, private_message: str = "") -> "ConversationTurn":
        """Build an assistant turn carrying a single error block."""
        return cls(
            role="assistant",
            content=[ErrorBlock(public_message=public_message, private_message=private_message)],
        )

    @property
    def text_blocks(self) -> list[TextBlock]:
        return [block for block in self.content if isinstance(block, TextBlock)]

    @property
    def error_block(self) -> ErrorBlock | None:
        """First error block, if the turn carries one."""
        return next((block for block in self.content if isinstance(block, ErrorBlock)), None)

    @property
    def is_error(self) -> bool:
        return self.role == "error" or self.error_block is not None

    @property
    def text(self) -> str:
        """All text blocks joined, in order."""
        return "\n\n".join(block.text for block in self.text_blocks)
