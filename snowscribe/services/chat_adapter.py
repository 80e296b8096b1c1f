"""Vendor-agnostic chat invocation.

The adapter is the single seam to the vendor SDKs: one vendor call per
invocation, and every failure comes back as an error turn instead of an
exception.
"""

import os
from typing import Protocol

from snowscribe.clients.anthropic import AnthropicClient
from snowscribe.clients.base import ChatMessage, TokenUsage, VendorClient, VendorError
from snowscribe.clients.openai import OpenAIClient
from snowscribe.models.ai_config import ModelConfiguration
from snowscribe.models.llm import ChatUsage, ConversationTurn, TextBlock
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)

GENERIC_FAILURE_MESSAGE = "The AI service failed to respond. Please try again."


class ChatAdapter(Protocol):
    """Contract the orchestrator depends on."""

    async def invoke(
        self,
        model_config: ModelConfiguration,
        history: list[ConversationTurn],
        composed_prompt: str,
        system_prompt: str,
    ) -> ConversationTurn: ...


def build_vendor_messages(history: list[ConversationTurn], composed_prompt: str) -> list[ChatMessage]:
    """Convert session history plus the composed prompt into vendor messages.

    Error turns and error blocks are never replayed. A trailing user turn is the
    turn being answered, so the composed prompt (context plus that request)
    takes its place. Consecutive messages from the same role are merged.
    """
    turns = [turn for turn in history if turn.role in ("user", "assistant") and turn.text_blocks]
    if history and history[-1].role == "user" and turns and turns[-1] is history[-1]:
        turns = turns[:-1]

    messages: list[ChatMessage] = []
    pending = [(turn.role, turn.text) for turn in turns]
    pending.append(("user", composed_prompt))

    for role, text in pending:
        if messages and messages[-1].role == role:
            messages[-1] = ChatMessage(role=role, content=f"{messages[-1].content}\n\n{text}")
        else:
            messages.append(ChatMessage(role=role, content=text))
    return messages


def compute_cost(model_config: ModelConfiguration, usage: TokenUsage | None) -> float | None:
    """USD cost of a call from per-million-token prices, None if unpriced."""
    if usage is None:
        return None
    if model_config.input_token_cost is None and model_config.output_token_cost is None:
        return None
    input_cost = usage.input_tokens * (model_config.input_token_cost or 0.0) / 1_000_000
    output_cost = usage.output_tokens * (model_config.output_token_cost or 0.0) / 1_000_000
    return input_cost + output_cost


class VendorClientFactory:
    """Builds and caches one vendor client per vendor and credential."""

    def __init__(self):
        self._clients: dict[tuple[str, str], VendorClient] = {}

    def _api_key(self, model_config: ModelConfiguration) -> str:
        env_var = model_config.vendor_credential_ref or f"{model_config.vendor_name.upper()}_API_KEY"
        api_key = os.getenv(env_var)
        if not api_key:
            raise VendorError(
                "The AI service is not configured. Please contact support.",
                f"Environment variable '{env_var}' for vendor '{model_config.vendor_name}' is not set",
            )
        return api_key

    def get_client(self, model_config: ModelConfiguration) -> VendorClient:
        vendor = model_config.vendor_name.lower()
        api_key = self._api_key(model_config)
        cache_key = (vendor, api_key)
        if cache_key in self._clients:
            return self._clients[cache_key]

        if vendor == "anthropic":
            client: VendorClient = AnthropicClient(api_key=api_key)
        elif vendor == "openai":
            client = OpenAIClient(api_key=api_key)
        elif vendor == "openrouter":
            client = OpenAIClient.for_openrouter(api_key=api_key)
        else:
            raise VendorError(
                "This AI model's provider is not supported.",
                f"Unsupported vendor '{model_config.vendor_name}' for model '{model_config.model_id}'",
            )

        self._clients[cache_key] = client
        return client


class VendorChatAdapter:
    """Chat adapter that dispatches to the configured vendor's client."""

    def __init__(self, factory: VendorClientFactory | None = None):
        self.factory = factory or VendorClientFactory()

    async def invoke(
        self,
        model_config: ModelConfiguration,
        history: list[ConversationTurn],
        composed_prompt: str,
        system_prompt: str,
    ) -> ConversationTurn:
        """Call the model and normalize the reply into an assistant turn."""
        try:
            client = self.factory.get_client(model_config)
            reply = await client.send_chat(
                model=model_config.api_model_name,
                messages=build_vendor_messages(history, composed_prompt),
                system_prompt=system_prompt,
                max_tokens=model_config.max_tokens,
            )
        except VendorError as e:
            logger.error(f"Vendor call failed for tool '{model_config.tool_id}': {e.private_message}")
            return ConversationTurn.assistant_error(e.public_message, e.private_message)
        except Exception as e:
            logger.error(f"Unexpected chat adapter failure for tool '{model_config.tool_id}': {e}", exc_info=True)
            return ConversationTurn.assistant_error(GENERIC_FAILURE_MESSAGE, f"{type(e).__name__}: {e}")

        usage = None
        if reply.usage is not None:
            usage = ChatUsage(
                input_tokens=reply.usage.input_tokens,
                output_tokens=reply.usage.output_tokens,
                total_cost=compute_cost(model_config, reply.usage),
            )

        return ConversationTurn(
            role="assistant",
            content=[TextBlock(text=text) for text in reply.texts],
            usage=usage,
            model=reply.model,
        )
