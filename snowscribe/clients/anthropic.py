"""Anthropic API client with rate limiting and error handling."""

import asyncio
import os
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import tiktoken
from anthropic import APIConnectionError, APIError, AsyncAnthropic
from anthropic.types import Message
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from snowscribe.clients.base import (
    ChatMessage,
    TokenUsage,
    VendorError,
    VendorReply,
    public_message_for_status,
)
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class AnthropicConfig:
    """Configuration for Anthropic API client."""

    max_tokens: int = 16000
    temperature: float = 0.7
    max_retries: int = 3
    retry_delay: float = 1.0

    # Token limits for truncation
    max_conversation_tokens: int = 200000
    token_headroom: int = 2000  # Reserve tokens for response


class AnthropicRateLimiter:
    """Moving-window rate limiter shared by all Anthropic clients in the process."""

    def __init__(self, requests_per_minute: int = 50, tokens_per_minute: int = 40_000):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Maximum requests per minute
            tokens_per_minute: Maximum tokens per minute
        """
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)

        self.request_limit = parse(f"{requests_per_minute}/minute")
        self.token_limit = parse(f"{tokens_per_minute}/minute")

    async def _wait_for_window(self, limit, identifier: str, label: str) -> None:
        window_stats = self.limiter.get_window_stats(limit, identifier)
        if window_stats:
            wait_time = max(0, window_stats.reset_time - time.time())
            if wait_time > 0:
                logger.warning(f"{label} rate limit exceeded, waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)

    async def check_rate_limit(self, estimated_tokens: int, identifier: str = "anthropic") -> None:
        """Wait until the request fits within the request and token limits."""
        logger.debug(f"Checking rate limit for {estimated_tokens} tokens, identifier: {identifier}")

        if not self.limiter.hit(self.request_limit, identifier):
            await self._wait_for_window(self.request_limit, identifier, "Request")

        token_identifier = f"{identifier}_tokens"
        if not self.limiter.hit(self.token_limit, token_identifier, cost=max(1, estimated_tokens)):
            await self._wait_for_window(self.token_limit, token_identifier, "Token")


class AnthropicClient:
    """Low-level Anthropic API client with rate limiting and error handling."""

    tokenizer: tiktoken.Encoding | None = None
    api_key: str
    client: AsyncAnthropic
    config: AnthropicConfig
    rate_limiter: AnthropicRateLimiter = AnthropicRateLimiter()

    def __init__(self, api_key: str | None = None, config: AnthropicConfig | None = None):
        """Initialize Anthropic client.

        Args:
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY env var)
            config: Client configuration
        """
        anthropic_api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable is required")

        self.api_key = anthropic_api_key

        self.client = AsyncAnthropic(api_key=self.api_key)
        self.config = config or AnthropicConfig()

        try:
            # Close approximation for Claude
            self.tokenizer = tiktoken.encoding_for_model("gpt-4")
        except Exception:
            self.tokenizer = None

    async def send_chat(
        self,
        *,
        model: str,
        messages: list[ChatMessage],
        system_prompt: str,
        max_tokens: int | None = None,
    ) -> VendorReply:
        """Send one chat request to Claude.

        Args:
            model: Vendor model name
            messages: Conversation, oldest first, ending with the user's prompt
            system_prompt: System prompt for Claude
            max_tokens: Response token cap (defaults to config)

        Returns:
            Text blocks and usage from the response

        Raises:
            VendorError: If the request fails after retries or returns no text
        """
        truncated_messages = self.truncate_conversation(messages, system_prompt)

        estimated_tokens = self._estimate_tokens(truncated_messages, system_prompt)
        logger.debug(f"Estimated tokens: {estimated_tokens}")
        await self.rate_limiter.check_rate_limit(estimated_tokens)

        request_params = {
            "model": model,
            "max_tokens": max_tokens or self.config.max_tokens,
            "temperature": self.config.temperature,
            "system": system_prompt,
            "messages": [msg.model_dump() for msg in truncated_messages],
        }

        logger.debug(f"Making Anthropic API call with model: {model}, {len(truncated_messages)} messages")
        try:
            response: Message = await self._request_with_retries(
                lambda: self.client.messages.create(**request_params)
            )
        except APIError as e:
            status_code = getattr(e, "status_code", None)
            raise VendorError(
                public_message_for_status(status_code),
                f"Anthropic API error ({status_code}): {e}",
                status_code=status_code,
            ) from e

        texts = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        if not texts:
            raise VendorError(
                "The AI service returned an empty response.",
                f"Anthropic response had no text blocks (stop_reason={response.stop_reason})",
            )

        usage = None
        if response.usage:
            usage = TokenUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            )

        logger.debug(f"Response received - Stop reason: {response.stop_reason}, Text blocks: {len(texts)}")

        return VendorReply(texts=texts, model=response.model, usage=usage, stop_reason=response.stop_reason)

    async def _request_with_retries(self, call: Callable[[], Awaitable[T]]) -> T:
        """Execute Anthropic API request with retry logic."""
        for attempt in range(self.config.max_retries):
            try:
                return await call()

            except APIConnectionError:
                if attempt < self.config.max_retries - 1:
                    await asyncio.sleep(self.config.retry_delay * (2**attempt))
                    continue
                raise

            except APIError as e:
                if hasattr(e, "status_code") and e.status_code == 429:  # Rate limit exceeded
                    retry_after = 60
                    if hasattr(e, "response") and e.response and hasattr(e.response, "headers"):
                        retry_after = int(e.response.headers.get("retry-after", 60))

                    if retry_after < 120 and attempt < self.config.max_retries - 1:
                        await asyncio.sleep(retry_after)
                        continue

                elif hasattr(e, "status_code") and e.status_code >= 500 and attempt < self.config.max_retries - 1:
                    # Server error, retry with exponential backoff
                    await asyncio.sleep(self.config.retry_delay * (2**attempt))
                    continue

                raise

        raise VendorError(
            "The AI service is temporarily unavailable. Please try again.",
            f"Failed to complete request after {self.config.max_retries} attempts",
        )

    def _estimate_tokens(self, messages: list[ChatMessage], system_prompt: str) -> int:
        """Estimate token count for rate limiting."""
        text_content = system_prompt + "".join(message.content for message in messages)
        return self.estimate_message_tokens(text_content)

    def estimate_message_tokens(self, message: str) -> int:
        """Estimate token count for a single message.

        Args:
            message: Message content

        Returns:
            Estimated token count
        """
        try:
            return len(self.tokenizer.encode(message)) if self.tokenizer else len(message) // 4
        except Exception:
            # Fallback: roughly 4 characters per token
            return len(message) // 4

    def truncate_conversation(self, messages: list[ChatMessage], system_prompt: str) -> list[ChatMessage]:
        """Drop the oldest messages until the conversation fits the context budget.

        The final message (the prompt being answered) is always kept.

        Args:
            messages: Conversation messages
            system_prompt: System prompt

        Returns:
            Truncated message list that fits within limits
        """
        if not messages:
            return messages

        available_tokens = self.config.max_conversation_tokens - self.config.token_headroom
        available_tokens -= self.estimate_message_tokens(system_prompt)

        truncated_messages: list[ChatMessage] = []
        current_tokens = 0

        for index, message in enumerate(reversed(messages)):
            message_tokens = self.estimate_message_tokens(message.content)
            if index > 0 and current_tokens + message_tokens > available_tokens:
                break
            truncated_messages.insert(0, message)
            current_tokens += message_tokens

        # Anthropic requires the first message to come from the user
        while truncated_messages and truncated_messages[0].role != "user":
            truncated_messages.pop(0)

        if len(truncated_messages) < len(messages):
            logger.warning(
                f"Truncated conversation from {len(messages)} to {len(truncated_messages)} messages "
                f"to fit within {available_tokens} token limit"
            )

        return truncated_messages
