"""OpenAI-compatible chat client (OpenAI and OpenRouter)."""

import os
from dataclasses import dataclass

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from snowscribe.clients.base import (
    ChatMessage,
    TokenUsage,
    VendorError,
    VendorReply,
    public_message_for_status,
)
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


@dataclass
class OpenAIConfig:
    """Configuration for OpenAI-compatible clients."""

    max_tokens: int = 16000
    temperature: float = 0.7
    max_retries: int = 2
    timeout: float = 120.0


class OpenAIClient:
    """Chat completions client for OpenAI and OpenAI-compatible vendors."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        config: OpenAIConfig | None = None,
        default_headers: dict[str, str] | None = None,
    ):
        openai_api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not openai_api_key:
            raise ValueError("OPENAI_API_KEY environment variable is required")

        self.config = config or OpenAIConfig()
        self.client = AsyncOpenAI(
            api_key=openai_api_key,
            base_url=base_url,
            max_retries=self.config.max_retries,
            timeout=self.config.timeout,
            default_headers=default_headers,
        )

    @classmethod
    def for_openrouter(cls, api_key: str | None = None, config: OpenAIConfig | None = None) -> "OpenAIClient":
        return cls(
            api_key=api_key or os.getenv("OPENROUTER_API_KEY"),
            base_url=OPENROUTER_BASE_URL,
            config=config,
            default_headers={"HTTP-Referer": "https://snowscribe.app", "X-Title": "Snowscribe"},
        )

    async def send_chat(
        self,
        *,
        model: str,
        messages: list[ChatMessage],
        system_prompt: str,
        max_tokens: int | None = None,
    ) -> VendorReply:
        """Send one chat completion request.

        Raises:
            VendorError: If the request fails or the response has no content
        """
        request_messages = [{"role": "system", "content": system_prompt}]
        request_messages.extend(message.model_dump() for message in messages)

        logger.debug(f"Making OpenAI-compatible API call with model: {model}, {len(messages)} messages")
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=request_messages,
                max_tokens=max_tokens or self.config.max_tokens,
                temperature=self.config.temperature,
            )
        except APIStatusError as e:
            raise VendorError(
                public_message_for_status(e.status_code),
                f"OpenAI-compatible API error ({e.status_code}): {e}",
                status_code=e.status_code,
            ) from e
        except (APIConnectionError, APITimeoutError) as e:
            raise VendorError(
                "Could not reach the AI service. Please try again.",
                f"OpenAI-compatible connection error: {e}",
            ) from e

        if not response.choices or not response.choices[0].message.content:
            raise VendorError(
                "The AI service returned an empty response.",
                f"Chat completion for {model} had no message content",
            )

        usage = None
        if response.usage:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
            )

        choice = response.choices[0]
        return VendorReply(
            texts=[choice.message.content],
            model=response.model,
            usage=usage,
            stop_reason=choice.finish_reason,
        )
