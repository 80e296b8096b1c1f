"""Tests for the vendor chat clients."""

from unittest.mock import AsyncMock, Mock, patch

import anthropic
import httpx
import openai
import pytest

from snowscribe.clients.anthropic import AnthropicClient, AnthropicConfig
from snowscribe.clients.base import ChatMessage, VendorError, public_message_for_status
from snowscribe.clients.openai import OpenAIClient


def _response(status_code: int) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", "https://api.example.com/v1/messages"))


@pytest.fixture
def anthropic_client():
    """Create AnthropicClient for testing."""
    config = AnthropicConfig(max_conversation_tokens=10000, token_headroom=1000)
    with patch.dict("os.environ", {"ANTHROPIC_API_KEY": "test-key"}):
        client = AnthropicClient(config=config)
        # Mock tokenizer for consistent testing
        client.tokenizer = Mock()
        client.tokenizer.encode.return_value = ["token"] * 100
        client.rate_limiter = Mock(check_rate_limit=AsyncMock())
        client.client = Mock()
        return client


class TestConversationTruncation:
    """Tests for conversation truncation functionality."""

    def test_within_limit_is_unchanged(self, anthropic_client):
        messages = [
            ChatMessage(role="user", content="Message 1"),
            ChatMessage(role="assistant", content="Response 1"),
            ChatMessage(role="user", content="Message 2"),
        ]

        assert anthropic_client.truncate_conversation(messages, "System prompt") == messages

    def test_exceeding_limit_drops_oldest(self, anthropic_client):
        def mock_encode(text):
            if "System prompt" in text:
                return ["token"] * 500
            return ["token"] * 3000

        anthropic_client.tokenizer.encode.side_effect = mock_encode
        messages = [
            ChatMessage(role="user", content="Message 1"),
            ChatMessage(role="assistant", content="Response 1"),
            ChatMessage(role="user", content="Message 2"),
            ChatMessage(role="assistant", content="Response 2"),
            ChatMessage(role="user", content="Message 3"),
        ]

        result = anthropic_client.truncate_conversation(messages, "System prompt")

        assert len(result) < len(messages)
        assert result[0].role == "user"
        assert result[-1].content == "Message 3"

    def test_last_message_always_kept(self, anthropic_client):
        anthropic_client.tokenizer.encode.return_value = ["token"] * 50_000

        result = anthropic_client.truncate_conversation([ChatMessage(role="user", content="Huge")], "System")

        assert [message.content for message in result] == ["Huge"]

    def test_empty_messages(self, anthropic_client):
        assert anthropic_client.truncate_conversation([], "System prompt") == []

    def test_estimate_without_tokenizer(self, anthropic_client):
        anthropic_client.tokenizer = None
        assert anthropic_client.estimate_message_tokens("a" * 400) == 100


class TestAnthropicSendChat:
    """Tests for Anthropic chat requests."""

    @pytest.mark.asyncio
    async def test_returns_text_and_usage(self, anthropic_client):
        anthropic_client.client.messages.create = AsyncMock(
            return_value=Mock(
                content=[Mock(type="text", text="Chapter one works."), Mock(type="thinking")],
                usage=Mock(input_tokens=42, output_tokens=7),
                model="claude-test",
                stop_reason="end_turn",
            )
        )

        reply = await anthropic_client.send_chat(
            model="claude-test",
            messages=[ChatMessage(role="user", content="Review chapter one")],
            system_prompt="You are an editor.",
            max_tokens=1000,
        )

        assert reply.texts == ["Chapter one works."]
        assert reply.usage.input_tokens == 42
        assert reply.usage.total_tokens == 49
        kwargs = anthropic_client.client.messages.create.call_args.kwargs
        assert kwargs["system"] == "You are an editor."
        assert kwargs["max_tokens"] == 1000
        assert kwargs["messages"] == [{"role": "user", "content": "Review chapter one"}]
        anthropic_client.rate_limiter.check_rate_limit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_api_error_becomes_vendor_error(self, anthropic_client):
        anthropic_client.client.messages.create = AsyncMock(
            side_effect=anthropic.BadRequestError("invalid model", response=_response(400), body=None)
        )

        with pytest.raises(VendorError) as exc_info:
            await anthropic_client.send_chat(
                model="nope", messages=[ChatMessage(role="user", content="Hi")], system_prompt="s"
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.public_message == "The AI service could not process this request."

    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self, anthropic_client):
        anthropic_client.config.retry_delay = 0
        ok = Mock(content=[Mock(type="text", text="ok")], usage=None, model="claude-test", stop_reason="end_turn")
        anthropic_client.client.messages.create = AsyncMock(
            side_effect=[anthropic.InternalServerError("overloaded", response=_response(500), body=None), ok]
        )

        reply = await anthropic_client.send_chat(
            model="claude-test", messages=[ChatMessage(role="user", content="Hi")], system_prompt="s"
        )

        assert reply.texts == ["ok"]
        assert anthropic_client.client.messages.create.await_count == 2

    @pytest.mark.asyncio
    async def test_no_text_is_an_error(self, anthropic_client):
        anthropic_client.client.messages.create = AsyncMock(
            return_value=Mock(content=[], usage=None, model="claude-test", stop_reason="max_tokens")
        )

        with pytest.raises(VendorError, match="no text blocks"):
            await anthropic_client.send_chat(
                model="claude-test", messages=[ChatMessage(role="user", content="Hi")], system_prompt="s"
            )

    def test_requires_api_key(self):
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
                AnthropicClient()


class TestOpenAISendChat:
    """Tests for OpenAI-compatible chat requests."""

    @pytest.fixture
    def openai_client(self):
        client = OpenAIClient(api_key="sk-test")
        client.client = Mock()
        return client

    @pytest.mark.asyncio
    async def test_returns_text_and_usage(self, openai_client):
        openai_client.client.chat.completions.create = AsyncMock(
            return_value=Mock(
                choices=[Mock(message=Mock(content="Try 'Elowen'."), finish_reason="stop")],
                usage=Mock(prompt_tokens=30, completion_tokens=6),
                model="gpt-test",
            )
        )

        reply = await openai_client.send_chat(
            model="gpt-test", messages=[ChatMessage(role="user", content="A name?")], system_prompt="Namer."
        )

        assert reply.texts == ["Try 'Elowen'."]
        assert reply.usage.output_tokens == 6
        sent = openai_client.client.chat.completions.create.call_args.kwargs["messages"]
        assert sent == [{"role": "system", "content": "Namer."}, {"role": "user", "content": "A name?"}]

    @pytest.mark.asyncio
    async def test_status_error_becomes_vendor_error(self, openai_client):
        openai_client.client.chat.completions.create = AsyncMock(
            side_effect=openai.APIStatusError("unavailable", response=_response(503), body=None)
        )

        with pytest.raises(VendorError) as exc_info:
            await openai_client.send_chat(
                model="gpt-test", messages=[ChatMessage(role="user", content="Hi")], system_prompt="s"
            )

        assert exc_info.value.status_code == 503
        assert exc_info.value.public_message == public_message_for_status(503)

    @pytest.mark.asyncio
    async def test_connection_error_becomes_vendor_error(self, openai_client):
        openai_client.client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=httpx.Request("POST", "https://api.example.com"))
        )

        with pytest.raises(VendorError, match="connection error"):
            await openai_client.send_chat(
                model="gpt-test", messages=[ChatMessage(role="user", content="Hi")], system_prompt="s"
            )

    @pytest.mark.asyncio
    async def test_empty_content_is_an_error(self, openai_client):
        openai_client.client.chat.completions.create = AsyncMock(
            return_value=Mock(choices=[Mock(message=Mock(content=None))], usage=None, model="gpt-test")
        )

        with pytest.raises(VendorError, match="no message content"):
            await openai_client.send_chat(
                model="gpt-test", messages=[ChatMessage(role="user", content="Hi")], system_prompt="s"
            )


class TestPublicMessages:
    """Tests for writer-facing vendor error text."""

    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [
            (401, "The AI provider rejected the request credentials."),
            (429, "The AI service is busy right now. Please try again in a moment."),
            (502, "The AI service is temporarily unavailable. Please try again."),
            (None, "The AI service could not process this request."),
        ],
    )
    def test_public_message_for_status(self, status_code, expected):
        assert public_message_for_status(status_code) == expected
