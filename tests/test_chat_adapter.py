"""Tests for the vendor-agnostic chat adapter."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from snowscribe.clients.anthropic import AnthropicClient
from snowscribe.clients.base import ChatMessage, TokenUsage, VendorError, VendorReply
from snowscribe.clients.openai import OPENROUTER_BASE_URL, OpenAIClient
from snowscribe.models.llm import ConversationTurn, TextBlock
from snowscribe.services.chat_adapter import (
    GENERIC_FAILURE_MESSAGE,
    VendorChatAdapter,
    VendorClientFactory,
    build_vendor_messages,
    compute_cost,
)


def assistant(text: str) -> ConversationTurn:
    return ConversationTurn(role="assistant", content=[TextBlock(text=text)])


class TestBuildVendorMessages:
    """Tests for history replay."""

    def test_trailing_user_turn_replaced_by_composed_prompt(self):
        history = [
            ConversationTurn.user("Hi"),
            assistant("Hello!"),
            ConversationTurn.user("Summarize"),
        ]

        messages = build_vendor_messages(history, "CONTEXT\n\nSummarize")

        assert messages == [
            ChatMessage(role="user", content="Hi"),
            ChatMessage(role="assistant", content="Hello!"),
            ChatMessage(role="user", content="CONTEXT\n\nSummarize"),
        ]

    def test_empty_history(self):
        assert build_vendor_messages([], "Hello") == [ChatMessage(role="user", content="Hello")]

    def test_history_without_trailing_user_turn(self):
        messages = build_vendor_messages([ConversationTurn.user("Hi"), assistant("Hello!")], "Next")
        assert [message.content for message in messages] == ["Hi", "Hello!", "Next"]

    def test_error_turns_are_skipped(self):
        history = [
            ConversationTurn.user("First"),
            ConversationTurn.assistant_error("The AI service is busy"),
            ConversationTurn.user("Second"),
        ]

        messages = build_vendor_messages(history, "Second")

        assert messages == [ChatMessage(role="user", content="First\n\nSecond")]

    def test_error_role_turns_are_skipped(self):
        history = [ConversationTurn(role="error", content=[TextBlock(text="boom")]), ConversationTurn.user("Hi")]
        assert build_vendor_messages(history, "Hi") == [ChatMessage(role="user", content="Hi")]


class TestComputeCost:
    """Tests for per-million-token pricing."""

    def test_cost_from_prices(self, model_config):
        cost = compute_cost(model_config, TokenUsage(input_tokens=1_000, output_tokens=2_000))
        assert cost == pytest.approx(0.003 + 0.03)

    def test_unpriced_model(self, model_config):
        model_config.input_token_cost = None
        model_config.output_token_cost = None
        assert compute_cost(model_config, TokenUsage(input_tokens=10, output_tokens=10)) is None

    def test_no_usage(self, model_config):
        assert compute_cost(model_config, None) is None


class TestVendorClientFactory:
    """Tests for vendor client construction."""

    def test_missing_credentials(self, model_config):
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(VendorError, match="ANTHROPIC_API_KEY"):
                VendorClientFactory().get_client(model_config)

    def test_builds_and_caches_anthropic_client(self, model_config):
        factory = VendorClientFactory()
        with patch.dict("os.environ", {"ANTHROPIC_API_KEY": "test-key"}):
            client = factory.get_client(model_config)
            assert isinstance(client, AnthropicClient)
            assert factory.get_client(model_config) is client

    def test_openrouter_uses_openai_client(self, model_config):
        model_config.vendor_name = "OpenRouter"
        model_config.vendor_credential_ref = "OPENROUTER_API_KEY"
        with patch.dict("os.environ", {"OPENROUTER_API_KEY": "or-key"}):
            client = VendorClientFactory().get_client(model_config)

        assert isinstance(client, OpenAIClient)
        assert str(client.client.base_url).rstrip("/") == OPENROUTER_BASE_URL

    def test_credential_falls_back_to_vendor_name(self, model_config):
        model_config.vendor_name = "openai"
        model_config.vendor_credential_ref = None
        with patch.dict("os.environ", {"OPENAI_API_KEY": "sk-test"}):
            assert isinstance(VendorClientFactory().get_client(model_config), OpenAIClient)

    def test_unsupported_vendor(self, model_config):
        model_config.vendor_name = "acme"
        model_config.vendor_credential_ref = "ACME_KEY"
        with patch.dict("os.environ", {"ACME_KEY": "k"}):
            with pytest.raises(VendorError, match="Unsupported vendor"):
                VendorClientFactory().get_client(model_config)


class TestVendorChatAdapter:
    """Tests for invoking the model through the adapter."""

    @pytest.fixture
    def client(self):
        client = Mock()
        client.send_chat = AsyncMock(
            return_value=VendorReply(
                texts=["Try reading it aloud."],
                model="claude-test",
                usage=TokenUsage(input_tokens=1_000, output_tokens=1_000),
            )
        )
        return client

    @pytest.fixture
    def adapter(self, client):
        factory = Mock()
        factory.get_client.return_value = client
        return VendorChatAdapter(factory)

    @pytest.mark.asyncio
    async def test_success(self, adapter, client, model_config):
        turn = await adapter.invoke(model_config, [ConversationTurn.user("Tips?")], "Tips?", "You are a coach.")

        assert turn.role == "assistant"
        assert turn.text == "Try reading it aloud."
        assert turn.model == "claude-test"
        assert turn.usage.input_tokens == 1_000
        assert turn.usage.total_cost == pytest.approx(0.018)

        kwargs = client.send_chat.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["system_prompt"] == "You are a coach."
        assert kwargs["max_tokens"] == 4000
        assert kwargs["messages"] == [ChatMessage(role="user", content="Tips?")]

    @pytest.mark.asyncio
    async def test_vendor_error_becomes_error_turn(self, adapter, client, model_config):
        client.send_chat.side_effect = VendorError("The AI service is busy right now.", "429 from vendor", 429)

        turn = await adapter.invoke(model_config, [], "Hi", "system")

        assert turn.is_error
        assert turn.error_block.public_message == "The AI service is busy right now."
        assert turn.error_block.private_message == "429 from vendor"
        assert turn.usage is None

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_error_turn(self, adapter, client, model_config):
        client.send_chat.side_effect = KeyError("content")

        turn = await adapter.invoke(model_config, [], "Hi", "system")

        assert turn.error_block.public_message == GENERIC_FAILURE_MESSAGE
        assert "KeyError" in turn.error_block.private_message

    @pytest.mark.asyncio
    async def test_missing_credentials_become_error_turn(self, model_config):
        with patch.dict("os.environ", {}, clear=True):
            turn = await VendorChatAdapter().invoke(model_config, [], "Hi", "system")

        assert turn.is_error
        assert "ANTHROPIC_API_KEY" in turn.error_block.private_message
