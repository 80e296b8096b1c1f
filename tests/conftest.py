"""Shared fixtures for the test suite."""

from unittest.mock import AsyncMock

import pytest

from snowscribe.models.ai_config import AIModel, AIPrompt, AIVendor, ModelConfiguration, ToolModel
from snowscribe.models.llm import ChatUsage, ConversationTurn, TextBlock
from snowscribe.services.ai_config import InMemoryAIConfigStore
from snowscribe.services.audit import InMemoryAuditLog
from snowscribe.services.background import BackgroundTasks
from snowscribe.services.credits import InMemoryCreditLedger
from snowscribe.services.events import EventBus
from snowscribe.services.orchestrator import AIOrchestrator
from snowscribe.services.resolver import ModelPromptResolver


def assistant_turn(text: str = "Here is my answer.", total_cost: float | None = None) -> ConversationTurn:
    """Build a successful assistant turn."""
    usage = ChatUsage(input_tokens=120, output_tokens=80, total_cost=total_cost) if total_cost is not None else None
    return ConversationTurn(role="assistant", content=[TextBlock(text=text)], usage=usage, model="claude-test")


def make_store(bind_default: bool = True) -> InMemoryAIConfigStore:
    """Config store with one Anthropic model bound to ``writing_coach``."""
    store = InMemoryAIConfigStore()
    store.add_vendor(AIVendor(id="v1", name="anthropic", api_key_env_var="ANTHROPIC_API_KEY"))
    store.add_model(
        AIModel(
            id="m1",
            vendor_id="v1",
            name="Claude Test",
            api_name="claude-test",
            max_tokens=4000,
            input_token_cost=3.0,
            output_token_cost=15.0,
        )
    )
    store.bind_tool(ToolModel(name="writing_coach", model_id="m1"))
    if bind_default:
        store.bind_tool(ToolModel(name="default", model_id="m1"))
    store.add_prompt(AIPrompt(category="writing_coach", prompt_text="You are a writing coach."))
    return store


@pytest.fixture
def model_config() -> ModelConfiguration:
    return ModelConfiguration(
        tool_id="writing_coach",
        model_id="m1",
        model_name="Claude Test",
        vendor_id="v1",
        vendor_name="anthropic",
        api_model_name="claude-test",
        vendor_credential_ref="ANTHROPIC_API_KEY",
        max_tokens=4000,
        input_token_cost=3.0,
        output_token_cost=15.0,
    )


@pytest.fixture
def adapter() -> AsyncMock:
    """Chat adapter mock returning a successful turn without cost."""
    mock = AsyncMock()
    mock.invoke.return_value = assistant_turn()
    return mock


@pytest.fixture
def ledger() -> InMemoryCreditLedger:
    return InMemoryCreditLedger(starting_credits=100.0)


@pytest.fixture
def audit_log() -> InMemoryAuditLog:
    return InMemoryAuditLog()


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def orchestrator(adapter, ledger, audit_log, events) -> AIOrchestrator:
    """Orchestrator over an in-memory store with a default binding."""
    return AIOrchestrator(
        resolver=ModelPromptResolver(make_store()),
        adapter=adapter,
        ledger=ledger,
        audit_log=audit_log,
        background=BackgroundTasks(),
        events=events,
    )


@pytest.fixture
def make_turn():
    return assistant_turn


@pytest.fixture
def store() -> InMemoryAIConfigStore:
    return make_store()


@pytest.fixture
def store_without_default() -> InMemoryAIConfigStore:
    return make_store(bind_default=False)
