"""Service singletons shared by the API endpoints."""

from snowscribe.config import AppConfig
from snowscribe.services.ai_config import InMemoryAIConfigStore
from snowscribe.services.audit import InMemoryAuditLog
from snowscribe.services.background import BackgroundTasks
from snowscribe.services.chat_adapter import VendorChatAdapter
from snowscribe.services.conversation import ConversationService
from snowscribe.services.credits import InMemoryCreditLedger
from snowscribe.services.events import CreditsDebited, EventBus
from snowscribe.services.orchestrator import AIOrchestrator
from snowscribe.services.resolver import ModelPromptResolver
from snowscribe.services.session_manager import InMemorySessionManager
from snowscribe.tools.registry import get_tool_registry
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)

_config: AppConfig | None = None
_background: BackgroundTasks | None = None
_events: EventBus | None = None
_orchestrator: AIOrchestrator | None = None
_conversation_service: ConversationService | None = None
_session_manager: InMemorySessionManager | None = None


def get_config() -> AppConfig:
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def get_background_tasks() -> BackgroundTasks:
    global _background
    if _background is None:
        _background = BackgroundTasks()
    return _background


def get_event_bus() -> EventBus:
    """Get or create the event bus, logging every credit debit."""
    global _events
    if _events is None:
        _events = EventBus()
        _events.subscribe(
            CreditsDebited,
            lambda event: logger.info(
                f"Credits debited for {event.user_id}: {event.amount} ({event.source}), balance {event.new_balance}"
            ),
        )
    return _events


def _build_config_store(config: AppConfig) -> InMemoryAIConfigStore:
    if config.ai_config_path:
        return InMemoryAIConfigStore.from_json_file(config.ai_config_path)
    logger.warning("SNOWSCRIBE_AI_CONFIG is not set; every tool will report missing configuration")
    return InMemoryAIConfigStore()


def get_orchestrator() -> AIOrchestrator:
    """Get or create the orchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        config = get_config()
        _orchestrator = AIOrchestrator(
            resolver=ModelPromptResolver(_build_config_store(config), get_tool_registry()),
            adapter=VendorChatAdapter(),
            ledger=InMemoryCreditLedger(starting_credits=config.starting_credits),
            audit_log=InMemoryAuditLog(),
            background=get_background_tasks(),
            events=get_event_bus(),
            config=config.orchestrator,
        )
    return _orchestrator


def get_conversation_service() -> ConversationService:
    global _conversation_service
    if _conversation_service is None:
        _conversation_service = ConversationService(get_orchestrator())
    return _conversation_service


def get_session_manager() -> InMemorySessionManager:
    """Get or create the session manager instance."""
    global _session_manager
    if _session_manager is None:
        _session_manager = InMemorySessionManager(get_config().session_timeout_minutes)
    return _session_manager
