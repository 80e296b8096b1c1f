"""Send-message orchestration: configuration, context, model call, billing, audit."""

from typing import Any

from snowscribe.config import OrchestratorConfig
from snowscribe.models.ai_config import ModelConfiguration
from snowscribe.models.audit import AuditRecord
from snowscribe.models.llm import ConversationTurn
from snowscribe.services.audit import AuditLogSink
from snowscribe.services.background import BackgroundTasks
from snowscribe.services.chat_adapter import ChatAdapter
from snowscribe.services.credits import CreditLedger
from snowscribe.services.events import CreditsDebited, EventBus
from snowscribe.services.formatters import format_context
from snowscribe.services.resolver import ConfigurationError, ModelPromptResolver
from snowscribe.tools.base import ToolId
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\nUser's Request:\n"


def compose_prompt(formatted_context: str, user_prompt: str) -> str:
    """Put the formatted context ahead of the writer's request.

    Without context the prompt is the request verbatim.
    """
    if formatted_context:
        return f"{formatted_context}{CONTEXT_SEPARATOR}{user_prompt}"
    return user_prompt


class AIOrchestrator:
    """Turns (tool, prompt, project data, history) into an AI turn.

    Stateless per call: the session history is owned by the caller and passed in.
    Billing and audit writes run as tracked background tasks after the response
    is available and never delay or fail the returned turn.
    """

    def __init__(
        self,
        resolver: ModelPromptResolver,
        adapter: ChatAdapter,
        ledger: CreditLedger,
        audit_log: AuditLogSink,
        background: BackgroundTasks | None = None,
        events: EventBus | None = None,
        config: OrchestratorConfig | None = None,
    ):
        self.resolver = resolver
        self.adapter = adapter
        self.ledger = ledger
        self.audit_log = audit_log
        self.background = background or BackgroundTasks()
        self.events = events
        self.config = config or OrchestratorConfig()

    async def send_message(
        self,
        project_id: str,
        tool_id: str,
        user_prompt: str,
        context_data: Any = None,
        history: list[ConversationTurn] | None = None,
        *,
        user_id: str | None = None,
    ) -> ConversationTurn:
        """Run one AI call for a tool.

        Args:
            project_id: Project the call belongs to (audit only)
            tool_id: Tool identifier
            user_prompt: The writer's text for this turn
            context_data: Raw project data in the tool's context shape
            history: Prior turns, oldest first, normally ending with this turn's user turn
            user_id: Acting user, billed and audited

        Returns:
            The assistant turn; failures are returned as error turns, never raised
        """
        history = list(history or [])

        try:
            if not user_id:
                return ConversationTurn.assistant_error("Unauthorized.", "No authenticated user found")

            refusal = await self._check_credit_balance(user_id)
            if refusal is not None:
                return refusal

            resolved = await self.resolver.resolve_model(tool_id)
            if isinstance(resolved, ConfigurationError):
                logger.error(f"Configuration error for tool '{tool_id}': {resolved.private_message}")
                return ConversationTurn.assistant_error(resolved.public_message, resolved.private_message)

            system_prompt = await self.resolver.resolve_system_prompt(tool_id)
            formatted_context = self._format_context(tool_id, context_data)
            prompt = compose_prompt(formatted_context, user_prompt)

            response = await self._invoke(resolved, history, prompt, system_prompt)

            self._schedule_billing(user_id, tool_id, response)
            self._schedule_audit(
                project_id=project_id,
                user_id=user_id,
                tool_id=str(tool_id),
                model_used=resolved.model_name,
                input_context_raw=context_data,
                input_context_formatted=formatted_context,
                prompt_text=prompt,
                user_prompt=user_prompt,
                response_data=response,
            )
            return response

        except Exception as e:
            logger.error(f"Critical error in send_message for tool '{tool_id}': {e}", exc_info=True)
            return ConversationTurn.assistant_error(
                f"An internal error occurred while processing your request for tool '{tool_id}'. Please try again.",
                str(e),
            )

    async def _check_credit_balance(self, user_id: str) -> ConversationTurn | None:
        minimum = self.config.min_credit_balance
        if minimum <= 0:
            return None
        try:
            balance = await self.ledger.get_balance(user_id)
        except Exception as e:
            logger.warning(f"Credit pre-check failed for user {user_id}, continuing: {e}")
            return None
        if balance < minimum:
            return ConversationTurn.assistant_error(
                "Insufficient credits.", f"Balance {balance} is below the required minimum {minimum}"
            )
        return None

    def _format_context(self, tool_id: str, context_data: Any) -> str:
        parsed = ToolId.parse(tool_id)
        if parsed is None:
            logger.warning(
                f"No specific context formatter for tool '{tool_id}'. Context data might not be used as intended."
            )
            return ""
        try:
            return format_context(parsed, context_data)
        except Exception as e:
            logger.warning(f"Context formatting failed for tool '{tool_id}', continuing without context: {e}")
            return ""

    async def _invoke(
        self,
        model_config: ModelConfiguration,
        history: list[ConversationTurn],
        prompt: str,
        system_prompt: str,
    ) -> ConversationTurn:
        try:
            return await self.adapter.invoke(model_config, history, prompt, system_prompt)
        except Exception as e:
            logger.error(f"Chat adapter raised for tool '{model_config.tool_id}': {e}", exc_info=True)
            return ConversationTurn.assistant_error(
                "The AI service failed to respond. Please try again.", f"{type(e).__name__}: {e}"
            )

    def compute_charge(self, response: ConversationTurn) -> float:
        """Credits to debit for a response.

        Priced usage is billed at ``credits_per_dollar``; any response without a
        cost, error turns included, is billed the flat fallback.
        """
        if response.usage is not None and response.usage.total_cost is not None:
            return round(response.usage.total_cost * self.config.credits_per_dollar, 6)
        return self.config.fallback_charge

    def _schedule_billing(self, user_id: str, tool_id: str, response: ConversationTurn) -> None:
        amount = self.compute_charge(response)
        if amount <= 0:
            logger.debug(f"No charge for tool '{tool_id}' (amount: {amount})")
            return
        self.background.spawn(self._bill(user_id, amount, f"ai-tool-{tool_id}"), name=f"billing:{user_id}")

    async def _bill(self, user_id: str, amount: float, source: str) -> None:
        try:
            new_balance = await self.ledger.debit(user_id, amount, source)
        except Exception as e:
            logger.error(f"CRITICAL: Failed to deduct {amount} credits for user {user_id} ({source}): {e}")
            return

        logger.info(f"Deducted {amount} credits for user {user_id} ({source}), balance {new_balance}")
        if self.events is not None:
            await self.events.publish(
                CreditsDebited(user_id=user_id, amount=amount, new_balance=new_balance, source=source)
            )

    def _schedule_audit(self, **fields: Any) -> None:
        if not fields.get("project_id"):
            logger.warning("Skipping AI interaction log: project id not available")
            return
        try:
            record = AuditRecord(**fields)
        except Exception as e:
            logger.error(f"Could not build audit record for project {fields.get('project_id')}: {e}")
            return
        self.background.spawn(self._write_audit(record), name=f"audit:{record.project_id}")

    async def _write_audit(self, record: AuditRecord) -> None:
        try:
            await self.audit_log.append(record)
        except Exception as e:
            logger.error(f"Failed to log AI interaction for project {record.project_id}: {e}")
