"""Resolve a tool to its model configuration and system prompt."""

from dataclasses import dataclass

from snowscribe.models.ai_config import ModelConfiguration, ToolModel
from snowscribe.services.ai_config import AIConfigStore
from snowscribe.tools.base import ToolId
from snowscribe.tools.registry import ToolRegistry, get_tool_registry
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TOOL_MODEL = "default"
DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant. Please provide concise and relevant information."


@dataclass(frozen=True)
class ConfigurationError:
    """A tool has no usable model binding.

    Returned, never raised. ``public_message`` is shown to the writer and
    ``private_message`` is only logged.
    """

    tool_id: str
    public_message: str
    private_message: str


class ModelPromptResolver:
    """Looks up model and prompt configuration for tools at call time."""

    def __init__(
        self,
        store: AIConfigStore,
        registry: ToolRegistry | None = None,
        default_system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ):
        self.store = store
        self.registry = registry or get_tool_registry()
        self.default_system_prompt = default_system_prompt

    def _model_key(self, tool_id: ToolId | str) -> str:
        tool = self.registry.get(tool_id)
        return tool.model_lookup_key if tool else str(tool_id)

    def _prompt_key(self, tool_id: ToolId | str) -> str:
        tool = self.registry.get(tool_id)
        return tool.prompt_lookup_key if tool else str(tool_id)

    async def _find_binding(self, key: str) -> ToolModel | None:
        binding = await self.store.get_tool_model(key)
        if binding and binding.model_id:
            return binding

        if key != DEFAULT_TOOL_MODEL:
            logger.warning(f"Tool model '{key}' not found, falling back to '{DEFAULT_TOOL_MODEL}' tool model")
            fallback = await self.store.get_tool_model(DEFAULT_TOOL_MODEL)
            if fallback and fallback.model_id:
                return fallback

        return None

    async def resolve_model(self, tool_id: ToolId | str) -> ModelConfiguration | ConfigurationError:
        """Resolve the model configuration bound to a tool.

        Returns:
            The configuration, or a ConfigurationError if no binding, model or
            vendor record can be found (store failures included)
        """
        tool_name = str(tool_id)
        key = self._model_key(tool_id)

        try:
            binding = await self._find_binding(key)
            if binding is None or binding.model_id is None:
                return ConfigurationError(
                    tool_id=tool_name,
                    public_message=f"Configuration for AI tool '{tool_name}' is missing or incomplete.",
                    private_message=f"No tool model binding with a model_id for '{key}' or '{DEFAULT_TOOL_MODEL}'",
                )

            model = await self.store.get_model(binding.model_id)
            if model is None:
                return ConfigurationError(
                    tool_id=tool_name,
                    public_message=f"AI model for tool '{tool_name}' could not be loaded.",
                    private_message=f"AI model details for ID '{binding.model_id}' (tool: {tool_name}) not found.",
                )

            vendor = await self.store.get_vendor(model.vendor_id)
            if vendor is None:
                return ConfigurationError(
                    tool_id=tool_name,
                    public_message=f"AI model for tool '{tool_name}' could not be loaded.",
                    private_message=f"Vendor '{model.vendor_id}' for model '{model.id}' (tool: {tool_name}) not found.",
                )

        except Exception as e:
            logger.error(f"Configuration lookup failed for tool '{tool_name}': {e}", exc_info=True)
            return ConfigurationError(
                tool_id=tool_name,
                public_message=f"Configuration for AI tool '{tool_name}' could not be loaded.",
                private_message=f"Configuration store error: {e}",
            )

        return ModelConfiguration(
            tool_id=tool_name,
            model_id=model.id,
            model_name=model.name,
            vendor_id=vendor.id,
            vendor_name=vendor.name,
            api_model_name=model.api_name,
            vendor_credential_ref=vendor.api_key_env_var,
            max_tokens=model.max_tokens,
            input_token_cost=model.input_token_cost,
            output_token_cost=model.output_token_cost,
        )

    async def resolve_system_prompt(self, tool_id: ToolId | str) -> str:
        """Get the system prompt for a tool, falling back to the default prompt."""
        category = self._prompt_key(tool_id)
        try:
            prompt = await self.store.get_prompt(category)
        except Exception as e:
            logger.warning(f"System prompt lookup failed for category '{category}': {e}")
            return self.default_system_prompt

        if prompt is None or not prompt.prompt_text.strip():
            logger.info(f"No system prompt configured for category '{category}', using default")
            return self.default_system_prompt
        return prompt.prompt_text
