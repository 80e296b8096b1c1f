"""Durable AI configuration store interface and an in-memory implementation."""

from pathlib import Path
from typing import Protocol

from snowscribe.models.ai_config import AIConfigDocument, AIModel, AIPrompt, AIVendor, ToolModel
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)


class AIConfigStore(Protocol):
    """Read interface over vendors, models, tool bindings and prompts.

    The production store is the hosted relational backend; only the lookups the
    resolver needs are part of this interface.
    """

    async def get_tool_model(self, name: str) -> ToolModel | None: ...

    async def get_model(self, model_id: str) -> AIModel | None: ...

    async def get_vendor(self, vendor_id: str) -> AIVendor | None: ...

    async def get_prompt(self, category: str) -> AIPrompt | None: ...


class InMemoryAIConfigStore:
    """Configuration store held in memory, optionally seeded from JSON."""

    def __init__(self, document: AIConfigDocument | None = None):
        self.vendors: dict[str, AIVendor] = {}
        self.models: dict[str, AIModel] = {}
        self.tool_models: dict[str, ToolModel] = {}
        self.prompts: dict[str, AIPrompt] = {}
        if document:
            self.load(document)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "InMemoryAIConfigStore":
        """Create a store seeded from an ``AIConfigDocument`` JSON file."""
        raw = Path(path).read_text(encoding="utf-8")
        document = AIConfigDocument.model_validate_json(raw)
        logger.info(
            f"Loaded AI configuration from {path}: {len(document.vendors)} vendors, "
            f"{len(document.models)} models, {len(document.tool_models)} tool bindings, "
            f"{len(document.prompts)} prompts"
        )
        return cls(document)

    def load(self, document: AIConfigDocument) -> None:
        for vendor in document.vendors:
            self.add_vendor(vendor)
        for model in document.models:
            self.add_model(model)
        for tool_model in document.tool_models:
            self.bind_tool(tool_model)
        for prompt in document.prompts:
            self.add_prompt(prompt)

    def add_vendor(self, vendor: AIVendor) -> None:
        self.vendors[vendor.id] = vendor

    def add_model(self, model: AIModel) -> None:
        self.models[model.id] = model

    def bind_tool(self, tool_model: ToolModel) -> None:
        self.tool_models[tool_model.name] = tool_model

    def add_prompt(self, prompt: AIPrompt) -> None:
        self.prompts[prompt.category] = prompt

    async def get_tool_model(self, name: str) -> ToolModel | None:
        return self.tool_models.get(name)

    async def get_model(self, model_id: str) -> AIModel | None:
        return self.models.get(model_id)

    async def get_vendor(self, vendor_id: str) -> AIVendor | None:
        return self.vendors.get(vendor_id)

    async def get_prompt(self, category: str) -> AIPrompt | None:
        return self.prompts.get(category)
