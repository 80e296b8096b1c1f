"""AI configuration records and the resolved per-call model configuration."""

from pydantic import BaseModel, Field


class AIVendor(BaseModel):
    """A model vendor (anthropic, openai, openrouter, ...)."""

    id: str
    name: str
    api_key_env_var: str | None = None


class AIModel(BaseModel):
    """A concrete model offered by a vendor.

    Token costs are USD per million tokens; ``None`` means the price is unknown
    and usage will be reported without a cost.
    """

    id: str
    vendor_id: str
    name: str
    api_name: str
    max_tokens: int | None = None
    input_token_cost: float | None = None
    output_token_cost: float | None = None


class ToolModel(BaseModel):
    """Binding from a tool's model key to a model id."""

    name: str
    model_id: str | None = None


class AIPrompt(BaseModel):
    """A system prompt stored under a tool category."""

    category: str
    prompt_text: str
    name: str | None = None


class AIConfigDocument(BaseModel):
    """Seed document for the in-memory configuration store."""

    vendors: list[AIVendor] = Field(default_factory=list)
    models: list[AIModel] = Field(default_factory=list)
    tool_models: list[ToolModel] = Field(default_factory=list)
    prompts: list[AIPrompt] = Field(default_factory=list)


class ModelConfiguration(BaseModel):
    """Everything the chat adapter needs to call a model for one tool."""

    tool_id: str
    model_id: str
    model_name: str
    vendor_id: str
    vendor_name: str
    api_model_name: str
    vendor_credential_ref: str | None = None
    max_tokens: int | None = None
    input_token_cost: float | None = None
    output_token_cost: float | None = None
