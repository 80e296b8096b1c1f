"""AI tools offered to writers."""

from snowscribe.tools.base import ToolDefinition, ToolId
from snowscribe.tools.registry import ToolRegistry, get_tool_registry

__all__ = ["ToolDefinition", "ToolId", "ToolRegistry", "get_tool_registry"]
