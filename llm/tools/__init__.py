from .dispatcher import ToolDispatcher
from .interfaces import Tool
from .registry import ToolRegistry, get_tool_registry
from .schema import tools_to_langchain_schemas

__all__ = [
    "Tool",
    "ToolDispatcher",
    "ToolRegistry",
    "get_tool_registry",
    "tools_to_langchain_schemas",
]
