"""Convert Tool objects to LangChain/OpenAI-compatible tool schemas for bind_tools()."""

from __future__ import annotations

from typing import Any, Dict, List

from langchain_core.utils.function_calling import convert_to_openai_tool

from llm.tools.interfaces import Tool


def tool_to_langchain_schema(tool: Tool) -> Dict[str, Any]:
    """Build the OpenAI function dict for one tool from its pydantic ``args_schema``.

    LangChain inlines nested model references, so the parameters block is
    self-contained.
    """
    schema = convert_to_openai_tool(tool.args_schema)
    function = schema["function"]
    function["name"] = tool.name
    function["description"] = tool.description
    function.setdefault("parameters", {"type": "object", "properties": {}})
    return schema


def tools_to_langchain_schemas(tools: List[Tool]) -> List[Dict[str, Any]]:
    """Convert our Tool objects to OpenAI-format dicts accepted by LangChain bind_tools().

    Returns a list of dicts: {"type": "function", "function": {"name": ..., "description": ..., "parameters": ...}}
    """
    return [tool_to_langchain_schema(tool) for tool in tools]


__all__ = ["tool_to_langchain_schema", "tools_to_langchain_schemas"]
