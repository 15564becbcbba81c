"""
Provider-specific ChatModel implementations.

These modules wrap LangChain chat model integrations; importing the package
registers their model name prefixes.
"""

from .base import BaseLangChainChatModel  # noqa: F401
from .openai import OpenAIChatModel  # noqa: F401

__all__ = ["BaseLangChainChatModel", "OpenAIChatModel"]
