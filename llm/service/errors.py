from __future__ import annotations


class LLMError(Exception):
    """Base error type for all LLM service failures."""


class LLMPolicyDenied(LLMError):
    """Request violates LLM policy (e.g. disallowed model)."""


class LLMConfigurationError(LLMError):
    """Misconfiguration of LLM settings, models, tools, or environment."""


class LLMProviderError(LLMError):
    """Error raised from a concrete model/provider integration (transport or malformed response)."""


class LLMTimeoutError(LLMError):
    """Run exceeded its deadline before the model produced a final answer."""


class LLMToolLoopLimitError(LLMError):
    """The model kept requesting tools past the configured round limit."""

    def __init__(self, max_rounds: int) -> None:
        self.max_rounds = max_rounds
        super().__init__(f"Model still requested tools after {max_rounds} rounds; giving up")


class ProtocolError(LLMError):
    """Malformed application-level message (e.g. an unknown role)."""


class ToolError(Exception):
    """Base for recoverable tool-level failures.

    These never escape the dispatcher: they are folded into the conversation as a
    tool result so the model can adapt.
    """

    def __init__(self, tool_name: str, message: str) -> None:
        self.tool_name = tool_name
        self.message = message
        super().__init__(message)


class ToolNotFound(ToolError):
    """The model asked for a tool name that is not registered."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name, f"Tool not found: {tool_name}")


class ToolValidationError(ToolError):
    """Tool arguments did not match the tool's declared schema."""


class ToolFailure(ToolError):
    """A tool ran but could not complete the requested operation."""


__all__ = [
    "LLMError",
    "LLMPolicyDenied",
    "LLMConfigurationError",
    "LLMProviderError",
    "LLMTimeoutError",
    "LLMToolLoopLimitError",
    "ProtocolError",
    "ToolError",
    "ToolNotFound",
    "ToolValidationError",
    "ToolFailure",
]
