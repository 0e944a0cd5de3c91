"""LLM module."""

from .llm_provider import ILLMProvider, LLMProvider, LLMResponse, ToolCall, normalize_messages

__all__ = ["ILLMProvider", "LLMProvider", "LLMResponse", "ToolCall", "normalize_messages"]
