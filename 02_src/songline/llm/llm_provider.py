"""LLM Provider implementation using Anthropic Claude API."""

import os
from dataclasses import dataclass, field
from typing import Any, Protocol

import anthropic

from ..errors import LLMError


@dataclass
class ToolCall:
    """A model request to invoke one named tool."""

    name: str
    arguments: Any  # dict from Anthropic; may be a JSON string from other providers
    id: str | None = None


@dataclass
class LLMResponse:
    """Model output: optional text plus any tool calls, in order."""

    text: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)


class ILLMProvider(Protocol):
    """Abstraction for LLM access."""

    async def complete(
        self,
        messages: list[dict],  # [{"role": "user", "content": "..."}]
        system: str | None = None,
        tools: list[dict] | None = None,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        """Generate completion. Raises LLMError."""
        ...


def normalize_messages(messages: list[dict]) -> list[dict]:
    """Fit a transcript to the Messages API rules.

    Drops empty turns, merges consecutive turns of the same role and drops
    leading assistant turns (the first message must come from the user).
    """
    normalized: list[dict] = []
    for msg in messages:
        content = (msg.get("content") or "").strip()
        if not content:
            continue
        if normalized and normalized[-1]["role"] == msg["role"]:
            normalized[-1]["content"] += "\n\n" + content
        else:
            normalized.append({"role": msg["role"], "content": content})

    while normalized and normalized[0]["role"] != "user":
        normalized.pop(0)
    return normalized


class LLMProvider:
    """Anthropic Claude API provider."""

    def __init__(self, api_key: str | None = None, model: str = "claude-sonnet-4-5"):
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self._api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable not set")

        self._model = model
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key)

    async def complete(
        self,
        messages: list[dict],
        system: str | None = None,
        tools: list[dict] | None = None,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        """Generate completion using Claude API."""
        request: dict[str, Any] = {
            "model": self._model,
            "messages": normalize_messages(messages),
            "max_tokens": max_tokens,
        }
        if system:
            request["system"] = system
        if tools:
            request["tools"] = tools

        if not request["messages"]:
            return LLMResponse()

        try:
            response = await self._client.messages.create(**request)
        except anthropic.AnthropicError as e:
            raise LLMError(f"LLM API error: {e}") from e

        texts = []
        tool_calls = []
        for block in response.content:
            if block.type == "text":
                texts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(ToolCall(name=block.name, arguments=block.input, id=block.id))

        text = "\n".join(t for t in texts if t).strip()
        return LLMResponse(text=text or None, tool_calls=tool_calls)
