"""
LLM client: wraps the OpenAI SDK for the chat completions endpoint.

Response format (complete):
    {"choices": [{"message": {"role", "content", "tool_calls"?}, "finish_reason": "..."}]}

Delta format (stream):
    {"content": str|None, "tool_calls": [fragment, ...]|None, "finish_reason": str|None}
    fragment = {"index": int, "id"?: str, "function": {"name"?: str, "arguments"?: str}}

Key translations:
- Messages: internal dicts → OpenAI format (content None beside tool calls, ids filled)
- Tool calls: OpenAI objects → plain dicts, arguments left as the raw JSON string
- Streaming: ChatCompletionChunk → one delta event per chunk that carries anything
- Errors: SDK timeout → LLMError(error_type="timeout"), other APIError → LLMError
"""

import json
import logging
from typing import Any, Dict, Generator, List, Optional

import httpx
from openai import APIError, APITimeoutError, OpenAI

from errors import LLMError

logger = logging.getLogger(__name__)


def _translate_messages_for_openai(messages: List[Dict]) -> List[Dict]:
    """Translate internal message dicts to OpenAI API format.

    Handles tool results, assistant tool calls and regular messages.
    """
    translated = []
    for msg in messages:
        role = msg.get("role", "user")
        content = msg.get("content", "")

        # Tool call results
        if role == "tool":
            translated.append({
                "role": "tool",
                "content": content if isinstance(content, str) else json.dumps(content, default=str),
                "tool_call_id": msg.get("tool_call_id") or "call_0",
            })
            continue

        new_msg: Dict[str, Any] = {"role": role, "content": content if content is not None else ""}
        if msg.get("name"):
            new_msg["name"] = msg["name"]

        # Forward tool_calls from assistant messages
        if role == "assistant" and msg.get("tool_calls"):
            openai_tool_calls = []
            for i, tc in enumerate(msg["tool_calls"]):
                fn = tc.get("function", tc)
                arguments = fn.get("arguments", "{}")
                openai_tool_calls.append({
                    "id": tc.get("id") or f"call_{i}",
                    "type": "function",
                    "function": {
                        "name": fn.get("name", ""),
                        "arguments": json.dumps(arguments) if isinstance(arguments, dict) else (arguments or "{}"),
                    },
                })
            new_msg["tool_calls"] = openai_tool_calls
            # OpenAI requires content to be None when tool_calls present
            if not content:
                new_msg["content"] = None

        translated.append(new_msg)

    return translated


def _translate_tool_calls_from_openai(message) -> List[Dict]:
    """Translate OpenAI tool call objects to plain dicts.

    OpenAI: message.tool_calls[i].function.{name, arguments(str)}
    Internal: [{"id", "type": "function", "function": {"name", "arguments"(str)}}]
    """
    result = []
    for tc in getattr(message, "tool_calls", None) or []:
        result.append({
            "id": tc.id,
            "type": "function",
            "function": {
                "name": tc.function.name or "",
                "arguments": tc.function.arguments or "",
            },
        })
    return result


def _delta_from_chunk(chunk) -> Optional[Dict[str, Any]]:
    """Convert one ChatCompletionChunk into a delta event (None if it carries nothing)."""
    if not chunk.choices:
        return None  # Usage-only chunks

    choice = chunk.choices[0]
    delta = choice.delta
    content = getattr(delta, "content", None) if delta else None

    fragments = None
    if delta and getattr(delta, "tool_calls", None):
        fragments = []
        for tc in delta.tool_calls:
            fragment: Dict[str, Any] = {"index": tc.index if tc.index is not None else 0, "function": {}}
            if tc.id:
                fragment["id"] = tc.id
            if tc.function:
                if tc.function.name:
                    fragment["function"]["name"] = tc.function.name
                if tc.function.arguments:
                    fragment["function"]["arguments"] = tc.function.arguments
            fragments.append(fragment)

    finish_reason = choice.finish_reason
    if not content and not fragments and not finish_reason:
        return None

    return {"content": content, "tool_calls": fragments, "finish_reason": finish_reason}


class LLMClient:
    """Wraps the OpenAI SDK pointing at any chat-completions compatible endpoint."""

    def __init__(
        self,
        base_url: str = "",
        api_key: str = "",
        timeout: float = 120.0,
        connect_timeout: float = 10.0,
    ):
        """
        Args:
            base_url: Provider URL (empty uses the SDK default, e.g. https://api.openai.com/v1)
            api_key: Provider API key
            timeout: Total request timeout in seconds
            connect_timeout: Connection timeout in seconds
        """
        self.base_url = base_url.rstrip("/") if base_url else ""
        self._timeout = timeout
        self._openai = OpenAI(
            base_url=self.base_url or None,
            api_key=api_key or "not-needed",  # Local OpenAI-compatible servers accept any key
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
        )

    def _build_kwargs(self, model: str, messages: List[Dict], tools: Optional[List[Dict]]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": model or "default",
            "messages": _translate_messages_for_openai(messages or []),
        }
        # Some providers reject an empty tool list
        if tools:
            kwargs["tools"] = tools
        return kwargs

    def complete(
        self,
        model: str = "",
        messages: List[Dict] = None,
        tools: Optional[List[Dict]] = None,
    ) -> Dict[str, Any]:
        """Call the chat endpoint and return the whole reply.

        Args:
            model: Model name
            messages: List of message dicts
            tools: OpenAI function-tool schemas

        Returns:
            Dict with "choices": [{"message": {...}, "finish_reason": str}]

        Raises:
            LLMError: On provider timeout or API failure
        """
        kwargs = self._build_kwargs(model, messages, tools)

        try:
            response = self._openai.chat.completions.create(stream=False, **kwargs)
        except APITimeoutError as e:
            raise LLMError(
                message=f"Model response timed out after {self._timeout}s",
                details=str(e),
                error_type="timeout",
                model=model,
            ) from e
        except APIError as e:
            raise LLMError(message="LLM provider request failed", details=str(e), model=model) from e

        choices = []
        for choice in response.choices or []:
            message = {
                "role": "assistant",
                "content": choice.message.content or "",
            }
            tool_calls = _translate_tool_calls_from_openai(choice.message)
            if tool_calls:
                message["tool_calls"] = tool_calls
            choices.append({"message": message, "finish_reason": choice.finish_reason})

        if not choices:
            raise LLMError(message="LLM provider returned no choices", error_type="invalid", model=model)

        return {"choices": choices}

    def stream(
        self,
        model: str = "",
        messages: List[Dict] = None,
        tools: Optional[List[Dict]] = None,
    ) -> Generator[Dict[str, Any], None, None]:
        """Stream the chat reply, yielding delta events as chunks arrive.

        The request is sent on the first next() call, so callers can drive
        the whole stream from a worker thread.

        Raises:
            LLMError: On provider timeout or API failure (mid-stream included)
        """
        kwargs = self._build_kwargs(model, messages, tools)

        try:
            stream = self._openai.chat.completions.create(stream=True, **kwargs)
            for chunk in stream:
                event = _delta_from_chunk(chunk)
                if event is not None:
                    yield event
        except APITimeoutError as e:
            raise LLMError(
                message=f"Model stream timed out after {self._timeout}s",
                details=str(e),
                error_type="timeout",
                model=model,
            ) from e
        except APIError as e:
            raise LLMError(message="LLM provider stream failed", details=str(e), model=model) from e
