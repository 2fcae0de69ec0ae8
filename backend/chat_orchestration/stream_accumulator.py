"""
Stream Accumulator - Reassembles streamed deltas into one assistant message.

Providers stream tool calls as index-addressed fragments: the id and name
usually arrive on the first fragment for an index, and the arguments arrive
as a JSON string split token by token. Nothing is parsed here; arguments are
concatenated verbatim and parsed at dispatch time.

Create one accumulator per provider call.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .models import ROLE_ASSISTANT, ChatMessage, ToolCallRequest

logger = logging.getLogger(__name__)

FINISH_TOOL_CALLS = "tool_calls"


@dataclass
class _ToolCallBuffer:
    id: str = ""
    function_name: str = ""
    arguments_json: str = ""


class StreamAccumulator:
    """Collects content and tool-call fragments for a single provider call.

    Usage:
        acc = StreamAccumulator(name="cart_management_assistant")
        for event in client.stream(...):
            text = acc.add(event)
            if text:
                forward(text)
        message = acc.finalize()
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or None
        self._content_parts: list = []
        self._buffers: Dict[int, _ToolCallBuffer] = {}
        self.finish_reason: Optional[str] = None

    @property
    def content(self) -> str:
        return "".join(self._content_parts)

    @property
    def finished(self) -> bool:
        return self.finish_reason is not None

    def add(self, event: Dict[str, Any]) -> str:
        """Fold one delta event into the buffers.

        Returns:
            The content fragment carried by the event ("" if none)
        """
        fragment = event.get("content") or ""
        if fragment:
            self._content_parts.append(fragment)

        for tc in event.get("tool_calls") or []:
            index = tc.get("index", 0)
            buffer = self._buffers.get(index)
            if buffer is None:
                buffer = self._buffers[index] = _ToolCallBuffer()
                logger.debug(f"New tool call fragment stream at index {index}")

            # Only the first fragment reliably carries the id
            if tc.get("id") and not buffer.id:
                buffer.id = tc["id"]

            fn = tc.get("function") or {}
            if fn.get("name"):
                buffer.function_name += fn["name"]
            if fn.get("arguments"):
                buffer.arguments_json += fn["arguments"]

        if event.get("finish_reason"):
            self.finish_reason = event["finish_reason"]

        return fragment

    def finalize(self) -> ChatMessage:
        """Build the assistant message.

        Tool calls are attached only when the stream finished for tool calls
        and at least one was buffered; they are ordered by index.
        """
        tool_calls = []
        if self.finish_reason == FINISH_TOOL_CALLS and self._buffers:
            for index in sorted(self._buffers):
                buffer = self._buffers[index]
                tool_calls.append(
                    ToolCallRequest(
                        id=buffer.id or f"call_{index}",
                        function_name=buffer.function_name,
                        arguments_json=buffer.arguments_json,
                    )
                )
        elif self._buffers:
            logger.warning(
                f"Discarding {len(self._buffers)} buffered tool call(s): finish_reason={self.finish_reason!r}"
            )

        return ChatMessage(role=ROLE_ASSISTANT, content=self.content, name=self.name, tool_calls=tool_calls)
