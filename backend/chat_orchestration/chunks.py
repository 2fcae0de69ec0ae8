"""
Streaming chunk protocol.

Chunks are plain dicts tagged by "type":

    agent_selected  {"agent_type"}
    content         {"content"}                                text fragment
    tool_call       {"tool_name", "ui_descriptor", "arguments"} before execution
    tool_result     {"tool_name", "result"}                     after execution
    done            {"content", "ui_context"?}                  terminal
    error           {"error"}                                   terminal, user-safe text

Every chunk carries "done", which is True only on the two terminal types.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from .models import TurnContext, UIContext

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]

TERMINAL_TYPES = ("done", "error")


def agent_selected_chunk(agent_type: str) -> Dict[str, Any]:
    return {"type": "agent_selected", "agent_type": agent_type, "done": False}


def content_chunk(content: str) -> Dict[str, Any]:
    return {"type": "content", "content": content, "done": False}


def tool_call_chunk(tool_name: str, ui_descriptor: Optional[str], arguments: str) -> Dict[str, Any]:
    return {
        "type": "tool_call",
        "tool_name": tool_name,
        "ui_descriptor": ui_descriptor,
        "arguments": arguments,
        "done": False,
    }


def tool_result_chunk(tool_name: str, result: Any) -> Dict[str, Any]:
    return {"type": "tool_result", "tool_name": tool_name, "result": result, "done": False}


def done_chunk(content: str, ui_context: Optional[UIContext] = None) -> Dict[str, Any]:
    chunk = {"type": "done", "content": content, "done": True}
    if ui_context is not None:
        chunk["ui_context"] = ui_context.to_dict()
    return chunk


def error_chunk(message: str) -> Dict[str, Any]:
    return {"type": "error", "error": message, "done": True}


class ChunkEmitter:
    """Delivers chunks to the caller's callback.

    - Accepts a plain or async callback
    - Drops everything once the turn context is cancelled
    - Drops everything after the first terminal chunk (done or error)
    """

    def __init__(self, on_chunk: ChunkCallback, context: Optional[TurnContext] = None):
        self._on_chunk = on_chunk
        self._context = context
        self._terminated = False

    @property
    def closed(self) -> bool:
        return self._terminated or bool(self._context and self._context.cancelled)

    async def emit(self, chunk: Dict[str, Any]) -> bool:
        """Send a chunk. Returns False if it was dropped."""
        if self.closed:
            if self._context is not None and self._context.cancelled:
                logger.debug(f"Turn cancelled, dropping {chunk.get('type')} chunk")
            else:
                logger.warning(f"Dropping {chunk.get('type')} chunk after terminal chunk")
            return False

        if chunk.get("type") in TERMINAL_TYPES:
            self._terminated = True

        result = self._on_chunk(chunk)
        if inspect.isawaitable(result):
            await result
        return True
